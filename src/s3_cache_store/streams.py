"""Stream adapters between asyncio callers and the blocking boto3 client."""

import asyncio
import contextlib
import logging
import queue
import threading


DEFAULT_CHUNK_SIZE = 64 * 1024

_EOF = object()
_POLL_INTERVAL = 0.1


class PassThrough:
    """Non-seekable file-like object fed chunk by chunk from another thread.

    The multipart uploader pulls from ``read`` while a producer pushes with
    ``write``. The queue is bounded, so ``write`` blocks once ``max_chunks``
    chunks are waiting and the producer only moves as fast as the upload.
    """

    def __init__(self, max_chunks=4):
        self._chunks = queue.Queue(maxsize=max_chunks)
        self._buffer = bytearray()
        self._eof = False
        self._aborted = threading.Event()

    def readable(self):
        return True

    def seekable(self):
        return False

    def write(self, chunk):
        self._put(bytes(chunk))

    def finish(self):
        """Signal end of data to the reader."""
        self._put(_EOF)

    def fail(self, error):
        """Make the reader raise ``error`` once it drains the queue."""
        self._put(error)

    def abort(self):
        """Stop the pipe; blocked and later reads and writes raise BrokenPipeError."""
        self._aborted.set()

    def _put(self, item):
        while True:
            if self._aborted.is_set():
                raise BrokenPipeError("pass-through reader has stopped")
            try:
                self._chunks.put(item, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def _get(self):
        while True:
            if self._aborted.is_set():
                raise BrokenPipeError("pass-through writer has stopped")
            try:
                return self._chunks.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue

    def read(self, size=-1):
        while not self._eof and (size is None or size < 0 or len(self._buffer) < size):
            item = self._get()
            if item is _EOF:
                self._eof = True
            elif isinstance(item, BaseException):
                raise item
            else:
                self._buffer.extend(item)
        if size is None or size < 0:
            size = len(self._buffer)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data


async def feed(source, sink):
    """Copy an async iterable of bytes into ``sink``.

    Errors raised by ``source`` are handed to the sink so the reader fails
    with them. Stops quietly when the sink has been aborted.
    Cancellation aborts the sink so a blocked reader is released too.
    """
    try:
        async for chunk in source:
            if chunk:
                await asyncio.to_thread(sink.write, chunk)
    except BrokenPipeError:
        return
    except Exception as e:
        with contextlib.suppress(BrokenPipeError):
            await asyncio.to_thread(sink.fail, e)
        return
    except BaseException:
        sink.abort()
        raise
    with contextlib.suppress(BrokenPipeError):
        await asyncio.to_thread(sink.finish)


class DownloadStream:
    """Async reader over a store response body.

    Errors raised while reading are logged and re-raised to the reader.
    """

    def __init__(
        self,
        body,
        key,
        content_length=None,
        content_type=None,
        chunk_size=DEFAULT_CHUNK_SIZE,
        logger=None,
    ):
        self.key = key
        self.content_length = content_length
        self.content_type = content_type
        self.chunk_size = chunk_size
        self._body = body
        self._logger = logger or logging.getLogger(__name__)

    def __repr__(self):
        return f"<DownloadStream key={self.key!r}>"

    async def read(self, amt=None):
        try:
            return await asyncio.to_thread(self._body.read, amt)
        except Exception as e:
            self._logger.error("Error streaming %s: %s", self.key, e)
            raise

    async def close(self):
        await asyncio.to_thread(self._body.close)

    def __aiter__(self):
        return self

    async def __anext__(self):
        chunk = await self.read(self.chunk_size)
        if not chunk:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
