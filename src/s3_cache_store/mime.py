_CONTENT_TYPES = {
    "css": "text/css",
    "js": "text/javascript",
    "html": "text/html",
}


def content_type_for_extension(extension):
    """Return the content type for a file extension such as ``"css"``.

    Unknown extensions yield an empty string.
    """
    return _CONTENT_TYPES.get(extension.lower(), "")
