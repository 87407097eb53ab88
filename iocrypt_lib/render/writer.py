"""Terminal writers: the single side-effecting boundary of the renderer.

A renderer in "die after render" mode hands its payload to a writer instead
of returning it. The writer is responsible for emitting the content type
(and content encoding for compressed payloads) and ending the response.
"""
import sys
from typing import Any, BinaryIO, Callable, Optional

from starlette.responses import Response

# Writers are called as writer(body, content_type, compression_tag)
TerminalWriter = Callable[[bytes, str, Optional[str]], Any]

#############################################
## Discriminator tag -> HTTP Content-Encoding
#############################################
# bzip2 is not a registered HTTP content coding; such payloads go out as
# opaque octet streams tagged only by X-Compression-Type.
CONTENT_ENCODINGS = {
    "gz": "gzip",
    "br": "br",
}


def _headers(content_type: str, compression: Optional[str]) -> dict:
    headers = {"content-type": content_type}
    if compression and compression != "none":
        encoding = CONTENT_ENCODINGS.get(compression)
        if encoding:
            headers["content-encoding"] = encoding
        else:
            headers["content-type"] = "application/octet-stream"
        headers["x-compression-type"] = compression
    return headers


def response_writer(body: bytes, content_type: str, compression: Optional[str] = None) -> Response:
    """Default writer: wrap the payload in a starlette `Response`.

    Returning the response from an endpoint ends the request, which is the
    web equivalent of writing the output and terminating.
    """
    headers = _headers(content_type, compression)
    response = Response(content=body, media_type=content_type)
    for k, v in headers.items():
        response.headers[k] = v
    return response


def exit_writer(stream: Optional[BinaryIO] = None) -> TerminalWriter:
    """Writer for CGI style scripts: header block, body, then `SystemExit(0)`."""

    def write(body: bytes, content_type: str, compression: Optional[str] = None):
        out = stream if stream is not None else sys.stdout.buffer
        for k, v in _headers(content_type, compression).items():
            out.write(f"{k.title()}: {v}\r\n".encode("latin-1"))
        out.write(b"\r\n")
        out.write(body)
        out.flush()
        raise SystemExit(0)

    return write
