"""Write a perch Response to an ASGI ``send`` callable."""

from perch._internal.asgi import Send
from perch.http.response import Response

# Statuses that never carry a message body (RFC 9110 §6.4.1)
_BODYLESS = frozenset({204, 304})


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """Header block for ``http.response.start``: content type first, length last."""
    headers = [(b"content-type", response.content_type.encode("latin-1"))]
    for name, value in response.headers:
        headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    headers.append((b"content-length", str(content_length).encode("latin-1")))
    return headers


async def send_response(response: Response, send: Send) -> None:
    """Emit *response* as one start message and one body message."""
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": body})
