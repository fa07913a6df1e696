"""
HTTP transports for the WebDAV protocol layer.

SyncIO (requests) and AsyncIO (aiohttp) turn a DAVRequest into a
DAVResponse and do nothing else.  The clients accept any object that
satisfies SyncTransport or AsyncTransport, so another HTTP library, or
a mock in the tests, can be plugged in instead:

    protocol = WebDAVProtocol("https://dav.example.com/files/")
    with SyncIO(timeout=10) as io:
        request = protocol.get_request("docs/report.txt")
        content = protocol.check(io.execute(request), request.url).body
"""

from .base import AsyncTransport, SyncTransport
from .sync import SyncIO
from .async_ import AsyncIO

__all__ = [
    "SyncTransport",
    "AsyncTransport",
    "SyncIO",
    "AsyncIO",
]
