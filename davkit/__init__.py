#!/usr/bin/env python
import logging

__version__ = "0.1.0"

from .protocol import WebDAVProtocol
from .protocol_client import AsyncProtocolClient
from .protocol_client import SyncProtocolClient

## We should consider if the NullHandler-logic below is needed or not, and
## if there are better alternatives?
# Silence notification of no default logging handler
log = logging.getLogger("davkit")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "WebDAVProtocol",
    "SyncProtocolClient",
    "AsyncProtocolClient",
]
