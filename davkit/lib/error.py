#!/usr/bin/env python
import logging
import os
from typing import Optional

from davkit import __version__

## Environmental variables prepended with "PYTHON_DAVKIT" are used for debug purposes,
## environmental variables prepended with "WEBDAV_" are for connection parameters
debug_dump_communication = bool(os.environ.get("PYTHON_DAVKIT_COMMDUMP", False))
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_DAVKIT_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("davkit")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)


def weirdness(*reasons):
    from davkit.lib.debug import xmlstring

    reason = " : ".join([xmlstring(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason
        super().__init__(self.reason)

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class InvalidPath(DAVError):
    """
    A base URL or resource path could not be turned into a request URL.
    Raised locally, before anything is sent.
    """

    pass


class EncodingError(DAVError):
    """
    The caller asked for a request that cannot be expressed on the
    wire, i.e. a PROPPATCH that both sets and removes the same property.
    """

    pass


class MissingLockToken(DAVError):
    """
    A conditional request (UNLOCK, lock refresh) was attempted without
    a usable lock token.  Raised before any transport call.
    """

    pass


class TransportFailure(DAVError):
    """
    The HTTP backend failed before a response was obtained.  The
    backend's own exception is available as ``__cause__``.
    """

    pass


class MalformedResponse(DAVError):
    """
    The server answered, but the body could not be parsed into the
    expected shape (invalid XML, wrong root element, a multistatus
    without any response, a property without any status ...).
    """

    pass


class ProtocolError(DAVError):
    """
    A well-formed, but unsuccessful, outcome.  The status property
    holds the HTTP status code, the reason property holds whatever
    message the server sent along.
    """

    status: Optional[int] = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(url, reason)
        self.status = status

    def __str__(self) -> str:
        return "%s %s at '%s', reason %s" % (
            self.__class__.__name__,
            self.status,
            self.url,
            self.reason,
        )

    def is_not_found(self) -> bool:
        return self.status == 404

    def is_conflict(self) -> bool:
        return self.status == 409
