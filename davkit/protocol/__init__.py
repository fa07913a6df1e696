"""
Sans-I/O WebDAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, the resource model)
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: High-level WebDAVProtocol class combining builders and parsers

Example usage:

    from davkit.protocol import WebDAVProtocol, Depth

    protocol = WebDAVProtocol(base_url="https://dav.example.com/files/")

    # Build a request (no I/O)
    request = protocol.propfind_request(
        path="docs/",
        props=["{DAV:}displayname", "{DAV:}resourcetype"],
        depth=Depth.ONE,
    )

    # Execute via your preferred I/O (sync, async, or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    result = protocol.parse_propfind(response, request.url)
"""

from .types import (
    # Enums
    DAVMethod,
    Depth,
    LockScope,
    PatchAction,
    ValueKind,
    # Request/Response
    DAVRequest,
    DAVResponse,
    # Resource model
    ABSENT,
    Absent,
    ActiveLock,
    LockEntry,
    LockResult,
    MultistatusResult,
    PropertyName,
    PropertyResult,
    PropertyValue,
    PropPatchOperation,
    RawValue,
    ResourceEntry,
    ResourceType,
    TypedValue,
    # Simple outcomes
    ClientError,
    Redirect,
    ServerError,
    SimpleOutcome,
    Success,
)
from .xml_builders import (
    build_lock_body,
    build_propfind_body,
    build_proppatch_body,
)
from .xml_parsers import (
    decode_property,
    parse_lockdiscovery,
    parse_multistatus,
)
from .operations import WebDAVProtocol, raise_for_outcome

__all__ = [
    # Enums
    "DAVMethod",
    "Depth",
    "LockScope",
    "PatchAction",
    "ValueKind",
    # Request/Response
    "DAVRequest",
    "DAVResponse",
    # Resource model
    "ABSENT",
    "Absent",
    "ActiveLock",
    "LockEntry",
    "LockResult",
    "MultistatusResult",
    "PropertyName",
    "PropertyResult",
    "PropertyValue",
    "PropPatchOperation",
    "RawValue",
    "ResourceEntry",
    "ResourceType",
    "TypedValue",
    # Simple outcomes
    "ClientError",
    "Redirect",
    "ServerError",
    "SimpleOutcome",
    "Success",
    # XML Builders
    "build_lock_body",
    "build_propfind_body",
    "build_proppatch_body",
    # XML Parsers
    "decode_property",
    "parse_lockdiscovery",
    "parse_multistatus",
    # Protocol
    "WebDAVProtocol",
    "raise_for_outcome",
]
