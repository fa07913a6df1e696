"""
Core protocol types for the Sans-I/O WebDAV implementation.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation, and the resource model the response
decoder produces.  All of them are immutable.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import total_ordering
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple, Union

from lxml import etree

from davkit.lib import error


class DAVMethod(Enum):
    """WebDAV HTTP methods."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    PROPPATCH = "PROPPATCH"
    MKCOL = "MKCOL"
    COPY = "COPY"
    MOVE = "MOVE"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"


class Depth(Enum):
    """Value of the Depth header."""

    ZERO = "0"
    ONE = "1"
    INFINITY = "infinity"

    @classmethod
    def coerce(cls, value: Union["Depth", int, str]) -> "Depth":
        """Accept a Depth, 0, 1, "0", "1" or "infinity"."""
        if isinstance(value, Depth):
            return value
        text = str(value).strip().lower()
        for depth in cls:
            if depth.value == text:
                return depth
        raise error.EncodingError(reason="invalid depth %r" % (value,))


class LockScope(Enum):
    EXCLUSIVE = "exclusive"
    SHARED = "shared"


class PatchAction(Enum):
    SET = "set"
    REMOVE = "remove"


class ValueKind(Enum):
    """The well-known properties that are decoded into Python values."""

    LAST_MODIFIED = "getlastmodified"
    CREATION_DATE = "creationdate"
    CONTENT_LENGTH = "getcontentlength"
    CONTENT_TYPE = "getcontenttype"
    DISPLAY_NAME = "displayname"
    ETAG = "getetag"
    RESOURCE_TYPE = "resourcetype"
    LOCK_DISCOVERY = "lockdiscovery"
    SUPPORTED_LOCK = "supportedlock"


@total_ordering
@dataclass(frozen=True)
class PropertyName:
    """
    A namespace-qualified property name.

    namespace is None for a property without namespace.  The empty
    string is rejected, so "no namespace" has exactly one spelling.
    """

    namespace: Optional[str]
    name: str

    def __post_init__(self) -> None:
        if self.namespace == "":
            raise error.EncodingError(
                reason="empty namespace for %r, use None for no namespace" % self.name
            )
        if not self.name or any(c in self.name for c in "{}<>/ \t\r\n"):
            raise error.EncodingError(reason="invalid property name %r" % self.name)

    @classmethod
    def from_clark(cls, text: str) -> "PropertyName":
        """Parse "{namespace}name" (or a bare "name", without namespace)."""
        if text.startswith("{"):
            namespace, sep, name = text[1:].partition("}")
            if not sep:
                raise error.EncodingError(reason="expected closing } in %r" % text)
            return cls(namespace or None, name)
        return cls(None, text)

    @classmethod
    def coerce(cls, value: Union["PropertyName", str]) -> "PropertyName":
        if isinstance(value, PropertyName):
            return value
        return cls.from_clark(value)

    @classmethod
    def dav(cls, name: str) -> "PropertyName":
        return cls("DAV:", name)

    @property
    def clark(self) -> str:
        if self.namespace is None:
            return self.name
        return "{%s}%s" % (self.namespace, self.name)

    def __str__(self) -> str:
        return self.clark

    def __lt__(self, other: "PropertyName") -> bool:
        if not isinstance(other, PropertyName):
            return NotImplemented
        return self._key() < other._key()

    def _key(self) -> tuple:
        return (self.namespace is not None, self.namespace or "", self.name)


# Property values


@dataclass(frozen=True)
class Absent:
    """No value: the property was not returned, or it failed."""

    def __bool__(self) -> bool:
        return False


ABSENT = Absent()


@dataclass(frozen=True)
class RawValue:
    """
    A property the decoder does not understand, kept as the serialized
    property element (namespace declarations included) so it can be
    sent back unchanged in a PROPPATCH.
    """

    xml: bytes

    def element(self) -> etree._Element:
        return etree.fromstring(self.xml)

    @property
    def text(self) -> str:
        """All text content of the element, concatenated"""
        return "".join(self.element().itertext())


@dataclass(frozen=True)
class TypedValue:
    """
    A decoded well-known property.  raw holds the element it was
    decoded from, for round-tripping.
    """

    kind: ValueKind
    value: Any
    raw: bytes = field(default=b"", compare=False, repr=False)


PropertyValue = Union[Absent, RawValue, TypedValue]


@dataclass(frozen=True)
class ResourceType:
    """Decoded DAV:resourcetype: the names of its child elements"""

    types: Tuple[PropertyName, ...] = ()

    @property
    def is_collection(self) -> bool:
        return PropertyName.dav("collection") in self.types


@dataclass(frozen=True)
class ActiveLock:
    """One DAV:activelock from a lockdiscovery property."""

    scope: LockScope
    depth: Depth
    token: Optional[str] = None
    owner: Optional[str] = None
    timeout: Optional[str] = None
    root: Optional[str] = None
    locktype: str = "write"

    @property
    def timeout_seconds(self) -> Optional[int]:
        """Seconds left on the lock; None for Infinite or unknown"""
        if self.timeout and self.timeout.lower().startswith("second-"):
            try:
                return int(self.timeout[7:])
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class LockEntry:
    """One DAV:lockentry from a supportedlock property."""

    scope: LockScope
    locktype: str = "write"


# Resource model


@dataclass(frozen=True)
class PropertyResult:
    """
    Outcome for one property of one resource.

    Attributes:
        status: HTTP status from the propstat, or inherited from the response
        value: decoded value, ABSENT if the property failed or was empty
        description: DAV:responsedescription of the propstat, if any
    """

    status: int
    value: PropertyValue = ABSENT
    description: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class ResourceEntry:
    """
    One DAV:response of a multistatus: a Resource Path and the outcome
    of every property reported for it, in document order.

    Attributes:
        path: absolute, percent-decoded path; collections end with "/"
        properties: property name -> PropertyResult
        status: status of the response element itself, if it had one
        description: DAV:responsedescription, if any
        error: serialized DAV:error element, if any
    """

    path: str
    properties: Mapping[PropertyName, PropertyResult] = field(
        default_factory=lambda: MappingProxyType({})
    )
    status: Optional[int] = None
    description: Optional[str] = None
    error: Optional[bytes] = None

    def __post_init__(self) -> None:
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(
                self, "properties", MappingProxyType(dict(self.properties))
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceEntry):
            return NotImplemented
        return (
            self.path == other.path
            and list(self.properties.items()) == list(other.properties.items())
            and self.status == other.status
            and self.description == other.description
            and self.error == other.error
        )

    def __hash__(self) -> int:
        return hash((self.path, self.status))

    def get(self, name: Union[PropertyName, str]) -> Optional[PropertyResult]:
        return self.properties.get(PropertyName.coerce(name))

    def value(self, name: Union[PropertyName, str]) -> PropertyValue:
        """The value of a property; ABSENT if missing or failed"""
        result = self.get(name)
        if result is None or not result.ok:
            return ABSENT
        return result.value

    def ok_properties(self) -> Mapping[PropertyName, PropertyResult]:
        return {k: v for k, v in self.properties.items() if v.ok}

    def failed_properties(self) -> Mapping[PropertyName, PropertyResult]:
        return {k: v for k, v in self.properties.items() if not v.ok}

    @property
    def ok(self) -> bool:
        """False if the resource itself, or any of its properties, failed"""
        if self.status is not None and not 200 <= self.status < 300:
            return False
        return all(v.ok for v in self.properties.values())

    def _typed(self, name: str) -> Any:
        value = self.value(PropertyName.dav(name))
        if isinstance(value, TypedValue):
            return value.value
        return None

    @property
    def is_collection(self) -> bool:
        return self.path.endswith("/")

    @property
    def resource_type(self) -> Optional[ResourceType]:
        return self._typed("resourcetype")

    @property
    def etag(self) -> Optional[str]:
        return self._typed("getetag")

    @property
    def last_modified(self) -> Optional[datetime]:
        return self._typed("getlastmodified")

    @property
    def creation_date(self) -> Optional[datetime]:
        return self._typed("creationdate")

    @property
    def content_length(self) -> Optional[int]:
        return self._typed("getcontentlength")

    @property
    def content_type(self) -> Optional[str]:
        return self._typed("getcontenttype")

    @property
    def display_name(self) -> Optional[str]:
        return self._typed("displayname")

    @property
    def locks(self) -> Tuple[ActiveLock, ...]:
        return self._typed("lockdiscovery") or ()

    def relative_path(self, base: str) -> str:
        """The path relative to a base collection path, "." for the base itself"""
        from davkit.lib.url import relative_path

        return relative_path(self.path, base)


@dataclass(frozen=True)
class MultistatusResult:
    """
    Parsed 207 Multi-Status response: one ResourceEntry per reported
    resource, in document order.
    """

    entries: Tuple[ResourceEntry, ...] = ()
    description: Optional[str] = None

    def __iter__(self) -> Iterator[ResourceEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> ResourceEntry:
        return self.entries[index]

    def by_path(self, path: str) -> Optional[ResourceEntry]:
        """Find an entry by path; a trailing "/" is not significant"""
        for entry in self.entries:
            if entry.path == path:
                return entry
        stripped = path.rstrip("/")
        for entry in self.entries:
            if entry.path.rstrip("/") == stripped:
                return entry
        return None

    def paths(self) -> Tuple[str, ...]:
        return tuple(entry.path for entry in self.entries)

    def failures(self) -> Tuple[ResourceEntry, ...]:
        return tuple(entry for entry in self.entries if not entry.ok)


@dataclass(frozen=True)
class PropPatchOperation:
    """
    One instruction of a PROPPATCH.  value may be a string (text
    content), a RawValue or TypedValue (re-sent verbatim), or an lxml
    element whose content is copied.
    """

    name: PropertyName
    action: PatchAction
    value: Any = None

    @classmethod
    def set(cls, name: Union[PropertyName, str], value: Any) -> "PropPatchOperation":
        return cls(PropertyName.coerce(name), PatchAction.SET, value)

    @classmethod
    def remove(cls, name: Union[PropertyName, str]) -> "PropPatchOperation":
        return cls(PropertyName.coerce(name), PatchAction.REMOVE)


@dataclass(frozen=True)
class LockResult:
    """
    Outcome of a successful LOCK.

    Attributes:
        token: the lock token, without angle brackets
        locks: the active locks from the lockdiscovery in the body
        status: 200 for a refresh or lock on an existing resource,
                201 if the lock created an empty resource
    """

    token: str
    locks: Tuple[ActiveLock, ...] = ()
    status: int = 200


# Request/Response


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: dict = field(default_factory=dict)
    body: Optional[bytes] = None

    def with_header(self, name: str, value: str) -> "DAVRequest":
        """Return new request with additional header."""
        new_headers = {**self.headers, name: value}
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers=new_headers,
            body=self.body,
        )

    def with_body(self, body: bytes) -> "DAVRequest":
        """Return new request with body."""
        return DAVRequest(
            method=self.method,
            url=self.url,
            headers=self.headers,
            body=body,
        )


REASONS = {
    200: "OK",
    201: "Created",
    204: "No Content",
    207: "Multi-Status",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    412: "Precondition Failed",
    415: "Unsupported Media Type",
    423: "Locked",
    424: "Failed Dependency",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    507: "Insufficient Storage",
}


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    This is a pure data structure with no I/O. It contains the response
    data but does not fetch it.

    Attributes:
        status: HTTP status code
        headers: HTTP headers as dict
        body: Response body as bytes
    """

    status: int
    headers: dict
    body: bytes

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def is_multistatus(self) -> bool:
        """True if this is a 207 Multi-Status response."""
        return self.status == 207

    @property
    def reason(self) -> str:
        """Return a reason phrase for the status code."""
        return REASONS.get(self.status, "Unknown")

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup"""
        lower = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lower:
                return value
        return None


# Outcomes of methods that do not return a multistatus


@dataclass(frozen=True)
class Outcome:
    status: int
    reason: str = ""
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Success(Outcome):
    """
    A 2xx response.  The headers a caller typically needs next are
    pulled out.
    """

    etag: Optional[str] = None
    lock_token: Optional[str] = None
    location: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Redirect(Outcome):
    location: Optional[str] = None


@dataclass(frozen=True)
class ClientError(Outcome):
    """A 4xx response; kind is the reason phrase, i.e. "Not Found" """

    @property
    def kind(self) -> str:
        return self.reason


@dataclass(frozen=True)
class ServerError(Outcome):
    """A 5xx response"""

    @property
    def kind(self) -> str:
        return self.reason


SimpleOutcome = Union[Success, Redirect, ClientError, ServerError]
