"""
Pure functions for parsing WebDAV XML responses.

All functions in this module are pure - they take XML bytes in and return
structured data out, with no side effects or I/O.
"""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from lxml import etree
from lxml.etree import _Element

from davkit.elements import dav
from davkit.lib import error
from davkit.lib.url import href_to_path

from .types import (
    ABSENT,
    ActiveLock,
    Depth,
    LockEntry,
    LockScope,
    MultistatusResult,
    PropertyName,
    PropertyResult,
    PropertyValue,
    RawValue,
    ResourceEntry,
    ResourceType,
    TypedValue,
    ValueKind,
)

log = logging.getLogger(__name__)


def _parse_xml(body: bytes, huge_tree: bool = False) -> _Element:
    """
    Parse a response body.  Entities are not resolved and nothing is
    fetched from the network.

    Raises:
        MalformedResponse: empty body or invalid XML
    """
    if not body or not body.strip():
        raise error.MalformedResponse(reason="empty response body")
    parser = etree.XMLParser(
        huge_tree=huge_tree, resolve_entities=False, no_network=True
    )
    try:
        return etree.fromstring(body, parser)
    except etree.XMLSyntaxError as e:
        raise error.MalformedResponse(reason="invalid XML: %s" % e)


def parse_multistatus(
    body: bytes,
    base_url: Optional[str] = None,
    huge_tree: bool = False,
) -> MultistatusResult:
    """
    Parse a 207 Multi-Status response body.

    Every property gets the status of its propstat; a propstat without
    status inherits the status of its response element.  If neither
    has one, the response is malformed - nothing defaults to success.

    Args:
        body: Raw XML response bytes
        base_url: URL of the request, relative hrefs are resolved against it
        huge_tree: Allow parsing very large XML documents

    Returns:
        MultistatusResult with one ResourceEntry per reported resource

    Raises:
        MalformedResponse: invalid XML, wrong root element, a response
                           without href, no response at all, or a
                           property without any status
    """
    tree = _parse_xml(body, huge_tree=huge_tree)
    multistatus = _strip_to_multistatus(tree)

    entries: List[ResourceEntry] = []
    description: Optional[str] = None

    for elem in multistatus:
        if elem.tag == dav.Response.tag:
            entries.extend(_parse_response_element(elem, base_url))
        elif elem.tag == dav.ResponseDescription.tag:
            description = _text(elem)
        elif isinstance(elem.tag, str):
            error.weirdness("unexpected element in multistatus", elem)

    if not entries:
        raise error.MalformedResponse(base_url, "multistatus without any response")

    log.debug("decoded multistatus with %i entries", len(entries))
    return MultistatusResult(entries=tuple(entries), description=description)


def parse_lockdiscovery(body: bytes) -> Tuple[ActiveLock, ...]:
    """
    Parse the body of a LOCK response: a DAV:prop with a
    DAV:lockdiscovery.

    Raises:
        MalformedResponse: invalid XML, or no lockdiscovery found
    """
    tree = _parse_xml(body)
    if tree.tag == dav.LockDiscovery.tag:
        discovery = tree
    else:
        discovery = tree.find(".//" + dav.LockDiscovery.tag)
    if discovery is None:
        raise error.MalformedResponse(reason="no lockdiscovery in LOCK response")
    try:
        return _decode_lockdiscovery(discovery)
    except ValueError as e:
        raise error.MalformedResponse(reason="invalid lockdiscovery: %s" % e)


def parse_status_line(status: Optional[str]) -> int:
    """
    Extract status code from status string like "HTTP/1.1 200 OK".

    Raises:
        MalformedResponse: if no status code can be found
    """
    parts = (status or "").split()
    if len(parts) >= 2 and parts[0].upper().startswith("HTTP/"):
        try:
            code = int(parts[1])
        except ValueError:
            pass
        else:
            if 100 <= code <= 599:
                return code
    raise error.MalformedResponse(reason="invalid status line %r" % status)


# Helper functions


def _strip_to_multistatus(tree: _Element) -> _Element:
    """
    Find the DAV:multistatus element.

    The general format is:
        <multistatus>
            <response>...</response>
            <response>...</response>
        </multistatus>

    Some servers wrap it in an extra <xml> element.
    """
    if tree.tag == "xml" and len(tree) > 0 and tree[0].tag == dav.MultiStatus.tag:
        return tree[0]
    if tree.tag == dav.MultiStatus.tag:
        return tree
    raise error.MalformedResponse(
        reason="expected a DAV:multistatus root element, got %s" % tree.tag
    )


def _text(elem: Optional[_Element]) -> Optional[str]:
    if elem is None:
        return None
    return (elem.text or "").strip()


def _parse_response_element(
    response: _Element, base_url: Optional[str]
) -> List[ResourceEntry]:
    """
    Parse a single DAV:response element.

    A response is either a list of propstats for one href, or a
    status for one or more hrefs.
    """
    hrefs: List[str] = []
    status: Optional[int] = None
    propstats: List[_Element] = []
    description: Optional[str] = None
    error_xml: Optional[bytes] = None

    for elem in response:
        if elem.tag == dav.Href.tag:
            hrefs.append(elem.text or "")
        elif elem.tag == dav.Status.tag:
            status = parse_status_line(elem.text)
        elif elem.tag == dav.PropStat.tag:
            propstats.append(elem)
        elif elem.tag == dav.ResponseDescription.tag:
            description = _text(elem)
        elif elem.tag == dav.Error.tag:
            error_xml = etree.tostring(elem, with_tail=False)
        elif isinstance(elem.tag, str):
            error.weirdness("unexpected element found in response", elem)

    if not hrefs:
        raise error.MalformedResponse(base_url, "response without href")
    if not propstats and status is None:
        raise error.MalformedResponse(
            base_url, "response for %s has neither propstat nor status" % hrefs[0]
        )
    if propstats and len(hrefs) > 1:
        raise error.MalformedResponse(
            base_url, "response with propstat can only have one href"
        )

    paths = []
    for href in hrefs:
        try:
            paths.append(href_to_path(href, base_url))
        except error.InvalidPath as e:
            raise error.MalformedResponse(base_url, "invalid href: %s" % e.reason)

    properties = _extract_properties(propstats, status, paths[0])

    ## Collections end with a slash, whether or not the server says so
    resourcetype = properties.get(PropertyName.dav("resourcetype"))
    if (
        resourcetype is not None
        and isinstance(resourcetype.value, TypedValue)
        and resourcetype.value.value.is_collection
        and not paths[0].endswith("/")
    ):
        paths[0] += "/"

    return [
        ResourceEntry(
            path=path,
            properties=properties,
            status=status,
            description=description,
            error=error_xml,
        )
        for path in paths
    ]


def _extract_properties(
    propstats: List[_Element], response_status: Optional[int], path: str
) -> Dict[PropertyName, PropertyResult]:
    """
    Extract properties from propstat elements, each with its own status.

    The propstat status wins; the response status is the fallback.
    """
    properties: Dict[PropertyName, PropertyResult] = {}

    for propstat in propstats:
        status_elem = propstat.find(dav.Status.tag)
        if status_elem is not None:
            status: Optional[int] = parse_status_line(status_elem.text)
        else:
            status = response_status
        if status is None:
            raise error.MalformedResponse(
                reason="propstat without status for %s, and no status on the response"
                % path
            )

        description = _text(propstat.find(dav.ResponseDescription.tag))

        prop = propstat.find(dav.Prop.tag)
        if prop is None:
            raise error.MalformedResponse(reason="propstat without prop for %s" % path)

        for child in prop:
            if not isinstance(child.tag, str):
                ## comments and processing instructions
                continue
            name = _tag_to_name(child.tag)
            if name in properties:
                error.weirdness("property %s reported twice for %s" % (name, path))
                continue
            if 200 <= status < 300:
                value = decode_property(child)
            else:
                value = ABSENT
            properties[name] = PropertyResult(
                status=status, value=value, description=description
            )

    return properties


def _tag_to_name(tag: str) -> PropertyName:
    return PropertyName.from_clark(tag)


# Property decoding


def decode_property(elem: _Element) -> PropertyValue:
    """
    Convert a property element into a TypedValue for the well-known DAV:
    properties, and a RawValue for everything else.  A well-known
    property that fails to decode is kept as RawValue too.
    """
    raw = etree.tostring(elem, with_tail=False)
    decoder = _decoders.get(elem.tag)
    if decoder is None:
        return RawValue(raw)
    kind, func = decoder
    try:
        return TypedValue(kind=kind, value=func(elem), raw=raw)
    except (ValueError, TypeError, OverflowError):
        error.weirdness("could not decode %s, keeping it raw" % elem.tag, elem)
        return RawValue(raw)


def _decode_text(elem: _Element) -> str:
    return _text(elem) or ""


def _decode_content_length(elem: _Element) -> int:
    value = int(_decode_text(elem))
    if value < 0:
        raise ValueError("negative content length")
    return value


def parse_http_date(text: str) -> datetime:
    """RFC 1123 date, as used by DAV:getlastmodified"""
    return parsedate_to_datetime(text.strip())


def parse_iso_date(text: str) -> datetime:
    """
    RFC 3339 date, as used by DAV:creationdate.  Some servers send an
    RFC 1123 date instead, that is accepted too.
    """
    text = text.strip()
    try:
        value = datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        return parse_http_date(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _decode_last_modified(elem: _Element) -> datetime:
    return parse_http_date(_decode_text(elem))


def _decode_creation_date(elem: _Element) -> datetime:
    return parse_iso_date(_decode_text(elem))


def _decode_resourcetype(elem: _Element) -> ResourceType:
    return ResourceType(
        tuple(_tag_to_name(child.tag) for child in elem if isinstance(child.tag, str))
    )


def _decode_scope(elem: Optional[_Element]) -> LockScope:
    if elem is not None:
        if elem.find(dav.Exclusive.tag) is not None:
            return LockScope.EXCLUSIVE
        if elem.find(dav.Shared.tag) is not None:
            return LockScope.SHARED
    raise ValueError("lock without valid lockscope")


def _decode_locktype(elem: Optional[_Element]) -> str:
    if elem is None or len(elem) == 0:
        return "write"
    return etree.QName(elem[0]).localname


def _href_text(elem: Optional[_Element]) -> Optional[str]:
    if elem is None:
        return None
    href = elem.find(dav.Href.tag)
    if href is not None:
        return _text(href)
    return _text(elem) or None


def _decode_activelock(elem: _Element) -> ActiveLock:
    depth = _text(elem.find(dav.Depth.tag))
    owner_elem = elem.find(dav.Owner.tag)
    owner: Optional[str] = None
    if owner_elem is not None:
        owner = _href_text(owner_elem) or "".join(owner_elem.itertext()).strip() or None
    return ActiveLock(
        scope=_decode_scope(elem.find(dav.LockScope.tag)),
        depth=Depth.coerce(depth or "infinity"),
        token=_href_text(elem.find(dav.LockToken.tag)),
        owner=owner,
        timeout=_text(elem.find(dav.Timeout.tag)) or None,
        root=_href_text(elem.find(dav.LockRoot.tag)),
        locktype=_decode_locktype(elem.find(dav.LockType.tag)),
    )


def _decode_lockdiscovery(elem: _Element) -> Tuple[ActiveLock, ...]:
    try:
        return tuple(
            _decode_activelock(child)
            for child in elem
            if child.tag == dav.ActiveLock.tag
        )
    except error.EncodingError as e:
        ## an invalid depth value
        raise ValueError(e.reason)


def _decode_supportedlock(elem: _Element) -> Tuple[LockEntry, ...]:
    return tuple(
        LockEntry(
            scope=_decode_scope(child.find(dav.LockScope.tag)),
            locktype=_decode_locktype(child.find(dav.LockType.tag)),
        )
        for child in elem
        if child.tag == dav.LockEntry.tag
    )


_decoders: Dict[str, Tuple[ValueKind, Callable[[_Element], Any]]] = {
    dav.GetLastModified.tag: (ValueKind.LAST_MODIFIED, _decode_last_modified),
    dav.CreationDate.tag: (ValueKind.CREATION_DATE, _decode_creation_date),
    dav.GetContentLength.tag: (ValueKind.CONTENT_LENGTH, _decode_content_length),
    dav.GetContentType.tag: (ValueKind.CONTENT_TYPE, _decode_text),
    dav.DisplayName.tag: (ValueKind.DISPLAY_NAME, _decode_text),
    dav.GetEtag.tag: (ValueKind.ETAG, _decode_text),
    dav.ResourceType.tag: (ValueKind.RESOURCE_TYPE, _decode_resourcetype),
    dav.LockDiscovery.tag: (ValueKind.LOCK_DISCOVERY, _decode_lockdiscovery),
    dav.SupportedLock.tag: (ValueKind.SUPPORTED_LOCK, _decode_supportedlock),
}
