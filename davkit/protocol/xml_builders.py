"""
Pure functions for building WebDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.
"""
from typing import Any
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Union

from lxml import etree

from davkit.elements import dav
from davkit.elements.base import BaseElement
from davkit.elements.base import FreeElement
from davkit.lib import error
from davkit.lib.namespace import PrefixAllocator

from .types import LockScope
from .types import PatchAction
from .types import PropertyName
from .types import PropPatchOperation
from .types import RawValue
from .types import TypedValue


def build_propfind_body(
    props: Optional[Sequence[Union[PropertyName, str]]] = None,
    propname: bool = False,
) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        props: Property names to retrieve, one DAV:prop child each, in the
               order given.  If None (or empty), all properties are
               requested with DAV:allprop.
        propname: Ask for the property names only (DAV:propname).

    Returns:
        UTF-8 encoded XML bytes
    """
    names = [PropertyName.coerce(p) for p in props or []]
    if propname:
        if names:
            raise error.EncodingError(reason="propname can't be combined with a property list")
        propfind = dav.Propfind() + dav.PropName()
    elif names:
        propfind = dav.Propfind() + (dav.Prop() + [_prop_element(n) for n in names])
    else:
        propfind = dav.Propfind() + dav.Allprop()

    return _tostring(propfind, names)


def build_proppatch_body(operations: Sequence[PropPatchOperation]) -> bytes:
    """
    Build PROPPATCH request body.

    Every operation becomes its own DAV:set or DAV:remove block, in the
    order given, since servers apply them in document order.

    Args:
        operations: ordered set/remove instructions

    Returns:
        UTF-8 encoded XML bytes

    Raises:
        EncodingError: no operations, a set without value, a remove with
                       a value, or a property that is both set and removed
    """
    if not operations:
        raise error.EncodingError(reason="PROPPATCH without any operations")

    actions = {}
    for op in operations:
        if op.action == PatchAction.SET and op.value is None:
            raise error.EncodingError(reason="no value given for setting %s" % op.name)
        if op.action == PatchAction.REMOVE and op.value is not None:
            raise error.EncodingError(reason="value given for removing %s" % op.name)
        if actions.setdefault(op.name, op.action) != op.action:
            raise error.EncodingError(
                reason="property %s is both set and removed" % op.name
            )

    propertyupdate = dav.PropertyUpdate()
    for op in operations:
        if op.action == PatchAction.SET:
            block = dav.Set() + (dav.Prop() + _prop_element(op.name, op.value))
        else:
            block = dav.Remove() + (dav.Prop() + _prop_element(op.name))
        propertyupdate += block

    return _tostring(propertyupdate, [op.name for op in operations])


def build_lock_body(
    scope: LockScope = LockScope.EXCLUSIVE,
    owner: Optional[str] = None,
) -> bytes:
    """
    Build LOCK request body.  Depth and timeout go into headers.

    Args:
        scope: exclusive or shared write lock
        owner: free text; URLs (http, https, mailto) are wrapped in DAV:href

    Returns:
        UTF-8 encoded XML bytes
    """
    if scope == LockScope.SHARED:
        scope_element: BaseElement = dav.Shared()
    else:
        scope_element = dav.Exclusive()

    elements: List[BaseElement] = [
        dav.LockScope() + scope_element,
        dav.LockType() + dav.Write(),
    ]
    if owner:
        if owner.split(":", 1)[0].lower() in ("http", "https", "mailto"):
            elements.append(dav.Owner() + dav.Href(owner))
        else:
            elements.append(dav.Owner(owner))

    return _tostring(dav.LockInfo() + elements, [])


# Property name to element mapping


def _prop_element(name: PropertyName, value: Optional[Any] = None) -> BaseElement:
    """
    Convert a property name, and optionally a value, into an element.

    Args:
        name: the property name
        value: text, RawValue, TypedValue or an lxml element

    Returns:
        FreeElement for the property
    """
    if value is None:
        return FreeElement(_tag(name))
    if isinstance(value, (RawValue, TypedValue)):
        raw = value.xml if isinstance(value, RawValue) else value.raw
        if not raw:
            raise error.EncodingError(reason="no XML to send for %s" % name)
        try:
            content = etree.fromstring(raw)
        except etree.XMLSyntaxError as e:
            raise error.EncodingError(reason="invalid XML for %s: %s" % (name, e))
        return FreeElement(_tag(name), content=content)
    if isinstance(value, etree._Element):
        return FreeElement(_tag(name), content=value)
    if isinstance(value, (str, bytes)):
        return FreeElement(_tag(name), value=value)
    raise error.EncodingError(
        reason="can't encode %s value of type %s" % (name, type(value).__name__)
    )


def _tag(name: PropertyName) -> str:
    return name.clark


def _tostring(root: BaseElement, names: Iterable[PropertyName]) -> bytes:
    """
    Serialize with all namespaces declared on the root element.  The
    prefixes are allocated in order of first use.
    """
    allocator = PrefixAllocator()
    for name in names:
        if name.namespace is not None:
            allocator.prefix(name.namespace)
    try:
        xml = root.xmlelement(namespaces=dict(allocator.used))
    except ValueError as e:
        ## lxml refuses i.e. control characters in text content
        raise error.EncodingError(reason=str(e))
    return etree.tostring(xml, encoding="utf-8", xml_declaration=True)
