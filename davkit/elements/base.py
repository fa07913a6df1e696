#!/usr/bin/env python
"""
Request body building blocks.  Each element class knows its tag; trees
are composed with ``+`` and turned into lxml elements by xmlelement().
"""
import sys
from collections.abc import Iterable
from copy import deepcopy
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from lxml import etree
from lxml.etree import _Element

from davkit.lib.namespace import nsmap
from davkit.lib.python_utilities import to_unicode

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class BaseElement:
    tag: ClassVar[Optional[str]] = None

    def __init__(self, value: Union[str, bytes, None] = None) -> None:
        self.children: List[BaseElement] = []
        self.value: Optional[str] = to_unicode(value)

    def __add__(self, other: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        return self.append(other)

    def __str__(self) -> str:
        return etree.tostring(
            self.xmlelement(), encoding="utf-8", xml_declaration=True, pretty_print=True
        ).decode("utf-8")

    def element_tag(self) -> str:
        if self.tag is None:
            raise ValueError("%s has no tag" % type(self).__name__)
        return self.tag

    def xmlelement(
        self,
        parent: Optional[_Element] = None,
        namespaces: Optional[Dict[str, str]] = None,
    ) -> _Element:
        """
        Build the lxml element.  The root element declares all the
        namespaces given (or the plain DAV: map); children are created
        as sub elements, so they share the root's prefixes.
        """
        if parent is None:
            node = etree.Element(self.element_tag(), nsmap=namespaces or nsmap)
        else:
            node = etree.SubElement(parent, self.element_tag())
        if self.value is not None:
            node.text = self.value
        self.xmlchildren(node)
        return node

    def xmlchildren(self, node: _Element) -> None:
        for child in self.children:
            child.xmlelement(parent=node)

    def append(self, element: Union["BaseElement", Iterable["BaseElement"]]) -> Self:
        if isinstance(element, Iterable):
            self.children.extend(element)
        else:
            self.children.append(element)
        return self


class ValuedBaseElement(BaseElement):
    """An element carrying text, such as an href or a display name."""


class FreeElement(BaseElement):
    """
    An element whose tag is given at runtime, i.e. a property the
    caller named.  The content may be text, or an lxml element whose
    text and children are copied in verbatim.
    """

    def __init__(
        self,
        tag: str,
        value: Union[str, bytes, None] = None,
        content: Optional[_Element] = None,
    ) -> None:
        super(FreeElement, self).__init__(value=value)
        self.free_tag = tag
        self.content = content

    def element_tag(self) -> str:
        return self.free_tag

    def xmlchildren(self, node: _Element) -> None:
        super(FreeElement, self).xmlchildren(node)
        if self.content is None:
            return
        node.text = self.content.text
        for attribute, attribute_value in self.content.attrib.items():
            node.set(attribute, attribute_value)
        for child in self.content:
            node.append(deepcopy(child))
