#!/usr/bin/env python
from typing import ClassVar

from .base import BaseElement
from .base import ValuedBaseElement
from davkit.lib.namespace import ns


# Operations
class Propfind(BaseElement):
    tag: ClassVar[str] = ns("D", "propfind")


class PropertyUpdate(BaseElement):
    tag: ClassVar[str] = ns("D", "propertyupdate")


class LockInfo(BaseElement):
    tag: ClassVar[str] = ns("D", "lockinfo")


# Propfind variants
class Allprop(BaseElement):
    tag: ClassVar[str] = ns("D", "allprop")


class PropName(BaseElement):
    tag: ClassVar[str] = ns("D", "propname")


# Proppatch instructions
class Set(BaseElement):
    tag: ClassVar[str] = ns("D", "set")


class Remove(BaseElement):
    tag: ClassVar[str] = ns("D", "remove")


class Prop(BaseElement):
    tag: ClassVar[str] = ns("D", "prop")


# Locking
class LockScope(BaseElement):
    tag: ClassVar[str] = ns("D", "lockscope")


class Exclusive(BaseElement):
    tag: ClassVar[str] = ns("D", "exclusive")


class Shared(BaseElement):
    tag: ClassVar[str] = ns("D", "shared")


class LockType(BaseElement):
    tag: ClassVar[str] = ns("D", "locktype")


class Write(BaseElement):
    tag: ClassVar[str] = ns("D", "write")


class Owner(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "owner")


class LockDiscovery(BaseElement):
    tag: ClassVar[str] = ns("D", "lockdiscovery")


class ActiveLock(BaseElement):
    tag: ClassVar[str] = ns("D", "activelock")


class LockToken(BaseElement):
    tag: ClassVar[str] = ns("D", "locktoken")


class LockRoot(BaseElement):
    tag: ClassVar[str] = ns("D", "lockroot")


class Depth(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "depth")


class Timeout(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "timeout")


class SupportedLock(BaseElement):
    tag: ClassVar[str] = ns("D", "supportedlock")


class LockEntry(BaseElement):
    tag: ClassVar[str] = ns("D", "lockentry")


# Properties
class ResourceType(BaseElement):
    tag: ClassVar[str] = ns("D", "resourcetype")


class DisplayName(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "displayname")


class GetEtag(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getetag")


class GetLastModified(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getlastmodified")


class GetContentLength(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontentlength")


class GetContentType(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontenttype")


class CreationDate(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "creationdate")


# Multistatus
class Href(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "href")


class Response(BaseElement):
    tag: ClassVar[str] = ns("D", "response")


class Status(BaseElement):
    tag: ClassVar[str] = ns("D", "status")


class PropStat(BaseElement):
    tag: ClassVar[str] = ns("D", "propstat")


class MultiStatus(BaseElement):
    tag: ClassVar[str] = ns("D", "multistatus")


class ResponseDescription(BaseElement):
    tag: ClassVar[str] = ns("D", "responsedescription")


class Error(BaseElement):
    tag: ClassVar[str] = ns("D", "error")
