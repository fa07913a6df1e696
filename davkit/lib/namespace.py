#!/usr/bin/env python
from typing import Dict
from typing import Optional

nsmap: Dict[str, str] = {
    "D": "DAV:",
}

## Namespaces used by the popular ownCloud/Nextcloud servers.  They are
## not part of WebDAV itself, but get a stable prefix whenever a request
## body needs one of them.
nsmap2: Dict[str, str] = nsmap.copy()
nsmap2["oc"] = "http://owncloud.org/ns"
nsmap2["nc"] = "http://nextcloud.org/ns"
nsmap2["ocs"] = "http://open-collaboration-services.org/ns"
nsmap2["ocm"] = "http://open-cloud-mesh.org/ns"


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap2[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name


class PrefixAllocator:
    """
    Hands out namespace prefixes for one request body.

    The well-known namespaces always get their fixed prefix; anything
    else is numbered ns0, ns1, ... in the order it is first seen, so
    encoding the same structure twice yields the same document.
    """

    def __init__(self) -> None:
        self._known = {uri: prefix for prefix, uri in nsmap2.items()}
        self.used: Dict[str, str] = {"D": nsmap["D"]}
        self._counter = 0

    def prefix(self, namespace: str) -> str:
        prefix = self._known.get(namespace)
        if prefix is None:
            prefix = "ns%i" % self._counter
            self._counter += 1
            self._known[namespace] = prefix
        self.used[prefix] = namespace
        return prefix
