"""
Authentication utilities for WebDAV clients.

This module contains the authentication logic shared by the protocol
layer and both the sync and async clients.  Credentials are supplied
by the caller; nothing is stored here.
"""

from __future__ import annotations

import base64


def basic_auth_header(username: str, password: str | None = None) -> str:
    """
    Build the value of an Authorization header for Basic auth.

    The password may be absent, the credentials are then "username:".

    Example:
        >>> basic_auth_header("Aladdin", "open sesame")
        'Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=='
    """
    credentials = "%s:%s" % (username, password or "")
    return "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")


def extract_auth_types(header: str) -> set[str]:
    """
    Extract authentication types from WWW-Authenticate header.

    Parses the WWW-Authenticate header value and extracts the
    authentication scheme names (e.g., "basic", "digest", "bearer").

    Args:
        header: WWW-Authenticate header value from server response.

    Returns:
        Set of lowercase auth type strings.

    Example:
        >>> sorted(extract_auth_types('Basic realm="test", Digest realm="test"'))
        ['basic', 'digest']

    Reference:
        https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/WWW-Authenticate#syntax
    """
    return {h.split()[0] for h in header.lower().split(",") if h.strip() and "=" not in h.split()[0]}
