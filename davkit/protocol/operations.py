"""
WebDAV protocol operations combining request building and response parsing.

This class provides a high-level interface to WebDAV operations while
remaining completely I/O-free.
"""

import logging
import re
from typing import Dict, Optional, Sequence, Union
from urllib.parse import unquote

from davkit.lib import error
from davkit.lib import url as urllib_
from davkit.lib.auth import basic_auth_header

from .types import (
    ClientError,
    DAVMethod,
    DAVRequest,
    DAVResponse,
    Depth,
    LockResult,
    LockScope,
    MultistatusResult,
    PropertyName,
    PropPatchOperation,
    Redirect,
    ServerError,
    SimpleOutcome,
    Success,
)
from .xml_builders import build_lock_body, build_propfind_body, build_proppatch_body
from .xml_parsers import parse_lockdiscovery, parse_multistatus

log = logging.getLogger(__name__)

XML_CONTENT_TYPE = "application/xml; charset=utf-8"

## A lock token is a URI (RFC 4918 section 6.5), i.e.
## "urn:uuid:..." or "opaquelocktoken:...".
_lock_token_re = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:[^\s<>()]+$")
_timeout_re = re.compile(r"^Second-\d+$", re.IGNORECASE)

PropNames = Optional[Sequence[Union[PropertyName, str]]]


def normalize_lock_token(token: Optional[str]) -> str:
    """
    Strip optional angle brackets and check that the token is URI
    shaped.

    Raises:
        MissingLockToken: no token, or not a URI
    """
    if not token or not isinstance(token, str):
        raise error.MissingLockToken(reason="no lock token given")
    token = token.strip()
    if token.startswith("<") and token.endswith(">"):
        token = token[1:-1].strip()
    if not _lock_token_re.match(token):
        raise error.MissingLockToken(reason="malformed lock token %r" % token)
    return token


def timeout_header(timeout: Union[int, str, None]) -> Optional[str]:
    """
    The Timeout header value for a LOCK: seconds become "Second-N",
    "infinite" becomes "Infinite".
    """
    if timeout is None:
        return None
    if isinstance(timeout, bool):
        raise error.EncodingError(reason="invalid lock timeout %r" % timeout)
    if isinstance(timeout, int):
        if timeout < 0:
            raise error.EncodingError(reason="negative lock timeout %r" % timeout)
        return "Second-%i" % timeout
    text = str(timeout).strip()
    if text.lower() == "infinite":
        return "Infinite"
    if _timeout_re.match(text):
        return "Second-%s" % text[7:]
    raise error.EncodingError(reason="invalid lock timeout %r" % timeout)


class WebDAVProtocol:
    """
    Sans-I/O WebDAV protocol handler.

    Builds requests and parses responses without doing any I/O.
    All HTTP communication is delegated to an external I/O implementation.

    The instance only holds configuration, so one protocol object can be
    shared freely between threads and tasks.

    Example:
        protocol = WebDAVProtocol(base_url="https://dav.example.com/files/")

        # Build request
        request = protocol.propfind_request("docs/", ["{DAV:}displayname"])

        # Execute with your I/O (not shown)
        response = io.execute(request)

        # Parse response
        results = protocol.parse_propfind(response)
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the protocol handler.

        Args:
            base_url: URL of the base collection.  Credentials embedded
                      in the URL are used if username is not given.
            username: Username for Basic authentication
            password: Password for Basic authentication
            headers: Extra headers to send with every request
        """
        url = urllib_.base_url(base_url)
        if username is None and url.is_auth():
            username = unquote(url.username)
            if url.password is not None:
                password = unquote(url.password)
        ## The base is a collection, whether or not it was given with a slash
        self.base_url = urllib_.resolve(url, "", collection=True)
        self.username = username
        self.password = password
        self.extra_headers = dict(headers or {})
        self._auth_header = self._build_auth_header(username, password)

    def _build_auth_header(
        self,
        username: Optional[str],
        password: Optional[str],
    ) -> Optional[str]:
        """Build Basic auth header if a username is given."""
        if username:
            return basic_auth_header(username, password)
        return None

    def _base_headers(self, xml_body: bool = False) -> Dict[str, str]:
        """Return base headers for all requests."""
        headers = dict(self.extra_headers)
        if xml_body:
            headers["Content-Type"] = XML_CONTENT_TYPE
        if self._auth_header:
            headers["Authorization"] = self._auth_header
        return headers

    def resolve(self, path: Optional[str] = "", collection: bool = False) -> str:
        """
        Resolve a path relative to the base collection to a full URL.

        Raises:
            InvalidPath: if the path can't be represented
        """
        return urllib_.resolve(self.base_url, path, collection=collection)

    @property
    def base_path(self) -> str:
        """Resource Path of the base collection"""
        return urllib_.url_to_path(self.base_url)

    def _request(
        self,
        method: DAVMethod,
        path: Optional[str],
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> DAVRequest:
        request = DAVRequest(
            method=method,
            url=self.resolve(path),
            headers=headers,
            body=body,
        )
        log.debug("built %s request for %s", method.value, request.url)
        return request

    # =========================================================================
    # Request builders
    # =========================================================================

    def propfind_request(
        self,
        path: Optional[str] = "",
        props: PropNames = None,
        depth: Union[Depth, int, str] = Depth.ZERO,
        propname: bool = False,
    ) -> DAVRequest:
        """
        Build a PROPFIND request.

        Args:
            path: Resource path relative to the base, or URL
            props: Property names to retrieve (None for all properties)
            depth: Depth header value (0, 1, or "infinity")
            propname: Retrieve property names only

        Returns:
            DAVRequest ready for execution
        """
        depth = Depth.coerce(depth)
        body = build_propfind_body(props, propname=propname)
        headers = {
            **self._base_headers(xml_body=True),
            "Depth": depth.value,
        }
        return self._request(DAVMethod.PROPFIND, path, headers, body)

    def proppatch_request(
        self,
        path: Optional[str],
        operations: Sequence[PropPatchOperation],
        lock_token: Optional[str] = None,
    ) -> DAVRequest:
        """
        Build a PROPPATCH request.

        Args:
            path: Resource path or URL
            operations: ordered set/remove instructions
            lock_token: token of a lock held on the resource

        Returns:
            DAVRequest ready for execution
        """
        body = build_proppatch_body(operations)
        headers = self._with_if(self._base_headers(xml_body=True), lock_token)
        return self._request(DAVMethod.PROPPATCH, path, headers, body)

    def mkcol_request(self, path: str) -> DAVRequest:
        """Build a MKCOL request; the new collection gets a trailing slash."""
        if not (path or "").strip("/"):
            raise error.InvalidPath(path, "MKCOL needs a name for the new collection")
        return DAVRequest(
            method=DAVMethod.MKCOL,
            url=self.resolve(path, collection=True),
            headers=self._base_headers(),
        )

    def get_request(self, path: Optional[str]) -> DAVRequest:
        return self._request(DAVMethod.GET, path, self._base_headers())

    def put_request(
        self,
        path: Optional[str],
        body: bytes,
        content_type: Optional[str] = None,
        lock_token: Optional[str] = None,
        etag: Optional[str] = None,
    ) -> DAVRequest:
        """
        Build a PUT request.

        Args:
            path: Resource path or URL
            body: the new content, sent as is
            content_type: Content-Type of the body
            lock_token: token of a lock held on the resource
            etag: only overwrite this version of the resource (If-Match)

        Returns:
            DAVRequest ready for execution
        """
        headers = self._with_if(self._base_headers(), lock_token)
        if content_type:
            headers["Content-Type"] = content_type
        if etag:
            headers["If-Match"] = etag
        return self._request(DAVMethod.PUT, path, headers, body)

    def delete_request(
        self, path: Optional[str], lock_token: Optional[str] = None
    ) -> DAVRequest:
        headers = self._with_if(self._base_headers(), lock_token)
        return self._request(DAVMethod.DELETE, path, headers)

    def copy_request(
        self,
        path: Optional[str],
        destination: str,
        overwrite: bool = True,
        depth: Union[Depth, int, str] = Depth.INFINITY,
    ) -> DAVRequest:
        """
        Build a COPY request.

        Args:
            path: source path or URL
            destination: destination path or URL, resolved like path
            overwrite: replace an existing destination
            depth: ZERO for the collection only, INFINITY for the whole tree

        Returns:
            DAVRequest ready for execution
        """
        depth = Depth.coerce(depth)
        if depth == Depth.ONE:
            raise error.EncodingError(reason="COPY only supports depth 0 or infinity")
        headers = self._destination_headers(destination, overwrite)
        headers["Depth"] = depth.value
        return self._request(DAVMethod.COPY, path, headers)

    def move_request(
        self,
        path: Optional[str],
        destination: str,
        overwrite: bool = True,
        lock_token: Optional[str] = None,
    ) -> DAVRequest:
        """
        Build a MOVE request.  MOVE always applies to the whole tree.

        Args:
            path: source path or URL
            destination: destination path or URL, resolved like path
            overwrite: replace an existing destination
            lock_token: token of a lock held on the source

        Returns:
            DAVRequest ready for execution
        """
        headers = self._with_if(
            self._destination_headers(destination, overwrite), lock_token
        )
        headers["Depth"] = Depth.INFINITY.value
        return self._request(DAVMethod.MOVE, path, headers)

    def lock_request(
        self,
        path: Optional[str],
        scope: LockScope = LockScope.EXCLUSIVE,
        owner: Optional[str] = None,
        depth: Union[Depth, int, str] = Depth.INFINITY,
        timeout: Union[int, str, None] = None,
    ) -> DAVRequest:
        """
        Build a LOCK request for a new write lock.

        Args:
            path: Resource path or URL
            scope: exclusive or shared
            owner: description of the lock owner
            depth: ZERO or INFINITY
            timeout: preferred timeout in seconds, or "infinite"

        Returns:
            DAVRequest ready for execution
        """
        depth = Depth.coerce(depth)
        if depth == Depth.ONE:
            raise error.EncodingError(reason="LOCK only supports depth 0 or infinity")
        headers = {
            **self._base_headers(xml_body=True),
            "Depth": depth.value,
        }
        timeout_value = timeout_header(timeout)
        if timeout_value:
            headers["Timeout"] = timeout_value
        body = build_lock_body(scope, owner)
        return self._request(DAVMethod.LOCK, path, headers, body)

    def refresh_lock_request(
        self,
        path: Optional[str],
        lock_token: Optional[str],
        timeout: Union[int, str, None] = None,
    ) -> DAVRequest:
        """Build a LOCK request without body, refreshing an existing lock."""
        headers = self._with_if(self._base_headers(), lock_token, required=True)
        timeout_value = timeout_header(timeout)
        if timeout_value:
            headers["Timeout"] = timeout_value
        return self._request(DAVMethod.LOCK, path, headers)

    def unlock_request(self, path: Optional[str], lock_token: Optional[str]) -> DAVRequest:
        """
        Build an UNLOCK request.

        Raises:
            MissingLockToken: if the token is missing or malformed
        """
        token = normalize_lock_token(lock_token)
        headers = self._with_if(self._base_headers(), token)
        headers["Lock-Token"] = "<%s>" % token
        return self._request(DAVMethod.UNLOCK, path, headers)

    def _destination_headers(self, destination: str, overwrite: bool) -> Dict[str, str]:
        if not destination:
            raise error.InvalidPath(destination, "no destination given")
        headers = self._base_headers()
        headers["Destination"] = self.resolve(destination)
        headers["Overwrite"] = "T" if overwrite else "F"
        return headers

    def _with_if(
        self,
        headers: Dict[str, str],
        lock_token: Optional[str],
        required: bool = False,
    ) -> Dict[str, str]:
        if lock_token is None and not required:
            return headers
        headers["If"] = "(<%s>)" % normalize_lock_token(lock_token)
        return headers

    # =========================================================================
    # Response parsers
    # =========================================================================

    def decode(
        self, response: DAVResponse, url: Optional[str] = None
    ) -> Union[SimpleOutcome, MultistatusResult]:
        """
        Decode any response: a 207 becomes a MultistatusResult, anything
        else a simple outcome.

        Args:
            response: the response received
            url: the request URL, used to resolve relative hrefs
        """
        if response.is_multistatus:
            return parse_multistatus(response.body, base_url=url or self.base_url)
        return self.outcome(response)

    def outcome(self, response: DAVResponse) -> SimpleOutcome:
        """
        Map a non-multistatus response to Success, Redirect, ClientError
        or ServerError.

        Raises:
            ProtocolError: for informational or otherwise unexpected codes
        """
        status = response.status
        if 200 <= status < 300:
            return Success(
                status=status,
                reason=response.reason,
                body=response.body,
                etag=response.header("ETag"),
                lock_token=_strip_brackets(response.header("Lock-Token")),
                location=response.header("Location"),
                content_type=response.header("Content-Type"),
            )
        if 300 <= status < 400:
            return Redirect(
                status=status,
                reason=response.reason,
                body=response.body,
                location=response.header("Location"),
            )
        if 400 <= status < 500:
            return ClientError(status=status, reason=response.reason, body=response.body)
        if 500 <= status < 600:
            return ServerError(status=status, reason=response.reason, body=response.body)
        raise error.ProtocolError(reason="unexpected status %i" % status, status=status)

    def check(self, response: DAVResponse, url: Optional[str] = None) -> Success:
        """
        Like outcome, but anything other than Success raises.

        Raises:
            ProtocolError: for redirects, client and server errors
        """
        outcome = self.outcome(response)
        if isinstance(outcome, Success):
            return outcome
        raise_for_outcome(outcome, url)
        return outcome  # pragma: no cover

    def parse_multistatus(
        self, response: DAVResponse, url: Optional[str] = None
    ) -> MultistatusResult:
        """
        Parse a response that must be a 207 Multi-Status.

        Raises:
            ProtocolError: if the server answered with an error status
            MalformedResponse: if a successful response isn't a multistatus
        """
        if not response.is_multistatus:
            outcome = self.check(response, url)
            raise error.MalformedResponse(
                url, "expected 207 Multi-Status, got %i" % outcome.status
            )
        return parse_multistatus(response.body, base_url=url or self.base_url)

    def parse_propfind(
        self, response: DAVResponse, url: Optional[str] = None
    ) -> MultistatusResult:
        return self.parse_multistatus(response, url)

    def parse_proppatch(
        self, response: DAVResponse, url: Optional[str] = None
    ) -> MultistatusResult:
        return self.parse_multistatus(response, url)

    def parse_lock(
        self,
        response: DAVResponse,
        url: Optional[str] = None,
        lock_token: Optional[str] = None,
    ) -> LockResult:
        """
        Parse the response of a LOCK or lock refresh.

        The token is taken from the Lock-Token header.  A refresh reply
        usually has no such header; then the lock_token the refresh was
        sent with is used, provided the body lists it.  Without either,
        a body listing exactly one lock token is accepted.

        Raises:
            ProtocolError: if the lock was not granted
            MalformedResponse: if no token can be found
        """
        if response.is_multistatus:
            ## A failed depth infinity lock reports the offending resources
            result = parse_multistatus(response.body, base_url=url or self.base_url)
            failed = result.failures()
            raise error.ProtocolError(
                url,
                "lock refused for %s" % ", ".join(entry.path for entry in failed),
                status=(failed[0].status if failed else None) or 207,
            )
        outcome = self.check(response, url)
        locks = parse_lockdiscovery(response.body) if response.body.strip() else ()
        token = outcome.lock_token
        tokens = [lock.token for lock in locks if lock.token]
        if not token and lock_token:
            token = _strip_brackets(lock_token)
            if tokens and token not in tokens:
                raise error.MalformedResponse(
                    url, "lock token %s is not in the LOCK response" % token
                )
        if not token and len(tokens) == 1:
            token = tokens[0]
        if not token:
            raise error.MalformedResponse(url, "no lock token in LOCK response")
        return LockResult(token=token, locks=locks, status=response.status)


def raise_for_outcome(outcome: SimpleOutcome, url: Optional[str] = None) -> None:
    """Raise ProtocolError for any outcome that is not a Success"""
    if isinstance(outcome, Success):
        return
    message = outcome.reason
    if isinstance(outcome, Redirect) and outcome.location:
        message = "%s, moved to %s" % (message, outcome.location)
    elif outcome.body:
        message = "%s: %s" % (message, outcome.body[:200].decode("utf-8", "replace"))
    raise error.ProtocolError(url, message, status=outcome.status)


def _strip_brackets(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    token = token.strip()
    if token.startswith("<") and token.endswith(">"):
        token = token[1:-1].strip()
    return token or None


__all__ = ["WebDAVProtocol", "normalize_lock_token", "timeout_header", "raise_for_outcome"]
