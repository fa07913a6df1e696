"""
High-level client using the Sans-I/O protocol layer.

This module provides SyncProtocolClient and AsyncProtocolClient classes
that glue the WebDAVProtocol to a transport.  Each call builds the
request (local errors are raised before anything is sent), executes it
once, and decodes the response.  There is no retry logic here.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Optional, Sequence, Union

from davkit.io import AsyncIO, SyncIO
from davkit.io.base import AsyncTransport, SyncTransport
from davkit.lib import error
from davkit.lib.auth import extract_auth_types
from davkit.protocol import (
    DAVRequest,
    DAVResponse,
    Depth,
    LockResult,
    LockScope,
    MultistatusResult,
    PropertyName,
    PropPatchOperation,
    Success,
    WebDAVProtocol,
)

log = logging.getLogger(__name__)

PropNames = Optional[Sequence[Union[PropertyName, str]]]


def _log_auth_failure(request: DAVRequest, response: DAVResponse) -> None:
    if response.status != 401:
        return
    offered = response.header("WWW-Authenticate")
    if offered:
        log.warning(
            "%s %s was not authorized, the server supports: %s",
            request.method.value,
            request.url,
            ", ".join(sorted(extract_auth_types(offered))),
        )


@contextmanager
def _transport_errors(request: DAVRequest):
    """Anything an injected transport raises becomes a TransportFailure"""
    try:
        yield
    except error.DAVError:
        raise
    except Exception as e:
        log.debug("%s %s failed: %r", request.method.value, request.url, e)
        raise error.TransportFailure(request.url, str(e) or repr(e)) from e


class _ClientBase:
    """Decoding shared by the sync and async client"""

    protocol: WebDAVProtocol

    def _simple_or_multistatus(
        self, request: DAVRequest, response: DAVResponse
    ) -> Union[Success, MultistatusResult]:
        _log_auth_failure(request, response)
        if response.is_multistatus:
            return self.protocol.parse_multistatus(response, request.url)
        return self.protocol.check(response, request.url)

    def _multistatus(
        self, request: DAVRequest, response: DAVResponse
    ) -> MultistatusResult:
        _log_auth_failure(request, response)
        return self.protocol.parse_multistatus(response, request.url)

    def _success(self, request: DAVRequest, response: DAVResponse) -> Success:
        _log_auth_failure(request, response)
        return self.protocol.check(response, request.url)

    def _lock(
        self,
        request: DAVRequest,
        response: DAVResponse,
        lock_token: Optional[str] = None,
    ) -> LockResult:
        _log_auth_failure(request, response)
        return self.protocol.parse_lock(response, request.url, lock_token)


class SyncProtocolClient(_ClientBase):
    """
    Synchronous WebDAV client using Sans-I/O protocol layer.

    Example:
        client = SyncProtocolClient(
            base_url="https://dav.example.com/files/",
            username="user",
            password="pass",
        )
        with client:
            for entry in client.propfind("docs/", depth=1):
                print(f"{entry.path}: {entry.content_length}")
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: Optional[SyncTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: URL of the base collection
            username: Username for authentication
            password: Password for authentication
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates
            transport: any SyncTransport; a SyncIO is created if None
            headers: Extra headers to send with every request
        """
        self.protocol = WebDAVProtocol(
            base_url=base_url,
            username=username,
            password=password,
            headers=headers,
        )
        self.io = transport or SyncIO(timeout=timeout, verify=verify_ssl)

    def close(self) -> None:
        """Close the HTTP session."""
        self.io.close()

    def __enter__(self) -> "SyncProtocolClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _execute(self, request: DAVRequest) -> DAVResponse:
        """Execute a request and return the response."""
        with _transport_errors(request):
            return self.io.execute(request)

    # High-level operations

    def propfind(
        self,
        path: str = "",
        props: PropNames = None,
        depth: Union[Depth, int, str] = Depth.ZERO,
    ) -> MultistatusResult:
        """
        Execute PROPFIND to get properties of resources.

        Args:
            path: Resource path
            props: Property names to retrieve, None for all
            depth: Depth (0=resource only, 1=immediate children)

        Returns:
            MultistatusResult with one entry per resource
        """
        request = self.protocol.propfind_request(path, props, depth)
        return self._multistatus(request, self._execute(request))

    def proppatch(
        self,
        path: str,
        operations: Sequence[PropPatchOperation],
        lock_token: Optional[str] = None,
    ) -> MultistatusResult:
        """
        Execute PROPPATCH.  Per-property failures are reported in the
        result, not raised.
        """
        request = self.protocol.proppatch_request(path, operations, lock_token)
        return self._multistatus(request, self._execute(request))

    def mkcol(self, path: str) -> Union[Success, MultistatusResult]:
        request = self.protocol.mkcol_request(path)
        return self._simple_or_multistatus(request, self._execute(request))

    def get(self, path: str) -> Success:
        """
        Execute GET request.

        Returns:
            Success, the content is in its body
        """
        request = self.protocol.get_request(path)
        return self._success(request, self._execute(request))

    def put(
        self,
        path: str,
        data: Union[str, bytes],
        content_type: Optional[str] = None,
        lock_token: Optional[str] = None,
        etag: Optional[str] = None,
    ) -> Success:
        """
        Execute PUT request to create/update a resource.

        Args:
            path: Resource path
            data: Resource content
            content_type: Content-Type header
            lock_token: token of a lock held on the resource
            etag: If-Match header for conditional update

        Returns:
            Success, with the new etag if the server sent one
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        request = self.protocol.put_request(path, data, content_type, lock_token, etag)
        return self._success(request, self._execute(request))

    def delete(
        self, path: str, lock_token: Optional[str] = None
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.delete_request(path, lock_token)
        return self._simple_or_multistatus(request, self._execute(request))

    def copy(
        self,
        path: str,
        destination: str,
        overwrite: bool = True,
        depth: Union[Depth, int, str] = Depth.INFINITY,
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.copy_request(path, destination, overwrite, depth)
        return self._simple_or_multistatus(request, self._execute(request))

    def move(
        self,
        path: str,
        destination: str,
        overwrite: bool = True,
        lock_token: Optional[str] = None,
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.move_request(path, destination, overwrite, lock_token)
        return self._simple_or_multistatus(request, self._execute(request))

    def lock(
        self,
        path: str,
        scope: LockScope = LockScope.EXCLUSIVE,
        owner: Optional[str] = None,
        depth: Union[Depth, int, str] = Depth.INFINITY,
        timeout: Union[int, str, None] = None,
    ) -> LockResult:
        """
        Execute LOCK.  The caller keeps the returned token and passes it
        to later requests on the locked resource.
        """
        request = self.protocol.lock_request(path, scope, owner, depth, timeout)
        return self._lock(request, self._execute(request))

    def refresh_lock(
        self,
        path: str,
        lock_token: str,
        timeout: Union[int, str, None] = None,
    ) -> LockResult:
        request = self.protocol.refresh_lock_request(path, lock_token, timeout)
        return self._lock(request, self._execute(request), lock_token)

    def unlock(self, path: str, lock_token: str) -> Success:
        request = self.protocol.unlock_request(path, lock_token)
        return self._success(request, self._execute(request))


class AsyncProtocolClient(_ClientBase):
    """
    Asynchronous WebDAV client using Sans-I/O protocol layer.

    This is the async version of SyncProtocolClient.

    Example:
        async with AsyncProtocolClient(
            base_url="https://dav.example.com/files/",
            username="user",
            password="pass",
        ) as client:
            for entry in await client.propfind("docs/", depth=1):
                print(f"{entry.path}: {entry.content_length}")
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: Optional[AsyncTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: URL of the base collection
            username: Username for authentication
            password: Password for authentication
            timeout: Request timeout in seconds
            verify_ssl: Verify SSL certificates
            transport: any AsyncTransport; an AsyncIO is created if None
            headers: Extra headers to send with every request
        """
        self.protocol = WebDAVProtocol(
            base_url=base_url,
            username=username,
            password=password,
            headers=headers,
        )
        self.io = transport or AsyncIO(timeout=timeout, verify_ssl=verify_ssl)

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.io.close()

    async def __aenter__(self) -> "AsyncProtocolClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _execute(self, request: DAVRequest) -> DAVResponse:
        """Execute a request and return the response."""
        with _transport_errors(request):
            return await self.io.execute(request)

    # High-level operations

    async def propfind(
        self,
        path: str = "",
        props: PropNames = None,
        depth: Union[Depth, int, str] = Depth.ZERO,
    ) -> MultistatusResult:
        request = self.protocol.propfind_request(path, props, depth)
        return self._multistatus(request, await self._execute(request))

    async def proppatch(
        self,
        path: str,
        operations: Sequence[PropPatchOperation],
        lock_token: Optional[str] = None,
    ) -> MultistatusResult:
        request = self.protocol.proppatch_request(path, operations, lock_token)
        return self._multistatus(request, await self._execute(request))

    async def mkcol(self, path: str) -> Union[Success, MultistatusResult]:
        request = self.protocol.mkcol_request(path)
        return self._simple_or_multistatus(request, await self._execute(request))

    async def get(self, path: str) -> Success:
        request = self.protocol.get_request(path)
        return self._success(request, await self._execute(request))

    async def put(
        self,
        path: str,
        data: Union[str, bytes],
        content_type: Optional[str] = None,
        lock_token: Optional[str] = None,
        etag: Optional[str] = None,
    ) -> Success:
        if isinstance(data, str):
            data = data.encode("utf-8")
        request = self.protocol.put_request(path, data, content_type, lock_token, etag)
        return self._success(request, await self._execute(request))

    async def delete(
        self, path: str, lock_token: Optional[str] = None
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.delete_request(path, lock_token)
        return self._simple_or_multistatus(request, await self._execute(request))

    async def copy(
        self,
        path: str,
        destination: str,
        overwrite: bool = True,
        depth: Union[Depth, int, str] = Depth.INFINITY,
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.copy_request(path, destination, overwrite, depth)
        return self._simple_or_multistatus(request, await self._execute(request))

    async def move(
        self,
        path: str,
        destination: str,
        overwrite: bool = True,
        lock_token: Optional[str] = None,
    ) -> Union[Success, MultistatusResult]:
        request = self.protocol.move_request(path, destination, overwrite, lock_token)
        return self._simple_or_multistatus(request, await self._execute(request))

    async def lock(
        self,
        path: str,
        scope: LockScope = LockScope.EXCLUSIVE,
        owner: Optional[str] = None,
        depth: Union[Depth, int, str] = Depth.INFINITY,
        timeout: Union[int, str, None] = None,
    ) -> LockResult:
        request = self.protocol.lock_request(path, scope, owner, depth, timeout)
        return self._lock(request, await self._execute(request))

    async def refresh_lock(
        self,
        path: str,
        lock_token: str,
        timeout: Union[int, str, None] = None,
    ) -> LockResult:
        request = self.protocol.refresh_lock_request(path, lock_token, timeout)
        return self._lock(request, await self._execute(request), lock_token)

    async def unlock(self, path: str, lock_token: str) -> Success:
        request = self.protocol.unlock_request(path, lock_token)
        return self._success(request, await self._execute(request))
