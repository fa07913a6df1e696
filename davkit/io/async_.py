"""
Non-blocking transport on top of an aiohttp ClientSession.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from davkit.lib import error
from davkit.lib.debug import dump_communication
from davkit.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class AsyncIO:
    """
    Sends each DAVRequest through an aiohttp ClientSession.  The session
    is created on first use, inside the running event loop, unless one
    is passed in.

    Example:
        async with AsyncIO(timeout=10) as io:
            response = await io.execute(protocol.get_request("a.txt"))
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ):
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_ssl = verify_ssl

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            ## ssl=None means the default certificate checks
            connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False)
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                connector=connector,
            )
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Raises:
            TransportFailure: connection, TLS or timeout problems
        """
        session = await self._get_session()

        try:
            async with session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                allow_redirects=False,
            ) as response:
                ret = DAVResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=await response.read(),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug("%s %s failed: %r", request.method.value, request.url, e)
            raise error.TransportFailure(request.url, str(e) or repr(e)) from e

        log.debug("server responded with %i %s", ret.status, ret.reason)
        if error.debug_dump_communication:
            dump_communication(log, request, ret)
        return ret

    async def close(self) -> None:
        """Close the session, unless it was passed in."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AsyncIO":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
