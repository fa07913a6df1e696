"""
The transport capability the clients depend on.

A transport takes one DAVRequest, performs the HTTP exchange and hands
back the DAVResponse.  It does not follow redirects and does not retry.
Whatever goes wrong before a status line is received is raised as
TransportFailure; any status, including errors, is returned.
"""

from typing import Protocol, runtime_checkable

from davkit.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class SyncTransport(Protocol):
    """Blocks the calling thread for the duration of one exchange."""

    def execute(self, request: DAVRequest) -> DAVResponse: ...

    def close(self) -> None: ...


@runtime_checkable
class AsyncTransport(Protocol):
    """
    Suspends the calling task for the duration of one exchange.
    Cancelling the task cancels the exchange.
    """

    async def execute(self, request: DAVRequest) -> DAVResponse: ...

    async def close(self) -> None: ...
