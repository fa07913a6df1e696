"""
Blocking transport on top of a requests Session.
"""

import logging
from typing import Optional

import requests

from davkit.lib import error
from davkit.lib.debug import dump_communication
from davkit.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger(__name__)


class SyncIO:
    """
    Sends each DAVRequest through a requests Session.  Redirects are
    returned to the caller, not followed, so the protocol layer can
    report them as Redirect outcomes.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        verify: bool = True,
    ):
        """
        A session passed in is left open by close(); one created here
        is closed.
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Raises:
            TransportFailure: connection, TLS or timeout problems
        """
        try:
            response = self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=self.timeout,
                verify=self.verify,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            log.debug("%s %s failed: %s", request.method.value, request.url, e)
            raise error.TransportFailure(request.url, str(e)) from e

        ret = DAVResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )
        log.debug("server responded with %i %s", ret.status, ret.reason)
        if error.debug_dump_communication:
            dump_communication(log, request, ret)
        return ret

    def close(self) -> None:
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        return self

    def __exit__(self, *args) -> None:
        self.close()
