"""Default transport: sends a RequestSpec through a requests.Session."""

import logging
from typing import Optional

import requests

from .types import RequestSpec, ResponseEnvelope, TransportError

logger = logging.getLogger(__name__)


class RequestsTransport:
    """Callable transport backed by ``requests``.

    Redirects, TLS verification, proxies and connection pooling are left to
    the session. No timeout is passed, so the library default applies.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def __call__(self, spec: RequestSpec) -> ResponseEnvelope:
        try:
            response = self.session.request(
                spec.method.value,
                spec.url,
                headers=dict(spec.headers),
                data=spec.body,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.warning("Transport failure for %s %s: %s", spec.method.value, spec.url, e)
            raise TransportError(e) from e

        return ResponseEnvelope(
            status=response.status_code,
            body=response.content,
            url=response.url,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()
