"""
Thin HTTP transport for the Photos Library REST API.

The transport owns the authenticated ``requests`` session, the base URL and
the per-call timeout, and turns HTTP-level failures into ``TransportError``
and unparseable bodies into ``DecodeError``. Every component that talks to the
API receives the same transport instance.
"""
import logging
import threading
from typing import Any, Dict, Optional

import requests

from photos_folder_sync.exceptions import CancelledError, DecodeError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://photoslibrary.googleapis.com"


class PhotosTransport:
    """Issues JSON and raw-byte requests against the Photos Library API."""

    def __init__(self, session: requests.Session, base_url: str = DEFAULT_BASE_URL,
                 timeout: float = 60.0, cancel_event: Optional[threading.Event] = None):
        """
        Args:
            session: Authenticated session (normally an ``AuthorizedSession``)
            base_url: API root, without trailing slash
            timeout: Seconds before an in-flight request is abandoned
            cancel_event: When set, no new requests are issued
        """
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        if self.cancelled:
            raise CancelledError(f"Sync cancelled; not sending {method} {path}")

        url = self._url(path)
        logger.debug(f"{method} {url}")
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}", url=url) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise TransportError(
                f"{method} {url} returned {resp.status_code}: {resp.text[:500]}",
                url=url,
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {resp.url}: {e}") from e

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body (None when empty)."""
        return self._decode(self._send("GET", path, params=params))

    def post_json(self, path: str, body: Dict[str, Any]) -> Any:
        """POST a JSON body and return the decoded JSON response (None when empty)."""
        return self._decode(self._send("POST", path, json=body))

    def post_bytes(self, path: str, data: bytes, headers: Dict[str, str]) -> str:
        """POST raw bytes and return the response body as text."""
        return self._send("POST", path, data=data, headers=headers).text
