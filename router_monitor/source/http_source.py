"""HTTP snapshot source against the router's internal status API.

The router serves ``/api/model.json`` to an authenticated session. When the
session has expired it answers with its HTML login page instead of JSON,
with a 200 status, so expiry is detected from the body.

The login flow itself is not replicated here: a fresh ``sessionId`` cookie
comes from an injected ``cookie_provider``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from common.config import Settings, get_settings

from ..core.domain.errors import AuthError, AuthExpired, NetworkError, ParseError

logger = logging.getLogger(__name__)

CookieProvider = Callable[[], Optional[str]]

MODEL_PATH = "/api/model.json"
_HTML_MARKERS = ("<!doctype", "<html")


def _settings_cookie() -> Optional[str]:
    return get_settings().router_session_cookie or None


def looks_like_login_page(body: str) -> bool:
    head = body.lstrip()[:64].lower()
    return head.startswith(_HTML_MARKERS)


class HttpSnapshotSource:

    def __init__(
        self,
        base_url: str,
        session_cookie: Optional[str] = None,
        timeout: float = 10.0,
        cookie_provider: Optional[CookieProvider] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._cookie_provider = cookie_provider or _settings_cookie
        self._session_factory = session_factory
        self._session = self._build_session(session_cookie)

    @classmethod
    def from_settings(
        cls, settings: Settings, cookie_provider: Optional[CookieProvider] = None
    ) -> "HttpSnapshotSource":
        return cls(
            base_url=settings.router_base_url,
            session_cookie=settings.router_session_cookie or None,
            timeout=settings.router_http_timeout,
            cookie_provider=cookie_provider,
        )

    @property
    def model_url(self) -> str:
        return f"{self._base_url}{MODEL_PATH}"

    def fetch_snapshot(self) -> Dict[str, Any]:
        body = self._get_model()
        if looks_like_login_page(body):
            logger.info("[SOURCE] Router answered with login page, session expired")
            raise AuthExpired("router returned its login page")

        try:
            data = json.loads(body)
        except ValueError as e:
            raise ParseError(f"router response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise ParseError(f"router response is not an object: {type(data).__name__}")
        return data

    def reauthenticate(self) -> None:
        cookie = self._cookie_provider()
        if not cookie:
            raise AuthError("no router session cookie available")

        self._session.close()
        self._session = self._build_session(cookie)

        try:
            body = self._get_model()
        except NetworkError as e:
            raise AuthError(f"re-authentication probe failed: {e}") from e
        if looks_like_login_page(body):
            raise AuthError("router still returns login page with the new session")
        logger.info("[SOURCE] Re-authenticated against %s", self._base_url)

    def close(self) -> None:
        self._session.close()

    def _build_session(self, cookie: Optional[str]) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"Accept": "application/json"})
        if cookie:
            session.headers["Cookie"] = cookie if "=" in cookie else f"sessionId={cookie}"
        return session

    def _get_model(self) -> str:
        params = {"internalapi": 1, "x": int(time.time() * 1000)}
        try:
            response = self._session.get(self.model_url, params=params, timeout=self._timeout)
        except requests.Timeout as e:
            raise NetworkError(f"timeout after {self._timeout}s: {e}") from e
        except requests.RequestException as e:
            raise NetworkError(f"request failed: {e}") from e

        if not response.ok:
            raise NetworkError(f"router returned HTTP {response.status_code}")
        return response.text
