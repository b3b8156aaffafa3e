"""Authenticated HTTP client shared by every REST endpoint module."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests

from ..errors import RequestError
from ..infra.config import DEFAULT_BASE_URL, MassiveConfig


@dataclass
class ApiResponse:
    """Raw result of a REST call; the body is decoded JSON when possible."""

    status: int
    body: Any
    url: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class RestClient:
    """Thin wrapper around :class:`requests.Session` bound to one base URL.

    Every request carries the bearer token. Responses are returned for any
    HTTP status; only transport failures raise :class:`RequestError`.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: MassiveConfig, session: Optional[requests.Session] = None) -> "RestClient":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            session=session,
            timeout=config.timeout,
        )

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        """Issue a single GET against ``base_url + path``."""

        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url,
                params=dict(params) if params else None,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.logger.warning("GET %s failed: %s", url, exc, extra={"event": "request_failed", "path": path})
            raise RequestError(f"GET {path} failed: {exc}", cause=exc) from exc

        self.logger.debug(
            "GET %s -> %s", path, response.status_code,
            extra={"event": "request", "path": path, "status": response.status_code},
        )
        return ApiResponse(
            status=response.status_code,
            body=self._decode(response),
            url=response.url or url,
            headers=dict(response.headers or {}),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _decode(self, response: requests.Response) -> Any:
        content_type = (response.headers or {}).get("Content-Type", "")
        if "json" not in content_type:
            return response.text
        try:
            return response.json()
        except ValueError:
            self.logger.debug("Response from %s declared JSON but did not decode", response.url)
            return response.text


__all__ = ["ApiResponse", "RestClient"]
