"""Download of generated assets into the session's `AssetStore`."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from ..config import DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
from ..errors import FetchError, MissingResultError
from ..models import AssetHandle
from ..session import AssetStore

logger = logging.getLogger(__name__)


def with_credential(uri: str, credential: str) -> str:
    """Return `uri` with the API key added as the `key` query parameter."""
    parts = urlsplit(uri)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "key"]
    query.append(("key", credential))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class AssetFetcher:
    def __init__(
        self,
        store: AssetStore,
        http: Any = None,
        timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    ):
        self._store = store
        self._owns_http = http is None
        self._http = http
        self.timeout = timeout

    def _client(self) -> Any:
        if self._http is None:
            self._http = requests.Session()
        return self._http

    def close(self) -> None:
        """Close the HTTP session this fetcher opened; an injected client is left alone."""
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None

    async def resolve(
        self, uri: str | None, credential: str, mime_type: str = "video/mp4"
    ) -> AssetHandle:
        if not uri:
            raise MissingResultError()

        try:
            response = await asyncio.to_thread(
                self._client().get, with_credential(uri, credential), timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise FetchError(None, f"Failed to download video file: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(response.status_code)

        handle = self._store.create(response.content, mime_type)
        logger.info("Downloaded %d bytes into %s", handle.size, handle.uri)
        return handle
