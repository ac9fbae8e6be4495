import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .config import DEFAULT_TIMEOUT
from .errors import ProviderError

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "newsimpact/0.1",
}


def extract_error_message(body: str) -> str:
    """
    Pull a readable message out of an error payload.
    Handles {"error": {"message": ...}}, {"error": "..."} and {"msg": ...}.
    """
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return (body or "").strip()[:500]

    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
        for key in ("message", "msg", "detail"):
            if data.get(key):
                return str(data[key])
    return json.dumps(data)[:500]


class HttpClient:
    """
    Thin JSON client over one aiohttp session with a bounded timeout.
    Every failure (timeout, non-2xx, network, bad JSON) surfaces as ProviderError.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=_DEFAULT_HEADERS,
            )
            self._owns_session = True
        return self._session

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        session = await self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    message = extract_error_message(body)
                    raise ProviderError(
                        f"HTTP {resp.status}: {message}",
                        details={"status": resp.status, "url": url, "message": message},
                    )
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise ProviderError(f"Malformed JSON from {url}: {e}", details={"url": url})
        except asyncio.TimeoutError:
            raise ProviderError(f"Timed out after {self._timeout}s: {url}", details={"url": url})
        except aiohttp.ClientError as e:
            raise ProviderError(f"Connection error: {e}", details={"url": url})

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request_json("GET", url, params=params, **kwargs)

    async def post_json(self, url: str, payload: Any, **kwargs) -> Any:
        return await self.request_json("POST", url, json_body=payload, **kwargs)

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
