"""
Kindroid Bots - AI Provider
Kindroid discord-bot inference API client.
"""

import asyncio
import hashlib
import time
from dataclasses import dataclass
from typing import List, Optional

import aiohttp

import logger as log
from config import KINDROID_INFER_URL, KINDROID_API_KEY, API_TIMEOUT
from prometheus_metrics import metrics_manager


class ProviderError(Exception):
    """The AI backend failed to produce a reply."""


@dataclass(frozen=True)
class AIResult:
    """Outcome of a completion request: a reply, or a rate-limit signal."""
    kind: str  # "ok" or "rate_limited"
    text: str = ""

    @property
    def is_rate_limited(self) -> bool:
        return self.kind == "rate_limited"


RATE_LIMITED = AIResult(kind="rate_limited")


def hash_requester(username: str) -> str:
    """Anonymized requester id sent to Kindroid for per-user rate limiting."""
    return hashlib.sha256(username.encode("utf-8")).hexdigest()[:32]


class KindroidProvider:
    """Calls the Kindroid inference endpoint for a shared AI persona."""

    def __init__(self, url: str = KINDROID_INFER_URL, api_key: Optional[str] = KINDROID_API_KEY,
                 timeout: float = API_TIMEOUT):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session (lazy so it binds to the running loop)."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def complete(self, share_code: str, conversation: List[dict],
                       enable_filter: bool = False) -> AIResult:
        """Ask the persona behind `share_code` for a reply to `conversation`.

        Raises ProviderError for any failure other than rate limiting.
        """
        if not conversation:
            raise ProviderError("Conversation is empty")
        if not self.api_key:
            raise ProviderError("KINDROID_API_KEY is not set")

        requester = hash_requester(conversation[-1].get("username", ""))
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "X-Kindroid-Requester": requester,
        }
        payload = {
            "share_code": share_code,
            "enable_filter": enable_filter,
            "conversation": conversation,
        }

        start = time.time()
        status = "error"
        try:
            async with self._get_session().post(self.url, json=payload, headers=headers) as response:
                if response.status == 429:
                    status = "rate_limited"
                    log.debug("Kindroid rate limited this request")
                    return RATE_LIMITED

                if response.status >= 400:
                    body = await response.text()
                    raise ProviderError(f"HTTP {response.status}: {body[:200]}")

                data = await response.json(content_type=None)
                if not data.get("success"):
                    raise ProviderError(f"Request failed: {data.get('error', 'unknown error')}")

                reply = data.get("reply") or ""
                if not reply.strip():
                    raise ProviderError("Empty reply")

                status = "success"
                return AIResult(kind="ok", text=reply)
        except asyncio.TimeoutError:
            status = "timeout"
            raise ProviderError(f"Timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            raise ProviderError(f"Connection error: {e}") from e
        finally:
            metrics_manager.record_api_request(status, time.time() - start)

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
