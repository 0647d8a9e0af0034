"""Pass-through proxy to the hosted text-generation endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp

from scoreboard.game.config import ServerConfig

logger = logging.getLogger(__name__)


class AiError(Exception):
    def __init__(self, message: str, status: int = 502):
        super().__init__(message)
        self.status = status


def extract_text(payload: Any) -> str:
    """Pull the generated text out of whichever shape the upstream returned."""
    if isinstance(payload, dict):
        result = payload.get("result")
        if isinstance(result, str):
            return result
        if isinstance(payload.get("response"), str):
            return payload["response"]
        choices = payload.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            text = choices[0].get("text")
            if isinstance(text, str):
                return text
        if isinstance(result, dict) and isinstance(result.get("response"), str):
            return result["response"]
    return json.dumps(payload, separators=(",", ":"))


class AiClient:
    def __init__(self, config: ServerConfig):
        self.config = config
        self._session: aiohttp.ClientSession | None = None

    @property
    def configured(self) -> bool:
        return bool(self.config.ai_account_id and self.config.ai_api_token)

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.ai_timeout_sec)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def generate(self, prompt: str) -> str:
        if not self.configured:
            raise AiError("text generation is not configured", status=503)
        if self._session is None:
            await self.start()

        headers = {
            "Authorization": f"Bearer {self.config.ai_api_token}",
            "Content-Type": "application/json",
        }
        body = {"prompt": prompt, "max_tokens": self.config.ai_max_tokens}
        try:
            async with self._session.post(self.config.ai_url(), json=body, headers=headers) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    logger.error("Upstream text generation failed: %s %s", resp.status, text[:200])
                    raise AiError(f"upstream returned {resp.status}")
                payload = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            logger.error("Upstream text generation unreachable: %s", e)
            raise AiError("upstream unreachable") from e
        except ValueError as e:
            raise AiError("upstream returned invalid json") from e

        logger.debug("AI raw response: %r", payload)
        return extract_text(payload)
