import json
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from config.models import ModelConfig
from core.contracts.provider import CompletionStreamer
from utils.errors import ConfigError, ProviderError, TransportError
from utils.logger import logger


class ClaudeStreamer(CompletionStreamer):
    """
    Streams completions from the Anthropic Messages API.
    """

    def __init__(self, api_key: Optional[str], config: Optional[ModelConfig] = None):
        if not api_key:
            raise ConfigError(
                'Anthropic API key not found. Run "git-sense config --anthropic-key <key>" to set it.'
            )

        self.config = config or ModelConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "x-api-key": api_key,
                "anthropic-version": self.config.api_version,
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout_sec,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        """
        Builds the request payload for the API.
        """
        payload = {
            "model": self.config.name,
            "max_tokens": self.config.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        payload.update(self.config.parameters)
        payload["stream"] = True
        return payload

    @staticmethod
    def _error_message(body: bytes) -> str:
        try:
            details = json.loads(body)
            return details.get("error", {}).get("message", body.decode())
        except (json.JSONDecodeError, AttributeError):
            return body.decode(errors="replace")

    async def _process_stream(self, response: httpx.Response) -> AsyncIterator[str]:
        """
        Yields text deltas from the server-sent event stream.
        """
        async for line in response.aiter_lines():
            line = line.strip()
            if not line.startswith("data:"):
                continue
            data_str = line[len("data:"):].strip()
            if not data_str:
                continue
            try:
                chunk = json.loads(data_str)
            except json.JSONDecodeError:
                logger.debug(f"Skipping malformed stream line: {data_str[:80]}")
                continue

            chunk_type = chunk.get("type")
            if chunk_type == "content_block_delta":
                delta = chunk.get("delta", {})
                if delta.get("type") == "text_delta" and delta.get("text"):
                    yield delta["text"]
            elif chunk_type == "error":
                error = chunk.get("error", {})
                raise ProviderError(f"Anthropic stream error: {error.get('message', 'unknown error')}")
            elif chunk_type == "message_stop":
                break

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Streams the answer to `prompt`, yielding each text fragment as it arrives.
        """
        payload = self._build_payload(prompt)
        logger.debug(f"Streaming completion from {self.config.name} ({len(prompt)} prompt chars)")
        try:
            async with self._client.stream("POST", "/messages", json=payload) as response:
                if response.is_error:
                    body = await response.aread()
                    raise ProviderError(
                        f"Anthropic API error ({response.status_code}): {self._error_message(body)}"
                    )
                async for text in self._process_stream(response):
                    yield text
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to Anthropic timed out: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(str(e)) from e
