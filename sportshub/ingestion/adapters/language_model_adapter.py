"""
Language-Model Search Adapter.

Adapter for an OpenAI-compatible chat-completions search API (Perplexity).
The provider answers in free text; the adapter only transports it and the
pipelines parse it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType

logger = logging.getLogger(__name__)


@dataclass
class LanguageModelAdapterConfig(AdapterConfig):
    """Configuration for chat-completions search adapters."""

    base_url: str = "https://api.perplexity.ai/chat/completions"
    model: str = "llama-3.1-sonar-small-128k-online"
    system_prompt: str = ""
    max_tokens: int = 2000
    temperature: float = 0.2
    frequency_penalty: float = 1.0

    def __post_init__(self):
        """Set source type to LANGUAGE_MODEL."""
        self.source_type = SourceType.LANGUAGE_MODEL


class LanguageModelSearchAdapter(BaseSourceAdapter):
    """
    Adapter for natural-language search providers.

    Posts one system + user message pair and returns the assistant's reply
    in ``FetchResult.raw_text``. Transport errors are retried with
    exponential backoff; a payload without an assistant message is treated
    as a failed fetch.
    """

    def __init__(self, config: LanguageModelAdapterConfig):
        self._client: httpx.AsyncClient | None = None
        super().__init__(config)

    @property
    def llm_config(self) -> LanguageModelAdapterConfig:
        """Get typed config."""
        return self.config  # type: ignore[return-value]

    def _validate_config(self) -> None:
        """Validate chat-completions configuration."""
        if not self.llm_config.base_url:
            raise ValueError("Language-model adapter requires base_url")
        if not self.llm_config.model:
            raise ValueError("Language-model adapter requires model")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._client = httpx.AsyncClient(headers=headers)
        return self._client

    def build_payload(self, query: str, system_prompt: str | None = None) -> dict:
        """Request body for one search."""
        return {
            "model": self.llm_config.model,
            "messages": [
                {"role": "system", "content": system_prompt or self.llm_config.system_prompt},
                {"role": "user", "content": query},
            ],
            "max_tokens": self.llm_config.max_tokens,
            "temperature": self.llm_config.temperature,
            "frequency_penalty": self.llm_config.frequency_penalty,
            "stream": False,
        }

    async def fetch(self, query: str = "", system_prompt: str | None = None, **kwargs) -> FetchResult:
        """
        Run one natural-language search.

        Args:
            query: User message sent to the provider
            system_prompt: Overrides the configured system prompt

        Returns:
            FetchResult with the reply in raw_text
        """
        if not self.is_configured:
            return self._not_configured()

        fetch_started = datetime.now(UTC)
        text = ""
        errors: list[str] = []
        metadata: dict = {"api_calls": 0, "query": query}

        try:
            client = self._get_client()
            response = await self._make_request(client, self.build_payload(query, system_prompt))
            metadata["api_calls"] += 1

            if response is None:
                errors.append("Chat completions request failed")
            else:
                text = self._extract_text(response)
                if not text:
                    errors.append("Malformed chat completions payload")
                metadata["citations"] = response.get("citations", [])

        except Exception as e:
            logger.error(f"Language-model fetch failed: {e}")
            errors.append(str(e))

        return FetchResult(
            success=not errors,
            source_type=SourceType.LANGUAGE_MODEL,
            raw_text=text,
            total_fetched=1 if text else 0,
            errors=errors,
            metadata=metadata,
            fetch_started_at=fetch_started,
            fetch_ended_at=datetime.now(UTC),
        )

    @staticmethod
    def _extract_text(response: dict) -> str:
        """Assistant message of the first choice, or "" when absent."""
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return ""
        return content if isinstance(content, str) else ""

    async def _make_request(
        self,
        client: httpx.AsyncClient,
        payload: dict,
        retry_count: int = 0,
    ) -> dict | None:
        """
        POST with retry logic.

        Args:
            client: Async HTTP client
            payload: Request body
            retry_count: Current retry attempt

        Returns:
            Response JSON or None on failure
        """
        try:
            # Rate limiting
            await asyncio.sleep(1.0 / self.config.rate_limit_per_second)

            response = await client.post(
                self.llm_config.base_url,
                json=payload,
                timeout=self.config.request_timeout,
            )
            response.raise_for_status()
            return response.json()

        except httpx.HTTPError as e:
            if retry_count < self.config.max_retries:
                wait_time = 2**retry_count
                logger.warning(f"Request failed, retrying in {wait_time}s: {e}")
                await asyncio.sleep(wait_time)
                return await self._make_request(client, payload, retry_count + 1)

            logger.error(f"Request failed after {retry_count} retries: {e}")
            return None

    async def close(self) -> None:
        """Close async HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
