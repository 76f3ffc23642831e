"""
Base Source Adapter.

Abstract base class defining the interface for all provider adapters.
Implements the Strategy pattern: pipelines talk to one adapter interface
whether the provider answers with structured place hits or free text.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    """Kind of payload a provider returns."""

    PLACES = "places"
    LANGUAGE_MODEL = "language_model"


@dataclass
class FetchResult:
    """
    Result of a provider call.

    Structured providers fill ``raw_data``; free-text providers fill
    ``raw_text``. ``success`` is False for every failure mode (missing
    credentials, transport errors, error statuses, malformed payloads).
    """

    success: bool
    source_type: SourceType
    raw_data: list[dict[str, Any]] = field(default_factory=list)
    raw_text: str = ""
    total_fetched: int = 0
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    fetch_started_at: datetime | None = None
    fetch_ended_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate fetch duration."""
        if self.fetch_started_at and self.fetch_ended_at:
            return (self.fetch_ended_at - self.fetch_started_at).total_seconds()
        return 0.0


@dataclass
class AdapterConfig:
    """
    Base configuration for provider adapters.

    Extended by specific adapters with their endpoints and request options.
    """

    source_id: str
    source_type: SourceType
    api_key: str | None = None
    request_timeout: float = 30
    max_retries: int = 3
    rate_limit_per_second: float = 1.0
    custom_config: dict[str, Any] = field(default_factory=dict)


class BaseSourceAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Adapters encapsulate the HTTP details of one provider and never raise
    out of ``fetch``; failures come back as ``FetchResult(success=False)``.

    Subclasses must implement:
        - fetch(): Call the provider
        - _validate_config(): Validate adapter-specific configuration
    """

    def __init__(self, config: AdapterConfig):
        """
        Initialize the adapter.

        Args:
            config: AdapterConfig with provider-specific settings
        """
        self.config = config
        self.logger = logging.getLogger(f"adapter.{config.source_id}")
        self._validate_config()

    @property
    def source_type(self) -> SourceType:
        """Get the source type."""
        return self.config.source_type

    @property
    def source_id(self) -> str:
        """Get the source identifier."""
        return self.config.source_id

    @property
    def is_configured(self) -> bool:
        """True when the adapter has the credential it needs to go live."""
        return bool(self.config.api_key)

    @abstractmethod
    async def fetch(self, **kwargs) -> FetchResult:
        """
        Call the provider.

        Args:
            **kwargs: Provider-specific query parameters

        Returns:
            FetchResult with raw payload and metadata
        """

    @abstractmethod
    def _validate_config(self) -> None:
        """
        Validate adapter-specific configuration.

        Raises:
            ValueError: If configuration is invalid
        """

    def _not_configured(self) -> FetchResult:
        now = datetime.now(UTC)
        return FetchResult(
            success=False,
            source_type=self.source_type,
            errors=[f"{self.source_id} has no API key configured"],
            fetch_started_at=now,
            fetch_ended_at=now,
        )

    async def close(self) -> None:
        """
        Release any resources held by the adapter.

        Override in subclasses that hold resources (e.g., HTTP clients).
        """

    async def __aenter__(self) -> BaseSourceAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
