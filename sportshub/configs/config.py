"""Configuration loader for the sportshub ingestion core."""

from __future__ import annotations

from pathlib import Path

import yaml

from sportshub.configs.settings import Settings, get_settings


class Config:
    """Configuration for the ingestion providers and pipelines."""

    CONFIG_DIR = Path(__file__).parent.resolve()
    DEFAULT_INGESTION_CONFIG_PATH = CONFIG_DIR / "ingestion.yaml"

    @classmethod
    def load_ingestion_config(
        cls,
        path: Path | str | None = None,
        settings: Settings | None = None,
    ) -> dict:
        """
        Load the YAML configuration for ingestion providers.

        Placeholders like ``${PERPLEXITY_API_KEY}`` are substituted from
        settings before parsing. Unset secrets become empty strings.
        """
        settings = settings or get_settings()
        config_path = Path(path) if path else settings.INGESTION_CONFIG_PATH

        if not config_path.exists():
            raise FileNotFoundError(f"Missing config at {config_path}")

        with open(config_path, encoding="utf-8") as f:
            content = f.read()

        for key, value in settings.model_dump().items():
            placeholder = f"${{{key}}}"
            if placeholder in content:
                if value is None:
                    val_str = ""
                elif hasattr(value, "get_secret_value"):
                    val_str = value.get_secret_value()
                else:
                    val_str = str(value)
                content = content.replace(placeholder, val_str)

        return yaml.safe_load(content) or {}

    @classmethod
    def get_provider_config(cls, config: dict, provider_name: str) -> dict:
        """Return the ``providers.<name>`` block, or an empty dict."""
        return (config.get("providers") or {}).get(provider_name) or {}
