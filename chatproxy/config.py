"""Configuration loader for the chat proxy.

Reads an optional JSON config file describing the upstream Gemini provider,
the fixed generation parameters and the safety thresholds. The API key is
resolved from an environment variable and never stored in the file.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

BLOCK_MEDIUM_AND_ABOVE = "BLOCK_MEDIUM_AND_ABOVE"

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class MissingCredentialError(RuntimeError):
    """Raised when the provider API key is not present in the environment."""

    def __init__(self, env_var: str) -> None:
        self.env_var = env_var
        super().__init__("Missing {} environment variable".format(env_var))


@dataclass
class ProviderConfig:
    """Configuration for the Gemini generateContent endpoint."""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-pro"
    api_key_env: str = "GEMINI_API_KEY"

    @property
    def api_key(self) -> Optional[str]:
        """Resolve the API key from the environment variable."""
        return os.getenv(self.api_key_env)

    @property
    def generate_url(self) -> str:
        return "{}/models/{}:generateContent".format(
            self.base_url.rstrip("/"), self.model
        )


@dataclass
class GenerationConfig:
    """Sampling parameters sent with every request."""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 1024

    def to_payload(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


@dataclass(frozen=True)
class SafetySetting:
    """A provider-side content filter threshold for one harm category."""

    category: str
    threshold: str = BLOCK_MEDIUM_AND_ABOVE

    def to_payload(self) -> Dict[str, str]:
        return {"category": self.category, "threshold": self.threshold}


DEFAULT_SAFETY_SETTINGS: Tuple[SafetySetting, ...] = tuple(
    SafetySetting(category=c) for c in HARM_CATEGORIES
)


@dataclass
class ProxyConfig:
    """Top-level chat proxy configuration."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    safety_settings: List[SafetySetting] = field(
        default_factory=lambda: list(DEFAULT_SAFETY_SETTINGS)
    )
    log_file: str = "logs/chatproxy.log"
    log_level: str = "INFO"
    allowed_origins: str = "*"


def require_api_key(config: ProxyConfig) -> str:
    """Return the provider API key or raise if it is not configured.

    Raises:
        MissingCredentialError: If the environment variable is unset or empty.
    """
    api_key = config.provider.api_key
    if not api_key:
        raise MissingCredentialError(config.provider.api_key_env)
    return api_key


def load_config(path: Optional[Union[str, Path]] = None) -> ProxyConfig:
    """Load proxy configuration from a JSON file.

    Args:
        path: Path to the JSON config file, or None to use built-in defaults.

    Returns:
        A fully resolved ProxyConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the config file contains invalid data.
    """
    if path is None:
        return ProxyConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            raw: Dict[str, Any] = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    defaults = ProxyConfig()

    try:
        provider_raw = raw.get("provider", {})
        provider = ProviderConfig(
            base_url=provider_raw.get("base_url", defaults.provider.base_url),
            model=provider_raw.get("model", defaults.provider.model),
            api_key_env=provider_raw.get(
                "api_key_env", defaults.provider.api_key_env
            ),
        )

        generation_raw = raw.get("generation", {})
        generation = GenerationConfig(
            temperature=float(
                generation_raw.get("temperature", defaults.generation.temperature)
            ),
            top_k=int(generation_raw.get("top_k", defaults.generation.top_k)),
            top_p=float(generation_raw.get("top_p", defaults.generation.top_p)),
            max_output_tokens=int(
                generation_raw.get(
                    "max_output_tokens", defaults.generation.max_output_tokens
                )
            ),
        )

        if "safety_settings" in raw:
            safety_settings = [
                SafetySetting(
                    category=entry["category"],
                    threshold=entry.get("threshold", BLOCK_MEDIUM_AND_ABOVE),
                )
                for entry in raw["safety_settings"]
            ]
        else:
            safety_settings = list(DEFAULT_SAFETY_SETTINGS)
    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"Invalid config in {path}: {exc}") from exc

    return ProxyConfig(
        provider=provider,
        generation=generation,
        safety_settings=safety_settings,
        log_file=raw.get("log_file", defaults.log_file),
        log_level=raw.get("log_level", defaults.log_level),
        allowed_origins=raw.get("allowed_origins", defaults.allowed_origins),
    )
