"""Provider adapter for the Gemini generateContent API.

Builds the provider payload from a single user message, performs one
outbound call and extracts the first candidate's text.
"""

from typing import Any, Dict, Optional

import httpx

from chatproxy.config import ProxyConfig


class ProviderError(Exception):
    """Base class for failures reported by the provider."""


class ProviderHTTPError(ProviderError):
    """Raised when the provider answers with a non-2xx status."""

    def __init__(self, status_code: int, reason: str, details: Any) -> None:
        self.status_code = status_code
        self.reason = reason
        self.details = details
        super().__init__(
            "API request failed with status {}: {}".format(status_code, reason)
        )


class NoCandidatesError(ProviderError):
    """Raised when a successful response carries no candidates."""

    def __init__(self) -> None:
        super().__init__("No response generated. Please try again.")


def build_provider_request(message: str, config: ProxyConfig) -> Dict[str, Any]:
    """Wrap a user message in the generateContent request schema."""
    return {
        "contents": [{"parts": [{"text": message}]}],
        "generationConfig": config.generation.to_payload(),
        "safetySettings": [s.to_payload() for s in config.safety_settings],
    }


def extract_text(data: Dict[str, Any]) -> str:
    """Return the first text part of the first candidate.

    Raises:
        NoCandidatesError: If the response has no candidates.
        KeyError, IndexError, TypeError: If the candidate is malformed.
    """
    candidates = data.get("candidates")
    if not candidates:
        raise NoCandidatesError()
    return candidates[0]["content"]["parts"][0]["text"]


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


def _error_details(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {}


async def call_provider(
    config: ProxyConfig,
    message: str,
    api_key: Optional[str] = None,
) -> str:
    """Send a message to the provider and return the generated reply.

    Args:
        config: Proxy configuration (endpoint, generation, safety settings).
        message: The user text, already validated as non-empty.
        api_key: Credential to pass as the ``key`` query parameter. Defaults
            to the one resolved from the environment.

    Returns:
        The reply text, verbatim.

    Raises:
        ProviderHTTPError: If the provider returns a non-2xx response.
        NoCandidatesError: If the provider returns no candidates.
        httpx.HTTPError: On transport failures.
    """
    if api_key is None:
        api_key = config.provider.api_key

    payload = build_provider_request(message, config)

    async with _new_client() as client:
        resp = await client.post(
            config.provider.generate_url,
            params={"key": api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
        )

    if not resp.is_success:
        raise ProviderHTTPError(
            resp.status_code, resp.reason_phrase, _error_details(resp)
        )

    return extract_text(resp.json())
