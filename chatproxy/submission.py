"""Server-side form handler that submits a message to the chat proxy.

Every outcome is returned as a SubmissionResult; nothing is raised to the
caller, so renderers only ever deal with one success and one failure shape.
"""

import logging
from typing import Any, Callable, Mapping, Optional

import httpx

from chatproxy.models import SubmissionFailure, SubmissionResult, SubmissionSuccess

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "http://localhost:8000"

EMPTY_MESSAGE_ERROR = "Message cannot be empty"
FALLBACK_RESPONSE = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Please try again later."
)


class SubmissionError(Exception):
    """The proxy answered with an error status."""


def describe_error(exc: BaseException) -> str:
    """Format an exception as ``"<Kind>: <message>"``."""
    message = str(exc)
    if not message:
        return type(exc).__name__
    return "{}: {}".format(type(exc).__name__, message)


async def submit_message(
    form: Mapping[str, Any],
    *,
    proxy_url: str = DEFAULT_PROXY_URL,
    client: Optional[httpx.AsyncClient] = None,
    on_success: Optional[Callable[[str], None]] = None,
) -> SubmissionResult:
    """Post the form's ``message`` field to the proxy.

    Args:
        form: Submitted form fields.
        proxy_url: Base URL of the chat proxy.
        client: Optional client to reuse; one is created otherwise.
        on_success: Called with ``"/"`` after a successful reply so the
            caller can invalidate whatever it cached for the root page.

    Returns:
        SubmissionSuccess with the reply, or SubmissionFailure carrying the
        original message, a fallback reply and the error description.
    """
    message = form.get("message")

    if not isinstance(message, str) or not message.strip():
        return SubmissionFailure(error=EMPTY_MESSAGE_ERROR)

    url = "{}/api/chat".format(proxy_url.rstrip("/"))

    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                resp = await own_client.post(url, json={"message": message})
        else:
            resp = await client.post(url, json={"message": message})

        data = resp.json()

        if not resp.is_success:
            logger.error("Proxy error (%s): %s", resp.status_code, data)
            raise SubmissionError(data.get("error") or "Failed to get response")

        result = SubmissionSuccess(user_message=message, ai_response=data["aiResponse"])

        if on_success is not None:
            on_success("/")

        return result
    except Exception as exc:
        logger.exception("Error submitting message")
        return SubmissionFailure(
            user_message=message,
            ai_response=FALLBACK_RESPONSE,
            error=describe_error(exc),
        )
