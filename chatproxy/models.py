"""Request, response and result models for the chat proxy."""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A single entry in the conversation shown to the user."""

    model_config = ConfigDict(frozen=True)

    content: str
    is_from_assistant: bool = False


class ChatRequest(BaseModel):
    """Incoming chat request from the client."""

    message: Optional[str] = Field(
        default=None, description="Raw user text to forward to the provider"
    )


class ChatResponse(BaseModel):
    """Successful chat response envelope."""

    aiResponse: str


class ErrorResponse(BaseModel):
    """Error response envelope."""

    error: str
    details: Optional[Any] = None

    def to_content(self) -> Dict[str, Any]:
        # details is omitted entirely rather than sent as null
        return self.model_dump(exclude_none=True)


class SubmissionSuccess(BaseModel):
    """The proxy answered the submitted message."""

    user_message: str
    ai_response: str

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"userMessage": self.user_message, "aiResponse": self.ai_response}


class SubmissionFailure(BaseModel):
    """The submission could not be completed.

    ``user_message`` and ``ai_response`` are empty when the message was
    rejected before any request was made.
    """

    error: str
    user_message: Optional[str] = None
    ai_response: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.user_message is not None:
            result["userMessage"] = self.user_message
        if self.ai_response is not None:
            result["aiResponse"] = self.ai_response
        result["error"] = self.error
        return result


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]
