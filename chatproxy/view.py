"""Terminal conversation view for the chat proxy.

Holds the in-memory message list for one session, submits user input to
the proxy endpoint and renders the conversation with rich.
"""

import logging
from typing import List, Optional

import httpx
from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from chatproxy.models import Message

logger = logging.getLogger(__name__)

PLACEHOLDER = "Start a conversation by typing a message below."
THINKING = "AI is thinking..."
UNKNOWN_ERROR = "An unknown error occurred"


class ViewRequestError(Exception):
    """The proxy did not return a usable reply."""


class ConversationView:
    """State and submit loop of a single chat session.

    Submissions are serialized by ``is_submitting``: while a request is in
    flight further submits are ignored, the same way a disabled input
    would ignore them.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        endpoint: str = "/api/chat",
        viewport_height: int = 20,
    ) -> None:
        self.client = client
        self.endpoint = endpoint
        self.viewport_height = viewport_height
        self.messages: List[Message] = []
        self.input_text = ""
        self.is_submitting = False
        self.error: Optional[str] = None
        self.scroll_offset = 0

    @property
    def max_scroll_offset(self) -> int:
        return max(0, len(self.messages) - self.viewport_height)

    def _append(self, message: Message) -> None:
        self.messages.append(message)
        self.scroll_offset = self.max_scroll_offset

    async def submit(self, text: Optional[str] = None) -> None:
        """Send the current input to the proxy and record the outcome."""
        if text is not None:
            self.input_text = text

        if self.is_submitting or not self.input_text.strip():
            return

        message = self.input_text
        self.error = None
        self._append(Message(content=message, is_from_assistant=False))
        self.is_submitting = True

        try:
            reply = await self._request_reply(message)
            self._append(Message(content=reply, is_from_assistant=True))
        except Exception as exc:
            logger.error("Error fetching AI response: %s", exc)
            self.error = str(exc) or UNKNOWN_ERROR
        finally:
            self.is_submitting = False
            self.input_text = ""

    async def _request_reply(self, message: str) -> str:
        resp = await self.client.post(self.endpoint, json={"message": message})

        if not resp.is_success:
            raise ViewRequestError("HTTP error! status: {}".format(resp.status_code))

        data = resp.json()
        if data.get("error"):
            raise ViewRequestError(data["error"])

        return data["aiResponse"]

    def _bubble(self, content: RenderableType, from_assistant: bool) -> RenderableType:
        if from_assistant:
            panel = Panel(content, title="AI", title_align="left", border_style="blue")
            return Align.left(panel, width=48)
        panel = Panel(content, title="You", title_align="right", border_style="green")
        return Align.right(panel, width=48)

    def render(self) -> RenderableType:
        """Build the renderable for the visible part of the conversation."""
        parts: List[RenderableType] = []

        if not self.messages:
            parts.append(Align.center(Text(PLACEHOLDER, style="dim")))

        visible = self.messages[self.scroll_offset:self.scroll_offset + self.viewport_height]
        for message in visible:
            parts.append(self._bubble(Text(message.content), message.is_from_assistant))

        if self.is_submitting:
            parts.append(self._bubble(Spinner("dots", text=THINKING), True))

        if self.error:
            parts.append(
                Panel(Text(self.error), title="Error", border_style="red", style="red")
            )

        return Group(*parts)
