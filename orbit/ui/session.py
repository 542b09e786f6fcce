"""
Chat view state: the transcript, the draft being typed, and one submission at a time.

A submission appends the user's message right away (optimistic update), posts the
whole transcript to /api/agent, then appends either the reply or a fixed fallback.
Every submission is tracked as pending -> succeeded | failed; the session is
"loading" while one is pending and refuses new submissions until it settles.
"""
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import httpx

from orbit.core.config import get_settings
from orbit.models.schemas import Role

logger = logging.getLogger(__name__)

ASSISTANT_INTRO = "I'm Orbit, a lightweight AI agent. Share your goal and I'll help outline next steps."
FALLBACK_REPLY = "Something went wrong when contacting the agent. Try again in a moment."
UNKNOWN_ERROR = "Unknown error"

PLACEHOLDER_LOADING = "Orbit is thinking..."
PLACEHOLDER_FRESH = "Ask for a plan, next steps, or break down a problem."
PLACEHOLDER_ONGOING = "Type your next prompt..."

AGENT_PATH = "/api/agent"


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ChatMessage:
    role: Role
    content: str
    id: str = field(default_factory=new_id)  # list identity only; never sent


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(str, Enum):
    NETWORK = "network"  # request never got a response
    STATUS = "status"  # non-2xx response
    MALFORMED = "malformed"  # 2xx without a usable {"reply": str}


@dataclass
class Submission:
    message: ChatMessage
    status: SubmissionStatus = SubmissionStatus.PENDING
    reply: ChatMessage | None = None
    failure: FailureKind | None = None
    error: str | None = None


class SubmissionFailed(Exception):
    """Why a submission did not produce a reply."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


class ChatSession:
    """In-memory chat state for one page/terminal session. Nothing is persisted."""

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.orbit_api_url).rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=settings.client_timeout_seconds)
        self._messages: list[ChatMessage] = [ChatMessage(role=Role.ASSISTANT, content=ASSISTANT_INTRO)]
        self._draft = ""
        self._pending: Submission | None = None
        self.error: str | None = None
        self.submissions: list[Submission] = []
        self._listeners: list[Callable[["ChatSession"], None]] = []

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def draft(self) -> str:
        return self._draft

    @draft.setter
    def draft(self, value: str) -> None:
        self._draft = value
        self._notify()

    @property
    def is_loading(self) -> bool:
        return self._pending is not None

    @property
    def can_submit(self) -> bool:
        return bool(self._draft.strip()) and not self.is_loading

    @property
    def placeholder(self) -> str:
        if self.is_loading:
            return PLACEHOLDER_LOADING
        if len(self._messages) <= 1:
            return PLACEHOLDER_FRESH
        return PLACEHOLDER_ONGOING

    def subscribe(self, callback: Callable[["ChatSession"], None]) -> Callable[[], None]:
        """Call callback after every state change. Returns an unsubscribe function."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    async def submit(self) -> Submission | None:
        """Send the draft. Returns None (and changes nothing) when can_submit is False."""
        if not self.can_submit:
            return None

        user_message = ChatMessage(role=Role.USER, content=self._draft.strip())
        self._messages.append(user_message)
        submission = Submission(message=user_message)
        self.submissions.append(submission)
        self._pending = submission
        try:
            self._draft = ""
            self.error = None
            self._notify()

            transcript = [{"role": m.role.value, "content": m.content} for m in self._messages]
            try:
                reply = await self._request_reply(transcript)
            except SubmissionFailed as e:
                logger.warning("Agent submission failed (%s): %s", e.kind.value, e.message)
                submission.status = SubmissionStatus.FAILED
                submission.failure = e.kind
                submission.error = e.message or UNKNOWN_ERROR
                self._messages.append(ChatMessage(role=Role.ASSISTANT, content=FALLBACK_REPLY))
                self.error = submission.error
            else:
                submission.reply = ChatMessage(role=Role.ASSISTANT, content=reply.strip())
                submission.status = SubmissionStatus.SUCCEEDED
                self._messages.append(submission.reply)
        finally:
            # Settled, even if a listener raised
            self._pending = None
            self._notify()
        return submission

    async def _request_reply(self, transcript: list[dict]) -> str:
        try:
            response = await self._client.post(
                f"{self.base_url}{AGENT_PATH}",
                json={"messages": transcript},
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SubmissionFailed(FailureKind.NETWORK, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise SubmissionFailed(FailureKind.STATUS, f"Request failed with status {response.status_code}")

        try:
            reply = response.json()["reply"]
        except (ValueError, KeyError, TypeError) as e:
            raise SubmissionFailed(FailureKind.MALFORMED, f"Malformed reply from agent: {e}") from e
        if not isinstance(reply, str):
            raise SubmissionFailed(FailureKind.MALFORMED, "Malformed reply from agent: reply is not text")
        return reply
