"""ChatSession: optimistic update, reply/fallback handling, and the submit guard."""
import asyncio
import json

import httpx
import pytest

from orbit.models.schemas import Role
from orbit.ui.session import (
    ASSISTANT_INTRO,
    FALLBACK_REPLY,
    PLACEHOLDER_FRESH,
    PLACEHOLDER_LOADING,
    PLACEHOLDER_ONGOING,
    ChatSession,
    FailureKind,
    SubmissionStatus,
)

BASE_URL = "http://orbit.test"


def _session(handler) -> ChatSession:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatSession(base_url=BASE_URL, client=client)


def _reply(text: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"reply": text})
    return handler


# ── Initial state ────────────────────────────────────────────

def test_initial_state():
    session = _session(_reply("unused"))
    assert [(m.role, m.content) for m in session.messages] == [(Role.ASSISTANT, ASSISTANT_INTRO)]
    assert session.draft == ""
    assert session.is_loading is False
    assert session.error is None
    assert session.can_submit is False
    assert session.placeholder == PLACEHOLDER_FRESH


# ── Round trip ───────────────────────────────────────────────

def test_round_trip_appends_user_then_reply():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        # Optimistic update is visible while the request is in flight
        seen["last"] = session.messages[-1].content
        seen["draft"] = session.draft
        seen["loading"] = session.is_loading
        seen["placeholder"] = session.placeholder
        return httpx.Response(200, json={"reply": "  hi \n"})

    session = _session(handler)
    session.draft = "  hello  "
    submission = asyncio.run(session.submit())

    assert seen["url"] == f"{BASE_URL}/api/agent"
    assert seen["body"] == {
        "messages": [
            {"role": "assistant", "content": ASSISTANT_INTRO},
            {"role": "user", "content": "hello"},
        ]
    }
    assert seen["last"] == "hello"
    assert seen["draft"] == ""
    assert seen["loading"] is True
    assert seen["placeholder"] == PLACEHOLDER_LOADING

    assert [(m.role, m.content) for m in session.messages[1:]] == [
        (Role.USER, "hello"),
        (Role.ASSISTANT, "hi"),
    ]
    assert session.is_loading is False
    assert session.error is None
    assert session.placeholder == PLACEHOLDER_ONGOING
    assert submission.status is SubmissionStatus.SUCCEEDED
    assert submission.reply.content == "hi"


def test_ids_are_unique_and_not_sent():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"reply": "ok"})

    session = _session(handler)
    session.draft = "one"
    asyncio.run(session.submit())
    ids = [m.id for m in session.messages]
    assert len(set(ids)) == len(ids)
    assert all(set(m) == {"role", "content"} for m in bodies[0]["messages"])


# ── Failure paths ────────────────────────────────────────────

@pytest.mark.parametrize(
    "handler, kind",
    [
        (lambda request: httpx.Response(500, json={"error": "boom"}), FailureKind.STATUS),
        (lambda request: httpx.Response(400, json={"error": "bad"}), FailureKind.STATUS),
        (lambda request: httpx.Response(200, text="not json"), FailureKind.MALFORMED),
        (lambda request: httpx.Response(200, json={"answer": "hi"}), FailureKind.MALFORMED),
        (lambda request: httpx.Response(200, json={"reply": 7}), FailureKind.MALFORMED),
    ],
)
def test_failure_appends_one_fallback(handler, kind):
    session = _session(handler)
    session.draft = "hello"
    submission = asyncio.run(session.submit())

    assert [(m.role, m.content) for m in session.messages[1:]] == [
        (Role.USER, "hello"),
        (Role.ASSISTANT, FALLBACK_REPLY),
    ]
    assert session.error
    assert session.is_loading is False
    assert submission.status is SubmissionStatus.FAILED
    assert submission.failure is kind


def test_status_failure_message():
    session = _session(lambda request: httpx.Response(503))
    session.draft = "hello"
    asyncio.run(session.submit())
    assert session.error == "Request failed with status 503"


def test_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    session = _session(handler)
    session.draft = "hello"
    submission = asyncio.run(session.submit())
    assert session.error == "connection refused"
    assert submission.failure is FailureKind.NETWORK
    assert session.messages[-1].content == FALLBACK_REPLY


def test_next_submit_clears_error_and_sends_fallback_in_transcript():
    responses = [httpx.Response(500), httpx.Response(200, json={"reply": "back"})]
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return responses.pop(0)

    session = _session(handler)

    async def scenario():
        session.draft = "first"
        await session.submit()
        assert session.error is not None
        session.draft = "second"
        await session.submit()

    asyncio.run(scenario())
    assert session.error is None
    assert session.messages[-1].content == "back"
    assert [m["content"] for m in bodies[1]["messages"]] == [ASSISTANT_INTRO, "first", FALLBACK_REPLY, "second"]
    assert [s.status for s in session.submissions] == [SubmissionStatus.FAILED, SubmissionStatus.SUCCEEDED]


# ── Submit guard ─────────────────────────────────────────────

@pytest.mark.parametrize("draft", ["", "   ", "\n\t"])
def test_blank_draft_is_ignored(draft):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"reply": "x"})

    session = _session(handler)
    session.draft = draft
    before = session.messages
    assert session.can_submit is False
    assert asyncio.run(session.submit()) is None
    assert calls == []
    assert session.messages == before
    assert session.draft == draft
    assert session.submissions == []


def test_submit_while_loading_is_ignored():
    calls = []
    inner = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        session.draft = "second"
        inner["can_submit"] = session.can_submit
        inner["result"] = await session.submit()
        inner["count"] = len(session.messages)
        return httpx.Response(200, json={"reply": "done"})

    session = _session(handler)
    session.draft = "first"
    asyncio.run(session.submit())

    assert len(calls) == 1
    assert inner == {"can_submit": False, "result": None, "count": 2}
    assert session.draft == "second"
    assert [m.content for m in session.messages[1:]] == ["first", "done"]


# ── Listeners ────────────────────────────────────────────────

def test_listeners_see_each_change():
    counts = []
    session = _session(_reply("hi"))
    unsubscribe = session.subscribe(lambda s: counts.append((len(s.messages), s.is_loading)))
    session.draft = "hello"
    asyncio.run(session.submit())
    assert counts == [(1, False), (2, True), (3, False)]

    unsubscribe()
    session.draft = "again"
    assert len(counts) == 3


def test_owned_client_is_closed():
    async def scenario():
        async with ChatSession(base_url=BASE_URL) as session:
            client = session._client
        return client

    client = asyncio.run(scenario())
    assert client.is_closed


def test_invalid_url_falls_back():
    session = _session(_reply("unused"))
    session.base_url = "http://localhost:abc"
    session.draft = "hello"
    submission = asyncio.run(session.submit())

    assert [m.content for m in session.messages[1:]] == ["hello", FALLBACK_REPLY]
    assert session.error
    assert session.is_loading is False
    assert submission.failure is FailureKind.NETWORK


def test_raising_listener_does_not_leave_session_loading():
    calls = []

    def listener(s):
        calls.append(s.is_loading)
        if len(calls) == 2:
            raise RuntimeError("view broke")

    session = _session(_reply("hi"))
    session.subscribe(listener)
    session.draft = "hello"
    with pytest.raises(RuntimeError):
        asyncio.run(session.submit())

    assert session.is_loading is False
    session.draft = "again"
    assert session.can_submit is True
