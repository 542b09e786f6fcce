"""
LangGraph agent behind POST /api/agent: build and compile once, run with a transcript.

State: Uses MessagesState (single key "messages"). The agent node returns the
model's reply as a delta; the reducer appends it. run_agent() returns the text of
the last message after the run.
"""
import logging
from datetime import datetime, timezone

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_nvidia_ai_endpoints import ChatNVIDIA
from langgraph.graph import END, START, MessagesState, StateGraph

from orbit.core.config import get_settings
from orbit.models.schemas import AgentMessage, Role

logger = logging.getLogger(__name__)

ORBIT_SYSTEM_PROMPT = """You are Orbit, a lightweight AI agent that helps people break ideas down into actionable moves.
- When the user shares a goal, restate it in one line, then outline concrete next steps as a short numbered list.
- Prefer small, ordered steps the user can start today over broad advice.
- If the goal is ambiguous, ask one focused clarifying question before planning.
- Keep replies compact and plain text; no preamble, no sign-off."""


class AgentError(Exception):
    """The agent could not produce a reply."""


class AgentConfigurationError(AgentError):
    """The agent is missing required configuration (e.g. NVIDIA_API_KEY)."""


def get_system_prompt_with_date() -> str:
    """System prompt plus current date so the agent can plan against 'today'."""
    now = datetime.now(timezone.utc)
    return f"{ORBIT_SYSTEM_PROMPT}\n\nCurrent date: {now.strftime('%A, %B %d, %Y')} (UTC)."


def _default_llm() -> BaseChatModel:
    settings = get_settings()
    if not settings.nvidia_api_key:
        raise AgentConfigurationError("NVIDIA_API_KEY is not set; the agent cannot reach its model.")
    logger.info("Building agent with model %s", settings.nvidia_model)
    return ChatNVIDIA(
        model=settings.nvidia_model,
        nvidia_api_key=settings.nvidia_api_key,
        temperature=settings.agent_temperature,
        top_p=0.7,
        max_completion_tokens=2048,
    )


def build_agent(llm: BaseChatModel | None = None):
    """Compile the agent graph around llm (defaults to ChatNVIDIA from settings)."""
    llm = llm or _default_llm()

    async def agent_node(state: MessagesState) -> dict:
        # Fresh system prompt every run; transcripts from the client never carry one.
        msgs = [m for m in state["messages"] if not isinstance(m, SystemMessage)]
        response = await llm.ainvoke([SystemMessage(content=get_system_prompt_with_date()), *msgs])
        return {"messages": [response]}

    graph = StateGraph(MessagesState)
    graph.add_node("agent", agent_node)
    graph.add_edge(START, "agent")
    graph.add_edge("agent", END)
    return graph.compile()


# Lazy singleton
_agent = None


def get_agent():
    global _agent
    if _agent is None:
        _agent = build_agent()
    return _agent


def to_langchain_messages(messages: list[AgentMessage]) -> list[BaseMessage]:
    """user -> HumanMessage, assistant -> AIMessage, order preserved."""
    out: list[BaseMessage] = []
    for m in messages:
        if m.role == Role.USER:
            out.append(HumanMessage(content=m.content))
        else:
            out.append(AIMessage(content=m.content))
    return out


def _text_of(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    # Content blocks: plain strings or {"type": "text", "text": ...}
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


async def run_agent(messages: list[AgentMessage], agent=None) -> str:
    """Run the agent on the transcript and return only the final assistant text."""
    agent = agent or get_agent()
    result = await agent.ainvoke({"messages": to_langchain_messages(messages)})
    msg_list = result.get("messages", [])
    last = msg_list[-1] if msg_list else None
    if not isinstance(last, AIMessage):
        raise AgentError("The agent finished without replying.")
    reply = _text_of(last)
    if not reply.strip():
        raise AgentError("The agent returned an empty reply.")
    logger.debug("Agent replied with %d chars to %d messages", len(reply), len(messages))
    return reply
