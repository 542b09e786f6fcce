"""FastAPI routes for the agent."""
import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from orbit.core.agent import run_agent
from orbit.models.schemas import AgentErrorBody, AgentMessage, AgentReply, AgentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["agent"])

UNEXPECTED_ERROR = "Unexpected error while running the agent."

AgentRunner = Callable[[list[AgentMessage]], Awaitable[str]]


def get_agent_runner() -> AgentRunner:
    """The collaborator that turns a transcript into a reply. Overridden in tests."""
    return run_agent


@router.post(
    "/agent",
    response_model=AgentReply,
    responses={400: {"model": AgentErrorBody, "description": "Invalid payload or agent failure"}},
)
async def agent(request: Request, runner: AgentRunner = Depends(get_agent_runner)):
    """Send the whole transcript and get the agent reply.

    The body is decoded here rather than by FastAPI so that malformed JSON, schema
    violations and agent failures all come back as 400 {"error": ...}.
    """
    try:
        body = await request.json()
        payload = AgentRequest.model_validate(body)
        reply = AgentReply(reply=await runner(payload.messages))
    except Exception as e:
        logger.exception("Agent request failed: %s", e)
        return JSONResponse(
            status_code=400,
            content=AgentErrorBody(error=str(e) or UNEXPECTED_ERROR).model_dump(),
        )
    return reply


@router.get("/health")
def health() -> dict:
    """Health check."""
    return {"status": "ok"}
