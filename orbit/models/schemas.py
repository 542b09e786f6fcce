"""API request and response models."""
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class AgentMessage(BaseModel):
    role: Role = Field(..., description="Who wrote the message: 'user' or 'assistant'")
    content: str = Field(..., min_length=1, description="Message text")


class AgentRequest(BaseModel):
    messages: list[AgentMessage] = Field(
        ..., min_length=1, description="Conversation transcript, oldest first"
    )


class AgentReply(BaseModel):
    reply: str = Field(..., description="Agent reply")


class AgentErrorBody(BaseModel):
    error: str = Field(..., description="What went wrong")
