from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

FocusArea = Literal["market", "tech", "economics", "readiness"]
ChatRole = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    role: ChatRole
    content: str
    timestamp: datetime


class MentorshipChat(BaseModel):
    sessionId: str
    focusArea: FocusArea
    messages: list[ChatMessage] = Field(default_factory=list)


class MentorshipMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class MentorshipMessageResponse(BaseModel):
    sessionId: str
    focusArea: FocusArea
    reply: str
    messages: list[ChatMessage] = Field(default_factory=list)
