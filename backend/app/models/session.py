from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models.report import ReportCard

SessionStatus = Literal["uploading", "preparing", "live", "completed", "failed"]


class SessionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    pitchDeckRef: str | None = Field(default=None, max_length=512)
    pitchContextText: str | None = None
    awaitingDeckUpload: bool = False


class SessionCreateResponse(BaseModel):
    sessionId: str
    status: SessionStatus
    message: str


class DeckUploadedRequest(BaseModel):
    pitchDeckRef: str = Field(..., min_length=1, max_length=512)


class SessionEndRequest(BaseModel):
    transcript: str | None = None


class SessionFailRequest(BaseModel):
    reason: str = Field(default="Client reported a capture failure", max_length=500)


class PitchSession(BaseModel):
    sessionId: str
    userId: str
    title: str
    status: SessionStatus
    pitchDeckRef: str | None = None
    pitchContextText: str | None = None
    marketContext: str | None = None
    startTime: datetime | None = None
    endTime: datetime | None = None
    transcript: str = ""
    failureReason: str | None = None
    reportCard: ReportCard | None = None
    createdAt: datetime


class SessionSummary(BaseModel):
    sessionId: str
    title: str
    status: SessionStatus
    createdAt: datetime
    reportReady: bool = False
    overallScore: float | None = None


class SessionTransitionResponse(BaseModel):
    sessionId: str
    status: SessionStatus
    message: str
    reportScheduled: bool = False
