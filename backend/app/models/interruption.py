from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TriggerCategory = Literal["reality_check", "math_check", "bs_detector"]
FounderReaction = Literal["defensive", "receptive", "neutral"]


class Interruption(BaseModel):
    interruptionId: str
    sessionId: str
    sequence: int
    timestamp: datetime
    triggerType: TriggerCategory
    founderStatement: str
    vcResponse: str
    founderReaction: FounderReaction | None = None


class InterruptionSubmitRequest(BaseModel):
    triggerType: TriggerCategory
    founderStatement: str = Field(..., min_length=1)
    vcResponse: str = Field(..., min_length=1)


class ReactionPatchRequest(BaseModel):
    founderReaction: FounderReaction


class TranscriptChunkRequest(BaseModel):
    transcript: str = Field(default="")
    # Base64 audio is accepted for parity with the capture client; evaluation is transcript-only.
    audioData: str | None = None
    chunkIndex: int | None = Field(default=None, ge=0)


class TranscriptChunkResponse(BaseModel):
    sessionId: str
    interrupted: bool
    triggerType: TriggerCategory | None = None
    vcResponse: str | None = None
    interruption: Interruption | None = None
    interruptionCount: int = 0
    reason: str


class FounderResponseRequest(BaseModel):
    founderResponse: str = Field(..., min_length=1)


class FounderResponseEvaluation(BaseModel):
    interruptionId: str
    reaction: FounderReaction
    persisted: bool
