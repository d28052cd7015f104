import logging

from fastapi import APIRouter, Depends

from app.api.dependencies import get_session_controller, get_trigger_evaluator
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.api.security import get_current_user
from app.models.interruption import (
    FounderResponseEvaluation,
    FounderResponseRequest,
    TranscriptChunkRequest,
    TranscriptChunkResponse,
)
from app.services.ai_investor import classify_founder_reaction
from app.services.errors import ReactionAlreadySetError
from app.services.session_lifecycle import SessionLifecycleController
from app.services.trigger_evaluator import TriggerEvaluator

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/hot-seat", tags=["Hot Seat"])


@router.post("/{sessionId}/chunks", response_model=TranscriptChunkResponse)
def process_chunk(
    sessionId: str,
    payload: TranscriptChunkRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
    evaluator: TriggerEvaluator = Depends(get_trigger_evaluator),
) -> TranscriptChunkResponse:
    try:
        controller.require_live(current_user["userId"], sessionId)
        result = evaluator.evaluate(sessionId, payload.transcript)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    LOGGER.debug("Session %s chunk %s: %s", sessionId, payload.chunkIndex, result["reason"])
    return TranscriptChunkResponse(**result)


@router.post(
    "/{sessionId}/interruptions/{interruptionId}/evaluate-response",
    response_model=FounderResponseEvaluation,
)
def evaluate_founder_response(
    sessionId: str,
    interruptionId: str,
    payload: FounderResponseRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> FounderResponseEvaluation:
    try:
        interruption = controller.get_interruption(current_user["userId"], sessionId, interruptionId)
        reaction, classified = classify_founder_reaction(interruption["vcResponse"], payload.founderResponse)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc

    persisted = False
    if classified and interruption["founderReaction"] is None:
        try:
            controller.set_reaction(current_user["userId"], sessionId, interruptionId, reaction)
            persisted = True
        except ReactionAlreadySetError:
            LOGGER.info("Interruption %s was labelled concurrently; keeping the first label", interruptionId)
    return FounderResponseEvaluation(interruptionId=interruptionId, reaction=reaction, persisted=persisted)
