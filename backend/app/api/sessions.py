from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_session_controller
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.api.security import get_current_user
from app.models.interruption import Interruption, InterruptionSubmitRequest, ReactionPatchRequest
from app.models.report import ReportStatusResponse
from app.models.session import (
    DeckUploadedRequest,
    PitchSession,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionEndRequest,
    SessionFailRequest,
    SessionSummary,
    SessionTransitionResponse,
)
from app.services.session_lifecycle import SessionLifecycleController

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post("", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: SessionCreateRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionCreateResponse:
    try:
        session = controller.create(
            current_user["userId"],
            payload.title,
            pitch_deck_ref=payload.pitchDeckRef,
            pitch_context_text=payload.pitchContextText,
            awaiting_deck_upload=payload.awaitingDeckUpload,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionCreateResponse(
        sessionId=session["sessionId"],
        status=session["status"],
        message="Pitch session created",
    )


@router.get("", response_model=list[SessionSummary])
def list_sessions(
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> list[SessionSummary]:
    summaries = []
    for session in controller.list_for_user(current_user["userId"]):
        report_card = session.get("reportCard") or {}
        summaries.append(
            SessionSummary(
                sessionId=session["sessionId"],
                title=session["title"],
                status=session["status"],
                createdAt=session["createdAt"],
                reportReady=bool(report_card),
                overallScore=report_card.get("overallScore"),
            )
        )
    return summaries


@router.get("/{sessionId}", response_model=PitchSession)
def get_session(
    sessionId: str,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> PitchSession:
    try:
        session = controller.get(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return PitchSession(**session)


@router.post("/{sessionId}/deck", response_model=SessionTransitionResponse)
def mark_deck_uploaded(
    sessionId: str,
    payload: DeckUploadedRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionTransitionResponse:
    try:
        session = controller.mark_deck_uploaded(current_user["userId"], sessionId, payload.pitchDeckRef)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionTransitionResponse(sessionId=sessionId, status=session["status"], message="Pitch deck attached")


@router.post("/{sessionId}/start", response_model=SessionTransitionResponse)
def start_session(
    sessionId: str,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionTransitionResponse:
    try:
        session = controller.start(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionTransitionResponse(sessionId=sessionId, status=session["status"], message="Hot seat is live")


@router.post("/{sessionId}/end", response_model=SessionTransitionResponse)
def end_session(
    sessionId: str,
    payload: SessionEndRequest | None = None,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionTransitionResponse:
    transcript = payload.transcript if payload else None
    try:
        session = controller.end(current_user["userId"], sessionId, transcript)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionTransitionResponse(
        sessionId=sessionId,
        status=session["status"],
        message="Session completed. Report card is being generated.",
        reportScheduled=True,
    )


@router.post("/{sessionId}/fail", response_model=SessionTransitionResponse)
def fail_session(
    sessionId: str,
    payload: SessionFailRequest | None = None,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionTransitionResponse:
    request_payload = payload or SessionFailRequest()
    try:
        session = controller.fail(current_user["userId"], sessionId, request_payload.reason)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionTransitionResponse(sessionId=sessionId, status=session["status"], message="Session marked as failed")


@router.post(
    "/{sessionId}/report/regenerate",
    response_model=SessionTransitionResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def regenerate_report(
    sessionId: str,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> SessionTransitionResponse:
    try:
        session = controller.regenerate_report(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return SessionTransitionResponse(
        sessionId=sessionId,
        status=session["status"],
        message="Report card regeneration scheduled",
        reportScheduled=True,
    )


@router.get("/{sessionId}/report", response_model=ReportStatusResponse)
def get_report(
    sessionId: str,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> ReportStatusResponse:
    try:
        session = controller.get(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    report_card = session.get("reportCard")
    return ReportStatusResponse(
        sessionId=sessionId,
        status=session["status"],
        reportReady=report_card is not None,
        reportCard=report_card,
    )


@router.get("/{sessionId}/interruptions", response_model=list[Interruption])
def list_interruptions(
    sessionId: str,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> list[Interruption]:
    try:
        interruptions = controller.list_interruptions(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return [Interruption(**item) for item in interruptions]


@router.post("/{sessionId}/interruptions", response_model=Interruption, status_code=status.HTTP_201_CREATED)
def submit_interruption(
    sessionId: str,
    payload: InterruptionSubmitRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> Interruption:
    try:
        interruption = controller.submit_interruption(
            current_user["userId"],
            sessionId,
            trigger_type=payload.triggerType,
            founder_statement=payload.founderStatement,
            vc_response=payload.vcResponse,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return Interruption(**interruption)


@router.patch("/{sessionId}/interruptions/{interruptionId}/reaction", response_model=Interruption)
def set_interruption_reaction(
    sessionId: str,
    interruptionId: str,
    payload: ReactionPatchRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> Interruption:
    try:
        interruption = controller.set_reaction(
            current_user["userId"],
            sessionId,
            interruptionId,
            payload.founderReaction,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return Interruption(**interruption)
