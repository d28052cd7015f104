from fastapi import APIRouter, Depends

from app.api.dependencies import get_mentor, get_session_controller
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.api.security import get_current_user
from app.models.mentorship import FocusArea, MentorshipChat, MentorshipMessageRequest, MentorshipMessageResponse
from app.services.mentor import SocraticMentor
from app.services.session_lifecycle import SessionLifecycleController
from app.services.session_store import session_store

router = APIRouter(prefix="/mentorship", tags=["Mentorship"])


@router.get("/{sessionId}/{focusArea}", response_model=MentorshipChat)
def get_mentorship_chat(
    sessionId: str,
    focusArea: FocusArea,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
) -> MentorshipChat:
    try:
        controller.get(current_user["userId"], sessionId)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    chat = session_store.get_chat(sessionId, focusArea) or {}
    return MentorshipChat(sessionId=sessionId, focusArea=focusArea, messages=chat.get("messages", []))


@router.post("/{sessionId}/{focusArea}/messages", response_model=MentorshipMessageResponse)
def send_mentorship_message(
    sessionId: str,
    focusArea: FocusArea,
    payload: MentorshipMessageRequest,
    current_user: dict = Depends(get_current_user),
    controller: SessionLifecycleController = Depends(get_session_controller),
    mentor: SocraticMentor = Depends(get_mentor),
) -> MentorshipMessageResponse:
    try:
        controller.get(current_user["userId"], sessionId)
        result = mentor.reply(sessionId, focusArea, payload.message)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return MentorshipMessageResponse(**result)
