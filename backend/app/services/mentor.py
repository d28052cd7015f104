import logging
from datetime import datetime, timezone
from typing import Any, Callable

from app.services.errors import ReportNotReadyError, SessionNotFoundError
from app.services.llm_client import complete_chat

LOGGER = logging.getLogger(__name__)

FOCUS_AREAS = {
    "market": "Improve market clarity and competitive positioning",
    "tech": "Strengthen technical defensibility and moat",
    "economics": "Optimize unit economics and financial model",
    "readiness": "Enhance investor readiness and coachability",
}
MENTOR_TEMPERATURE = 0.7
MENTOR_MAX_TOKENS = 500
MAX_HISTORY_MESSAGES = 20

MENTOR_SYSTEM_TEMPLATE = """
You are a Socratic mentor helping a founder improve their business model.

CONTEXT FROM THEIR PITCH SESSION:
- Market Clarity Score: {market_clarity}/100
- Tech Defensibility Score: {tech_defensibility}/100
- Unit Economic Logic Score: {unit_economic_logic}/100
- Investor Readiness Score: {investor_readiness}/100
- Coachability Delta: {coachability_delta}

FOCUS AREA: {focus_area} ({focus_goal})

Your role is to:
1. Ask probing questions (Socratic method)
2. Challenge assumptions constructively
3. Guide them to discover better solutions themselves
4. Reference specific issues from their pitch session
5. Be supportive but intellectually rigorous

Do not give direct answers. Ask questions that make them think deeper.
""".strip()


def build_mentor_messages(
    report_card: dict[str, Any],
    focus_area: str,
    history: list[dict[str, Any]],
    user_message: str,
) -> list[dict[str, str]]:
    system = MENTOR_SYSTEM_TEMPLATE.format(
        market_clarity=report_card.get("marketClarity"),
        tech_defensibility=report_card.get("techDefensibility"),
        unit_economic_logic=report_card.get("unitEconomicLogic"),
        investor_readiness=report_card.get("investorReadiness"),
        coachability_delta=report_card.get("coachabilityDelta"),
        focus_area=focus_area,
        focus_goal=FOCUS_AREAS.get(focus_area, focus_area),
    )
    messages = [{"role": "system", "content": system}]
    for entry in history[-MAX_HISTORY_MESSAGES:]:
        role = str(entry.get("role", ""))
        content = str(entry.get("content", "")).strip()
        if role in {"user", "assistant"} and content:
            messages.append({"role": role, "content": content})
    messages.append({"role": "user", "content": user_message.strip()})
    return messages


class SocraticMentor:
    def __init__(self, store, complete: Callable[..., str] = complete_chat) -> None:
        self._store = store
        self._complete = complete

    def reply(self, session_id: str, focus_area: str, user_message: str) -> dict[str, Any]:
        """Answer one founder message and append the exchange to the chat.

        Model errors propagate and nothing is stored for that exchange.
        """
        if focus_area not in FOCUS_AREAS:
            raise ValueError(f"Unknown focus area: {focus_area}")
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        report_card = session.get("reportCard")
        if not report_card:
            raise ReportNotReadyError("Report card is not ready for this session")

        chat = self._store.get_chat(session_id, focus_area) or {}
        messages = build_mentor_messages(report_card, focus_area, chat.get("messages", []), user_message)
        assistant_message = self._complete(
            messages,
            temperature=MENTOR_TEMPERATURE,
            max_tokens=MENTOR_MAX_TOKENS,
        )

        now = datetime.now(timezone.utc)
        updated = self._store.append_chat_messages(
            session_id,
            focus_area,
            [
                {"role": "user", "content": user_message.strip(), "timestamp": now},
                {"role": "assistant", "content": assistant_message, "timestamp": now},
            ],
        )
        LOGGER.info("Mentorship %s/%s now has %d messages", session_id, focus_area, len(updated["messages"]))
        return {
            "sessionId": session_id,
            "focusArea": focus_area,
            "reply": assistant_message,
            "messages": updated["messages"],
        }
