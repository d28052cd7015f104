import json
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Callable

from app.services.errors import SessionNotFoundError
from app.services.llm_client import complete_chat

LOGGER = logging.getLogger(__name__)

PILLARS = ("marketClarity", "techDefensibility", "unitEconomicLogic", "investorReadiness")
REACTION_DELTAS = {"defensive": -10, "receptive": 5, "neutral": 0}
FALLBACK_PILLAR_SCORE = 50
REPORT_TEMPERATURE = 0.2

SYSTEM_PROMPT = (
    "You are a hardcore VC analyst using the Bill Payne Scorecard method."
    " Score pitches objectively and return compact JSON only."
)

USER_PROMPT_TEMPLATE = """
Analyze this pitch session and generate a Fundability Report Card.

PITCH CONTEXT:
{pitch_context}

TRANSCRIPT:
{transcript}

INTERRUPTIONS & FOUNDER RESPONSES:
{interruptions}

Evaluate on these 4 pillars (0-100 each):
1. MARKET CLARITY: How well-defined is the market? Are TAM/SAM claims credible? Are competitors acknowledged?
2. TECH DEFENSIBILITY: Is there real IP or moat? Or is this just a "GPT wrapper"?
3. UNIT ECONOMIC LOGIC: Do the CAC, LTV, and runway numbers make sense? Is pricing defensible?
4. INVESTOR READINESS: How coachable is the founder? Did they get defensive during interruptions?

Return strict JSON with keys:
marketClarity, techDefensibility, unitEconomicLogic, investorReadiness, insights.
"insights" is a brutally honest 3-5 sentence assessment.
""".strip()

CompleteFn = Callable[..., str]


def compute_coachability_delta(interruptions: list[dict[str, Any]]) -> int:
    return sum(REACTION_DELTAS.get(str(item.get("founderReaction") or ""), 0) for item in interruptions)


def compute_overall_score(pillar_scores: dict[str, int]) -> float:
    return sum(pillar_scores[pillar] for pillar in PILLARS) / len(PILLARS)


def build_report_prompt(
    transcript: str | None,
    pitch_context: str | None,
    interruptions: list[dict[str, Any]],
) -> str:
    lines = [
        f'[{item.get("triggerType")}] Founder: "{item.get("founderStatement", "")}"'
        f' | VC: "{item.get("vcResponse", "")}"'
        f' | Reaction: {item.get("founderReaction") or "unknown"}'
        for item in interruptions
    ]
    return USER_PROMPT_TEMPLATE.format(
        pitch_context=(pitch_context or "").strip() or "No written context provided",
        transcript=(transcript or "").strip() or "Session ended without transcript",
        interruptions="\n".join(lines) or "No interruptions were issued.",
    )


def parse_report_response(text: str) -> dict[str, Any]:
    """Parse model output into pillar ints and insights.

    Raises ValueError for anything that is not a complete report.
    """
    cleaned = re.sub(r"```(?:json)?", "", str(text or "")).strip()
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("Report response contains no JSON object")
        cleaned = cleaned[start : end + 1]
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Report response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Report response is not a JSON object")

    parsed: dict[str, Any] = {}
    for pillar in PILLARS:
        value = payload.get(pillar)
        if isinstance(value, bool) or value is None:
            raise ValueError(f"Missing pillar score: {pillar}")
        try:
            score = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Pillar {pillar} is not numeric: {value!r}") from exc
        if not math.isfinite(score):
            raise ValueError(f"Pillar {pillar} is not a finite number: {value!r}")
        parsed[pillar] = int(round(_clamp(score, 0.0, 100.0)))

    insights = str(payload.get("insights") or "").strip()
    if not insights:
        raise ValueError("Report response has no insights")
    parsed["insights"] = insights
    return parsed


def build_report_card(pillar_scores: dict[str, int], insights: str, interruptions: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        **{pillar: int(pillar_scores[pillar]) for pillar in PILLARS},
        "overallScore": compute_overall_score(pillar_scores),
        "coachabilityDelta": compute_coachability_delta(interruptions),
        "insights": insights,
        "isFallback": False,
        "generatedAt": datetime.now(timezone.utc),
    }


def build_fallback_report(transcript: str | None, pitch_context: str | None) -> dict[str, Any]:
    transcript_note = "Transcript captured successfully" if (transcript or "").strip() else "No transcript available"
    context_note = "Pitch context provided" if (pitch_context or "").strip() else "No pitch context provided"
    pillar_scores = {pillar: FALLBACK_PILLAR_SCORE for pillar in PILLARS}
    return {
        **pillar_scores,
        "overallScore": compute_overall_score(pillar_scores),
        "coachabilityDelta": 0,
        "insights": (
            "Unable to generate full analysis due to technical error; scores are approximate."
            f" Based on available data: {transcript_note}. {context_note}."
            " Please review your session data and try again."
        ),
        "isFallback": True,
        "generatedAt": datetime.now(timezone.utc),
    }


def synthesize_report(
    transcript: str | None,
    pitch_context: str | None,
    interruptions: list[dict[str, Any]],
    *,
    complete: CompleteFn = complete_chat,
) -> dict[str, Any]:
    prompt = build_report_prompt(transcript, pitch_context, interruptions)
    try:
        text = complete(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=REPORT_TEMPERATURE,
            json_mode=True,
        )
        parsed = parse_report_response(text)
    except Exception:  # a failed synthesis still has to produce a report
        LOGGER.exception("Report synthesis failed; storing fallback report")
        return build_fallback_report(transcript, pitch_context)
    return build_report_card(parsed, parsed["insights"], interruptions)


def generate_and_store_report(session_id: str, *, store, complete: CompleteFn = complete_chat) -> dict[str, Any]:
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    interruptions = store.list_interruptions(session_id)
    LOGGER.info(
        "Generating report for session %s (transcript=%d chars, interruptions=%d)",
        session_id,
        len(session.get("transcript") or ""),
        len(interruptions),
    )
    report_card = synthesize_report(
        session.get("transcript"),
        session.get("pitchContextText"),
        interruptions,
        complete=complete,
    )
    stored = store.set_report_card(session_id, report_card)
    if stored is None:
        raise SessionNotFoundError(session_id)
    return stored


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
