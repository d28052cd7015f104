import logging
import re
from typing import Any, Callable

from app.services.errors import LLMResponseError
from app.services.llm_client import complete_chat

LOGGER = logging.getLogger(__name__)

FOUNDER_REACTIONS = ("defensive", "receptive", "neutral")
DEFAULT_REACTION = "neutral"

REBUTTAL_TEMPERATURE = 0.8
REBUTTAL_MAX_TOKENS = 150
REACTION_TEMPERATURE = 0.3
REACTION_MAX_TOKENS = 10

INVESTOR_SYSTEM_PROMPT = (
    "You are a hardcore Silicon Valley VC conducting a brutal pitch interrogation."
    " Be sharp, direct, and unforgiving. When given market data, cite it specifically."
)

REACTION_SYSTEM_PROMPT = (
    "You are evaluating a founder's response to a tough VC question."
    " Analyze their tone, defensiveness, and quality of response."
    " Reply with ONLY one word: defensive, receptive, or neutral."
)

REBUTTAL_FRAMES: dict[str, dict[str, str]] = {
    "reality_check": {
        "lead": "The founder just claimed",
        "task": "You are a hardcore VC. Challenge this claim about market/competitors.",
        "with_facts": "Use the real market data above to cite specific competitors or facts.",
        "without_facts": "Be sharp and direct.",
    },
    "math_check": {
        "lead": "The founder mentioned",
        "task": "You are a hardcore VC. Ask about the underlying numbers: CAC, LTV, runway, burn rate.",
        "with_facts": "Reference industry benchmarks from the data above if relevant.",
        "without_facts": "Be direct and expect precision.",
    },
    "bs_detector": {
        "lead": "The founder said",
        "task": (
            'You are a hardcore VC who hates buzzwords. Call out if this sounds like a "GPT wrapper"'
            " or generic tech claim."
        ),
        "with_facts": "Use the real data above to validate or challenge the technology claim.",
        "without_facts": "Demand specifics about the actual IP or moat.",
    },
}

CompleteFn = Callable[..., str]


def build_rebuttal_prompt(
    trigger_type: str,
    founder_statement: str,
    facts: list[dict[str, Any]] | None = None,
) -> str:
    frame = REBUTTAL_FRAMES.get(trigger_type)
    if frame is None:
        raise ValueError(f"Unknown trigger type: {trigger_type}")

    facts_context = ""
    if facts:
        lines = "\n".join(f"- {fact.get('source', 'Source')}: {fact.get('fact', '')}" for fact in facts)
        facts_context = f"\n\nREAL MARKET DATA (from web search):\n{lines}"
    guidance = frame["with_facts"] if facts else frame["without_facts"]
    return (
        f'{frame["lead"]}: "{founder_statement.strip()}"{facts_context}\n\n'
        f"{frame['task']} {guidance} Keep it to 1-2 sentences."
    )


def synthesize_rebuttal(
    trigger_type: str,
    founder_statement: str,
    facts: list[dict[str, Any]] | None = None,
    *,
    complete: CompleteFn = complete_chat,
) -> str | None:
    """Generate the spoken interruption, or None when the model call fails.

    MissingCredentialError is not caught here.
    """
    prompt = build_rebuttal_prompt(trigger_type, founder_statement, facts)
    try:
        text = complete(
            [
                {"role": "system", "content": INVESTOR_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=REBUTTAL_TEMPERATURE,
            max_tokens=REBUTTAL_MAX_TOKENS,
        )
    except LLMResponseError as exc:
        LOGGER.warning("Rebuttal synthesis failed for %s: %s", trigger_type, exc)
        return None
    rebuttal = _compact(text)
    return rebuttal or None


def classify_founder_reaction(
    vc_question: str,
    founder_response: str,
    *,
    complete: CompleteFn = complete_chat,
) -> tuple[str, bool]:
    """Return (label, classified).

    ``classified`` is False when the model failed or answered with something
    other than one of the three labels; the label is then ``neutral``.
    """
    try:
        text = complete(
            [
                {"role": "system", "content": REACTION_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f'VC asked: "{vc_question.strip()}"\n\n'
                        f'Founder responded: "{founder_response.strip()}"\n\n'
                        "How was the founder's reaction?"
                    ),
                },
            ],
            temperature=REACTION_TEMPERATURE,
            max_tokens=REACTION_MAX_TOKENS,
        )
    except LLMResponseError as exc:
        LOGGER.warning("Reaction classification failed: %s", exc)
        return DEFAULT_REACTION, False

    label = parse_reaction_label(text)
    if label is None:
        LOGGER.info("Unrecognized reaction label %r, defaulting to neutral", text)
        return DEFAULT_REACTION, False
    return label, True


def parse_reaction_label(text: str) -> str | None:
    # Only the first word counts: "Defensive." is a label, "not defensive" is not.
    tokens = re.findall(r"[a-z]+", str(text or "").lower())
    if tokens and tokens[0] in FOUNDER_REACTIONS:
        return tokens[0]
    return None


def _compact(text: str) -> str:
    compact = re.sub(r"\s+", " ", str(text or "")).strip()
    return compact.strip('"').strip()
