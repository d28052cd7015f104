import unittest
from uuid import uuid4

try:
    from app.db import SessionLocal
    from app.db_models import InterruptionDB
    from app.services.errors import InterruptionLimitError, MissingCredentialError
    from app.services.session_store import session_store
    from app.services.trigger_evaluator import (
        MAX_INTERRUPTIONS,
        TriggerEvaluator,
        detect_trigger,
        statement_excerpt,
    )

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False
    SessionLocal = None
    InterruptionDB = None
    InterruptionLimitError = MissingCredentialError = Exception
    session_store = None
    MAX_INTERRUPTIONS = 3
    TriggerEvaluator = None
    detect_trigger = None
    statement_excerpt = None

FILLER = "We started this company after years of watching small clinics struggle with scheduling. " * 2


class FakeFactLookup:
    def __init__(self, success: bool = True) -> None:
        self.success = success
        self.calls = []

    def tactical_fact_check(self, founder_claim: str, trigger_type: str) -> dict:
        self.calls.append((founder_claim, trigger_type))
        if not self.success:
            return {"success": False, "query": founder_claim, "facts": [], "error": "search unavailable"}
        return {
            "success": True,
            "query": founder_claim,
            "facts": [{"source": "Crunchbase", "fact": "Zocdoc raised $376M", "url": "https://example.com", "score": 0.9}],
            "error": None,
        }


class FakeSynthesizer:
    def __init__(self, reply: str | None = "Zocdoc would disagree. Who else did you look at?") -> None:
        self.reply = reply
        self.calls = []

    def __call__(self, trigger_type: str, founder_statement: str, facts=None):
        self.calls.append((trigger_type, founder_statement, facts))
        return self.reply


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "sqlalchemy/pydantic dependencies are not installed")
class DetectTriggerTests(unittest.TestCase):
    def test_short_transcript_never_fires(self) -> None:
        decision = detect_trigger("We have no competitors and our AI is proprietary AI.", 0)
        self.assertFalse(decision.fire)
        self.assertEqual(decision.reason, "Waiting for more content")

    def test_priority_order_prefers_reality_check(self) -> None:
        transcript = FILLER + "we have 18 months of runway and no competitors at all"
        decision = detect_trigger(transcript, 0)
        self.assertTrue(decision.fire)
        self.assertEqual(decision.category, "reality_check")
        self.assertEqual(decision.matched_phrase, "no competitors")

    def test_math_check_before_bs_detector(self) -> None:
        transcript = FILLER + "Our machine learning stack is great and our burn rate is low"
        decision = detect_trigger(transcript, 0)
        self.assertEqual(decision.category, "math_check")

    def test_matching_is_case_insensitive(self) -> None:
        decision = detect_trigger(FILLER + "We run on the BLOCKCHAIN.", 0)
        self.assertEqual(decision.category, "bs_detector")

    def test_cap_checked_before_content(self) -> None:
        decision = detect_trigger(FILLER + "no competitors", MAX_INTERRUPTIONS)
        self.assertFalse(decision.fire)
        self.assertEqual(decision.reason, "Interruption limit reached")

    def test_no_phrase_means_no_trigger(self) -> None:
        decision = detect_trigger(FILLER, 0)
        self.assertFalse(decision.fire)
        self.assertIsNone(decision.category)

    def test_statement_excerpt_keeps_last_200_characters(self) -> None:
        transcript = "a" * 300 + "b" * 200
        self.assertEqual(statement_excerpt(transcript), "b" * 200)
        self.assertEqual(statement_excerpt("short"), "short")


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "sqlalchemy/pydantic dependencies are not installed")
class TriggerEvaluatorTests(unittest.TestCase):
    def setUp(self) -> None:
        user = session_store.get_or_create_user("trigger-founder@example.com", "Trigger Founder")
        session = session_store.create_session(user_id=user["userId"], title="Clinic OS", status="live")
        self.session_id = session["sessionId"]
        self.fact_lookup = FakeFactLookup()
        self.synthesizer = FakeSynthesizer()
        self.evaluator = TriggerEvaluator(session_store, self.fact_lookup, synthesize=self.synthesizer)

    def test_competitor_claim_fires_reality_check(self) -> None:
        transcript = "x" * 150 + " we have no competitors in this space"
        result = self.evaluator.evaluate(self.session_id, transcript)

        self.assertTrue(result["interrupted"])
        self.assertEqual(result["triggerType"], "reality_check")
        self.assertEqual(result["interruptionCount"], 1)
        self.assertEqual(session_store.count_interruptions(self.session_id), 1)

        stored = session_store.list_interruptions(self.session_id)[0]
        self.assertEqual(stored["founderStatement"], transcript[-200:])
        self.assertEqual(stored["vcResponse"], self.synthesizer.reply)
        self.assertIsNone(stored["founderReaction"])
        self.assertEqual(self.fact_lookup.calls, [(transcript[-200:], "reality_check")])
        self.assertIsNotNone(self.synthesizer.calls[0][2])

    def test_no_trigger_once_three_interruptions_exist(self) -> None:
        for index in range(MAX_INTERRUPTIONS):
            session_store.add_interruption(
                self.session_id,
                trigger_type="math_check",
                founder_statement=f"statement {index}",
                vc_response="What is your CAC?",
                max_interruptions=MAX_INTERRUPTIONS,
            )

        result = self.evaluator.evaluate(self.session_id, FILLER + "no competitors, first to market, blockchain")
        self.assertFalse(result["interrupted"])
        self.assertEqual(result["reason"], "Interruption limit reached")
        self.assertEqual(session_store.count_interruptions(self.session_id), MAX_INTERRUPTIONS)
        self.assertEqual(self.synthesizer.calls, [])

    def test_growing_transcript_stops_at_cap(self) -> None:
        transcript = FILLER + "we have no competitors."
        for _ in range(MAX_INTERRUPTIONS + 2):
            transcript += " And still no competitors."
            self.evaluator.evaluate(self.session_id, transcript)
        self.assertEqual(session_store.count_interruptions(self.session_id), MAX_INTERRUPTIONS)

    def test_unchanged_transcript_is_evaluated_once(self) -> None:
        transcript = FILLER + "our runway is 9 months"
        first = self.evaluator.evaluate(self.session_id, transcript)
        second = self.evaluator.evaluate(self.session_id, transcript)

        self.assertTrue(first["interrupted"])
        self.assertFalse(second["interrupted"])
        self.assertEqual(second["reason"], "Transcript unchanged since last evaluation")
        self.assertEqual(len(self.synthesizer.calls), 1)
        self.assertEqual(session_store.count_interruptions(self.session_id), 1)

    def test_failed_synthesis_records_nothing(self) -> None:
        evaluator = TriggerEvaluator(session_store, self.fact_lookup, synthesize=FakeSynthesizer(reply=None))
        result = evaluator.evaluate(self.session_id, FILLER + "our proprietary AI does it all")

        self.assertFalse(result["interrupted"])
        self.assertEqual(result["reason"], "Rebuttal synthesis failed")
        self.assertEqual(session_store.count_interruptions(self.session_id), 0)

    def test_failed_fact_lookup_still_interrupts_without_facts(self) -> None:
        evaluator = TriggerEvaluator(session_store, FakeFactLookup(success=False), synthesize=self.synthesizer)
        result = evaluator.evaluate(self.session_id, FILLER + "we are hiring ten engineers")

        self.assertTrue(result["interrupted"])
        self.assertEqual(result["triggerType"], "math_check")
        self.assertIsNone(self.synthesizer.calls[0][2])

    def test_missing_credentials_propagate(self) -> None:
        def no_key(*args, **kwargs):
            raise MissingCredentialError("OPENAI_API_KEY is not set.")

        evaluator = TriggerEvaluator(session_store, self.fact_lookup, synthesize=no_key)
        with self.assertRaises(MissingCredentialError):
            evaluator.evaluate(self.session_id, FILLER + "we use machine learning")
        self.assertEqual(session_store.count_interruptions(self.session_id), 0)

    def test_snapshot_is_retried_after_missing_credentials(self) -> None:
        def no_key(*args, **kwargs):
            raise MissingCredentialError("OPENAI_API_KEY is not set.")

        transcript = FILLER + "we have no competitors"
        with self.assertRaises(MissingCredentialError):
            TriggerEvaluator(session_store, self.fact_lookup, synthesize=no_key).evaluate(self.session_id, transcript)

        retried = self.evaluator.evaluate(self.session_id, transcript)
        self.assertTrue(retried["interrupted"])
        self.assertEqual(session_store.count_interruptions(self.session_id), 1)

    def test_stored_transcript_never_shrinks(self) -> None:
        long_transcript = FILLER + "and more detail"
        self.evaluator.evaluate(self.session_id, long_transcript)
        self.evaluator.evaluate(self.session_id, FILLER[:120])
        self.assertEqual(session_store.get_session(self.session_id)["transcript"], long_transcript)


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "sqlalchemy/pydantic dependencies are not installed")
class InterruptionSlotCollisionTests(unittest.TestCase):
    """A concurrent writer already took the next sequence number."""

    def setUp(self) -> None:
        user = session_store.get_or_create_user("race-founder@example.com", "Race Founder")
        session = session_store.create_session(user_id=user["userId"], title="Race pitch", status="live")
        self.session_id = session["sessionId"]
        session_store.add_interruption(
            self.session_id,
            trigger_type="math_check",
            founder_statement="we are hiring",
            vc_response="What is your burn?",
            max_interruptions=MAX_INTERRUPTIONS,
        )
        # Sequence 3 is taken while only two rows exist, so the next insert collides.
        with SessionLocal() as db:
            db.add(
                InterruptionDB(
                    interruption_id=str(uuid4()),
                    session_id=self.session_id,
                    sequence=3,
                    trigger_type="bs_detector",
                    founder_statement="our AI",
                    vc_response="Is it a wrapper?",
                )
            )
            db.commit()

    def test_duplicate_sequence_is_rejected(self) -> None:
        with self.assertRaises(InterruptionLimitError):
            session_store.add_interruption(
                self.session_id,
                trigger_type="reality_check",
                founder_statement="no competitors",
                vc_response="Really?",
                max_interruptions=MAX_INTERRUPTIONS,
            )
        self.assertEqual(session_store.count_interruptions(self.session_id), 2)
        self.assertLessEqual(session_store.count_interruptions(self.session_id), MAX_INTERRUPTIONS)

    def test_evaluator_reports_lost_slot_as_limit(self) -> None:
        evaluator = TriggerEvaluator(session_store, FakeFactLookup(), synthesize=FakeSynthesizer())
        result = evaluator.evaluate(self.session_id, FILLER + "we have no competitors")

        self.assertFalse(result["interrupted"])
        self.assertEqual(result["reason"], "Interruption limit reached")
        self.assertEqual(session_store.count_interruptions(self.session_id), 2)


if __name__ == "__main__":
    unittest.main()
