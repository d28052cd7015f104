from app.services.fact_lookup import FactLookup, fact_lookup
from app.services.mentor import SocraticMentor
from app.services.session_lifecycle import SessionLifecycleController
from app.services.session_store import session_store
from app.services.task_scheduler import CeleryTaskScheduler
from app.services.trigger_evaluator import TriggerEvaluator

session_controller = SessionLifecycleController(session_store, CeleryTaskScheduler())
trigger_evaluator = TriggerEvaluator(session_store, fact_lookup)
socratic_mentor = SocraticMentor(session_store)


def get_session_controller() -> SessionLifecycleController:
    return session_controller


def get_trigger_evaluator() -> TriggerEvaluator:
    return trigger_evaluator


def get_mentor() -> SocraticMentor:
    return socratic_mentor


def get_fact_lookup() -> FactLookup:
    return fact_lookup
