from app.tasks.session_tasks import generate_report_card_task, prefetch_market_context_task


class CeleryTaskScheduler:
    """Hands session background work to the Celery workers.

    ``apply_async`` honours ``task_always_eager`` so local runs can execute
    the tasks in-process.
    """

    def schedule_report_generation(self, session_id: str) -> str:
        result = generate_report_card_task.apply_async(args=[session_id])
        return str(result.id)

    def schedule_market_prefetch(self, session_id: str, pitch_context: str) -> str:
        result = prefetch_market_context_task.apply_async(args=[session_id, pitch_context])
        return str(result.id)
