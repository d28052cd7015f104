class SessionNotFoundError(LookupError):
    """Raised for unknown sessions and for sessions owned by someone else."""


class InterruptionNotFoundError(LookupError):
    pass


class InvalidTransitionError(ValueError):
    def __init__(self, session_id: str, current: str, target: str) -> None:
        super().__init__(f"Session {session_id} cannot move from '{current}' to '{target}'")
        self.session_id = session_id
        self.current = current
        self.target = target


class ReactionAlreadySetError(ValueError):
    pass


class InterruptionLimitError(ValueError):
    pass


class ReportNotReadyError(ValueError):
    pass


class MissingCredentialError(RuntimeError):
    """An external API key is not configured. Never retried."""


class LLMResponseError(RuntimeError):
    """The language model call failed or returned nothing usable."""


class AuthenticationError(PermissionError):
    pass
