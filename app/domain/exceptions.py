from app.core.utils.serialization import normalize_ctx


class AppError(Exception):
    retryable = False

    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.ctx = normalize_ctx(ctx or {})


class NotFound(AppError):
    pass
class Unauthorized(AppError):
    pass
class Forbidden(AppError):
    pass
class Conflict(AppError):
    pass
class InvalidInput(AppError):
    pass
class Unprocessable(AppError):
    pass


class InvariantViolation(InvalidInput):
    """Requested state would break a seat-count or date-window invariant. Nothing was mutated."""


class IllegalStateTransition(Conflict):
    """The edit is not allowed in the current inventory state (e.g. tickets already sold)."""


class ConcurrentModificationConflict(Conflict):
    """Fewer rows could be leased than required; re-read current state and retry."""
    retryable = True


class ConsistencyFault(AppError):
    """Stored inventory disagrees with itself; indicates a bug or out-of-band tampering."""
