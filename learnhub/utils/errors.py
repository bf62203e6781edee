"""
Error taxonomy for the gamification engine.

Services raise these; `learnhub.api` translates them into JSON responses with
the matching status code. Storage-layer errors are not wrapped.
"""

from typing import Any, Optional


class GamificationError(Exception):
    """Base class: carries an HTTP-equivalent status code and a client-safe detail."""

    status_code: int = 500
    default_detail: str = "Gamification error"

    def __init__(self, detail: Optional[str] = None, **context: Any):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)


class NotFoundError(GamificationError):
    status_code = 404
    default_detail = "Not found"


class InvalidArgumentError(GamificationError):
    status_code = 400
    default_detail = "Invalid argument"


class ForbiddenError(GamificationError):
    status_code = 403
    default_detail = "Forbidden"


class ConflictError(GamificationError):
    """Concurrent update detected and the single retry also lost the race."""

    status_code = 409
    default_detail = "Concurrent update conflict, please retry"


class CatalogError(GamificationError):
    """Stored catalog entry references a metric or operator the engine cannot evaluate."""

    status_code = 500
    default_detail = "Invalid gamification catalog"
