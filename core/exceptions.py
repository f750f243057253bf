from __future__ import annotations


class MoneyflowError(Exception):
    """
    Base error. `status` is the HTTP status a view answers with when the
    error reaches its boundary.
    """

    status = 500
    default_message = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message

    @property
    def code(self) -> str:
        return type(self).__name__


class Unauthorized(MoneyflowError):
    status = 401
    default_message = "Unauthorized"


class InvalidInput(MoneyflowError):
    status = 400
    default_message = "invalid input"


class NotFound(MoneyflowError):
    status = 404
    default_message = "not found"


class PriceUnavailable(MoneyflowError):
    status = 400
    default_message = "share_price unavailable"


class MissingSnapshotTimestamp(MoneyflowError):
    status = 400
    default_message = "nav_created_at missing"


class BackendFailure(MoneyflowError):
    status = 500
    default_message = "backend failure"


# -----------------------------
# Per-request settlement rejections (recorded in batch results, never
# answered as an HTTP error)
# -----------------------------
class SettlementRejected(MoneyflowError):
    status = 409
    default_message = "rejected"

    def __init__(self, message: str | None = None, **details):
        super().__init__(message)
        self.details = details


class InvalidAmount(SettlementRejected):
    default_message = "invalid amount"


class ForwardPricingViolation(SettlementRejected):
    default_message = "nav too old (require nav_created_at >= request_created_at)"


class PrincipalExceedsNav(SettlementRejected):
    default_message = "blocked: total principal would exceed NAV"


class InsufficientShares(SettlementRejected):
    default_message = "insufficient shares"


class AccountNotFound(SettlementRejected):
    default_message = "account not found"
