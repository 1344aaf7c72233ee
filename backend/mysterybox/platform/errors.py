"""Domain error taxonomy for the credit-and-reward core.

Every failure a caller can observe from a core operation is a ``BoxCoreError``
subclass with a stable ``code`` and an HTTP status used by the API layer.
"""

from __future__ import annotations

from typing import Any, Dict


class BoxCoreError(Exception):
    code = "box_core_error"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.context:
            payload["context"] = self.context
        return payload


class InvalidTier(BoxCoreError):
    code = "invalid_tier"
    status_code = 422
    default_message = "Credit tier must be 1, 2 or 3"


class InvalidTrack(BoxCoreError):
    code = "invalid_track"
    status_code = 422
    default_message = "Probability track must be 'real' or 'gimmick'"


class InvalidAmount(BoxCoreError):
    code = "invalid_amount"
    status_code = 422
    default_message = "Amount must be a positive integer"


class InsufficientBalance(BoxCoreError):
    code = "insufficient_balance"
    status_code = 409
    default_message = "Insufficient credit balance"


class NoEligibleCandidates(BoxCoreError):
    """Tenant weights leave nothing to draw from; operators must fix configuration."""

    code = "no_eligible_candidates"
    status_code = 503
    default_message = "No eligible candidates configured for this draw"


class NotFound(BoxCoreError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class WrongOwner(BoxCoreError):
    code = "wrong_owner"
    status_code = 403
    default_message = "This box belongs to another member"


class PermissionDenied(BoxCoreError):
    code = "permission_denied"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class AlreadyFinalized(BoxCoreError):
    code = "already_finalized"
    status_code = 409
    default_message = "Box has already been opened or has expired"


class InvalidTransition(BoxCoreError):
    code = "invalid_transition"
    status_code = 409
    default_message = "Illegal box status transition"


class Expired(BoxCoreError):
    code = "expired"
    status_code = 410
    default_message = "Box has expired"


class NotProcessable(BoxCoreError):
    code = "not_processable"
    status_code = 409
    default_message = "Only opened boxes with a bound reward can be marked processed"


class InvalidUsername(BoxCoreError):
    code = "invalid_username"
    status_code = 422
    default_message = "Username is required"


class DuplicateUsername(BoxCoreError):
    code = "duplicate_username"
    status_code = 409
    default_message = "Username is already taken in this tenant"


class ConfigurationInvariantViolated(BoxCoreError):
    code = "configuration_invariant_violated"
    status_code = 422
    default_message = "Active probabilities must sum to exactly 100 on both tracks"
