"""Box transaction lifecycle: PURCHASED -> OPENED | EXPIRED, both terminal."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, FrozenSet

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models.box_transaction import BoxStatus, BoxTransaction
from ...platform.errors import AlreadyFinalized, InvalidTransition
from ...shared.utils import ensure_utc

TRANSITIONS: Dict[BoxStatus, FrozenSet[BoxStatus]] = {
    BoxStatus.PURCHASED: frozenset({BoxStatus.OPENED, BoxStatus.EXPIRED}),
    BoxStatus.OPENED: frozenset(),
    BoxStatus.EXPIRED: frozenset(),
}

TERMINAL_STATES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def is_terminal(status: BoxStatus) -> bool:
    return BoxStatus(status) in TERMINAL_STATES


def ensure_transition(current: BoxStatus, target: BoxStatus) -> None:
    current = BoxStatus(current)
    target = BoxStatus(target)
    if current in TERMINAL_STATES:
        raise AlreadyFinalized(status=current.value)
    if target not in TRANSITIONS[current]:
        raise InvalidTransition(
            "Cannot move a box from %s to %s" % (current.value, target.value),
            status=current.value,
            target=target.value,
        )


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """A box is live strictly before expires_at; at or after it, it has expired."""
    expires_at = ensure_utc(expires_at)
    return expires_at is not None and ensure_utc(now) >= expires_at


def apply_transition(
    db: Session,
    transaction_id: int,
    target: BoxStatus,
    *,
    live_at: datetime | None = None,
    **values: Any,
) -> bool:
    """Move a PURCHASED box to ``target`` with a guarded UPDATE.

    Returns True only for the caller whose UPDATE matched; a concurrent winner
    or an already-terminal row yields False. With ``live_at`` the row must
    also still be unexpired at that instant. Does not commit.
    """
    ensure_transition(BoxStatus.PURCHASED, target)
    conditions = [
        BoxTransaction.id == transaction_id,
        BoxTransaction.status == BoxStatus.PURCHASED,
    ]
    if live_at is not None:
        conditions.append(BoxTransaction.expires_at > live_at)
    result = db.execute(
        update(BoxTransaction)
        .where(*conditions)
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
