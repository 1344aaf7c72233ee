"""Unit tests for the box lifecycle table and guarded transitions."""

from datetime import datetime, timedelta, timezone

import pytest

from mysterybox.components.boxes.machine import (
    TERMINAL_STATES,
    apply_transition,
    ensure_transition,
    is_expired,
    is_terminal,
)
from mysterybox.models.box_transaction import BoxStatus, BoxTransaction
from mysterybox.platform.errors import AlreadyFinalized, InvalidTransition
from tests.conftest import create_member, create_tenant, seed_catalog

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestTransitionTable:

    def test_terminal_states(self):
        assert TERMINAL_STATES == {BoxStatus.OPENED, BoxStatus.EXPIRED}
        assert not is_terminal(BoxStatus.PURCHASED)
        assert is_terminal("OPENED")

    @pytest.mark.parametrize("target", [BoxStatus.OPENED, BoxStatus.EXPIRED])
    def test_purchased_can_finalize(self, target):
        ensure_transition(BoxStatus.PURCHASED, target)

    def test_purchased_to_purchased_is_invalid(self):
        with pytest.raises(InvalidTransition):
            ensure_transition(BoxStatus.PURCHASED, BoxStatus.PURCHASED)

    @pytest.mark.parametrize("current", [BoxStatus.OPENED, BoxStatus.EXPIRED])
    @pytest.mark.parametrize("target", list(BoxStatus))
    def test_terminal_states_never_move(self, current, target):
        with pytest.raises(AlreadyFinalized):
            ensure_transition(current, target)


class TestIsExpired:

    def test_before_expiry(self):
        assert not is_expired(NOW + timedelta(seconds=1), NOW)

    def test_exactly_at_expiry_counts_as_expired(self):
        assert is_expired(NOW, NOW)

    def test_after_expiry(self):
        assert is_expired(NOW - timedelta(microseconds=1), NOW)

    def test_naive_values_are_treated_as_utc(self):
        assert is_expired(NOW.replace(tzinfo=None), NOW)

    def test_missing_expiry_is_not_expired(self):
        assert not is_expired(None, NOW)


class TestApplyTransition:

    def _box(self, db, expires_at=NOW + timedelta(days=7)):
        catalog = seed_catalog(db)
        tenant = create_tenant(db)
        member = create_member(db, tenant)
        box = BoxTransaction(
            tenant_id=tenant.id,
            member_id=member.id,
            credit_tier=1,
            credit_spent=1,
            rarity_id=next(iter(catalog.values())).id,
            status=BoxStatus.PURCHASED,
            expires_at=expires_at,
            created_at=NOW,
        )
        db.add(box)
        db.commit()
        return box.id

    def test_first_transition_wins(self, db):
        box_id = self._box(db)
        assert apply_transition(db, box_id, BoxStatus.OPENED, opened_at=NOW) is True
        db.commit()
        assert apply_transition(db, box_id, BoxStatus.EXPIRED) is False
        db.rollback()
        db.expire_all()
        assert db.get(BoxTransaction, box_id).status == BoxStatus.OPENED

    def test_live_at_guard_refuses_expired_row(self, db):
        box_id = self._box(db, expires_at=NOW)
        assert apply_transition(db, box_id, BoxStatus.OPENED, live_at=NOW, opened_at=NOW) is False
        db.rollback()
        db.expire_all()
        assert db.get(BoxTransaction, box_id).status == BoxStatus.PURCHASED

    def test_rejects_illegal_target_before_touching_rows(self, db):
        box_id = self._box(db)
        with pytest.raises(InvalidTransition):
            apply_transition(db, box_id, BoxStatus.PURCHASED)
