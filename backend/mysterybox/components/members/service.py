"""Member provisioning for the staff panel."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.credit_ledger import LedgerKind
from ...models.profile import Profile, ProfileRole
from ...platform.errors import DuplicateUsername, InvalidAmount, InvalidUsername
from ..ledger.service import apply_delta

logger = logging.getLogger(__name__)

INITIAL_CREDIT_DESCRIPTION = "Initial credit from panel"
USERNAME_MAX_LENGTH = 64


def normalize_username(raw: str | None) -> str:
    username = (raw or "").strip().lower()
    if not username:
        raise InvalidUsername()
    if len(username) > USERNAME_MAX_LENGTH:
        raise InvalidUsername("Username is too long", max_length=USERNAME_MAX_LENGTH)
    return username


def create_member(
    db: Session,
    *,
    tenant_id: int,
    username: str,
    initial_credit: int = 0,
    actor_id: int | None = None,
) -> Profile:
    username = normalize_username(username)
    if isinstance(initial_credit, bool) or not isinstance(initial_credit, int) or initial_credit < 0:
        raise InvalidAmount("Initial credit must be a non-negative integer", amount=initial_credit)

    taken = (
        db.query(Profile.id)
        .filter(Profile.tenant_id == tenant_id, Profile.username == username)
        .first()
    )
    if taken is not None:
        raise DuplicateUsername(username=username)

    member = Profile(tenant_id=tenant_id, role=ProfileRole.MEMBER, username=username, credit_balance=0)
    try:
        db.add(member)
        db.flush()
        if initial_credit > 0:
            apply_delta(
                db,
                tenant_id=tenant_id,
                member_id=member.id,
                delta=initial_credit,
                kind=LedgerKind.TOPUP,
                description=INITIAL_CREDIT_DESCRIPTION,
                actor_id=actor_id,
            )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateUsername(username=username) from None
    except Exception:
        db.rollback()
        raise

    db.refresh(member)
    logger.info(
        "Member created tenant_id=%s member_id=%s username=%s initial_credit=%d",
        tenant_id,
        member.id,
        username,
        initial_credit,
    )
    return member


def list_members(db: Session, tenant_id: int) -> List[Profile]:
    return (
        db.query(Profile)
        .filter(Profile.tenant_id == tenant_id, Profile.role == ProfileRole.MEMBER)
        .order_by(Profile.created_at.desc(), Profile.id.desc())
        .all()
    )
