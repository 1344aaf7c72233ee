from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.members.schemas import (
    MemberCreate,
    MemberListResponse,
    MemberResponse,
    ProfileResponse,
)
from ...components.members.service import create_member, list_members
from ...deps import get_current_profile, require_staff
from ...models.profile import Profile
from ...platform.database import get_db

router = APIRouter(tags=["Members"])


@router.get("/me", response_model=ProfileResponse)
def get_me(current_profile: Profile = Depends(get_current_profile)):
    return {
        "id": current_profile.id,
        "tenant_id": current_profile.tenant_id,
        "username": current_profile.username,
        "role": current_profile.role.value,
        "credit_balance": current_profile.credit_balance,
    }


@router.get("/members", response_model=MemberListResponse)
def get_members(
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    members = list_members(db, current_staff.tenant_id)
    return {"items": [MemberResponse.model_validate(member) for member in members]}


@router.post("/members", response_model=MemberResponse, status_code=201)
def post_member(
    data: MemberCreate,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    return create_member(
        db,
        tenant_id=current_staff.tenant_id,
        username=data.username,
        initial_credit=data.initial_credit,
        actor_id=current_staff.id,
    )
