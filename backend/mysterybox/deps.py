"""
Shared dependencies: bearer-token identity and role guards.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .models.profile import Profile, ProfileRole, STAFF_ROLES
from .platform.database import get_db
from .platform.errors import PermissionDenied
from .platform.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    if credentials is None or not credentials.credentials:
        raise _unauthorized()
    claims = decode_token(credentials.credentials)
    if not claims:
        raise _unauthorized("Invalid or expired token")
    try:
        profile_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token subject")
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise _unauthorized("Profile not found")
    return profile


def require_member(profile: Profile = Depends(get_current_profile)) -> Profile:
    if profile.role != ProfileRole.MEMBER:
        raise PermissionDenied("Only members can use boxes")
    return profile


def require_staff(profile: Profile = Depends(get_current_profile)) -> Profile:
    if profile.role not in STAFF_ROLES:
        raise PermissionDenied("Staff access required")
    return profile


def require_admin(profile: Profile = Depends(get_current_profile)) -> Profile:
    if profile.role != ProfileRole.ADMIN:
        raise PermissionDenied("Admin access required")
    return profile


__all__ = ["get_current_profile", "require_member", "require_staff", "require_admin"]
