# chyrp/routes/user.py

"""
User Routes.

Provides profile endpoints keyed by identity-provider uid.

Summary
-------
Endpoints include:
  - Create profile (first profile becomes Admin)
  - Get all users
  - Get user by uid
  - Update profile
  - Change role

Rate Limiting
-------------
All endpoints define explicit limits. Tiered limits apply when `X-API-Key`
is present.
"""

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_201_CREATED

from chyrp.dependencies import UserServiceDep
from chyrp.managers import limiter
from chyrp.schemas import UserProfile, UserProfileCreate, UserProfileUpdate, UserRoleUpdate

router = APIRouter(prefix="/users", tags=["👤 Users"])

NOT_FOUND_RESPONSE = {
    404: {
        "description": "Not found",
        "content": {"application/json": {"example": {"detail": "User <uid> does not exist"}}},
    },
}


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=list[UserProfile],
    summary="Get all users",
    operation_id="users_list",
)
@limiter.limit(lambda key: "30/minute" if "apikey" in key else "10/minute")
async def list_users(request: Request, service: UserServiceDep) -> list[UserProfile]:
    """All profiles sorted by display name."""
    return await service.list_users()


@router.get(
    "/{uid}",
    response_class=ORJSONResponse,
    response_model=UserProfile,
    summary="Get user by uid",
    responses={**NOT_FOUND_RESPONSE},
    operation_id="users_get",
)
@limiter.limit(lambda key: "60/minute" if "apikey" in key else "30/minute")
async def get_user(request: Request, uid: str, service: UserServiceDep) -> UserProfile:
    """Get one profile."""
    return await service.get_profile(uid)


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=UserProfile,
    status_code=HTTP_201_CREATED,
    summary="Create a user profile",
    description="Create the profile on first sign-in; an existing profile is returned as is.",
    operation_id="users_create",
)
@limiter.limit(lambda key: "10/minute" if "apikey" in key else "5/minute")
async def create_user(
    request: Request,
    payload: UserProfileCreate,
    service: UserServiceDep,
) -> UserProfile:
    """Create a profile."""
    return await service.create_profile(
        payload.uid,
        payload.email,
        payload.display_name,
        payload.photo_url,
    )


@router.patch(
    "/{uid}",
    response_class=ORJSONResponse,
    response_model=UserProfile,
    summary="Update a user profile",
    responses={**NOT_FOUND_RESPONSE},
    operation_id="users_update",
)
@limiter.limit(lambda key: "20/minute" if "apikey" in key else "10/minute")
async def update_user(
    request: Request,
    uid: str,
    payload: UserProfileUpdate,
    service: UserServiceDep,
) -> UserProfile:
    """Update display name or photo."""
    return await service.update_profile(uid, payload)


@router.patch(
    "/{uid}/role",
    response_class=ORJSONResponse,
    response_model=UserProfile,
    summary="Change a user's role",
    responses={**NOT_FOUND_RESPONSE},
    operation_id="users_update_role",
)
@limiter.limit(lambda key: "10/minute" if "apikey" in key else "5/minute")
async def update_role(
    request: Request,
    uid: str,
    payload: UserRoleUpdate,
    service: UserServiceDep,
) -> UserProfile:
    """Change the role of a user."""
    return await service.update_role(uid, payload.role)
