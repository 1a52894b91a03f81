from typing import List

from fastapi import APIRouter, Depends, Response

from eventify.api.deps import get_user_service
from eventify.core.security import get_current_user, require_admin
from eventify.models.api_models import UserCreateRequest, UserPublic, UserUpdateRequest
from eventify.models.db_models import User
from eventify.services.user_service import UserService

router = APIRouter(prefix="/users")


@router.get("", response_model=List[UserPublic])
async def list_users(
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    # Everyone needs the names/photos for booking assignment; passwords never leave the store
    return [u.model_dump() for u in await service.list_users()]


@router.post("", response_model=UserPublic, status_code=201)
async def create_user(
    req: UserCreateRequest,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return (await service.create_user(req)).model_dump()


@router.put("/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: str,
    req: UserUpdateRequest,
    user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return (await service.update_user(user, user_id, req)).model_dump()


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    await service.delete_user(admin, user_id)
    return Response(status_code=204)
