from fastapi import APIRouter, Depends

from eventify.api.deps import get_user_service
from eventify.core.security import create_access_token, get_current_user
from eventify.models.api_models import LoginRequest, TokenResponse, UserPublic
from eventify.models.db_models import User
from eventify.services.user_service import UserService

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, users: UserService = Depends(get_user_service)):
    user = await users.authenticate(req.username, req.password)
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)):
    return current_user.model_dump()
