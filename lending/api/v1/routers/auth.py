from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from lending.api import deps
from lending.core.security import create_access_token
from lending.db.session import get_db
from lending.models import User
from lending.schemas.auth import LoginRequest, LoginResponse, UserOut
from lending.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse, summary="Exchange credentials for a token")
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    user = await auth_service.authenticate(db, credentials.username, credentials.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token(user_id=user.id, username=user.username, is_admin=user.is_admin)
    return LoginResponse(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserOut, summary="Current user")
async def read_me(current_user: User = Depends(deps.require_authenticated_user)) -> UserOut:
    return UserOut.model_validate(current_user)
