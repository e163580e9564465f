"""Authentication API routes."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import AuthContext, get_auth_context, get_current_user
from app.models.user import User
from app.rate_limiter import api_rate_limit, auth_rate_limit
from app.schemas.common import ApiResponse
from app.schemas.user import AuthOut, LoginRequest, RegisterRequest, UserOut
from app.services import auth_service

router = APIRouter()


@router.post("/register", response_model=ApiResponse[AuthOut], status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    """Register a regular user and return an access token."""
    return ApiResponse(message="User registered successfully", data=auth_service.register(db, payload))


@router.post("/login", response_model=ApiResponse[AuthOut])
@auth_rate_limit()
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    return ApiResponse(message="Login successful", data=auth_service.login(db, payload))


@router.post("/refresh", response_model=ApiResponse[AuthOut])
@api_rate_limit()
def refresh(request: Request, context: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """Swap the current token for a fresh one."""
    data = auth_service.refresh(db, context.user, context.token_payload)
    return ApiResponse(message="Token refreshed successfully", data=data)


@router.post("/logout", response_model=ApiResponse[None])
@api_rate_limit()
def logout(request: Request, context: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    auth_service.logout(db, context.user, context.token_payload)
    return ApiResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserOut])
@api_rate_limit()
def me(request: Request, user: User = Depends(get_current_user)):
    return ApiResponse(message="User data retrieved", data=UserOut.model_validate(user))
