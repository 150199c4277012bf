"""Authentication routes.

This module handles HTTP endpoints for registration, login, logout and the
current user's profile, plus the bearer-token dependencies shared by the
other routers.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.dependencies import EntitlementEngineDep, UserManagerDep
from core.exceptions import InvalidCredentialsError, UserAlreadyExistsError
from schemas.user import (
    LoginRequest,
    LoginResponse,
    PublicUser,
    RegisterRequest,
    UpdateProfileRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security. Missing headers are handled below so that every
# authentication failure is a 401.
security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Extract the bearer token from the Authorization header, if any."""
    if credentials is None:
        return None
    return credentials.credentials


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    user_manager: UserManagerDep = None,
) -> User:
    """Get current authenticated user.

    Args:
        token: Bearer token from the Authorization header.
        user_manager: Injected UserManager instance.

    Returns:
        Current User object, freshly read from the store.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired.
    """
    user = user_manager.resolve_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Get current user, rejecting anyone who is not an admin."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can perform this action.",
        )
    return current_user


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student account",
)
def register(
    req: RegisterRequest,
    entitlement_engine: EntitlementEngineDep,
) -> LoginResponse:
    """Register a new student.

    The new library starts out with every free content item.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    try:
        user = entitlement_engine.register_user(
            email=req.email,
            password=req.password,
            name=req.name,
            phone=req.phone,
            role="student",
        )
    except UserAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with that email already exists.",
        )

    token = entitlement_engine.users.issue_token(user.user_id)
    return LoginResponse(token=token, user=user.to_public())


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep,
) -> LoginResponse:
    """Login with email and password.

    Raises:
        HTTPException: 401 on unknown email or wrong password.
    """
    try:
        user = user_manager.authenticate(req.email, req.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    token = user_manager.issue_token(user.user_id)
    return LoginResponse(token=token, user=user.to_public())


@router.post("/logout", summary="Log out")
def logout(
    user_manager: UserManagerDep,
    token: Optional[str] = Depends(get_bearer_token),
) -> dict:
    """Revoke the presented token. Succeeds even without a token."""
    if token:
        user_manager.revoke_token(token)
    return {"success": True}


@router.get("/me", response_model=PublicUser, summary="Current user")
def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> PublicUser:
    return current_user.to_public()


@router.patch("/me", response_model=PublicUser, summary="Update current user")
def update_current_user(
    req: UpdateProfileRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> PublicUser:
    user = user_manager.update_user(
        current_user.user_id,
        name=req.name,
        phone=req.phone,
        password=req.password,
    )
    return user.to_public()


@router.get("/users", response_model=List[PublicUser], summary="List users")
def list_users(
    user_manager: UserManagerDep,
    current_user: User = Depends(require_admin),
) -> List[PublicUser]:
    """List every account. Admin only."""
    return [user.to_public() for user in user_manager.list_users()]
