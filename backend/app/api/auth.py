import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..core.deps import get_current_user, get_session_token, get_storage
from ..core.email import send_password_reset_email, send_verification_email
from ..core.storage import Storage
from ..models.user import User
from ..schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
    VerifyEmailRequest,
)
from ..schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)


def display_name(user: User) -> str:
    return user.first_name or user.username


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
):
    """Register a new user and sign them in."""
    user, session = storage.register(
        email=user_data.email,
        username=user_data.username,
        password=user_data.password,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
    )

    background_tasks.add_task(
        send_verification_email,
        user_email=user.email,
        name=display_name(user),
        verification_token=user.verification_token,
    )

    return AuthResponse(user=UserResponse.model_validate(user), token=session.token)


@router.post("/login", response_model=AuthResponse)
async def login(user_data: UserLogin, storage: Storage = Depends(get_storage)):
    """Login user and return a session token."""
    user, session = storage.login(user_data.email, user_data.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=session.token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    token: str = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
):
    """End the session behind the presented token."""
    storage.delete_session(token)
    logger.info(f"User {current_user.id} logged out")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
):
    """Email a reset link. The answer is identical for unknown addresses."""
    result = storage.create_password_reset(request_data.email)
    if result:
        user, reset_token = result
        background_tasks.add_task(
            send_password_reset_email,
            user_email=user.email,
            name=display_name(user),
            reset_token=reset_token,
        )

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request_data: ResetPasswordRequest, storage: Storage = Depends(get_storage)
):
    """Set a new password using a reset token."""
    storage.reset_password(request_data.token, request_data.password)
    return MessageResponse(message="Password has been reset. Please log in with your new password.")


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    request_data: VerifyEmailRequest, storage: Storage = Depends(get_storage)
):
    """Verify user email with token."""
    user = storage.verify_email(request_data.token)
    logger.info(f"User {user.id} verified their email")
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Resend verification email."""
    verification_token = storage.issue_verification_token(current_user)
    background_tasks.add_task(
        send_verification_email,
        user_email=current_user.email,
        name=display_name(current_user),
        verification_token=verification_token,
    )
    return MessageResponse(message="Verification email sent successfully")
