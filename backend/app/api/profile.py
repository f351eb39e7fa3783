from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from ..core.deps import get_current_user, get_storage
from ..core.email import send_verification_email
from ..core.storage import Storage
from ..models.user import User
from ..schemas.snippet import SnippetResponse
from ..schemas.user import (
    EmailChange,
    PasswordChange,
    PasswordChangeResponse,
    ProfileUpdate,
    UserResponse,
)
from .auth import display_name

router = APIRouter()


@router.put("", response_model=UserResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Update name, username or profile image."""
    return storage.update_profile(
        current_user,
        first_name=profile_data.first_name,
        last_name=profile_data.last_name,
        username=profile_data.username,
        profile_image_url=profile_data.profile_image_url,
    )


@router.put("/email", response_model=UserResponse)
async def change_email(
    email_data: EmailChange,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Change the account email; the new address has to be verified."""
    user = storage.change_email(current_user, email_data.new_email, email_data.password)
    background_tasks.add_task(
        send_verification_email,
        user_email=user.email,
        name=display_name(user),
        verification_token=user.verification_token,
    )
    return user


@router.put("/password", response_model=PasswordChangeResponse)
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Change password. Every session is revoked and a new token returned."""
    session = storage.change_password(
        current_user, password_data.current_password, password_data.new_password
    )
    return PasswordChangeResponse(
        message="Password changed successfully", token=session.token
    )


@router.get("/codes", response_model=List[SnippetResponse])
async def get_my_codes(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """All snippets owned by the current user, public and private."""
    return storage.list_snippets_by_owner(current_user.id)
