from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.deps import get_current_user, get_optional_user, get_storage
from ..core.storage import Storage
from ..models.user import User
from ..schemas.snippet import SnippetCreate, SnippetResponse, SnippetSort

router = APIRouter()


@router.post("", response_model=SnippetResponse, status_code=status.HTTP_201_CREATED)
async def create_code(
    snippet_data: SnippetCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage),
):
    """Share a snippet. Signed-in users become its owner."""
    owner_id = current_user.id if current_user else None
    return storage.create_snippet(snippet_data, owner_id=owner_id)


@router.get("", response_model=List[SnippetResponse])
async def list_codes(
    sort: SnippetSort = Query(SnippetSort.NEWEST),
    language: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    storage: Storage = Depends(get_storage),
):
    """Public snippets, newest first unless another sort is asked for."""
    return storage.list_public_snippets(
        sort=sort, language=language, category=category, limit=limit, offset=offset
    )


@router.get("/{snippet_id}", response_model=SnippetResponse)
async def get_code(snippet_id: UUID, storage: Storage = Depends(get_storage)):
    """Fetch one snippet. Each call counts as a view."""
    return storage.view_snippet(snippet_id)


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_code(
    snippet_id: UUID,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Delete a snippet owned by the current user."""
    storage.delete_snippet(snippet_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{snippet_id}/like", response_model=SnippetResponse)
async def like_code(snippet_id: UUID, storage: Storage = Depends(get_storage)):
    """Add one like to a snippet."""
    return storage.like_snippet(snippet_id)
