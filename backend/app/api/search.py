from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..core.deps import get_storage
from ..core.exceptions import ValidationError
from ..core.storage import Storage
from ..schemas.snippet import DateRange, SnippetResponse

router = APIRouter()


def parse_date_range(value: Optional[str]) -> Optional[DateRange]:
    """Empty means all time, as sent by the search form."""
    if not value:
        return None
    try:
        return DateRange(value)
    except ValueError:
        allowed = ", ".join(r.value for r in DateRange)
        raise ValidationError(f"date_range must be one of: {allowed}", field="date_range")


@router.get("", response_model=List[SnippetResponse])
async def search_codes(
    q: Optional[str] = Query(None, description="Text to look for in title, code or tags"),
    language: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    date_range: Optional[str] = Query(None, description="day, week, month or year"),
    storage: Storage = Depends(get_storage),
):
    """Search public snippets."""
    return storage.search_snippets(
        q or "",
        language=language or None,
        category=category or None,
        date_range=parse_date_range(date_range),
    )
