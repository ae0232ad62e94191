"""In-app notification feed for the current user."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.api.deps import get_current_active_user, get_db
from venuebook.models.notification import Notification
from venuebook.models.user import User
from venuebook.schemas.notification import NotificationListResponse, NotificationResponse
from venuebook.services.listing import ListFilters, paginate

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationListResponse:
    conditions = [Notification.recipient_id == current_user.id]
    if unread_only:
        conditions.append(Notification.is_read.is_(False))
    items, total = await paginate(db, Notification, conditions, ListFilters(skip=skip, limit=limit))
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
    )
