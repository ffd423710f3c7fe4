from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, require_role
from src.api.schemas.schemas import OutboxEventResponse
from src.infrastructure.db.models import OutboxEvent, User, UserRole
from src.infrastructure.repositories.outbox_repository import (
    STATUS_FAILED,
    STATUS_PENDING,
    OutboxRepository,
)

router = APIRouter(prefix="/api/admin/outbox", tags=["outbox"])

admin_only = require_role(UserRole.ADMIN)


def _event(item: OutboxEvent) -> OutboxEventResponse:
    return OutboxEventResponse(
        id=item.id,
        aggregate_type=item.aggregate_type,
        aggregate_id=item.aggregate_id,
        event_type=item.event_type,
        status=item.status,
        attempts=item.attempts,
        last_error=item.last_error,
        created_at=item.created_at.isoformat(),
        published_at=item.published_at.isoformat() if item.published_at else None,
    )


@router.get("/events", response_model=list[OutboxEventResponse])
def list_outbox_events(
    status_filter: str = Query(default=STATUS_PENDING, alias="status"),
    limit: int = 50,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    safe_limit = max(1, min(limit, 200))
    events = OutboxRepository(db).list_by_status(status_filter, safe_limit)
    return [_event(item) for item in events]


@router.post("/events/{event_id}/retry", response_model=OutboxEventResponse)
def retry_outbox_event(
    event_id: str,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    repository = OutboxRepository(db)
    item = repository.get_by_id(event_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Outbox event not found",
        )
    if item.status != STATUS_FAILED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only failed outbox events can be retried",
        )

    repository.requeue(item)
    db.flush()
    return _event(item)
