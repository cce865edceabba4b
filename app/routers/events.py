"""Event API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.schemas.auth import StatusResponse
from app.schemas.event import EventCreate, EventListResponse, EventResponse, EventUpdate
from app.services.event import get_event_service

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=201)
def create_event(
    body: EventCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventResponse:
    """Create an event owned by the current user."""
    event = get_event_service().create_event(db, user.user_id, body)
    return EventResponse.model_validate(event)


@router.get("/", response_model=EventListResponse)
def list_events(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventListResponse:
    """List all events."""
    events = get_event_service().list_events(db)
    return EventListResponse(
        items=[EventResponse.model_validate(e) for e in events],
        total=len(events),
    )


@router.get("/{event_id}", response_model=EventResponse)
def get_event(
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventResponse:
    """Get a single event by ID."""
    return EventResponse.model_validate(get_event_service().get_event(db, event_id))


@router.patch("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: int,
    body: EventUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventResponse:
    """Update fields of an event the current user owns."""
    service = get_event_service()
    event = service.get_owned_event(db, event_id, user.user_id)
    return EventResponse.model_validate(service.update_event(db, event, body))


@router.delete("/{event_id}", response_model=StatusResponse)
def delete_event(
    event_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StatusResponse:
    """Delete an event the current user owns."""
    service = get_event_service()
    event = service.get_owned_event(db, event_id, user.user_id)
    service.delete_event(db, event)
    return StatusResponse(status="success", message="Event deleted")
