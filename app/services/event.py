"""Event service for CRUD on events."""

from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.event import Event
from app.schemas.event import EventCreate, EventUpdate


class EventService:
    """Handles event creation, listing, update and deletion."""

    def create_event(self, db: Session, owner_id: int, data: EventCreate) -> Event:
        event = Event(owner_id=owner_id, **data.model_dump())
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    def list_events(self, db: Session) -> list[Event]:
        """All events, soonest first."""
        return db.query(Event).order_by(Event.starts_at, Event.id).all()

    def get_event(self, db: Session, event_id: int) -> Event:
        event = db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def get_owned_event(self, db: Session, event_id: int, owner_id: int) -> Event:
        """Get an event the user owns. Someone else's event is reported as missing."""
        event = db.query(Event).filter(Event.id == event_id, Event.owner_id == owner_id).first()
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def update_event(self, db: Session, event: Event, data: EventUpdate) -> Event:
        changes = data.model_dump(exclude_unset=True)
        for field in ("title", "starts_at"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")

        starts_at = changes.get("starts_at", event.starts_at)
        ends_at = changes.get("ends_at", event.ends_at)
        if ends_at is not None and ends_at < starts_at:
            raise ValidationError("ends_at must not be before starts_at")

        for field, value in changes.items():
            setattr(event, field, value)
        db.commit()
        db.refresh(event)
        return event

    def delete_event(self, db: Session, event: Event) -> None:
        db.delete(event)
        db.commit()


_event_service: EventService | None = None


def get_event_service() -> EventService:
    """Get singleton event service instance."""
    global _event_service
    if _event_service is None:
        _event_service = EventService()
    return _event_service
