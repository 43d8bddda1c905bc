"""
Event log service for policy status changes.

Events are append-only: this module inserts and reads, nothing else.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime


def append_event(
    policy_id: int,
    previous_status: Optional[str],
    new_status: str,
    reason: str,
    db_session,
    event_date: datetime = None
) -> Dict[str, Any]:
    """
    Append a status change event.

    Args:
        policy_id: Policy ID
        previous_status: Status before the transition
        new_status: Status after the transition
        reason: Human-readable reason
        db_session: Database session
        event_date: Event timestamp (defaults to now)

    Returns:
        Event entry data
    """
    from autoquote.models import PolicyEvent

    if event_date is None:
        event_date = datetime.utcnow()

    event = PolicyEvent(
        policy_id=policy_id,
        event_type="STATUS_CHANGE",
        previous_status=previous_status,
        new_status=new_status,
        reason=reason,
        event_date=event_date
    )

    db_session.add(event)
    db_session.commit()

    return {
        "id": event.id,
        "policy_id": policy_id,
        "previous_status": previous_status,
        "new_status": new_status,
        "reason": reason,
        "event_date": event_date.isoformat()
    }


def get_policy_events(policy_id: int, db_session, limit: Optional[int] = None) -> List[Any]:
    """Events for a policy, newest first."""
    from autoquote.models import PolicyEvent

    query = db_session.query(PolicyEvent).filter(
        PolicyEvent.policy_id == policy_id
    ).order_by(PolicyEvent.event_date.desc(), PolicyEvent.id.desc())

    if limit:
        query = query.limit(limit)

    return query.all()
