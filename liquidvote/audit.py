'''Audit events emitted during vote resolution.

The resolver does not store audit records itself; it passes events to
a caller-supplied sink, which is any callable accepting an
:class:`AuditEvent`. :class:`AuditTrail` is a simple in-memory sink.
Timestamps are informational only and never influence resolution.
'''

import datetime
import dataclasses
import enum
import logging
from typing import Any, List, Dict, Optional, Callable

logger = logging.getLogger(__name__)


class AuditEventType(enum.Enum):
    VOTE_CAST = 'vote_cast'
    VOTE_PROPAGATED = 'vote_propagated'
    VOTE_UNRESOLVED = 'vote_unresolved'


@dataclasses.dataclass(frozen=True)
class AuditEvent:
    '''A single audit log entry.

    :param event_type: What happened.
    :param actor_id: The voter whose ballot the event concerns.
    :param proposal_id: The proposal being voted on.
    :param target_id: The voter who ended up holding the vote, if any.
    :param details: Event-specific data (choice, weights, path...).
    :param timestamp: When the event was recorded.
    '''
    event_type: AuditEventType
    actor_id: str
    proposal_id: str
    target_id: Optional[str] = None
    details: Dict[str, Any] = dataclasses.field(default_factory=dict)
    timestamp: Optional[datetime.datetime] = None


AuditSink = Callable[[AuditEvent], None]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def emit(sink: Optional[AuditSink], event: AuditEvent) -> None:
    '''Pass an event to the sink, if there is one.'''
    logger.debug('audit %s: %s -> %s on %s', event.event_type.value,
                 event.actor_id, event.target_id, event.proposal_id)
    if sink is not None:
        sink(event)


class AuditTrail:
    '''An in-memory audit sink collecting events in order of emission.'''
    def __init__(self):
        self.events: List[AuditEvent] = []

    def __call__(self, event: AuditEvent) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def of_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        return [ev for ev in self.events if ev.event_type == event_type]

    def for_actor(self, actor_id: str) -> List[AuditEvent]:
        return [ev for ev in self.events if ev.actor_id == actor_id]
