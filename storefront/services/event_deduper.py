"""
Fire-once guard for analytics events
"""

from typing import Any, Callable, Dict, List, Optional, Set, Tuple
from datetime import datetime, timezone
import logging

from storefront.core.exceptions import SinkUnavailableException
from storefront.schemas.events import TrackedEvent, TrackedEventKind

logger = logging.getLogger(__name__)

EventKey = Tuple[TrackedEventKind, str]


class EventDeduper:
    """
    Emits each (kind, subject) at most once per lifetime

    One instance belongs to one mounted page; every observation point on
    that page shares it. `reset()` starts a new lifetime, which is what an
    unmount followed by a remount means. Fired events are kept in order
    with an index keyed by (kind, subject id).
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._events: List[TrackedEvent] = []
        self._index: Dict[EventKey, int] = {}
        self._in_flight: Set[EventKey] = set()
        self.lifetime = 0

    @property
    def events(self) -> List[TrackedEvent]:
        return list(self._events)

    def fired(self, kind: TrackedEventKind, subject_id: str) -> bool:
        return (TrackedEventKind(kind), str(subject_id)) in self._index

    def fire_once(
        self,
        kind: TrackedEventKind,
        subject_id: str,
        payload: Any,
        sink: Optional[Callable[[Any], Any]],
    ) -> bool:
        """
        Hand `payload` to `sink` unless this (kind, subject) already fired

        Returns True only when the sink was invoked and succeeded. A missing
        or failing sink is logged and leaves the key unfired.
        """
        key = (TrackedEventKind(kind), str(subject_id))
        if key in self._index or key in self._in_flight:
            return False

        if sink is None:
            logger.info(f"No sink for {key[0].value}:{key[1]}, skipping")
            return False

        self._in_flight.add(key)
        try:
            sink(payload)
        except SinkUnavailableException as e:
            logger.info(f"Sink unavailable for {key[0].value}:{key[1]}: {e}")
            return False
        except Exception as e:
            logger.warning(f"Sink failed for {key[0].value}:{key[1]}: {e}")
            return False
        finally:
            self._in_flight.discard(key)

        self._index[key] = len(self._events)
        self._events.append(TrackedEvent(kind=key[0], subject_id=key[1], fired_at=self._clock()))
        return True

    def reset(self):
        """Start a new lifetime"""
        self._events = []
        self._index = {}
        self._in_flight = set()
        self.lifetime += 1
