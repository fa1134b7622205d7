"""Event system for videomerger.

This module provides the event fan-out used by the merge controller
to publish status changes to whoever hosts it (CLI, tests, a GUI).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Dict, Set

logger = logging.getLogger(__name__)

class EventType(Enum):
    """Controller event types."""
    STATUS_CHANGED = auto()
    MERGE_STARTED = auto()
    MERGE_FINISHED = auto()

@dataclass
class Event:
    """Event data container.
    
    Attributes:
        type: Type of event
        timestamp: When the event occurred
        data: Event-specific data
        source: Component that generated the event
    """
    type: EventType
    timestamp: datetime
    data: Dict[str, Any]
    source: str

class EventEmitter:
    """Base event system for component communication."""
    
    def __init__(self) -> None:
        """Initialize event emitter."""
        self._handlers: Dict[EventType, Set[Callable[[Event], None]]] = {}
    
    def on(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Register an event handler.
        
        Args:
            event_type: Type of event to handle
            handler: Callback function for the event
        """
        self._handlers.setdefault(event_type, set()).add(handler)
    
    def off(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Remove an event handler.
        
        Args:
            event_type: Type of event to remove handler from
            handler: Handler to remove
        """
        if event_type in self._handlers:
            self._handlers[event_type].discard(handler)
            if not self._handlers[event_type]:
                del self._handlers[event_type]
    
    def emit(self, event_type: EventType, data: Dict[str, Any], source: str) -> None:
        """Emit an event to registered handlers.

        Handler failures are logged and never reach the emitter.
        """
        event = Event(
            type=event_type,
            timestamp=datetime.now(),
            data=data,
            source=source
        )
        
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(event)
            except Exception as e:
                logger.error("Event handler for %s failed: %s", event_type.name, e)
