"""
Event System Module

Event sinks receive timestamped text entries (account history lines,
notifications and system operations). The dispatcher fans account
notifications out to observers using the Observer pattern.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional
import logging


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def timestamped(message: str, now: Optional[datetime] = None) -> str:
    """Prefix a message with a local timestamp: ``[YYYY-MM-DD HH:MM:SS] message``"""
    moment = now or datetime.now()
    return f"[{moment.strftime(TIMESTAMP_FORMAT)}] {message}"


class EventSink(ABC):
    """Fire-and-forget destination for timestamped entries"""
    
    @abstractmethod
    def record(self, entry: str) -> None:
        """Record one entry. Implementations must not raise to the caller."""
        pass
    
    def record_system(self, operation: str, details: str) -> None:
        """Record a system-level operation (not triggered by an account)"""
        self.record(timestamped(f"[SYSTEM] {operation} - {details}"))


class InMemoryEventSink(EventSink):
    """Keeps entries in a list; used by tests and short-lived sessions"""
    
    def __init__(self):
        self.entries: List[str] = []
    
    def record(self, entry: str) -> None:
        self.entries.append(entry)
    
    def matching(self, text: str) -> List[str]:
        """Entries containing the given text"""
        return [entry for entry in self.entries if text in entry]
    
    def clear(self) -> None:
        self.entries.clear()


class LoggingEventSink(EventSink):
    """Forwards entries to a standard logger"""
    
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("account_engine.events")
    
    def record(self, entry: str) -> None:
        try:
            self.logger.info(entry)
        except Exception:
            # Sinks are fire-and-forget
            pass


class EventDispatcher:
    """Publishes account notifications to subscribed handlers"""
    
    def __init__(self):
        self._handlers: List[Callable[[str], None]] = []
        self.logger = logging.getLogger("account_engine.events")
    
    def subscribe(self, handler: Callable[[str], None]) -> None:
        """Subscribe a handler to every notification"""
        self._handlers.append(handler)
        self.logger.debug(f"Subscribed handler {getattr(handler, '__name__', repr(handler))}")
    
    def unsubscribe(self, handler: Callable[[str], None]) -> None:
        """Unsubscribe a handler"""
        try:
            self._handlers.remove(handler)
        except ValueError:
            self.logger.warning(f"Handler {getattr(handler, '__name__', repr(handler))} was not subscribed")
    
    def publish(self, message: str) -> None:
        """Publish a notification to all subscribers"""
        for handler in list(self._handlers):
            try:
                handler(message)
            except Exception as e:
                # Log but don't break the account operation
                self.logger.error(f"Error in notification handler {getattr(handler, '__name__', repr(handler))}: {e}")
    
    def get_handler_count(self) -> int:
        return len(self._handlers)
    
    def clear(self) -> None:
        self._handlers.clear()
