"""
Notification Module

Observers attached to accounts receive every account notification. The
sink observer keeps a timestamped log of them; the push notifier forwards
them to a delivery channel (log or webhook).
"""

from datetime import datetime, timezone
from typing import Optional
from abc import ABC, abstractmethod
import logging
import requests

from .config import EngineConfig, get_config
from .events import EventSink, timestamped


logger = logging.getLogger("account_engine.notifications")


class Observer(ABC):
    """Receives account notifications"""
    
    @abstractmethod
    def update(self, event: str) -> None:
        pass


class SinkObserver(Observer):
    """Writes each notification, timestamped, into an event sink"""
    
    def __init__(self, sink: EventSink):
        self.sink = sink
    
    def update(self, event: str) -> None:
        self.sink.record(timestamped(event))


class ChannelProvider(ABC):
    """Abstract base class for push delivery channels"""
    
    @abstractmethod
    def send(self, message: str) -> bool:
        """Send a message via this channel. Returns True if successful."""
        pass


class LogChannelProvider(ChannelProvider):
    """Delivers pushes to the log; default for development"""
    
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("account_engine.push")
    
    def send(self, message: str) -> bool:
        self.logger.info(f"Notification: {message}")
        return True


class WebhookChannelProvider(ChannelProvider):
    """Webhook channel provider for external integrations"""
    
    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout
    
    def send(self, message: str) -> bool:
        """Send notification via webhook POST"""
        try:
            payload = {
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
            
            response = requests.post(
                self.url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"}
            )
            
            return response.status_code == 200
        except requests.RequestException as e:
            logger.warning(f"Webhook send failed: {e}")
            return False


class PushNotifier(Observer):
    """Pushes every notification through a channel provider"""
    
    def __init__(self, channel: Optional[ChannelProvider] = None):
        self.channel = channel or LogChannelProvider()
        self.delivered = 0
        self.failed = 0
    
    def update(self, event: str) -> None:
        if self.channel.send(event):
            self.delivered += 1
        else:
            self.failed += 1


def build_push_notifier(config: Optional[EngineConfig] = None) -> PushNotifier:
    """Create a push notifier from configuration"""
    config = config or get_config()
    if config.push_webhook_url:
        return PushNotifier(WebhookChannelProvider(config.push_webhook_url, config.push_timeout))
    return PushNotifier(LogChannelProvider())
