"""
Test suite for events and notifications

Tests event sinks, the notification dispatcher and push delivery.
"""

import logging
from datetime import datetime
from unittest.mock import Mock, patch

import requests

from account_engine.config import EngineConfig
from account_engine.events import (
    EventDispatcher, InMemoryEventSink, LoggingEventSink, timestamped
)
from account_engine.notifications import (
    LogChannelProvider, PushNotifier, SinkObserver, WebhookChannelProvider, build_push_notifier
)


class TestEventSinks:
    """Test event sinks"""
    
    def test_timestamped(self):
        """Test timestamp prefix format"""
        entry = timestamped("hello", now=datetime(2024, 3, 5, 7, 8, 9))
        
        assert entry == "[2024-03-05 07:08:09] hello"
    
    def test_in_memory_sink(self):
        """Test entries are kept in order"""
        sink = InMemoryEventSink()
        sink.record("first")
        sink.record_system("RESET", "all counters")
        
        assert sink.entries[0] == "first"
        assert sink.entries[1].endswith("[SYSTEM] RESET - all counters")
        assert sink.matching("RESET") == [sink.entries[1]]
        
        sink.clear()
        assert sink.entries == []
    
    def test_logging_sink(self, caplog):
        """Test the logging sink writes entries to its logger"""
        sink = LoggingEventSink(logging.getLogger("account_engine.tests.sink"))
        
        with caplog.at_level(logging.INFO, logger="account_engine.tests.sink"):
            sink.record("entry written")
        
        assert "entry written" in caplog.text


class TestEventDispatcher:
    """Test notification dispatch"""
    
    def test_publish_to_all_handlers(self):
        """Test every subscribed handler receives the message"""
        dispatcher = EventDispatcher()
        first, second = Mock(), Mock()
        dispatcher.subscribe(first)
        dispatcher.subscribe(second)
        
        dispatcher.publish("balance updated")
        
        first.assert_called_once_with("balance updated")
        second.assert_called_once_with("balance updated")
        assert dispatcher.get_handler_count() == 2
    
    def test_failing_handler_isolated(self, caplog):
        """Test a failing handler does not stop the others"""
        dispatcher = EventDispatcher()
        broken = Mock(side_effect=RuntimeError("disk full"))
        healthy = Mock()
        dispatcher.subscribe(broken)
        dispatcher.subscribe(healthy)
        
        with caplog.at_level(logging.ERROR, logger="account_engine.events"):
            dispatcher.publish("deposit")
        
        healthy.assert_called_once_with("deposit")
        assert "disk full" in caplog.text
    
    def test_unsubscribe(self):
        """Test unsubscribed handlers stop receiving messages"""
        dispatcher = EventDispatcher()
        handler = Mock()
        dispatcher.subscribe(handler)
        dispatcher.unsubscribe(handler)
        
        dispatcher.publish("ignored")
        
        handler.assert_not_called()
        assert dispatcher.get_handler_count() == 0
    
    def test_unsubscribe_unknown_handler(self):
        """Test unsubscribing an unknown handler is harmless"""
        dispatcher = EventDispatcher()
        dispatcher.unsubscribe(Mock())
        
        assert dispatcher.get_handler_count() == 0


class TestObservers:
    """Test observers and push delivery"""
    
    def test_sink_observer(self):
        """Test the sink observer timestamps notifications"""
        sink = InMemoryEventSink()
        SinkObserver(sink).update("Account frozen.")
        
        assert sink.entries[0].startswith("[")
        assert sink.entries[0].endswith("] Account frozen.")
    
    def test_log_channel(self, caplog):
        """Test log channel delivery"""
        channel = LogChannelProvider()
        
        with caplog.at_level(logging.INFO, logger="account_engine.push"):
            assert channel.send("Deposit recorded.")
        
        assert "Notification: Deposit recorded." in caplog.text
    
    @patch("account_engine.notifications.requests.post")
    def test_webhook_channel(self, mock_post):
        """Test webhook delivery posts the message"""
        mock_post.return_value = Mock(status_code=200)
        channel = WebhookChannelProvider("https://hooks.example.com/accounts", timeout=2.0)
        
        assert channel.send("OVERDRAFT_FEE: $100.00")
        
        args, kwargs = mock_post.call_args
        assert args[0] == "https://hooks.example.com/accounts"
        assert kwargs["json"]["message"] == "OVERDRAFT_FEE: $100.00"
        assert kwargs["timeout"] == 2.0
    
    @patch("account_engine.notifications.requests.post")
    def test_webhook_rejected(self, mock_post):
        """Test non-200 responses count as failed deliveries"""
        mock_post.return_value = Mock(status_code=500)
        notifier = PushNotifier(WebhookChannelProvider("https://hooks.example.com/accounts"))
        
        notifier.update("Account closed.")
        
        assert notifier.delivered == 0
        assert notifier.failed == 1
    
    @patch("account_engine.notifications.requests.post")
    def test_webhook_connection_error(self, mock_post):
        """Test network errors are reported as failed sends"""
        mock_post.side_effect = requests.ConnectionError("refused")
        channel = WebhookChannelProvider("https://hooks.example.com/accounts")
        
        assert not channel.send("Account closed.")
    
    def test_push_notifier_counts(self):
        """Test delivered pushes are counted"""
        channel = Mock()
        channel.send.return_value = True
        notifier = PushNotifier(channel)
        
        notifier.update("one")
        notifier.update("two")
        
        assert notifier.delivered == 2
        assert channel.send.call_count == 2
    
    def test_build_push_notifier(self):
        """Test channel selection from settings"""
        assert isinstance(build_push_notifier(EngineConfig()).channel, LogChannelProvider)
        
        notifier = build_push_notifier(EngineConfig(push_webhook_url="https://hooks.example.com/x"))
        assert isinstance(notifier.channel, WebhookChannelProvider)
        assert notifier.channel.url == "https://hooks.example.com/x"
