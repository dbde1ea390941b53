"""Tests for correction notifiers."""

import json

import httpx
import pytest


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestFormatMessage:
    """Tests for message rendering."""

    def test_success(self):
        """Test a successful correction message."""
        from zonecert.core.notifications import format_message

        text = format_message("example.com", "cloud", "+ CREATE x", None, False)
        assert text == "Successfully ran correction for **example.com[cloud]** - + CREATE x"

    def test_error(self):
        """Test a failed correction message."""
        from zonecert.core.notifications import format_message

        text = format_message("example.com", "cloud", "+ CREATE x", RuntimeError("boom"), False)
        assert "ERROR running correction on example.com[cloud]" in text
        assert text.endswith("Error: boom")

    def test_preview(self):
        """Test a preview message."""
        from zonecert.core.notifications import format_message

        assert format_message("example.com", "cloud", "m", None, True).startswith("**Preview")


class TestHTTPNotifiers:
    """Tests for webhook and Slack notifiers."""

    def test_webhook_payload(self):
        """Test the webhook receives structured JSON."""
        from zonecert.core.notifications import WebhookNotifier

        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(204)

        notifier = WebhookNotifier("https://hooks.test/x", client=_client(handler))
        notifier.notify("example.com", "cloud", "+ CREATE x", RuntimeError("boom"))

        assert seen[0]["domain"] == "example.com"
        assert seen[0]["provider"] == "cloud"
        assert seen[0]["error"] == "boom"
        assert seen[0]["preview"] is False

    def test_slack_payload(self):
        """Test Slack receives a text message."""
        from zonecert.core.notifications import SlackNotifier

        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, text="ok")

        SlackNotifier("https://hooks.slack.test/x", client=_client(handler)).notify(
            "example.com", "cloud", "m"
        )
        assert list(seen[0]) == ["text"]

    def test_http_error_raises_notification_error(self):
        """Test delivery failures raise NotificationError."""
        from zonecert.core.errors import NotificationError
        from zonecert.core.notifications import WebhookNotifier

        notifier = WebhookNotifier(
            "https://hooks.test/x", client=_client(lambda request: httpx.Response(500))
        )
        with pytest.raises(NotificationError) as exc_info:
            notifier.notify("example.com", "cloud", "m")
        assert exc_info.value.zone == "example.com"


class TestMultiNotifier:
    """Tests for fan-out."""

    def test_all_called_and_first_error_raised(self):
        """Test every notifier runs before the first error is raised."""
        from conftest import RecordingNotifier
        from zonecert.core.errors import NotificationError
        from zonecert.core.notifications import MultiNotifier

        failing = RecordingNotifier(fail=True)
        ok = RecordingNotifier()

        with pytest.raises(NotificationError):
            MultiNotifier([failing, ok]).notify("example.com", "cloud", "m")
        assert len(failing.calls) == 1
        assert len(ok.calls) == 1


class TestBuildNotifier:
    """Tests for notifier construction from configuration."""

    def test_none_configured(self):
        """Test no targets means a null notifier."""
        from zonecert.config.models import NotificationsConfig
        from zonecert.core.notifications import NullNotifier, build_notifier

        assert isinstance(build_notifier(NotificationsConfig()), NullNotifier)
        assert isinstance(build_notifier(None), NullNotifier)

    def test_single_and_multiple(self):
        """Test one target is used directly and several are combined."""
        from zonecert.config.models import NotificationsConfig
        from zonecert.core.notifications import MultiNotifier, WebhookNotifier, build_notifier

        single = build_notifier(NotificationsConfig(webhook_url="https://hooks.test/x"))
        assert isinstance(single, WebhookNotifier)
        single.close()

        both = build_notifier(NotificationsConfig(
            webhook_url="https://hooks.test/x", slack_url="https://hooks.slack.test/y"
        ))
        assert isinstance(both, MultiNotifier)
        assert len(both.notifiers) == 2
        both.close()
