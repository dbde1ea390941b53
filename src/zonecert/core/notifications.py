"""Notifiers informed about every correction run against a provider."""

from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from .errors import NotificationError
from .logging import get_logger
from ..config.models import NotificationsConfig


def format_message(
    domain: str,
    provider: str,
    msg: str,
    err: Optional[BaseException],
    preview: bool
) -> str:
    """Render a correction outcome as a single line of text."""
    if preview:
        return f"**Preview: {domain}[{provider}] -** {msg}"
    if err is not None:
        return f"**ERROR running correction on {domain}[{provider}] -** ({msg}) Error: {err}"
    return f"Successfully ran correction for **{domain}[{provider}]** - {msg}"


class Notifier(ABC):
    """Receives the description and outcome of each correction."""

    @abstractmethod
    def notify(
        self,
        domain: str,
        provider: str,
        msg: str,
        err: Optional[BaseException] = None,
        preview: bool = False
    ) -> None:
        """Report one correction.

        Raises:
            NotificationError: If the notification could not be delivered
        """

    def close(self) -> None:
        pass


class NullNotifier(Notifier):
    """Drops every notification."""

    def notify(self, domain, provider, msg, err=None, preview=False) -> None:
        return None


class _HTTPNotifier(Notifier):
    """Base for notifiers that POST JSON to a URL."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.client = client or httpx.Client(timeout=timeout)
        self.logger = get_logger(f"notifications.{type(self).__name__}")

    def _payload(self, domain, provider, msg, err, preview) -> dict:
        raise NotImplementedError

    def notify(self, domain, provider, msg, err=None, preview=False) -> None:
        payload = self._payload(domain, provider, msg, err, preview)
        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.error(f"Notification for {domain} failed: {e}")
            raise NotificationError(domain, f"notification failed: {e}", msg) from e

    def close(self) -> None:
        self.client.close()


class WebhookNotifier(_HTTPNotifier):
    """Posts structured JSON describing each correction."""

    def _payload(self, domain, provider, msg, err, preview) -> dict:
        return {
            "domain": domain,
            "provider": provider,
            "message": msg,
            "error": str(err) if err is not None else None,
            "preview": preview,
            "text": format_message(domain, provider, msg, err, preview),
        }


class SlackNotifier(_HTTPNotifier):
    """Posts to a Slack incoming webhook."""

    def _payload(self, domain, provider, msg, err, preview) -> dict:
        return {"text": format_message(domain, provider, msg, err, preview)}


class MultiNotifier(Notifier):
    """Fans out to several notifiers; the first failure is raised after all ran."""

    def __init__(self, notifiers: List[Notifier]):
        self.notifiers = notifiers

    def notify(self, domain, provider, msg, err=None, preview=False) -> None:
        first_error: Optional[NotificationError] = None
        for notifier in self.notifiers:
            try:
                notifier.notify(domain, provider, msg, err, preview)
            except NotificationError as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        for notifier in self.notifiers:
            notifier.close()


def build_notifier(config: Optional[NotificationsConfig]) -> Notifier:
    """Create the notifier described by ``config``."""
    if config is None:
        return NullNotifier()

    notifiers: List[Notifier] = []
    if config.webhook_url:
        notifiers.append(WebhookNotifier(config.webhook_url, config.timeout))
    if config.slack_url:
        notifiers.append(SlackNotifier(config.slack_url, config.timeout))

    if not notifiers:
        return NullNotifier()
    if len(notifiers) == 1:
        return notifiers[0]
    return MultiNotifier(notifiers)
