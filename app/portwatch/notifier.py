"""Webhook alerting for failed probes.

Alert payloads are JSON documents rendered from a Jinja2 template, by default a
Microsoft Teams MessageCard. The template is compiled and test-rendered when the
notifier is built, so a broken template stops the service at startup rather than
when the first alert fires.

Delivery problems never propagate: an unreachable webhook must not take the
prober down with it.
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import urlsplit

import httpx
from jinja2 import Environment, StrictUndefined, TemplateError

from app.portwatch.core.logging_config import get_logger
from app.portwatch.core.types import AlertContext
from app.portwatch.errors import AlertTemplateError, NotificationError

logger = get_logger(__name__)


DEFAULT_ALERT_TEMPLATE = """\
{
  "@type": "MessageCard",
  "@context": "http://schema.org/extensions",
  "themeColor": "d70000",
  "summary": {{ ("Connection failure on " ~ cluster_name) | tojson }},
  "sections": [
    {
      "activityTitle": {{ ("Port check failed on " ~ cluster_name) | tojson }},
      "facts": [
        {"name": "Cluster", "value": {{ cluster_name | tojson }}},
        {"name": "Node", "value": {{ node_ip | tojson }}},
        {"name": "Endpoint", "value": {{ host_port | tojson }}},
        {"name": "Comment", "value": {{ comment | tojson }}}
      ],
      "text": {{ errmsg | tojson }}
    }
  ]
}
"""

_SAMPLE_CONTEXT = AlertContext(
    node_ip="10.0.0.1",
    cluster_name="sample",
    comment="sample endpoint",
    host_port="127.0.0.1:9042",
    errmsg="sample error",
)

_env = Environment(undefined=StrictUndefined, autoescape=False)


class AlertRenderer:
    """Renders `AlertContext` values into JSON webhook payloads."""

    def __init__(self, source: str = DEFAULT_ALERT_TEMPLATE) -> None:
        try:
            self._template = _env.from_string(source)
        except TemplateError as exc:
            raise AlertTemplateError(f"Invalid alert template: {exc}") from exc

    @classmethod
    def from_path(cls, path: str | None) -> "AlertRenderer":
        """Load the template at `path`, or the built-in one when `path` is empty.

        Raises:
            AlertTemplateError: If the file cannot be read or does not compile.
        """
        if not path:
            return cls()
        try:
            source = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise AlertTemplateError(
                f"Alert template defined at '{path}' could not be read: {exc}"
            ) from exc
        return cls(source)

    def render(self, context: AlertContext) -> str:
        """Render the payload for `context` and check that it is valid JSON.

        Raises:
            AlertTemplateError: If rendering fails or the output is not JSON.
        """
        try:
            payload = self._template.render(**context.model_dump())
        except TemplateError as exc:
            raise AlertTemplateError(f"Alert template failed to render: {exc}") from exc
        try:
            json.loads(payload)
        except json.JSONDecodeError as exc:
            raise AlertTemplateError(f"Alert template produced invalid JSON: {exc}") from exc
        return payload

    def validate(self) -> None:
        """Render sample data once, surfacing template problems at startup."""
        self.render(_SAMPLE_CONTEXT)


def webhook_host(url: str) -> str:
    """Host part of a webhook URL; the path and query carry the secret and are never logged."""
    try:
        return urlsplit(url).hostname or "<unknown>"
    except ValueError:
        return "<invalid>"


class WebhookNotifier:
    """Posts rendered alert payloads to an incoming webhook."""

    def __init__(
        self,
        url: str,
        renderer: AlertRenderer | None = None,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.host = webhook_host(url)
        self.renderer = renderer or AlertRenderer()
        self.timeout = timeout
        self._client = client

    async def send(self, payload: str) -> None:
        """POST `payload` to the webhook.

        Raises:
            NotificationError: On a malformed URL, transport errors or a non-2xx
                response.
        """
        headers = {"Content-Type": "application/json"}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.url, content=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, content=payload, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NotificationError(f"Error sending webhook notification: {exc}") from exc

        if not response.is_success:
            raise NotificationError(
                f"Webhook rejected notification with HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def notify(self, payload: str) -> NotificationError | None:
        """Deliver `payload`, logging instead of raising on failure.

        Returns:
            None on success, otherwise the delivery error that was logged.
        """
        try:
            await self.send(payload)
        except NotificationError as exc:
            logger.error("Couldn't send the webhook notification", error=str(exc), host=self.host)
            return exc
        logger.debug("Webhook notification sent", host=self.host)
        return None

    async def alert(self, context: AlertContext) -> NotificationError | None:
        """Render and deliver an alert for a failed probe."""
        return await self.notify(self.renderer.render(context))
