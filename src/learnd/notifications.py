"""Status-change webhook notifications for Learnd.

When a lesson changes lifecycle status, a ``project.status_changed`` event
is posted to every configured endpoint. Deliveries are:
- Signed with HMAC-SHA256 when a secret is configured
- Retried with exponential backoff on failures
- Logged, never raised: a failed delivery must not fail the status change

Example:
    notifier = StatusChangeNotifier.from_config(config.notifications)
    await notifier.notify_status_change(lesson, change, insights, actor_id)
    await notifier.close()
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from uuid import UUID

    from learnd.config import NotificationConfig
    from learnd.database.models import Lesson, LessonStatusChange

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-Learnd-Signature"


class NotificationEvent(str, Enum):
    STATUS_CHANGED = "project.status_changed"


class NotificationPayload(BaseModel):
    """Body posted to webhook endpoints.

    Attributes:
        event: The event type.
        timestamp: ISO 8601 timestamp when the event occurred.
        data: Event-specific data.
    """

    event: NotificationEvent
    timestamp: str
    data: dict[str, Any] = Field(default_factory=dict)


class StatusChangeNotifier:
    """Delivers status-change events to webhook endpoints.

    Attributes:
        urls: Endpoint URLs.
        secret: Optional HMAC signing secret.
        retry_count: Delivery attempts per endpoint.
        timeout_seconds: Request timeout.
        backoff_base: Seconds before the first retry, doubled after each.
    """

    def __init__(
        self,
        urls: list[str] | None = None,
        secret: str | None = None,
        retry_count: int = 3,
        timeout_seconds: float = 10,
        backoff_base: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.urls = urls or []
        self.secret = secret
        self.retry_count = retry_count
        self.timeout_seconds = timeout_seconds
        self.backoff_base = backoff_base
        self.logger = logger.bind(component="status_change_notifier")
        self._client = client

    @classmethod
    def from_config(cls, config: NotificationConfig) -> StatusChangeNotifier:
        return cls(
            urls=list(config.webhook_urls),
            secret=config.secret,
            retry_count=config.retry_count,
            timeout_seconds=config.timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def sign(self, body: str) -> str:
        """Hex HMAC-SHA256 of ``body`` with the configured secret."""
        return hmac.new(
            (self.secret or "").encode(),
            body.encode(),
            hashlib.sha256,
        ).hexdigest()

    def _headers(self, event: NotificationEvent, body: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Learnd-Event": event.value,
        }
        if self.secret:
            headers[SIGNATURE_HEADER] = self.sign(body)
        return headers

    async def _deliver(self, url: str, event: NotificationEvent, body: str) -> bool:
        client = await self._get_client()
        headers = self._headers(event, body)
        last_error: str | None = None

        for attempt in range(1, self.retry_count + 1):
            try:
                response = await client.post(
                    url,
                    content=body,
                    headers=headers,
                    timeout=self.timeout_seconds,
                )
                if response.is_success:
                    self.logger.info(
                        "notification_delivered",
                        url=url,
                        event_type=event.value,
                        status_code=response.status_code,
                        attempt=attempt,
                    )
                    return True
                last_error = f"HTTP {response.status_code}"
                self.logger.warning(
                    "notification_rejected",
                    url=url,
                    event_type=event.value,
                    status_code=response.status_code,
                    attempt=attempt,
                )
            except httpx.HTTPError as e:
                last_error = str(e)
                self.logger.warning(
                    "notification_request_failed",
                    url=url,
                    event_type=event.value,
                    attempt=attempt,
                    error=str(e),
                )

            if attempt < self.retry_count:
                await asyncio.sleep(self.backoff_base * 2 ** (attempt - 1))

        self.logger.error(
            "notification_failed",
            url=url,
            event_type=event.value,
            attempts=self.retry_count,
            error=last_error,
        )
        return False

    async def send(self, event: NotificationEvent, data: dict[str, Any]) -> bool:
        """Post an event to all endpoints concurrently.

        Returns:
            True if every endpoint accepted the event (or none is configured).
        """
        if not self.urls:
            self.logger.debug("no_notification_endpoints", event_type=event.value)
            return True

        payload = NotificationPayload(
            event=event,
            timestamp=datetime.now(timezone.utc).isoformat(),
            data=data,
        )
        body = payload.model_dump_json()

        results = await asyncio.gather(
            *(self._deliver(url, event, body) for url in self.urls),
            return_exceptions=True,
        )

        all_success = True
        for url, result in zip(self.urls, results):
            if isinstance(result, BaseException):
                self.logger.error("notification_unexpected_error", url=url, error=str(result))
                all_success = False
            elif result is not True:
                all_success = False
        return all_success

    async def notify_status_change(
        self,
        lesson: Lesson,
        change: LessonStatusChange,
        insights: list[str],
        actor_id: UUID,
    ) -> bool:
        """Send a ``project.status_changed`` event for a recorded change.

        Returns:
            True if delivery succeeded everywhere, False otherwise.
        """
        data = {
            "project_id": str(lesson.id),
            "project_name": lesson.project_name,
            "client_name": lesson.client_name,
            "old_status": change.previous_status,
            "new_status": change.new_status,
            "reason": change.reason,
            "details": change.details or {},
            "insights": insights,
            "changed_by": str(actor_id),
        }
        return await self.send(NotificationEvent.STATUS_CHANGED, data)
