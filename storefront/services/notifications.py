from dataclasses import dataclass
from datetime import datetime
from flask import current_app
import itertools
import logging
import threading

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = ('success', 'error', 'info', 'warning')


@dataclass(frozen=True)
class Notification:
    id: int
    kind: str
    title: str
    message: str = None
    created_at: datetime = None


class NotificationBus:
    """User-facing notices fanned out to subscribed listeners.

    One bus per application, reachable as
    ``app.extensions['notifications']``; listeners receive each
    :class:`Notification` as it is published.
    """

    def __init__(self):
        self._listeners = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, listener):
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def publish(self, kind, title, message=None):
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f'Unknown notification kind: {kind}')
        with self._lock:
            notification = Notification(
                id=next(self._ids),
                kind=kind,
                title=title,
                message=message,
                created_at=datetime.utcnow(),
            )
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(notification)
            except Exception:
                logger.exception(
                    "Notification listener %r failed", listener)
        return notification


def init_notifications(app):
    bus = NotificationBus()
    app.extensions['notifications'] = bus
    return bus


def notify(kind, title, message=None):
    return current_app.extensions['notifications'].publish(
        kind, title, message)
