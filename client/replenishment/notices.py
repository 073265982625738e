"""
User-visible notices raised by the workflow (toasts in the UI).

Notices are inline and non-blocking: the board records them, logs them and
hands them to whoever is listening. It never raises.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

import structlog

from core.observers import ListenerHub

logger = structlog.get_logger()


class NoticeSeverity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    severity: NoticeSeverity
    summary: str
    detail: str
    created_at: datetime = field(default_factory=datetime.utcnow)


class NoticeBoard:
    """Ordered log of notices with synchronous listeners."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []
        self._hub: ListenerHub[Notice] = ListenerHub()

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def of(self, severity: NoticeSeverity) -> list[Notice]:
        return [n for n in self._notices if n.severity == severity]

    def subscribe(self, listener: Callable[[Notice], None]) -> Callable[[], None]:
        return self._hub.subscribe(listener)

    def post(self, severity: NoticeSeverity, summary: str, detail: str) -> Notice:
        notice = Notice(severity=severity, summary=summary, detail=detail)
        self._notices.append(notice)
        log = logger.warning if severity in (NoticeSeverity.WARN, NoticeSeverity.ERROR) else logger.info
        log("notice.posted", severity=severity.value, summary=summary, detail=detail)
        self._hub.notify(notice)
        return notice

    def success(self, summary: str, detail: str) -> Notice:
        return self.post(NoticeSeverity.SUCCESS, summary, detail)

    def info(self, summary: str, detail: str) -> Notice:
        return self.post(NoticeSeverity.INFO, summary, detail)

    def warn(self, summary: str, detail: str) -> Notice:
        return self.post(NoticeSeverity.WARN, summary, detail)

    def error(self, summary: str, detail: str) -> Notice:
        return self.post(NoticeSeverity.ERROR, summary, detail)

    def clear(self) -> None:
        self._notices.clear()
