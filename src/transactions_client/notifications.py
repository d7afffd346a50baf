"""User-facing notices for completed and failed operations."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from transactions_client.utils.time import utc_now

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=utc_now)


class Notifier:
    """Keeps the most recent notices, newest last."""

    def __init__(self, max_notices: int = 20) -> None:
        self._notices: deque[Notice] = deque(maxlen=max_notices)

    def success(self, message: str) -> Notice:
        return self._push(Notice(NoticeLevel.SUCCESS, message))

    def error(self, message: str) -> Notice:
        return self._push(Notice(NoticeLevel.ERROR, message))

    @property
    def latest(self) -> Notice | None:
        return self._notices[-1] if self._notices else None

    def drain(self) -> list[Notice]:
        notices = list(self._notices)
        self._notices.clear()
        return notices

    def __len__(self) -> int:
        return len(self._notices)

    def _push(self, notice: Notice) -> Notice:
        self._notices.append(notice)
        log = logger.warning if notice.level is NoticeLevel.ERROR else logger.info
        log("Notice (%s): %s", notice.level.value, notice.message)
        return notice
