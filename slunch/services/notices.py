"""Admin-authored announcements shown in the app (공지)."""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from slunch.constants import ERROR_MESSAGES, Collections
from slunch.db.store import KeyValueStore
from slunch.errors import NotFoundError, ValidationError
from slunch.utils import validate_required


def parse_notice_date(value: str) -> datetime:
    """ISO-8601 date or datetime; a trailing ``Z`` and naive values are UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(ERROR_MESSAGES["INVALID_DATE"]) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Notice:
    id: str
    title: str
    content: str
    date: str

    def __post_init__(self):
        validate_required(self.title, "TITLE_REQUIRED")
        validate_required(self.content, "CONTENT_REQUIRED")
        validate_required(self.date, "DATE_REQUIRED")
        self.date = self.date.strip()
        parse_notice_date(self.date)

    @property
    def published_at(self) -> datetime:
        return parse_notice_date(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NoticeStore:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def list(self) -> List[Notice]:
        """Newest first."""
        notices = []
        for notice_id, data in self.store.items(Collections.NOTICE):
            try:
                notices.append(Notice(**data))
            except (TypeError, ValidationError) as e:
                logger.warning(f"Skipping malformed notice {notice_id}: {e}")
        notices.sort(key=lambda n: n.published_at, reverse=True)
        return notices

    def create(
        self,
        title: Optional[str],
        content: Optional[str],
        date: Optional[str],
    ) -> Notice:
        notice = Notice(id=str(uuid.uuid4()), title=title, content=content, date=date)
        self.store.put(Collections.NOTICE, notice.id, notice.to_dict())
        logger.info(f"Notice {notice.id} created")
        return notice

    def update(
        self,
        notice_id: str,
        title: Optional[str],
        content: Optional[str],
        date: Optional[str],
    ) -> Notice:
        notice = Notice(id=notice_id, title=title, content=content, date=date)
        if not self.store.exists(Collections.NOTICE, notice_id):
            raise NotFoundError(ERROR_MESSAGES["NOTICE_NOT_FOUND"])
        self.store.put(Collections.NOTICE, notice_id, notice.to_dict())
        logger.info(f"Notice {notice_id} updated")
        return notice

    def delete(self, notice_id: str) -> None:
        if not self.store.remove(Collections.NOTICE, notice_id):
            raise NotFoundError(ERROR_MESSAGES["NOTICE_NOT_FOUND"])
        logger.info(f"Notice {notice_id} deleted")

    def clear(self) -> int:
        removed = self.store.clear(Collections.NOTICE)
        logger.info(f"Cleared {removed} notices")
        return removed
