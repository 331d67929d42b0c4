from __future__ import annotations

from typing import Any, Iterator, List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from slunch.models.cache_entry import CacheEntry

# Upper bound appended to a prefix for range scans over string keys
PREFIX_END = "\uffff"


class KeyValueStore:
    """Named collections of JSON values over the ``cache_entries`` table.

    Every call opens its own short session, so each single-key operation is
    one transaction. Nothing is cached in memory: values are decoded fresh
    on every read.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def get(self, collection: str, key: str) -> Optional[Any]:
        with self.session_factory() as session:
            entry = session.get(CacheEntry, (collection, key))
            return entry.value if entry is not None else None

    def exists(self, collection: str, key: str) -> bool:
        with self.session_factory() as session:
            stmt = select(CacheEntry.key).where(
                CacheEntry.collection == collection, CacheEntry.key == key
            )
            return session.execute(stmt).first() is not None

    def put(self, collection: str, key: str, value: Any) -> None:
        with self.session_factory() as session:
            session.merge(CacheEntry(collection=collection, key=key, value=value))
            session.commit()

    def put_if_absent(self, collection: str, key: str, value: Any) -> bool:
        """Insert unless the key is already stored. Returns True if written."""
        with self.session_factory() as session:
            session.add(CacheEntry(collection=collection, key=key, value=value))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.debug(f"Store: {collection}:{key} already present, skipped")
                return False
        return True

    def remove(self, collection: str, key: str) -> bool:
        with self.session_factory() as session:
            result = session.execute(
                delete(CacheEntry).where(
                    CacheEntry.collection == collection, CacheEntry.key == key
                )
            )
            session.commit()
            return result.rowcount > 0

    def range(
        self, collection: str, start_key: str, end_key: str
    ) -> List[Tuple[str, Any]]:
        """Entries with ``start_key <= key < end_key``, ordered by key."""
        with self.session_factory() as session:
            stmt = (
                select(CacheEntry.key, CacheEntry.value)
                .where(
                    CacheEntry.collection == collection,
                    CacheEntry.key >= start_key,
                    CacheEntry.key < end_key,
                )
                .order_by(CacheEntry.key.asc())
            )
            return [(row.key, row.value) for row in session.execute(stmt)]

    def prefix(self, collection: str, prefix: str) -> List[Tuple[str, Any]]:
        return self.range(collection, prefix, prefix + PREFIX_END)

    def items(self, collection: str) -> Iterator[Tuple[str, Any]]:
        with self.session_factory() as session:
            stmt = (
                select(CacheEntry.key, CacheEntry.value)
                .where(CacheEntry.collection == collection)
                .order_by(CacheEntry.key.asc())
            )
            rows = session.execute(stmt).all()
        for row in rows:
            yield row.key, row.value

    def count(self, collection: str) -> int:
        with self.session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(CacheEntry)
                .where(CacheEntry.collection == collection)
            )
            return session.execute(stmt).scalar_one()

    def clear(self, collection: str) -> int:
        with self.session_factory() as session:
            result = session.execute(
                delete(CacheEntry).where(CacheEntry.collection == collection)
            )
            session.commit()
        logger.info(f"Store: cleared {result.rowcount} entries from {collection}")
        return result.rowcount
