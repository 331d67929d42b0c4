from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Type, Union

from loguru import logger

from slunch.constants import ERROR_MESSAGES, Collections
from slunch.db.store import KeyValueStore
from slunch.errors import ConflictError, NotFoundError, ValidationError
from slunch.utils import validate_required, validate_time


class SubscriptionKind(str, enum.Enum):
    meal = "meal"
    timetable = "timetable"
    keyword = "keyword"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]


_COLLECTIONS = {
    SubscriptionKind.meal: Collections.FCM_MEAL,
    SubscriptionKind.timetable: Collections.FCM_TIMETABLE,
    SubscriptionKind.keyword: Collections.FCM_KEYWORD,
}


def _positive_int(value: Any, message_key: str) -> int:
    validate_required(value, message_key)
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(ERROR_MESSAGES[message_key]) from e
    if number <= 0:
        raise ValidationError(ERROR_MESSAGES[message_key])
    return number


@dataclass
class MealSubscription:
    token: str
    time: str
    school_code: str
    region_code: str

    def __post_init__(self):
        validate_required(self.token, "TOKEN_REQUIRED")
        validate_required(self.school_code, "SCHOOL_CODE_REQUIRED")
        validate_required(self.region_code, "REGION_CODE_REQUIRED")
        self.time = validate_time(self.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class KeywordSubscription:
    token: str
    time: str
    school_code: str
    region_code: str
    keywords: List[str] = field(default_factory=list)

    def __post_init__(self):
        validate_required(self.token, "TOKEN_REQUIRED")
        validate_required(self.school_code, "SCHOOL_CODE_REQUIRED")
        validate_required(self.region_code, "REGION_CODE_REQUIRED")
        self.time = validate_time(self.time)
        if isinstance(self.keywords, str):
            self.keywords = self.keywords.split(",")
        self.keywords = [k.strip() for k in self.keywords or [] if k and k.strip()]
        if not self.keywords:
            raise ValidationError(ERROR_MESSAGES["KEYWORDS_REQUIRED"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TimetableSubscription:
    token: str
    time: str
    school_code: int
    grade: int
    class_num: int

    def __post_init__(self):
        validate_required(self.token, "TOKEN_REQUIRED")
        self.time = validate_time(self.time)
        self.school_code = _positive_int(self.school_code, "SCHOOL_CODE_REQUIRED")
        self.grade = _positive_int(self.grade, "GRADE_REQUIRED")
        self.class_num = _positive_int(self.class_num, "CLASS_REQUIRED")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


Subscription = Union[MealSubscription, KeywordSubscription, TimetableSubscription]

_TYPES: Dict[SubscriptionKind, Type] = {
    SubscriptionKind.meal: MealSubscription,
    SubscriptionKind.timetable: TimetableSubscription,
    SubscriptionKind.keyword: KeywordSubscription,
}


class SubscriptionStore:
    """Device registrations for scheduled pushes, one collection per kind.

    Each device token has at most one subscription of each kind.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _build(self, kind: SubscriptionKind, data: Dict[str, Any]) -> Subscription:
        return _TYPES[kind](**data)

    def create(self, kind: SubscriptionKind, **fields) -> Subscription:
        subscription = self._build(kind, fields)
        if not self.store.put_if_absent(
            kind.collection, subscription.token, subscription.to_dict()
        ):
            raise ConflictError()
        logger.info(f"FCM-{kind.value}: registered token at {subscription.time}")
        return subscription

    def get(self, kind: SubscriptionKind, token: str) -> Subscription:
        validate_required(token, "TOKEN_REQUIRED")
        data = self.store.get(kind.collection, token)
        if data is None:
            raise NotFoundError(ERROR_MESSAGES["TOKEN_NOT_FOUND"])
        return self._build(kind, data)

    def update(self, kind: SubscriptionKind, **fields) -> Subscription:
        """Replace every field of an existing subscription."""
        subscription = self._build(kind, fields)
        if not self.store.exists(kind.collection, subscription.token):
            raise NotFoundError(ERROR_MESSAGES["TOKEN_NOT_FOUND"])
        self.store.put(kind.collection, subscription.token, subscription.to_dict())
        logger.info(f"FCM-{kind.value}: updated token to {subscription.time}")
        return subscription

    def delete(self, kind: SubscriptionKind, token: str) -> None:
        validate_required(token, "TOKEN_REQUIRED")
        if not self.store.remove(kind.collection, token):
            raise NotFoundError(ERROR_MESSAGES["TOKEN_NOT_FOUND"])
        logger.info(f"FCM-{kind.value}: removed token")

    def discard(self, kind: SubscriptionKind, token: str) -> bool:
        """Delete without complaining when the token is already gone."""
        return self.store.remove(kind.collection, token)

    def list(self, kind: SubscriptionKind) -> List[Subscription]:
        subscriptions = []
        for token, data in self.store.items(kind.collection):
            try:
                subscriptions.append(self._build(kind, data))
            except (TypeError, ValidationError) as e:
                logger.warning(f"FCM-{kind.value}: skipping malformed subscription {token[:12]}: {e}")
        return subscriptions

    def due(self, kind: SubscriptionKind, hhmm: str) -> List[Subscription]:
        return [s for s in self.list(kind) if s.time == hhmm]

    def entities(self, kinds: Iterable[SubscriptionKind]) -> List[Tuple[str, str]]:
        """Distinct (region_code, school_code) pairs across the given kinds."""
        seen: Dict[Tuple[str, str], None] = {}
        for kind in kinds:
            for subscription in self.list(kind):
                region_code = getattr(subscription, "region_code", None)
                if region_code:
                    seen.setdefault((region_code, str(subscription.school_code)), None)
        return list(seen)
