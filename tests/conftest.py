import pytest
from fakes import NOW, FakeMealProvider, FakeSender, FakeTimetableProvider, FixedClock

from slunch.db.database import create_db_engine, create_session_factory, init_db
from slunch.db.store import KeyValueStore
from slunch.services.access_tracker import AccessTracker
from slunch.services.resolver import CacheAsideResolver
from slunch.services.subscriptions import SubscriptionStore


@pytest.fixture
def store():
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield KeyValueStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def meal_provider():
    return FakeMealProvider()


@pytest.fixture
def timetable_provider():
    return FakeTimetableProvider()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def tracker(store, clock):
    return AccessTracker(store, clock)


@pytest.fixture
def resolver(store, meal_provider, timetable_provider, tracker):
    return CacheAsideResolver(store, meal_provider, timetable_provider, tracker)


@pytest.fixture
def subscriptions(store):
    return SubscriptionStore(store)
