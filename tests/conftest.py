import pytest

from src.ab.storage import MemoryStorage
from src.collector.tracker import EventTracker
from src.warehouse.db import Warehouse, get_connection, init_db


@pytest.fixture
def warehouse():
    conn = get_connection(":memory:")
    init_db(conn)
    wh = Warehouse(conn)
    yield wh
    wh.close()


@pytest.fixture
def tracker(warehouse):
    return EventTracker(warehouse, MemoryStorage())
