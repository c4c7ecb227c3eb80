"""Shared fixtures: in-memory database, controllable clock, engine with a small pool."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import create_tables
from app.services.parking_engine import ParkingEngine

T0 = datetime(2026, 3, 1, 9, 0, 0)


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


def vehicle_data(**overrides):
    data = {
        "owner_name": "Asha Rao",
        "phone_number": "9876543210",
        "vehicle_number": "KA01AB1234",
        "brand": "Maruti",
        "category": "car",
    }
    data.update(overrides)
    return data


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def parking(db, clock):
    engine = ParkingEngine(clock=clock, capacity=5)
    engine.initialize(db)
    return engine
