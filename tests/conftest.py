"""Shared fixtures: lot/handoff factories and a deterministic clock."""

import logging
from datetime import UTC, datetime, timedelta

import pytest

from tracechain.models import HandlerRole, HandoffRecord, Lot, Region

BASE_TIME = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)


class StepClock:
    """Clock that advances one minute every time it is read."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def make_lot():
    """Factory for lots; defaults describe a fresh North wheat lot."""

    def factory(
        lot_id="LOT1001",
        region=Region.NORTH,
        freshness=9.0,
        certifications=(),
        category="Wheat",
        **overrides,
    ):
        fields = {
            "lot_id": lot_id,
            "category": category,
            "quantity": 100.0,
            "harvested_at": BASE_TIME,
            "metrics": {"freshness": freshness},
            "certifications": tuple(certifications),
            "producer_id": "FARM-7",
            "origin": "Valley Farm",
            "region": region,
        }
        fields.update(overrides)
        return Lot(**fields)

    return factory


@pytest.fixture
def make_record(clock):
    """Factory for handoff records stamped by the step clock."""

    def factory(
        record_id,
        lot,
        role=HandlerRole.PRODUCER,
        action="Initial harvest entry",
        created_at=None,
    ):
        return HandoffRecord(
            record_id=record_id,
            created_at=created_at or clock(),
            handler_id="H-1",
            handler_role=role,
            location="Depot",
            action=action,
            lot=lot,
        )

    return factory


@pytest.fixture
def restore_logging():
    """Put the root logger back the way it was after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
