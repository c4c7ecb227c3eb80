"""Unit tests for the vehicle ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, timedelta
from app.exceptions import InvalidState, NotFound, ValidationError
from app.models.vehicle import Vehicle
from app.services.vehicle_ledger import VehicleFilter, VehicleLedger
from conftest import T0, vehicle_data


@pytest.fixture
def ledger():
    return VehicleLedger()


def add(db, ledger, slot_number, entry_time=T0, **overrides):
    vehicle = ledger.create(db, {**vehicle_data(**overrides), "slot_number": slot_number,
                                 "entry_time": entry_time})
    db.commit()
    return vehicle


class TestCreate:
    def test_creates_active_record(self, db, ledger):
        vehicle = add(db, ledger, 3)
        assert len(vehicle.id) == 32
        assert vehicle.slot_number == 3
        assert vehicle.entry_time == T0
        assert vehicle.exit_time is None
        assert vehicle.parking_fare is None
        assert vehicle.status == "active"

    def test_missing_fields_listed(self, db, ledger):
        data = {**vehicle_data(), "slot_number": 1, "entry_time": T0}
        del data["phone_number"]
        data["brand"] = "   "
        with pytest.raises(ValidationError) as exc:
            ledger.create(db, data)
        assert exc.value.fields == ["phone_number", "brand"]

    def test_missing_slot_and_entry_time(self, db, ledger):
        with pytest.raises(ValidationError) as exc:
            ledger.create(db, vehicle_data())
        assert exc.value.fields == ["slot_number", "entry_time"]

    def test_non_positive_slot_rejected(self, db, ledger):
        with pytest.raises(ValidationError):
            ledger.create(db, {**vehicle_data(), "slot_number": 0, "entry_time": T0})

    def test_plate_not_unique_across_history(self, db, ledger):
        first = add(db, ledger, 1)
        second = add(db, ledger, 2)
        assert first.id != second.id


class TestTransitions:
    def test_get_unknown(self, db, ledger):
        with pytest.raises(NotFound):
            ledger.get_by_id(db, "nope")

    def test_mark_checked_out(self, db, ledger):
        vehicle = add(db, ledger, 1)
        exit_time = T0 + timedelta(minutes=30)
        done = ledger.mark_checked_out(db, vehicle.id, exit_time, 15)
        db.commit()
        assert (done.exit_time, done.parking_fare, done.status) == (exit_time, 15, "checked_out")

    def test_mark_checked_out_twice(self, db, ledger):
        vehicle = add(db, ledger, 1)
        first_exit = T0 + timedelta(minutes=30)
        ledger.mark_checked_out(db, vehicle.id, first_exit, 15)
        db.commit()

        with pytest.raises(InvalidState):
            ledger.mark_checked_out(db, vehicle.id, first_exit + timedelta(hours=1), 45)
        db.rollback()

        again = ledger.get_by_id(db, vehicle.id)
        assert (again.exit_time, again.parking_fare) == (first_exit, 15)

    def test_mark_checked_out_unknown(self, db, ledger):
        with pytest.raises(NotFound):
            ledger.mark_checked_out(db, "nope", T0, 0)

    def test_delete_active(self, db, ledger):
        vehicle = add(db, ledger, 1)
        vehicle_id = vehicle.id
        ledger.delete(db, vehicle_id)
        db.commit()
        assert db.get(Vehicle, vehicle_id) is None

    def test_delete_checked_out_refused(self, db, ledger):
        vehicle = add(db, ledger, 1)
        ledger.mark_checked_out(db, vehicle.id, T0 + timedelta(minutes=1), 1)
        db.commit()
        with pytest.raises(InvalidState):
            ledger.delete(db, vehicle.id)

    def test_delete_unknown(self, db, ledger):
        with pytest.raises(NotFound):
            ledger.delete(db, "nope")


class TestQuery:
    @pytest.fixture
    def populated(self, db, ledger):
        """Three stays: two checked out on different days, one still parked."""
        a = add(db, ledger, 1, T0, vehicle_number="KA01AB1234")
        b = add(db, ledger, 2, T0 + timedelta(hours=1), vehicle_number="MH12XY9876")
        c = add(db, ledger, 1, T0 + timedelta(days=1), vehicle_number="ka01ab5555")
        ledger.mark_checked_out(db, a.id, T0 + timedelta(minutes=20), 10)
        ledger.mark_checked_out(db, b.id, T0 + timedelta(days=1, hours=2), 700)
        db.commit()
        return a.id, b.id, c.id

    def ids(self, db, ledger, **kwargs):
        return [v.id for v in ledger.query(db, VehicleFilter(**kwargs))]

    def test_active(self, db, ledger, populated):
        a, b, c = populated
        assert self.ids(db, ledger, status="active") == [c]

    def test_history_newest_entry_first(self, db, ledger, populated):
        a, b, c = populated
        assert self.ids(db, ledger, status="history") == [b, a]

    def test_all_statuses(self, db, ledger, populated):
        a, b, c = populated
        assert self.ids(db, ledger) == [c, b, a]

    def test_slot_filter(self, db, ledger, populated):
        a, b, c = populated
        assert self.ids(db, ledger, status="history", slot_number=1) == [a]

    def test_plate_substring_case_insensitive(self, db, ledger, populated):
        a, b, c = populated
        assert self.ids(db, ledger, vehicle_number="KA01AB") == [c, a]
        assert self.ids(db, ledger, vehicle_number="xy98") == [b]

    def test_plate_wildcards_are_literal(self, db, ledger, populated):
        assert self.ids(db, ledger, vehicle_number="%") == []
        assert self.ids(db, ledger, vehicle_number="KA01_B") == []

    def test_exit_day_range(self, db, ledger, populated):
        a, b, c = populated
        day0, day1 = T0.date(), T0.date() + timedelta(days=1)
        assert self.ids(db, ledger, status="history", exit_date_from=day0, exit_date_to=day0) == [a]
        assert self.ids(db, ledger, status="history", exit_date_from=day1, exit_date_to=day1) == [b]
        assert self.ids(db, ledger, exit_date_from=day0, exit_date_to=day1) == [b, a]
        assert self.ids(db, ledger, exit_date_from=date(2030, 1, 1)) == []

    def test_bad_status(self, db, ledger):
        with pytest.raises(ValidationError):
            ledger.query(db, VehicleFilter(status="cancelled"))

    def test_query_is_lazy_and_restartable(self, db, ledger, populated):
        q = ledger.query(db, VehicleFilter(status="active"))
        assert len(list(q)) == 1
        add(db, ledger, 3, T0 + timedelta(days=2))
        assert len(list(q)) == 2

    def test_active_slot_counts(self, db, ledger, populated):
        add(db, ledger, 4, T0 + timedelta(days=2))
        add(db, ledger, 4, T0 + timedelta(days=3))
        assert ledger.active_slot_counts(db) == {1: 1, 4: 2}

    def test_checked_out_on(self, db, ledger, populated):
        a, b, c = populated
        assert [v.id for v in ledger.checked_out_on(db, T0.date())] == [a]
