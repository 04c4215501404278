# Overview: Pytest coverage for seat availability and checkout seat holds.

from datetime import timedelta

import pytest

from cinema.errors import ConflictError, InvalidStateError, NotFoundError
from cinema.models import SeatReservation, Ticket
from cinema.services.availability_service import SeatAvailabilityResolver
from cinema.services.reservation_service import SeatReservationManager
from cinema.time_utils import utcnow


def _holds(db_session, token):
    return db_session.query(SeatReservation).filter_by(reservation_token=token).count()


class TestAvailability:

    def test_all_seats_available_initially(self, db_session, company_a, screening_a):
        statuses = SeatAvailabilityResolver(db_session, company_a.id).resolve(screening_a.id)
        assert len(statuses) == 10
        assert set(statuses.values()) == {"AVAILABLE"}

    def test_reserved_and_sold_seats(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A1"], "tok1")

        resolver = SeatAvailabilityResolver(db_session, company_a.id)
        seat = resolver.seats_by_code(resolver.seat_map_id_for(screening_a), ["A2"])["A2"]
        db_session.add(Ticket(
            company_id=company_a.id,
            session_id=screening_a.id,
            seat_map_id=seat.seat_map_id,
            seat_id=seat.id,
            price_cents=3000,
            status="ISSUED",
            qr_code="TKT-TEST-1",
        ))
        db_session.commit()

        statuses = resolver.resolve(screening_a.id)
        assert statuses["A1"] == "RESERVED"
        assert statuses["A2"] == "SOLD"
        assert statuses["A3"] == "AVAILABLE"

    def test_refunded_ticket_frees_seat(self, db_session, company_a, screening_a):
        resolver = SeatAvailabilityResolver(db_session, company_a.id)
        seat = resolver.seats_by_code(resolver.seat_map_id_for(screening_a), ["B1"])["B1"]
        db_session.add(Ticket(
            company_id=company_a.id,
            session_id=screening_a.id,
            seat_map_id=seat.seat_map_id,
            seat_id=seat.id,
            price_cents=3000,
            status="REFUNDED",
            qr_code="TKT-TEST-2",
        ))
        db_session.commit()

        assert resolver.resolve(screening_a.id)["B1"] == "AVAILABLE"

    def test_inactive_seats_are_excluded(self, db_session, company_a, screening_a):
        resolver = SeatAvailabilityResolver(db_session, company_a.id)
        seat = resolver.seats_by_code(resolver.seat_map_id_for(screening_a), ["B5"])["B5"]
        seat.is_active = False
        db_session.commit()

        statuses = resolver.resolve(screening_a.id)
        assert "B5" not in statuses
        assert len(statuses) == 9

    def test_unknown_session(self, db_session, company_a):
        with pytest.raises(NotFoundError):
            SeatAvailabilityResolver(db_session, company_a.id).resolve(9999)


class TestSeatReservationManager:

    def test_reserve_conflict_release_scenario(self, db_session, company_a, screening_a):
        """tok1 holds A1,A2; tok2 is refused A1 until tok1 releases."""
        manager = SeatReservationManager(db_session, company_a.id)

        result = manager.reserve(screening_a.id, ["A1", "A2"], "tok1")
        assert result.reserved == ["A1", "A2"]
        assert result.conflicts == []

        with pytest.raises(ConflictError) as exc_info:
            manager.reserve(screening_a.id, ["A1"], "tok2")
        assert exc_info.value.details["conflicts"] == ["A1"]
        assert exc_info.value.details["reserved"] == []

        manager.release("tok1")

        result = manager.reserve(screening_a.id, ["A1"], "tok2")
        assert result.reserved == ["A1"]

    def test_reserve_is_all_or_nothing(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A3"], "tok1")

        with pytest.raises(ConflictError) as exc_info:
            manager.reserve(screening_a.id, ["A2", "A3", "A4"], "tok2")

        assert exc_info.value.details["conflicts"] == ["A3"]
        assert _holds(db_session, "tok2") == 0

    def test_release_is_idempotent(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A1", "A2"], "tok1")

        assert manager.release("tok1") == 2
        assert manager.release("tok1") == 0
        assert _holds(db_session, "tok1") == 0

    def test_same_token_refreshes_expiry(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A1"], "tok1")

        hold = db_session.query(SeatReservation).filter_by(reservation_token="tok1").one()
        hold.expires_at = utcnow() + timedelta(minutes=1)
        db_session.commit()

        result = manager.reserve(screening_a.id, ["A1", "A2"], "tok1")
        assert result.reserved == ["A1", "A2"]

        hold = db_session.query(SeatReservation).filter_by(reservation_token="tok1", seat_id=hold.seat_id).one()
        assert hold.expires_at > utcnow() + timedelta(minutes=10)
        assert _holds(db_session, "tok1") == 2

    def test_expired_hold_is_taken_over(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A1"], "tok1")

        hold = db_session.query(SeatReservation).filter_by(reservation_token="tok1").one()
        hold.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        manager.reserve(screening_a.id, ["A1"], "tok2")

        holds = db_session.query(SeatReservation).filter_by(session_id=screening_a.id).all()
        assert len(holds) == 1
        assert holds[0].reservation_token == "tok2"

    def test_sold_seat_conflicts(self, db_session, company_a, screening_a):
        resolver = SeatAvailabilityResolver(db_session, company_a.id)
        seat = resolver.seats_by_code(resolver.seat_map_id_for(screening_a), ["A5"])["A5"]
        db_session.add(Ticket(
            company_id=company_a.id,
            session_id=screening_a.id,
            seat_map_id=seat.seat_map_id,
            seat_id=seat.id,
            price_cents=3000,
            status="ISSUED",
            qr_code="TKT-TEST-3",
        ))
        db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            SeatReservationManager(db_session, company_a.id).reserve(screening_a.id, ["A5"], "tok1")
        assert exc_info.value.details["conflicts"] == ["A5"]

    def test_unknown_seat_code(self, db_session, company_a, screening_a):
        with pytest.raises(NotFoundError) as exc_info:
            SeatReservationManager(db_session, company_a.id).reserve(screening_a.id, ["Z9"], "tok1")
        assert exc_info.value.details["missing"] == ["Z9"]

    def test_canceled_session_rejects_holds(self, db_session, company_a, make_screening):
        screening = make_screening(status="CANCELED")
        with pytest.raises(InvalidStateError):
            SeatReservationManager(db_session, company_a.id).reserve(screening.id, ["A1"], "tok1")

    def test_sweep_expired(self, db_session, company_a, screening_a):
        manager = SeatReservationManager(db_session, company_a.id)
        manager.reserve(screening_a.id, ["A1"], "old")
        manager.reserve(screening_a.id, ["A2"], "fresh")

        old = db_session.query(SeatReservation).filter_by(reservation_token="old").one()
        old.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert manager.sweep_expired() == 1
        assert _holds(db_session, "old") == 0
        assert _holds(db_session, "fresh") == 1


class TestTenantIsolation:

    def test_other_company_cannot_see_session(self, db_session, company_b, screening_a):
        with pytest.raises(NotFoundError):
            SeatAvailabilityResolver(db_session, company_b.id).resolve(screening_a.id)

    def test_other_company_cannot_reserve(self, db_session, company_b, screening_a):
        with pytest.raises(NotFoundError):
            SeatReservationManager(db_session, company_b.id).reserve(screening_a.id, ["A1"], "tok1")

    def test_release_is_scoped_to_company(self, db_session, company_a, company_b, screening_a):
        SeatReservationManager(db_session, company_a.id).reserve(screening_a.id, ["A1"], "shared")

        assert SeatReservationManager(db_session, company_b.id).release("shared") == 0
        assert _holds(db_session, "shared") == 1


class TestConcurrentHolds:
    """Writers that slip in between the availability read and the insert."""

    def test_hold_inserted_after_the_read_conflicts(self, db_session, company_a, screening_a, monkeypatch):
        manager = SeatReservationManager(db_session, company_a.id)
        read_states = manager.resolver.seat_states

        def states_then_rival_hold(movie_session, seats, now=None):
            states = read_states(movie_session, seats, now=now)
            seat = seats[0]
            db_session.add(SeatReservation(
                company_id=company_a.id,
                session_id=movie_session.id,
                seat_map_id=seat.seat_map_id,
                seat_id=seat.id,
                reservation_token="rival",
                expires_at=utcnow() + timedelta(minutes=15),
            ))
            return states

        monkeypatch.setattr(manager.resolver, "seat_states", states_then_rival_hold)

        with pytest.raises(ConflictError) as exc_info:
            manager.reserve(screening_a.id, ["A1"], "tok1")

        assert exc_info.value.details["conflicts"] == ["A1"]
        assert db_session.query(SeatReservation).count() == 0
