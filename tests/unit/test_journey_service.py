"""
Journey Service Unit Tests

src/Services/journey_service.py state machine on an in-memory SQLite
database with a fixed clock (2025-03-10 10:00 Bogota). Concurrent appends
run against a file-backed database with one session per thread.
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from src.Core.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from src.DB.base import Base
from src.Models.journey import Journey
from src.Repositories.journey import create_journey, find_open_journey
from src.Repositories.worker import create_worker
from src.Schemas.journey import Sample_create
from src.Schemas.worker import Worker_create
from src.Services import journey_service
from src.Services.telemetry_aggregator import aggregate


def make_sample(speed, lat=4.8133, lng=-75.6961, timestamp=None):
    return Sample_create(speed=speed, position={"lat": lat, "lng": lng}, timestamp=timestamp)


class TestStartJourney:

    def test_start_with_first_sample(self, db, clock, worker):
        """Scenario A"""
        journey = journey_service.start_journey(db, worker.worker_id, make_sample(15, 0, 0), clock=clock)

        assert journey.is_open
        assert journey.state == "active"
        assert journey.distance_km == 0
        assert journey.sample_count == 1
        assert journey.average_speed == 15
        assert journey.max_speed == 15
        assert journey.ended_at is None

    def test_start_without_sample(self, db, clock, worker):
        journey = journey_service.start_journey(db, worker.worker_id, clock=clock)

        assert journey.sample_count == 0
        assert journey.samples == []
        assert journey_service.to_journey_get(journey).started_at == clock.now()

    def test_second_start_conflicts(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, clock=clock)

        with pytest.raises(ConflictError):
            journey_service.start_journey(db, worker.worker_id, make_sample(20), clock=clock)

    def test_unknown_worker(self, db, clock):
        with pytest.raises(NotFoundError):
            journey_service.start_journey(db, "W-404", clock=clock)

    def test_invalid_first_sample_creates_nothing(self, db, clock, worker):
        with pytest.raises(ValidationError):
            journey_service.start_journey(db, worker.worker_id, make_sample(-3), clock=clock)

        assert find_open_journey(db, worker.worker_id) is None

    def test_open_journey_unique_index(self, db, clock, worker):
        """A second open row is rejected by the database itself."""
        journey_service.start_journey(db, worker.worker_id, clock=clock)
        duplicate = Journey(
            worker_id=worker.worker_id,
            state="active",
            started_at=clock.now(),
            distance_km=0.0,
            average_speed=0.0,
            max_speed=0.0,
            sample_count=0,
        )

        with pytest.raises(ConflictError):
            create_journey(db, duplicate)

    def test_start_again_after_finalize(self, db, clock, worker):
        first = journey_service.start_journey(db, worker.worker_id, clock=clock)
        journey_service.finalize_journey(db, worker.worker_id, clock=clock)
        clock.advance(timedelta(minutes=1))

        second = journey_service.start_journey(db, worker.worker_id, clock=clock)
        assert second.id != first.id
        assert second.is_open


class TestStartJourneyGuarded:

    @pytest.mark.parametrize("speed", [0, 5, 10])
    def test_slow_speed_waits(self, db, clock, worker, speed):
        """Scenario D"""
        result = journey_service.start_journey_guarded(db, worker.worker_id, speed, clock=clock)

        assert result.status == "waiting"
        assert result.journey is None
        assert find_open_journey(db, worker.worker_id) is None

    def test_moving_starts_with_position(self, db, clock, worker):
        result = journey_service.start_journey_guarded(
            db, worker.worker_id, 25, {"lat": 4.81, "lng": -75.69}, clock=clock
        )

        assert result.status == "started"
        assert result.journey.sample_count == 1
        assert result.journey.samples[0].speed == 25
        assert result.journey.max_speed == 25

    def test_moving_without_position(self, db, clock, worker):
        result = journey_service.start_journey_guarded(db, worker.worker_id, 25, clock=clock)

        assert result.status == "started"
        assert result.journey.sample_count == 0

    def test_already_started(self, db, clock, worker):
        first = journey_service.start_journey_guarded(db, worker.worker_id, 25, clock=clock)
        second = journey_service.start_journey_guarded(db, worker.worker_id, 30, clock=clock)

        assert second.status == "already_started"
        assert second.journey.id == first.journey.id

    def test_missing_speed(self, db, clock, worker):
        with pytest.raises(ValidationError):
            journey_service.start_journey_guarded(db, worker.worker_id, None, clock=clock)


class TestAppendSample:

    def test_second_sample_updates_aggregates(self, db, clock, worker):
        """Scenario B"""
        journey_service.start_journey(db, worker.worker_id, make_sample(15, 0, 0), clock=clock)
        clock.advance(timedelta(seconds=30))

        journey, decision = journey_service.append_sample(db, worker.worker_id, make_sample(20, 0, 1), clock=clock)
        projection = journey_service.to_journey_get(journey)

        assert decision['finalize'] is False
        assert journey.state == "in_progress"
        assert projection.distance_km == 111.19
        assert projection.average_speed == 17.5
        assert projection.max_speed == 20
        assert projection.sample_count == 2

    def test_no_open_journey(self, db, clock, worker):
        """Scenario E"""
        with pytest.raises(NotFoundError):
            journey_service.append_sample(db, worker.worker_id, make_sample(20), clock=clock)

    def test_inactivity_finalizes(self, db, clock, worker):
        """Scenario C: five still samples once the moving start leaves the window"""
        t0 = clock.now()
        journey_service.start_journey(db, worker.worker_id, make_sample(15), clock=clock)

        for offset in (60, 120, 180, 240):
            clock.set(t0 + timedelta(seconds=offset))
            journey, decision = journey_service.append_sample(db, worker.worker_id, make_sample(0.5), clock=clock)
            assert decision['finalize'] is False
            assert journey.is_open

        clock.set(t0 + timedelta(seconds=301))
        journey, decision = journey_service.append_sample(db, worker.worker_id, make_sample(1.0), clock=clock)

        assert decision['finalize'] is True
        assert decision['window_count'] == 5
        assert journey.state == "finalized"
        assert journey_service.to_journey_get(journey).ended_at == clock.now()

        with pytest.raises(NotFoundError):
            journey_service.append_sample(db, worker.worker_id, make_sample(0.5), clock=clock)

    def test_cutoff_hour_finalizes(self, db, worker):
        from src.Core.clock import FixedClock
        clock = FixedClock(datetime(2025, 3, 10, 23, 30, tzinfo=timezone.utc), "America/Bogota")
        journey_service.start_journey(db, worker.worker_id, make_sample(30), clock=clock)

        clock.set(datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc))
        journey, decision = journey_service.append_sample(db, worker.worker_id, make_sample(42), clock=clock)

        assert decision['finalize'] is True
        assert "End of working day" in decision['reason']
        assert journey.state == "finalized"

    @pytest.mark.parametrize("payload", [
        {"speed": -1, "position": {"lat": 4.8, "lng": -75.6}},
        {"speed": None, "position": {"lat": 4.8, "lng": -75.6}},
        {"speed": 10},
        {"speed": 10, "position": {"lat": 4.8}},
        {"speed": 10, "position": {"lng": -75.6}},
        {"speed": 10, "position": {"lat": 91, "lng": -75.6}},
        {"speed": 10, "position": {"lat": 4.8, "lng": -181}},
    ])
    def test_invalid_sample_rejected_without_changes(self, db, clock, worker, payload):
        journey_service.start_journey(db, worker.worker_id, make_sample(15), clock=clock)

        with pytest.raises(ValidationError):
            journey_service.append_sample(db, worker.worker_id, Sample_create(**payload), clock=clock)

        journey = find_open_journey(db, worker.worker_id)
        assert journey.sample_count == 1
        assert journey.state == "active"

    def test_same_timestamp_keeps_arrival_order(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, clock=clock)
        instant = clock.now()
        for speed in (30, 12, 45):
            journey, _ = journey_service.append_sample(
                db, worker.worker_id, make_sample(speed, timestamp=instant), clock=clock
            )

        assert [s.seq for s in journey.samples] == [0, 1, 2]
        assert [s.speed for s in journey.samples] == [30, 12, 45]

    def test_stored_aggregates_match_replay(self, db, clock, worker):
        route = [(15, 4.8133, -75.6961), (32.4, 4.82, -75.69), (0, 4.82, -75.69), (48.15, 4.835, -75.68)]
        speed, lat, lng = route[0]
        journey_service.start_journey(db, worker.worker_id, make_sample(speed, lat, lng), clock=clock)
        for speed, lat, lng in route[1:]:
            clock.advance(timedelta(seconds=20))
            journey, _ = journey_service.append_sample(db, worker.worker_id, make_sample(speed, lat, lng), clock=clock)

        replay = aggregate(journey.samples)
        assert replay.distance_km == journey.distance_km
        assert replay.average_speed == journey.average_speed
        assert replay.max_speed == journey.max_speed

    def test_failed_evaluation_keeps_sample(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, make_sample(15), clock=clock)

        with patch.object(journey_service.journey_rules, "check_auto_finalize", side_effect=RuntimeError("boom")):
            journey, decision = journey_service.append_sample(db, worker.worker_id, make_sample(0), clock=clock)

        assert decision['finalize'] is False
        assert journey.sample_count == 2
        assert journey.is_open

    def test_stale_write_applies_nothing(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, make_sample(15), clock=clock)

        with patch.object(db, "commit", side_effect=StaleDataError("stale")):
            with pytest.raises(PersistenceError):
                journey_service.append_sample(db, worker.worker_id, make_sample(20), clock=clock)

        journey = find_open_journey(db, worker.worker_id)
        assert journey.sample_count == 1
        assert len(journey.samples) == 1


class TestFinalizeJourney:

    def test_finalize(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, make_sample(15), clock=clock)
        clock.advance(timedelta(hours=2))

        journey = journey_service.finalize_journey(db, worker.worker_id, clock=clock)

        assert journey.state == "finalized"
        assert journey_service.to_journey_get(journey).ended_at == clock.now()

    def test_double_finalize(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, clock=clock)
        journey_service.finalize_journey(db, worker.worker_id, clock=clock)

        with pytest.raises(NotFoundError):
            journey_service.finalize_journey(db, worker.worker_id, clock=clock)

    def test_finalize_without_journey(self, db, clock, worker):
        with pytest.raises(NotFoundError):
            journey_service.finalize_journey(db, worker.worker_id, clock=clock)


class TestReadSide:

    def test_get_open_journey(self, db, clock, worker):
        with pytest.raises(NotFoundError):
            journey_service.get_open_journey(db, worker.worker_id)

        started = journey_service.start_journey(db, worker.worker_id, clock=clock)
        assert journey_service.get_open_journey(db, worker.worker_id).id == started.id

    def test_get_journey_owner_and_admin(self, db, clock, make_worker):
        owner = make_worker("W-001")
        make_worker("W-002")
        journey = journey_service.start_journey(db, owner.worker_id, make_sample(15), clock=clock)

        assert journey_service.get_journey(db, journey.id, "W-001").id == journey.id
        assert journey_service.get_journey(db, journey.id, "ADMIN", is_admin=True).id == journey.id
        with pytest.raises(NotFoundError):
            journey_service.get_journey(db, journey.id, "W-002")
        with pytest.raises(NotFoundError):
            journey_service.get_journey(db, 9999, "W-001")

    def test_list_journeys_paginated_newest_first(self, db, clock, worker):
        ids = []
        for _ in range(3):
            ids.append(journey_service.start_journey(db, worker.worker_id, clock=clock).id)
            journey_service.finalize_journey(db, worker.worker_id, clock=clock)
            clock.advance(timedelta(hours=1))

        first_page = journey_service.list_journeys(db, worker.worker_id, page=1, limit=2)
        second_page = journey_service.list_journeys(db, worker.worker_id, page=2, limit=2)

        assert first_page['total'] == 3
        assert first_page['total_pages'] == 2
        assert [j.id for j in first_page['journeys']] == [ids[2], ids[1]]
        assert [j.id for j in second_page['journeys']] == [ids[0]]

    def test_list_journeys_bad_page(self, db, worker):
        with pytest.raises(ValidationError):
            journey_service.list_journeys(db, worker.worker_id, page=0, limit=10)

    def test_detail_projection(self, db, clock, worker):
        journey_service.start_journey(db, worker.worker_id, make_sample(15, 0, 0), clock=clock)
        clock.advance(timedelta(seconds=10))
        journey, _ = journey_service.append_sample(db, worker.worker_id, make_sample(20, 0, 1), clock=clock)

        detail = journey_service.to_journey_detail(journey)
        assert [s.seq for s in detail.samples] == [0, 1]
        assert detail.samples[1].timestamp == clock.now()
        assert detail.distance_km == 111.19


class TestConcurrentAppends:
    """Several threads appending for one worker, each with its own session."""

    THREADS = 6
    APPENDS_PER_THREAD = 10

    @pytest.fixture
    def file_sessions(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'journeys.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def test_appends_never_interleave(self, file_sessions, clock):
        setup = file_sessions()
        create_worker(setup, Worker_create(
            worker_id="W-001", name="Worker W-001", email="w-001@example.com",
            role="ingeniero", transport="moto", region="Risaralda",
        ))
        journey_id = journey_service.start_journey(setup, "W-001", make_sample(15), clock=clock).id
        setup.close()

        errors = []

        def append_many(thread_index):
            session = file_sessions()
            try:
                for i in range(self.APPENDS_PER_THREAD):
                    step = thread_index * self.APPENDS_PER_THREAD + i
                    journey_service.append_sample(
                        session, "W-001",
                        make_sample(20 + thread_index, 4.8133 + step * 0.001, -75.6961),
                        clock=clock,
                    )
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=append_many, args=(n,)) for n in range(self.THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []

        check = file_sessions()
        try:
            journey = journey_service.get_journey(check, journey_id, "W-001")
            expected = 1 + self.THREADS * self.APPENDS_PER_THREAD

            assert journey.sample_count == expected
            assert len(journey.samples) == expected
            assert [s.seq for s in journey.samples] == list(range(expected))
            assert journey.state == "in_progress"

            replay = aggregate(journey.samples)
            assert replay.distance_km == journey.distance_km
            assert replay.average_speed == journey.average_speed
            assert replay.max_speed == journey.max_speed
        finally:
            check.close()
