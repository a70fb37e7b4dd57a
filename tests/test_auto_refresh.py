import threading
from unittest.mock import patch

import pytest

from services.extraction.results import Success
from services.extraction.service import FeedExtractionService
from services.store import MemoryStore
from tests.conftest import FEED_URL, OTHER_OWNER, OWNER, StubSource


def _job_ids(service):
    return [job.id for job in service.scheduler.get_jobs()]


class TestStartStop:
    def test_start_registers_one_job(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)

        assert _job_ids(service) == [f"feed-refresh:{feed.id}"]
        assert service.scheduler.running

    def test_restart_replaces_the_job(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)
        service.start_auto_refresh(feed.id, OWNER, 1)

        assert len(_job_ids(service)) == 1
        assert len(service.get_auto_refresh_status()) == 1

    def test_restart_changes_interval(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)
        service.start_auto_refresh(feed.id, OWNER, 15)

        (status,) = service.get_auto_refresh_status()
        assert status.interval_minutes == 15

    def test_stop_removes_job_and_status(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)

        service.stop_auto_refresh(feed.id)

        assert _job_ids(service) == []
        assert all(s.feed_id != feed.id for s in service.get_auto_refresh_status())

    def test_stop_without_job_is_a_noop(self, service) -> None:
        service.stop_auto_refresh("never-started")

        assert service.get_auto_refresh_status() == []

    @pytest.mark.parametrize("interval", [0, -5])
    def test_rejects_non_positive_interval(self, service, feed, interval) -> None:
        with pytest.raises(ValueError):
            service.start_auto_refresh(feed.id, OWNER, interval)

        assert _job_ids(service) == []

    def test_default_interval(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER)

        assert service.get_auto_refresh_status()[0].interval_minutes == 60

    def test_stop_all(self, service, store) -> None:
        for n in range(3):
            f = store.create_feed({"url": f"https://{n}.test/rss", "owner_id": OWNER})
            service.start_auto_refresh(f.id, OWNER, 5)

        service.stop_all_auto_refresh()

        assert _job_ids(service) == []
        assert service.get_auto_refresh_status() == []


class TestStatus:
    def test_reports_interval_and_refreshing_flag(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 30)

        (status,) = service.get_auto_refresh_status()

        assert status.feed_id == feed.id
        assert status.active is True
        assert status.is_refreshing is False
        assert status.interval_minutes == 30
        assert status.next_run_time is not None

    def test_reflects_a_running_extraction(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 30)
        service.guard.try_acquire(feed.id)
        try:
            assert service.get_auto_refresh_status()[0].is_refreshing is True
        finally:
            service.guard.release(feed.id)

    def test_has_no_side_effects(self, service, feed, source) -> None:
        service.start_auto_refresh(feed.id, OWNER, 30)

        service.get_auto_refresh_status()
        service.get_auto_refresh_status()

        assert source.calls == []
        assert len(_job_ids(service)) == 1


class TestScheduledRun:
    def test_job_calls_extract(self, service, store, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)
        job = service.scheduler.get_job(f"feed-refresh:{feed.id}")

        job.func(*job.args)

        assert store.get_feed(feed.id, OWNER).article_count == 1

    def test_failing_run_does_not_raise(self, service, source, feed) -> None:
        source.feeds[feed.url] = RuntimeError("network down")
        service.start_auto_refresh(feed.id, OWNER, 1)
        job = service.scheduler.get_job(f"feed-refresh:{feed.id}")

        job.func(*job.args)

        assert job.id in _job_ids(service)


class TestPauseResume:
    def test_pause_stops_refresh_and_marks_feed(self, service, store, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)

        result = service.pause_feed(feed.id, OWNER)

        assert result.success
        stored = store.get_feed(feed.id, OWNER)
        assert stored.is_paused is True
        assert stored.paused_at is not None
        assert service.get_auto_refresh_status() == []

    def test_paused_feed_is_not_extracted(self, service, source, feed) -> None:
        service.pause_feed(feed.id, OWNER)

        assert service.extract(feed.id, OWNER).to_dict()["paused"] is True
        assert source.calls == []

    def test_resume_clears_pause_and_schedules(self, service, store, feed) -> None:
        service.pause_feed(feed.id, OWNER)

        result = service.resume_feed(feed.id, OWNER, 10)

        assert result.success
        stored = store.get_feed(feed.id, OWNER)
        assert stored.is_paused is False
        assert stored.paused_at is None
        (status,) = service.get_auto_refresh_status()
        assert status.interval_minutes == 10
        assert isinstance(service.extract(feed.id, OWNER), Success)

    def test_resume_uses_feed_frequency(self, service, store) -> None:
        feed = store.create_feed({"url": "https://x.test/rss", "owner_id": OWNER,
                                  "update_frequency": 45, "is_paused": True})

        service.resume_feed(feed.id, OWNER)

        assert service.get_auto_refresh_status()[0].interval_minutes == 45

    def test_pause_unknown_feed(self, service, feed) -> None:
        assert service.pause_feed(feed.id, OTHER_OWNER).success is False

    def test_resume_unknown_feed_schedules_nothing(self, service) -> None:
        result = service.resume_feed("missing", OWNER, 5)

        assert result.success is False
        assert service.get_auto_refresh_status() == []


class TestLifecycle:
    def test_restore_schedules_active_feeds_only(self, service, store) -> None:
        a = store.create_feed({"url": "https://a.test/rss", "owner_id": OWNER, "update_frequency": 20})
        b = store.create_feed({"url": "https://b.test/rss", "owner_id": OTHER_OWNER})
        store.create_feed({"url": "https://p.test/rss", "owner_id": OWNER, "is_paused": True})

        assert service.restore_auto_refresh() == 2

        intervals = {s.feed_id: s.interval_minutes for s in service.get_auto_refresh_status()}
        assert intervals == {a.id: 20, b.id: 60}

    def test_shutdown_stops_owned_scheduler(self, service, feed) -> None:
        service.start_auto_refresh(feed.id, OWNER, 1)

        service.shutdown()

        assert service.get_auto_refresh_status() == []
        assert not service.scheduler.running

    def test_injected_scheduler_is_left_running(self, store, source, feed) -> None:
        from apscheduler.schedulers.background import BackgroundScheduler

        scheduler = BackgroundScheduler()
        scheduler.start()
        try:
            svc = FeedExtractionService(store, source=source, scheduler=scheduler)
            svc.start_auto_refresh(feed.id, OWNER, 1)
            svc.shutdown()

            assert scheduler.running
            assert scheduler.get_jobs() == []
        finally:
            scheduler.shutdown(wait=False)

    def test_scheduled_run_logs_rejections(self, service, feed) -> None:
        service.pause_feed(feed.id, OWNER)

        with patch("services.extraction.service.logger") as log:
            service._run_scheduled(feed.id, OWNER)

        log.info.assert_any_call("auto-refresh of feed %s: %s", feed.id, "Feed is paused")


class _GatedStore(MemoryStore):
    """Holds the "pause" write until the test lets it through."""

    def __init__(self):
        super().__init__()
        self.writing = threading.Event()
        self.proceed = threading.Event()

    def update_feed(self, feed_id, patch, owner_id):
        if patch.get("is_paused") is True:
            self.writing.set()
            self.proceed.wait(5)
        return super().update_feed(feed_id, patch, owner_id)


class TestPauseResumeOrdering:
    def test_resume_waits_for_a_pause_in_flight(self) -> None:
        store = _GatedStore()
        feed = store.create_feed({"url": FEED_URL, "owner_id": OWNER})
        svc = FeedExtractionService(store, source=StubSource(), default_interval_minutes=60)
        try:
            pauser = threading.Thread(target=svc.pause_feed, args=(feed.id, OWNER))
            pauser.start()
            assert store.writing.wait(2)

            resumer = threading.Thread(target=svc.resume_feed, args=(feed.id, OWNER, 5))
            resumer.start()
            resumer.join(0.2)
            assert resumer.is_alive()

            store.proceed.set()
            pauser.join(2)
            resumer.join(2)

            stored = store.get_feed(feed.id, OWNER)
            jobs = _job_ids(svc)
            assert not (stored.is_paused and jobs)
            assert stored.is_paused is False
            assert jobs == [f"feed-refresh:{feed.id}"]
        finally:
            store.proceed.set()
            svc.shutdown()

    @pytest.mark.parametrize("interval", [0, -1])
    def test_bad_resume_interval_leaves_feed_paused(self, service, store, feed, interval) -> None:
        service.pause_feed(feed.id, OWNER)

        with pytest.raises(ValueError):
            service.resume_feed(feed.id, OWNER, interval)

        stored = store.get_feed(feed.id, OWNER)
        assert stored.is_paused is True
        assert stored.paused_at is not None
        assert _job_ids(service) == []
