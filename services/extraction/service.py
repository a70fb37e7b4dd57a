import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from services.collector.rss import FeedEntry, FeedSource
from services.extraction.classify import count_words, detect_media_type, extract_image, reading_time
from services.extraction.guard import LocalRefreshGuard, RefreshGuard
from services.extraction.results import (
    AggregateResult, AutoRefreshStatus, ExtractionResult, Failure, FeedControlResult,
    InProgress, NotFound, Paused, Success,
)
from services.preprocess.clean import HtmlSanitizer, make_summary
from services.store.base import FeedStore
from services.store.records import FetchError, Feed, utcnow
from shared.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class _RefreshJob:
    job_id: str
    owner_id: str
    interval_minutes: float


class FeedExtractionService:
    """Pulls feeds into content items and keeps per-feed polling jobs.

    Collaborators are injected; nothing here is a module-level singleton, so
    tests can run several independent instances side by side.
    """

    def __init__(self, store: FeedStore, source=None, sanitizer=None,
                 guard: Optional[RefreshGuard] = None, scheduler=None,
                 default_interval_minutes: Optional[float] = None,
                 words_per_minute: Optional[int] = None,
                 error_log_limit: Optional[int] = None):
        self.store = store
        self.source = source or FeedSource()
        self.sanitizer = sanitizer or HtmlSanitizer()
        self.guard = guard or LocalRefreshGuard()

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or BackgroundScheduler(timezone=ZoneInfo(settings.TIMEZONE))

        self.default_interval_minutes = default_interval_minutes or settings.DEFAULT_REFRESH_MINUTES
        self.words_per_minute = words_per_minute or settings.READING_WORDS_PER_MINUTE
        self.error_log_limit = error_log_limit or settings.FEED_ERROR_LOG_LIMIT

        self._jobs: dict[str, _RefreshJob] = {}
        self._jobs_lock = threading.RLock()

    # ------------------------------------------------------------------
    # extraction
    # ------------------------------------------------------------------
    def extract(self, feed_id, owner_id) -> ExtractionResult:
        feed_id = str(feed_id)
        if not self.guard.try_acquire(feed_id):
            logger.info("feed %s is already being refreshed, skipping", feed_id)
            return InProgress(feed_id)
        try:
            return self._extract_held(feed_id, owner_id)
        finally:
            self.guard.release(feed_id)

    def _extract_held(self, feed_id: str, owner_id) -> ExtractionResult:
        feed = None
        try:
            feed = self.store.get_feed(feed_id, owner_id)
            if feed is None:
                return NotFound(feed_id)
            if feed.is_paused:
                return Paused(feed_id)

            parsed = self.source.fetch(feed.url)

            existing = self.store.list_items_by_feed(feed_id, owner_id)
            seen = {item.url for item in existing}

            created = []
            for entry in parsed.entries:
                if not entry.link or entry.link in seen:
                    continue
                item = self.store.create_item(self._build_item(feed, owner_id, entry))
                seen.add(entry.link)
                created.append(item)

            total = len(existing) + len(created)
            now = utcnow()
            self.store.update_feed(feed_id, {
                "last_fetched": now,
                "last_updated": now,
                "article_count": total,
                "status": "success",
                "error_message": None,
            }, owner_id)

            logger.info("feed %s (%s): %d new, %d total", feed_id, feed.url, len(created), total)
            return Success(
                feed_id=feed.id,
                feed_name=feed.name,
                feed_title=parsed.title or feed.name,
                articles=created,
                total_articles=total,
            )
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning("feed %s refresh failed: %s", feed_id, message)
            self._record_failure(feed_id, owner_id, feed, message)
            return Failure(feed_id, message)

    def _build_item(self, feed: Feed, owner_id, entry: FeedEntry) -> dict[str, Any]:
        raw = entry.raw_content()
        text = self.sanitizer.to_plain_text(raw)
        words = count_words(text)
        now = utcnow()
        return {
            "feed_id": feed.id,
            "feed_name": feed.name,
            "owner_id": owner_id,
            "url": entry.link,
            "title": entry.title or "Untitled",
            "author": entry.author or feed.name or None,
            "published_date": entry.published or now,
            "added_date": now,
            "status": "inbox",
            "media_type": detect_media_type(entry, raw),
            "summary": make_summary(raw),
            "content": self.sanitizer.sanitize_html(raw, preserve_images=True),
            "content_no_images": self.sanitizer.sanitize_html(raw, preserve_images=False),
            "text_content": text,
            "word_count": words,
            "reading_time": reading_time(words, self.words_per_minute),
            "image_url": extract_image(entry, raw),
            "tags": list(feed.default_tags),
        }

    def _record_failure(self, feed_id: str, owner_id, feed: Optional[Feed], message: str) -> None:
        now = utcnow()
        try:
            if feed is None:
                feed = self.store.get_feed(feed_id, owner_id)
            patch = {"status": "error", "error_message": message, "last_fetched": now}
            if feed is not None:
                errors = list(feed.fetch_errors) + [FetchError(message=message, timestamp=now)]
                patch["fetch_errors"] = errors[-self.error_log_limit:]
            self.store.update_feed(feed_id, patch, owner_id)
        except Exception:
            # the run already failed; the caller still gets a Failure
            logger.exception("could not record failure for feed %s", feed_id)

    def extract_all(self, owner_id) -> AggregateResult:
        try:
            feeds = self.store.list_active_feeds(owner_id)
        except Exception as e:
            logger.exception("listing feeds for %s failed", owner_id)
            return AggregateResult(success=False, message=str(e))

        results = []
        for feed in feeds:
            if feed.is_paused or not feed.is_active:
                continue
            results.append(self.extract(feed.id, owner_id))

        aggregate = AggregateResult(success=True, results=results)
        logger.info("refreshed %d feeds for %s: %d new articles",
                    aggregate.feeds_processed, owner_id, aggregate.total_new_articles)
        return aggregate

    # ------------------------------------------------------------------
    # auto refresh
    # ------------------------------------------------------------------
    @staticmethod
    def _job_id(feed_id: str) -> str:
        return f"feed-refresh:{feed_id}"

    def _run_scheduled(self, feed_id: str, owner_id) -> None:
        logger.info("auto-refreshing feed %s", feed_id)
        result = self.extract(feed_id, owner_id)
        if not result.success:
            logger.info("auto-refresh of feed %s: %s", feed_id, result.message)

    def start_auto_refresh(self, feed_id, owner_id, interval_minutes: Optional[float] = None) -> None:
        minutes = self._check_interval(interval_minutes)

        feed_id = str(feed_id)
        with self._jobs_lock:
            self.stop_auto_refresh(feed_id)
            job_id = self._job_id(feed_id)
            self.scheduler.add_job(
                self._run_scheduled,
                trigger=IntervalTrigger(minutes=minutes),
                args=[feed_id, owner_id],
                id=job_id,
                name=f"refresh feed {feed_id}",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            self._jobs[feed_id] = _RefreshJob(job_id=job_id, owner_id=owner_id, interval_minutes=minutes)
            if self._owns_scheduler and not self.scheduler.running:
                self.scheduler.start()

        logger.info("started auto-refresh for feed %s every %s minutes", feed_id, minutes)

    def stop_auto_refresh(self, feed_id) -> None:
        feed_id = str(feed_id)
        with self._jobs_lock:
            job = self._jobs.pop(feed_id, None)
            if job is None:
                return
            try:
                self.scheduler.remove_job(job.job_id)
            except JobLookupError:
                logger.debug("job %s was already gone from the scheduler", job.job_id)
        logger.info("stopped auto-refresh for feed %s", feed_id)

    def stop_all_auto_refresh(self) -> None:
        with self._jobs_lock:
            for feed_id in list(self._jobs):
                self.stop_auto_refresh(feed_id)

    def _check_interval(self, interval_minutes) -> float:
        minutes = self.default_interval_minutes if interval_minutes is None else interval_minutes
        if not minutes or minutes <= 0:
            raise ValueError(f"interval must be a positive number of minutes, got {interval_minutes!r}")
        return minutes

    # pause/resume hold the jobs lock so the paused flag and the job map change together
    def pause_feed(self, feed_id, owner_id) -> FeedControlResult:
        with self._jobs_lock:
            self.stop_auto_refresh(feed_id)
            updated = self.store.update_feed(str(feed_id), {"is_paused": True, "paused_at": utcnow()}, owner_id)
        if updated is None:
            return FeedControlResult(False, "Feed not found")
        return FeedControlResult(True, "Feed paused successfully")

    def resume_feed(self, feed_id, owner_id, interval_minutes: Optional[float] = None) -> FeedControlResult:
        if interval_minutes is not None:
            self._check_interval(interval_minutes)
        with self._jobs_lock:
            feed = self.store.get_feed(str(feed_id), owner_id)
            if feed is None:
                return FeedControlResult(False, "Feed not found")
            minutes = self._check_interval(interval_minutes or feed.update_frequency or None)
            updated = self.store.update_feed(str(feed_id), {"is_paused": False, "paused_at": None}, owner_id)
            if updated is None:
                return FeedControlResult(False, "Feed not found")
            self.start_auto_refresh(feed_id, owner_id, minutes)
        return FeedControlResult(True, "Feed resumed successfully")

    def get_auto_refresh_status(self) -> list[AutoRefreshStatus]:
        with self._jobs_lock:
            jobs = list(self._jobs.items())
        status = []
        for feed_id, meta in jobs:
            job = self.scheduler.get_job(meta.job_id)
            status.append(AutoRefreshStatus(
                feed_id=feed_id,
                is_refreshing=self.guard.is_held(feed_id),
                interval_minutes=meta.interval_minutes,
                next_run_time=getattr(job, "next_run_time", None) if job else None,
            ))
        return status

    def restore_auto_refresh(self) -> int:
        """Schedule every active, unpaused feed; used when the process starts."""
        feeds = self.store.list_all_active_feeds()
        for feed in feeds:
            self.start_auto_refresh(feed.id, feed.owner_id, feed.update_frequency or None)
        logger.info("restored auto-refresh for %d feeds", len(feeds))
        return len(feeds)

    def shutdown(self, wait: bool = False) -> None:
        self.stop_all_auto_refresh()
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
