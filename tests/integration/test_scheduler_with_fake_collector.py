import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

from ipmonitor.core.errors import WriteFailure
from ipmonitor.models.record import Record
from ipmonitor.storage.record_store import RecordStore
from ipmonitor.worker.scheduler import CheckScheduler

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeTime:
	def __init__(self) -> None:
		self.now = 0.0
		self.sleeps: list[float] = []

	def monotonic(self) -> float:
		return self.now

	async def sleep(self, delay: float) -> None:
		self.sleeps.append(delay)
		self.now += delay


class StubCollector:
	"""Each check takes ``durations[i]`` seconds of fake time; stops the scheduler after the last."""

	def __init__(self, fake_time: FakeTime, durations: list[float]) -> None:
		self.fake_time = fake_time
		self.durations = list(durations)
		self.started_at: list[float] = []
		self.scheduler: CheckScheduler | None = None

	def collect(self) -> Record:
		self.started_at.append(self.fake_time.now)
		self.fake_time.now += self.durations[len(self.started_at) - 1]
		if len(self.started_at) == len(self.durations) and self.scheduler is not None:
			self.scheduler.stop()
		return Record(
			timestamp=START + timedelta(seconds=self.started_at[-1]),
			ip_address="203.0.113.7",
			latency=timedelta(milliseconds=18),
			download_mbps=120.4,
			upload_mbps=9.8,
		)


class FlakyStore:
	def __init__(self, fail_on: set[int]) -> None:
		self.fail_on = fail_on
		self.attempts = 0
		self.saved: list[Record] = []

	def append(self, record: Record) -> Record:
		self.attempts += 1
		if self.attempts in self.fail_on:
			raise WriteFailure("database is locked")
		stored = record.with_id(len(self.saved) + 1)
		self.saved.append(stored)
		return stored


def _scheduler(collector: StubCollector, store, fake_time: FakeTime, interval: float = 30.0) -> CheckScheduler:
	scheduler = CheckScheduler(
		collector,
		store,
		interval_seconds=interval,
		clock=fake_time.monotonic,
		sleep=fake_time.sleep,
	)
	collector.scheduler = scheduler
	return scheduler


def test_step_persists_one_record_in_a_real_store(tmp_path) -> None:
	store = RecordStore.initialize(str(tmp_path / "monitor.db"))
	fake_time = FakeTime()
	scheduler = _scheduler(StubCollector(fake_time, [1.0, 1.0]), store, fake_time)

	stored = asyncio.run(scheduler.step())

	assert stored is not None and stored.id is not None
	assert store.count_all() == 1
	assert store.page(1, 20) == [stored]
	store.close()


def test_first_check_runs_immediately_then_on_each_tick() -> None:
	fake_time = FakeTime()
	collector = StubCollector(fake_time, [2.0, 2.0, 2.0])
	store = FlakyStore(fail_on=set())

	asyncio.run(_scheduler(collector, store, fake_time).run_forever())

	assert collector.started_at == [0.0, 30.0, 60.0]
	assert fake_time.sleeps == [28.0, 28.0]
	assert len(store.saved) == 3


def test_write_failure_is_logged_and_the_next_check_proceeds(caplog) -> None:
	fake_time = FakeTime()
	collector = StubCollector(fake_time, [1.0, 1.0, 1.0])
	store = FlakyStore(fail_on={2})

	asyncio.run(_scheduler(collector, store, fake_time).run_forever())

	assert store.attempts == 3
	assert [record.timestamp for record in store.saved] == [START, START + timedelta(seconds=60)]
	assert "Failed to save record to database" in caplog.text


def test_overrunning_check_coalesces_missed_ticks() -> None:
	fake_time = FakeTime()
	collector = StubCollector(fake_time, [70.0, 1.0, 1.0])

	asyncio.run(_scheduler(collector, FlakyStore(fail_on=set()), fake_time).run_forever())

	assert collector.started_at == [0.0, 70.0, 90.0]
	assert fake_time.sleeps == [19.0]


def test_checks_never_overlap() -> None:
	fake_time = FakeTime()
	in_flight = 0
	max_in_flight = 0

	class CountingCollector(StubCollector):
		def collect(self) -> Record:
			nonlocal in_flight, max_in_flight
			in_flight += 1
			max_in_flight = max(max_in_flight, in_flight)
			try:
				return super().collect()
			finally:
				in_flight -= 1

	collector = CountingCollector(fake_time, [45.0, 45.0, 45.0, 45.0])

	asyncio.run(_scheduler(collector, FlakyStore(fail_on=set()), fake_time).run_forever())

	assert max_in_flight == 1
	assert len(collector.started_at) == 4


class LockedStore:
	"""Fails its first append with a raw driver error instead of WriteFailure."""

	def __init__(self) -> None:
		self.attempts = 0
		self.saved: list[Record] = []

	def append(self, record: Record) -> Record:
		self.attempts += 1
		if self.attempts == 1:
			raise sqlite3.OperationalError("database is locked")
		stored = record.with_id(len(self.saved) + 1)
		self.saved.append(stored)
		return stored


def test_unexpected_store_error_does_not_end_the_loop(caplog) -> None:
	fake_time = FakeTime()
	collector = StubCollector(fake_time, [1.0, 1.0, 1.0])
	store = LockedStore()

	asyncio.run(_scheduler(collector, store, fake_time).run_forever())

	assert len(collector.started_at) == 3
	assert store.attempts == 3
	assert len(store.saved) == 2
	assert "database is locked" in caplog.text
