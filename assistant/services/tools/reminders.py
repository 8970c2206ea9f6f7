# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Reminder tools and delivery scheduler.

``ReminderTools`` owns the persisted reminder list behind one lock and
implements create_reminder / list_reminders / delete_reminder.
``ReminderScheduler`` is a single task that sleeps until the earliest
reminder is due, sends it, and only then lets ``ReminderTools`` drop it
from the list, so a crash between scheduling and sending re-sends the
reminder on the next start instead of losing it.
"""

import asyncio
import heapq
import itertools
import json
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from pydantic import TypeAdapter, ValidationError

from assistant.config import REMINDER_TOOLS, settings
from assistant.errors import StorageError, ToolExecutionError, UnknownToolError
from assistant.models import Reminder
from assistant.services.storage import atomic_write_json, read_json

logger = logging.getLogger(__name__)

REMINDER_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

_REMINDERS_ADAPTER = TypeAdapter(List[Reminder])
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

Clock = Callable[[], datetime]
SendFn = Callable[[str, str], Awaitable[Any]]
DeliveredFn = Callable[[Reminder], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_utc_offset(offset: str) -> timezone:
    """``"+08:00"`` -> ``timezone(timedelta(hours=8))``."""
    match = _OFFSET_RE.match(offset.strip())
    if not match:
        raise ValueError(f"Invalid UTC offset: {offset!r}")
    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def parse_reminder_time(value: str, offset: str) -> datetime:
    """Parse a reminder time. Naive times are taken to be at ``offset``.

    Raises:
        ToolExecutionError: If ``value`` is not an ISO-8601 date-time.
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ToolExecutionError(
            f"Invalid reminder time {value!r}, expected {REMINDER_TIME_FORMAT}"
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=parse_utc_offset(offset))
    return parsed


def format_reminder_message(reminder: Reminder) -> str:
    return f"<@{reminder.user_id}> \n Reminder: {reminder.title} - {reminder.description}"


class ReminderScheduler:
    """Min-heap of pending reminders drained by one background task."""

    def __init__(
        self,
        send: SendFn,
        on_delivered: Optional[DeliveredFn] = None,
        retry_seconds: Optional[float] = None,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize the scheduler.

        Args:
            send (SendFn): ``send(channel_id, text)`` used for delivery.
            on_delivered (Optional[DeliveredFn]): Called after a successful
                send.
            retry_seconds (Optional[float]): Back-off after a failed send.
                Defaults to ``settings.REMINDER_RETRY_SECONDS``.
            clock (Clock): Current time source (timezone-aware).
        """
        self._send = send
        self._on_delivered = on_delivered
        self._retry = timedelta(
            seconds=settings.REMINDER_RETRY_SECONDS if retry_seconds is None else retry_seconds
        )
        self._clock = clock
        self._heap: List[Tuple[datetime, int, Reminder]] = []
        self._live: Dict[str, int] = {}
        self._seq = itertools.count()
        self._wakeup = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._live)

    def schedule(self, reminder: Reminder, at: Optional[datetime] = None) -> None:
        """Queue ``reminder`` for delivery at ``at`` (default: its own time)."""
        seq = next(self._seq)
        self._live[reminder.uuid] = seq
        heapq.heappush(self._heap, (at or reminder.time, seq, reminder))
        self._wakeup.set()

    def cancel(self, reminder_uuid: str) -> bool:
        """Unschedule a reminder. Returns False if it was not scheduled."""
        if self._live.pop(reminder_uuid, None) is None:
            return False
        self._wakeup.set()
        return True

    def _pop_stale(self) -> None:
        while self._heap:
            _, seq, reminder = self._heap[0]
            if self._live.get(reminder.uuid) == seq:
                return
            heapq.heappop(self._heap)

    def next_delay(self) -> Optional[float]:
        """Seconds until the earliest pending reminder is due, None when idle."""
        self._pop_stale()
        if not self._heap:
            return None
        return max(0.0, (self._heap[0][0] - self._clock()).total_seconds())

    async def fire_due(self) -> int:
        """Deliver every reminder that is due now.

        Returns:
            int: Number of reminders delivered successfully.
        """
        delivered = 0
        now = self._clock()
        while True:
            self._pop_stale()
            if not self._heap or self._heap[0][0] > now:
                return delivered
            _, _, reminder = heapq.heappop(self._heap)
            self._live.pop(reminder.uuid, None)
            if await self._deliver(reminder):
                delivered += 1

    async def _deliver(self, reminder: Reminder) -> bool:
        try:
            await self._send(reminder.channel_id, format_reminder_message(reminder))
        except Exception as e:
            retry_at = self._clock() + self._retry
            logger.warning(
                "Failed to send reminder %s, retrying at %s: %s", reminder.uuid, retry_at, e
            )
            self.schedule(reminder, at=retry_at)
            return False

        logger.info("Reminder %s sent to channel %s", reminder.uuid, reminder.channel_id)
        if self._on_delivered is not None:
            try:
                await self._on_delivered(reminder)
            except Exception:
                logger.exception("Failed to record delivery of reminder %s", reminder.uuid)
        return True

    async def _run(self) -> None:
        while True:
            self._wakeup.clear()
            await self.fire_due()
            delay = self.next_delay()
            if delay is None:
                await self._wakeup.wait()
                continue
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="reminder-scheduler")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class ReminderTools:
    """Reminder family handler: the persisted reminder list and its lock."""

    tool_names: Set[str] = REMINDER_TOOLS

    def __init__(
        self,
        path: Optional[str] = None,
        scheduler: Optional[ReminderScheduler] = None,
        utc_offset: Optional[str] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._path = Path(path) if path else None
        self._scheduler = scheduler
        self._utc_offset = utc_offset or settings.REMINDER_UTC_OFFSET
        self._clock = clock
        self._reminders: Dict[str, Reminder] = {}
        self._lock = asyncio.Lock()

    def attach_scheduler(self, scheduler: ReminderScheduler) -> None:
        self._scheduler = scheduler

    @property
    def reminders(self) -> List[Reminder]:
        return sorted(self._reminders.values(), key=lambda r: r.time)

    async def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        """Dispatch reminder tool calls by name."""
        async with self._lock:
            if name == "create_reminder":
                return self._create(arguments)
            if name == "list_reminders":
                return self._list()
            if name == "delete_reminder":
                return self._delete(arguments)
        raise UnknownToolError(name)

    def _create(self, arguments: Dict[str, Any]) -> str:
        title = str(arguments.get("title", "")).strip()
        if not title:
            raise ToolExecutionError("title is required")
        for key in ("user_id", "channel_id", "time"):
            if not arguments.get(key):
                raise ToolExecutionError(f"{key} is required")

        fire_at = parse_reminder_time(str(arguments["time"]), self._utc_offset)
        if fire_at <= self._clock():
            raise ToolExecutionError(f"Reminder time {arguments['time']} is in the past")

        reminder = Reminder(
            title=title,
            description=str(arguments.get("description", "")),
            time=fire_at,
            user_id=str(arguments["user_id"]),
            channel_id=str(arguments["channel_id"]),
            uuid=str(uuid.uuid4()),
        )
        self._reminders[reminder.uuid] = reminder
        self._persist()
        if self._scheduler is not None:
            self._scheduler.schedule(reminder)
        logger.info("Reminder created: %s, time: %s", reminder.title, reminder.time)
        return f"Reminder created, UUID: {reminder.uuid}"

    def _list(self) -> str:
        if not self._reminders:
            return "No reminders set."
        return json.dumps(
            _REMINDERS_ADAPTER.dump_python(self.reminders, mode="json"), ensure_ascii=False
        )

    def _delete(self, arguments: Dict[str, Any]) -> str:
        reminder_uuid = str(arguments.get("uuid", ""))
        if reminder_uuid not in self._reminders:
            raise ToolExecutionError(f"Reminder {reminder_uuid} not found")
        del self._reminders[reminder_uuid]
        self._persist()
        if self._scheduler is not None:
            self._scheduler.cancel(reminder_uuid)
        return f"Reminder deleted, UUID: {reminder_uuid}"

    async def mark_delivered(self, reminder: Reminder) -> None:
        """Drop a reminder after it was sent."""
        async with self._lock:
            if self._reminders.pop(reminder.uuid, None) is None:
                return
            try:
                self._persist()
            except StorageError as e:
                logger.warning("Failed to save reminders after delivery: %s", e)

    def _persist(self) -> None:
        if self._path is None:
            return
        atomic_write_json(self._path, _REMINDERS_ADAPTER.dump_python(self.reminders, mode="json"))

    def load(self) -> List[Reminder]:
        """Populate the list from disk and return the loaded reminders.

        Raises:
            StorageError: If the file is unreadable or malformed.
        """
        if self._path is None:
            return []
        raw = read_json(self._path, default=[])
        try:
            loaded = _REMINDERS_ADAPTER.validate_python(raw or [])
        except ValidationError as e:
            raise StorageError(f"Malformed reminders in {self._path}: {e}") from e
        self._reminders = {r.uuid: r for r in loaded}
        logger.info("Loaded %d reminder(s) from %s", len(loaded), self._path)
        return loaded
