"""
hearth.services.timer_service — Per-Guild Timer Engine
=======================================================

A synchronous, clock-driven state machine for countdowns::

    Running ⇄ Paused
    Running → Completed   (remaining reaches zero)
    Running | Paused → Stopped   (explicit stop; leaves the active set at once)

Nothing here sleeps or schedules.  The periodic-tasks cog calls
:meth:`TimerEngine.tick` once per second for every guild and then hands
:meth:`TimerEngine.drain_notifications` to the notifier.  Tests drive the
same methods directly with an injected clock.

Completion side effects:

* **Pomodoro sessions** alternate work and break timers until the work
  phase count reaches ``total_cycles``; every spawned timer carries the
  session's :class:`~hearth.engine.timers.PomodoroPlan`.
* **Recurring timers** queue a successor that starts ``interval`` seconds
  after completion.  Stopping the finished timer cancels the successor.
* **Study timers** close their :class:`~hearth.engine.timers.StudySession`.
* Registered completion hooks run last (study-minute crediting).
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace

from hearth.constants import MINUTE
from hearth.engine.timers import (
    COLOR_BREAK,
    COLOR_DANGER,
    COLOR_INFO,
    COLOR_SUCCESS,
    COLOR_WARNING,
    PRESETS_BY_ID,
    TIMER_EMOJI,
    NotificationFlags,
    NotificationKind,
    PomodoroPlan,
    Recurrence,
    StudySession,
    Timer,
    TimerKind,
    TimerNotification,
    TimerPhase,
    TimerSettings,
    TimerState,
    format_time,
)

logger = logging.getLogger(__name__)

CLEANUP_GRACE_SECONDS = 30 * MINUTE
FIVE_MINUTE_MARK = 5 * MINUTE
ONE_MINUTE_MARK = 1 * MINUTE

CompletionHook = Callable[[Timer], None]


@dataclass(slots=True)
class _PendingSpawn:
    source: Timer
    delay: int  # ticks until the successor is created


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class TimerEngine:
    """All timers and study sessions for one guild."""

    def __init__(
        self,
        guild_id: int,
        *,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_id,
        cleanup_grace: int = CLEANUP_GRACE_SECONDS,
    ) -> None:
        self.guild_id = guild_id
        self._clock = clock
        self._new_id = id_factory
        self.cleanup_grace = cleanup_grace
        self._timers: dict[str, Timer] = {}
        self._sessions: dict[str, StudySession] = {}
        self._pending: list[_PendingSpawn] = []
        self._outbox: list[TimerNotification] = []
        self._completion_hooks: list[CompletionHook] = []

    def add_completion_hook(self, hook: CompletionHook) -> None:
        self._completion_hooks.append(hook)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_timer(
        self,
        owner_id: int,
        channel_id: int,
        kind: str | TimerKind,
        duration: int,
        name: str,
        *,
        description: str | None = None,
        phase: TimerPhase | None = None,
        cycle_index: int = 0,
        total_cycles: int = 1,
        plan: PomodoroPlan | None = None,
        recurring: Recurrence | None = None,
        notifications: NotificationFlags | None = None,
        settings: TimerSettings | None = None,
    ) -> Timer | None:
        """Create and start a timer.  Returns None for a non-positive duration or unknown kind."""
        try:
            kind = TimerKind(kind)
        except ValueError:
            logger.warning("Rejected timer with unknown kind %r", kind)
            return None
        if duration <= 0:
            return None

        now = self._clock()
        timer = Timer(
            id=self._new_id(),
            owner_id=owner_id,
            guild_id=self.guild_id,
            channel_id=channel_id,
            kind=kind,
            name=name,
            duration=duration,
            remaining=duration,
            started_at=now,
            scheduled_end_at=now + duration,
            description=description,
            phase=phase,
            cycle_index=cycle_index,
            total_cycles=total_cycles,
            plan=plan,
            recurring=recurring,
            notifications=notifications or NotificationFlags(),
            settings=settings or TimerSettings(),
        )
        self._timers[timer.id] = timer
        logger.info(
            "Timer %s (%s, %ss) started by %s in %s",
            timer.id, kind, duration, owner_id, self.guild_id,
        )
        return timer

    def create_pomodoro_session(
        self,
        owner_id: int,
        channel_id: int,
        *,
        work_seconds: int = 25 * MINUTE,
        short_break_seconds: int = 5 * MINUTE,
        long_break_seconds: int = 15 * MINUTE,
        total_cycles: int = 4,
    ) -> Timer | None:
        """Start the first work phase of a Pomodoro session."""
        if min(work_seconds, short_break_seconds, long_break_seconds, total_cycles) <= 0:
            return None
        plan = PomodoroPlan(
            work_seconds=work_seconds,
            short_break_seconds=short_break_seconds,
            long_break_seconds=long_break_seconds,
            total_cycles=total_cycles,
        )
        return self.create_timer(
            owner_id,
            channel_id,
            TimerKind.POMODORO,
            work_seconds,
            "Work Session 1",
            description=f"Pomodoro work session 1/{total_cycles}",
            phase=TimerPhase.WORK,
            total_cycles=total_cycles,
            plan=plan,
        )

    def create_study_session(
        self, owner_id: int, channel_id: int, subject: str, duration_minutes: int
    ) -> StudySession | None:
        """Start a study timer and the session record that tracks it."""
        timer = self.create_timer(
            owner_id,
            channel_id,
            TimerKind.STUDY,
            duration_minutes * MINUTE,
            f"Study: {subject}",
            description=f"Focused study session on {subject}",
        )
        if timer is None:
            return None
        session = StudySession(
            id=self._new_id(),
            owner_id=owner_id,
            guild_id=self.guild_id,
            subject=subject,
            duration_minutes=duration_minutes,
            started_at=timer.started_at,
            timer_id=timer.id,
        )
        self._sessions[session.id] = session
        return session

    def start_preset(
        self, owner_id: int, channel_id: int, preset_id: str, name: str | None = None
    ) -> Timer | None:
        preset = PRESETS_BY_ID.get(preset_id)
        if preset is None:
            return None
        return self.create_timer(
            owner_id,
            channel_id,
            preset.kind,
            preset.duration,
            name or preset.name,
            description=preset.description,
        )

    # -------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------
    def pause_timer(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        if timer is None or timer.state is not TimerState.RUNNING:
            return False
        timer.state = TimerState.PAUSED
        logger.info("Timer %s paused with %ss left", timer_id, timer.remaining)
        return True

    def resume_timer(self, timer_id: str) -> bool:
        timer = self._timers.get(timer_id)
        if timer is None or timer.state is not TimerState.PAUSED:
            return False
        timer.state = TimerState.RUNNING
        timer.scheduled_end_at = self._clock() + timer.remaining
        logger.info("Timer %s resumed", timer_id)
        return True

    def stop_timer(self, timer_id: str) -> bool:
        """Stop a timer, drop it from the active set, and cancel anything it queued."""
        timer = self._timers.pop(timer_id, None)
        if timer is None:
            return False
        if timer.is_active:
            timer.state = TimerState.STOPPED
            timer.ended_at = self._clock()
            if timer.kind is TimerKind.STUDY:
                self._close_study_session(timer, completed=False)
        self._pending = [p for p in self._pending if p.source.id != timer_id]
        self._outbox = [n for n in self._outbox if n.timer_id != timer_id]
        logger.info("Timer %s stopped", timer_id)
        return True

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_timer(self, timer_id: str) -> Timer | None:
        return self._timers.get(timer_id)

    def get_active_timers(self, owner_id: int | None = None) -> list[Timer]:
        return [
            t for t in self._timers.values()
            if t.is_active and (owner_id is None or t.owner_id == owner_id)
        ]

    def get_study_sessions(self, owner_id: int | None = None) -> list[StudySession]:
        return [
            s for s in self._sessions.values()
            if owner_id is None or s.owner_id == owner_id
        ]

    def __len__(self) -> int:
        return len(self._timers)

    # -------------------------------------------------------------------
    # Driving
    # -------------------------------------------------------------------
    def tick(self) -> None:
        """Advance every running timer by one second.

        Successors due this tick are created after the running timers have
        been advanced, so a new timer never loses its first second.
        """
        due: list[Timer] = []
        for pending in list(self._pending):
            pending.delay -= 1
            if pending.delay <= 0:
                self._pending.remove(pending)
                due.append(pending.source)

        for timer in list(self._timers.values()):
            if timer.state is not TimerState.RUNNING:
                continue
            timer.remaining -= 1
            self._check_thresholds(timer)
            if timer.remaining <= 0:
                self._complete(timer)

        for source in due:
            self._spawn_successor(source)

    def advance(self, seconds: int) -> None:
        """Tick *seconds* times."""
        for _ in range(seconds):
            self.tick()

    def drain_notifications(self) -> list[TimerNotification]:
        """Hand over every queued notification and clear the queue."""
        drained, self._outbox = self._outbox, []
        return drained

    def cleanup_completed(self, now: float | None = None) -> int:
        """Reap finished timers older than the grace window.  Returns how many were removed.

        A recurring timer with a successor still queued is kept, so it can
        still be stopped.
        """
        now = self._clock() if now is None else now
        queued = {p.source.id for p in self._pending}
        stale = [
            t.id for t in self._timers.values()
            if not t.is_active
            and t.id not in queued
            and t.ended_at is not None
            and now - t.ended_at > self.cleanup_grace
        ]
        for timer_id in stale:
            del self._timers[timer_id]
        if stale:
            logger.debug("Reaped %d finished timers in %s", len(stale), self.guild_id)
        return len(stale)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _emit(
        self,
        timer: Timer,
        kind: NotificationKind,
        title: str,
        description: str,
        color: int,
        fields: tuple[tuple[str, str], ...] = (),
    ) -> None:
        self._outbox.append(
            TimerNotification(
                kind=kind,
                timer_id=timer.id,
                owner_id=timer.owner_id,
                guild_id=timer.guild_id,
                channel_id=timer.channel_id,
                title=title,
                description=description,
                color=color,
                mention_owner=timer.settings.mention_owner,
                fields=fields,
            )
        )

    def _check_thresholds(self, timer: Timer) -> None:
        flags = timer.notifications
        if (
            flags.halfway
            and not timer.halfway_sent
            and timer.remaining > 0
            and timer.remaining / timer.duration <= 0.5
        ):
            timer.halfway_sent = True
            self._emit(
                timer,
                NotificationKind.HALFWAY,
                "\u23f0 Halfway Point",
                f"**{timer.name}** is halfway done. {format_time(timer.remaining)} remaining.",
                COLOR_INFO,
            )
        if flags.five_minutes and timer.remaining == FIVE_MINUTE_MARK:
            self._emit(
                timer,
                NotificationKind.FIVE_MINUTES,
                "\u26a0\ufe0f 5 Minutes Left",
                f"**{timer.name}** ends in 5 minutes.",
                COLOR_WARNING,
            )
        if flags.one_minute and timer.remaining == ONE_MINUTE_MARK:
            self._emit(
                timer,
                NotificationKind.ONE_MINUTE,
                "\U0001f6a8 1 Minute Left",
                f"**{timer.name}** ends in 1 minute.",
                COLOR_DANGER,
            )

    def _complete(self, timer: Timer) -> None:
        timer.state = TimerState.COMPLETED
        timer.remaining = 0
        timer.ended_at = self._clock()
        logger.info("Timer %s completed", timer.id)

        if timer.plan is not None and timer.phase is not None:
            self._advance_pomodoro(timer, timer.plan)
        else:
            if timer.notifications.completed:
                self._emit(
                    timer,
                    NotificationKind.COMPLETED,
                    f"{TIMER_EMOJI[timer.kind]} Timer Complete",
                    f"**{timer.name}** has finished!",
                    COLOR_SUCCESS,
                    (("Duration", format_time(timer.duration)),),
                )
            recurring = timer.recurring
            if recurring is not None and (recurring.count is None or recurring.count > 0):
                self._pending.append(_PendingSpawn(source=timer, delay=recurring.interval))

        if timer.kind is TimerKind.STUDY:
            self._close_study_session(timer, completed=True)

        for hook in self._completion_hooks:
            try:
                hook(timer)
            except Exception:
                logger.exception("Completion hook failed for timer %s", timer.id)

    def _advance_pomodoro(self, timer: Timer, plan: PomodoroPlan) -> None:

        if timer.phase is TimerPhase.WORK:
            cycle = timer.cycle_index + 1
            timer.cycle_index = cycle
            if cycle >= timer.total_cycles:
                self._emit(
                    timer,
                    NotificationKind.SESSION_COMPLETE,
                    "\U0001f389 Pomodoro Session Complete",
                    f"All {timer.total_cycles} work sessions done. Great focus!",
                    COLOR_SUCCESS,
                )
                return
            long_break = cycle % plan.long_break_every == 0
            label = "Long Break" if long_break else "Short Break"
            successor = self.create_timer(
                timer.owner_id,
                timer.channel_id,
                TimerKind.BREAK,
                plan.long_break_seconds if long_break else plan.short_break_seconds,
                label,
                description=f"{label} after work session {cycle}",
                phase=TimerPhase.LONG_BREAK if long_break else TimerPhase.SHORT_BREAK,
                cycle_index=cycle,
                total_cycles=timer.total_cycles,
                plan=plan,
                notifications=replace(timer.notifications),
                settings=replace(timer.settings),
            )
            color = COLOR_BREAK
        else:
            cycle = timer.cycle_index
            label = f"Work Session {cycle + 1}"
            successor = self.create_timer(
                timer.owner_id,
                timer.channel_id,
                TimerKind.POMODORO,
                plan.work_seconds,
                label,
                description=f"Pomodoro work session {cycle + 1}/{timer.total_cycles}",
                phase=TimerPhase.WORK,
                cycle_index=cycle,
                total_cycles=timer.total_cycles,
                plan=plan,
                notifications=replace(timer.notifications),
                settings=replace(timer.settings),
            )
            color = COLOR_INFO

        if successor is not None:
            self._emit(
                timer,
                NotificationKind.PHASE_CHANGE,
                f"{TIMER_EMOJI[successor.kind]} {label}",
                f"**{timer.name}** finished. {label} starts now "
                f"({format_time(successor.duration)}).",
                color,
                (("Timer ID", successor.id), ("Cycle", f"{cycle}/{timer.total_cycles}")),
            )

    def _spawn_successor(self, source: Timer) -> None:
        recurring = source.recurring
        if recurring is None:
            return
        remaining_repeats = None if recurring.count is None else recurring.count - 1
        successor = self.create_timer(
            source.owner_id,
            source.channel_id,
            source.kind,
            source.duration,
            source.name,
            description=source.description,
            recurring=Recurrence(interval=recurring.interval, count=remaining_repeats),
            notifications=replace(source.notifications),
            settings=replace(source.settings),
        )
        if successor is not None:
            logger.info("Recurring timer %s respawned as %s", source.id, successor.id)

    def _close_study_session(self, timer: Timer, *, completed: bool) -> None:
        for session in self._sessions.values():
            if session.timer_id == timer.id and session.ended_at is None:
                session.ended_at = timer.ended_at
                session.completed = completed
