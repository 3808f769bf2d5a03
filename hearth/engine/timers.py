"""
hearth.engine.timers — Timer Model, Presets & Formatting
=========================================================

Plain data for the timer engine (:mod:`hearth.services.timer_service`):

* :class:`Timer` — one countdown and its lifecycle state.
* :class:`PomodoroPlan` — the phase durations a Pomodoro session carries
  through every work and break timer it spawns.
* :data:`TIMER_PRESETS` — the fixed catalog behind ``/timer preset``.
* :class:`TimerNotification` — an embed-shaped message the engine queues
  for delivery; the engine itself never touches Discord.

No I/O in this module.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from hearth.constants import MINUTE


class TimerKind(enum.StrEnum):
    POMODORO = "pomodoro"
    STUDY = "study"
    BREAK = "break"
    REMINDER = "reminder"
    CUSTOM = "custom"


class TimerPhase(enum.StrEnum):
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


class TimerState(enum.StrEnum):
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


class NotificationKind(enum.StrEnum):
    HALFWAY = "halfway"
    FIVE_MINUTES = "five_minutes"
    ONE_MINUTE = "one_minute"
    COMPLETED = "completed"
    PHASE_CHANGE = "phase_change"
    SESSION_COMPLETE = "session_complete"


TIMER_EMOJI: dict[TimerKind, str] = {
    TimerKind.POMODORO: "\U0001f345",  # 🍅
    TimerKind.STUDY: "\U0001f4da",     # 📚
    TimerKind.BREAK: "\u2615",        # ☕
    TimerKind.REMINDER: "\u23f0",     # ⏰
    TimerKind.CUSTOM: "\u23f1\ufe0f",  # ⏱️
}

# Embed colours
COLOR_INFO = 0x3498DB
COLOR_WARNING = 0xF39C12
COLOR_DANGER = 0xE74C3C
COLOR_SUCCESS = 0x2ECC71
COLOR_BREAK = 0x9B59B6


# ---------------------------------------------------------------------------
# Timer records
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class Recurrence:
    """Repeat a finished timer after ``interval`` seconds.

    ``count`` is the number of repeats still owed; None repeats forever.
    """

    interval: int
    count: int | None = None


@dataclass(slots=True)
class NotificationFlags:
    halfway: bool = True
    five_minutes: bool = True
    one_minute: bool = True
    completed: bool = True


@dataclass(slots=True)
class TimerSettings:
    auto_start: bool = True
    play_sound: bool = False
    mention_owner: bool = True
    show_progress: bool = True


@dataclass(frozen=True, slots=True)
class PomodoroPlan:
    work_seconds: int = 25 * MINUTE
    short_break_seconds: int = 5 * MINUTE
    long_break_seconds: int = 15 * MINUTE
    total_cycles: int = 4
    long_break_every: int = 4


@dataclass(slots=True)
class Timer:
    id: str
    owner_id: int
    guild_id: int
    channel_id: int
    kind: TimerKind
    name: str
    duration: int          # seconds
    remaining: int         # seconds
    started_at: float
    scheduled_end_at: float
    description: str | None = None
    state: TimerState = TimerState.RUNNING
    phase: TimerPhase | None = None
    cycle_index: int = 0   # completed work phases in the session
    total_cycles: int = 1
    plan: PomodoroPlan | None = None
    recurring: Recurrence | None = None
    notifications: NotificationFlags = field(default_factory=NotificationFlags)
    settings: TimerSettings = field(default_factory=TimerSettings)
    halfway_sent: bool = False
    ended_at: float | None = None

    @property
    def is_active(self) -> bool:
        return self.state in (TimerState.RUNNING, TimerState.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.state is TimerState.PAUSED

    @property
    def in_pomodoro_session(self) -> bool:
        return self.phase is not None and self.plan is not None

    @property
    def elapsed(self) -> int:
        return self.duration - self.remaining


@dataclass(slots=True)
class StudySession:
    id: str
    owner_id: int
    guild_id: int
    subject: str
    duration_minutes: int
    started_at: float
    timer_id: str
    ended_at: float | None = None
    completed: bool = False
    notes: str | None = None
    rating: int | None = None


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------
class PresetCategory(enum.StrEnum):
    PRODUCTIVITY = "productivity"
    STUDY = "study"
    WELLNESS = "wellness"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class TimerPreset:
    id: str
    name: str
    kind: TimerKind
    duration: int  # seconds
    description: str
    emoji: str
    category: PresetCategory


_K = TimerKind
_P = PresetCategory

TIMER_PRESETS: tuple[TimerPreset, ...] = (
    TimerPreset("pomodoro_25", "Classic Pomodoro", _K.POMODORO, 25 * MINUTE,
                "Traditional 25-minute focused work session", "\U0001f345", _P.PRODUCTIVITY),
    TimerPreset("pomodoro_45", "Extended Pomodoro", _K.POMODORO, 45 * MINUTE,
                "Longer focused work session for deep work", "\U0001f345", _P.PRODUCTIVITY),
    TimerPreset("pomodoro_90", "Deep Work Session", _K.POMODORO, 90 * MINUTE,
                "Ultra-focused session for complex tasks", "\U0001f9e0", _P.PRODUCTIVITY),
    TimerPreset("study_30", "Quick Study", _K.STUDY, 30 * MINUTE,
                "Short study session for review", "\U0001f4d6", _P.STUDY),
    TimerPreset("study_60", "Study Hour", _K.STUDY, 60 * MINUTE,
                "Standard one-hour study session", "\U0001f4da", _P.STUDY),
    TimerPreset("study_120", "Study Marathon", _K.STUDY, 120 * MINUTE,
                "Extended study session with breaks recommended", "\U0001f3c3", _P.STUDY),
    TimerPreset("break_5", "Short Break", _K.BREAK, 5 * MINUTE,
                "Quick refresh break", "\u2615", _P.WELLNESS),
    TimerPreset("break_15", "Long Break", _K.BREAK, 15 * MINUTE,
                "Extended break for recharging", "\U0001f6cb\ufe0f", _P.WELLNESS),
    TimerPreset("break_30", "Lunch Break", _K.BREAK, 30 * MINUTE,
                "Meal break and relaxation", "\U0001f37d\ufe0f", _P.WELLNESS),
    TimerPreset("meditation_10", "Quick Meditation", _K.CUSTOM, 10 * MINUTE,
                "Short mindfulness session", "\U0001f9d8", _P.WELLNESS),
    TimerPreset("meditation_20", "Deep Meditation", _K.CUSTOM, 20 * MINUTE,
                "Extended meditation practice", "\U0001f54a\ufe0f", _P.WELLNESS),
    TimerPreset("exercise_30", "Workout Session", _K.CUSTOM, 30 * MINUTE,
                "Physical exercise break", "\U0001f4aa", _P.WELLNESS),
)

PRESETS_BY_ID: dict[str, TimerPreset] = {p.id: p for p in TIMER_PRESETS}


def get_presets() -> list[TimerPreset]:
    return list(TIMER_PRESETS)


def get_presets_by_category(category: str | PresetCategory) -> list[TimerPreset]:
    """Presets in *category*; an unknown category yields ``[]``."""
    try:
        category = PresetCategory(category)
    except ValueError:
        return []
    return [p for p in TIMER_PRESETS if p.category is category]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TimerNotification:
    """An embed-shaped message queued by the engine for the notifier."""

    kind: NotificationKind
    timer_id: str
    owner_id: int
    guild_id: int
    channel_id: int
    title: str
    description: str
    color: int = COLOR_INFO
    mention_owner: bool = True
    fields: tuple[tuple[str, str], ...] = ()


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------
def format_time(seconds: int) -> str:
    """``H:MM:SS`` when an hour or more remains, else ``M:SS``."""
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def progress_bar(timer: Timer, length: int = 20) -> str:
    """Filled/empty block bar plus percentage, e.g. ``"█████░░░░░ 50%"``."""
    if timer.duration <= 0:
        ratio = 1.0
    else:
        ratio = min(max(timer.elapsed / timer.duration, 0.0), 1.0)
    filled = round(ratio * length)
    bar = "\u2588" * filled + "\u2591" * (length - filled)
    return f"{bar} {round(ratio * 100)}%"
