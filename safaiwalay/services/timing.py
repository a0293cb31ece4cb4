"""Working-time arithmetic for jobs.

Everything here is a pure function of stored booking timestamps and a
caller-supplied ``now``. Live timers on the dashboards call these on every
tick; nothing computed here is ever written back.
"""
from datetime import timedelta

from safaiwalay.models.base import as_utc, utcnow

ZERO = timedelta(0)


def pause_minutes(paused_at, resumed_at):
    """Whole minutes between a pause and its resume, floored, never negative."""
    if paused_at is None or resumed_at is None:
        return 0
    seconds = (as_utc(resumed_at) - as_utc(paused_at)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def working_duration(started_at, completed_at=None, paused_at=None, pause_minutes_total=0, now=None):
    """Time actually spent working on a job.

    ``(end - start) - pause_minutes_total`` where ``end`` is ``completed_at``
    for a finished job and ``now`` otherwise. An open pause (``paused_at``
    set) is also subtracted up to ``now``. Clamped to zero so clock skew
    between devices never yields a negative duration.
    """
    if started_at is None:
        return ZERO
    now = as_utc(now) if now is not None else utcnow()
    start = as_utc(started_at)
    end = as_utc(completed_at) if completed_at is not None else now

    duration = end - start - timedelta(minutes=pause_minutes_total or 0)
    if paused_at is not None:
        duration -= now - as_utc(paused_at)
    return max(duration, ZERO)


def booking_duration(booking, now=None):
    paused_at = booking.paused_at if booking.status == "paused" else None
    return working_duration(
        booking.started_at,
        completed_at=booking.completed_at,
        paused_at=paused_at,
        pause_minutes_total=booking.total_pause_duration or 0,
        now=now,
    )


def format_hours_minutes(duration):
    total_minutes = int(duration.total_seconds() // 60)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def format_clock(duration):
    seconds = int(duration.total_seconds())
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
