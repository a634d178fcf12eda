"""
Study reports for the admin and leaderboard views.

All figures are computed from the profiles and study_sessions collections
through the query builder:
- student_stats: per-student hours, streak and activity status
- organization_summary: totals across an organization
- monthly_activity: hours and distinct students per calendar month
- leaderboard: weekly / monthly / all-time rankings

Invariants:
    - A streak counts consecutive UTC days with a session, back from today;
      an empty today does not break it
    - "active" means at least one session in the last 7 days
    - Rankings are stable: equal hours keep profile order
    - Sessions with a missing or unparsable session_date count toward
      all-time hours only; they never fail a report
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .client import LocalClient
from .timeutil import parse_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

STREAK_WINDOW_DAYS = 365
ACTIVE_WINDOW_DAYS = 7
WEEK_DAYS = 7
MONTH_DAYS = 30


class Timeframe(str, Enum):
    """Leaderboard ranking windows."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


@dataclass
class StudentStats:
    id: str
    name: str
    email: str
    hours: float
    streak: int
    status: str


@dataclass
class OrganizationSummary:
    total_users: int
    active_users: int
    total_hours: float
    avg_hours: float


@dataclass
class MonthlyActivity:
    month: str
    users: int
    hours: float


@dataclass
class LeaderboardEntry:
    """One row of a leaderboard.

    Attributes:
        rank: 1-based position in the requested timeframe
        user_id: Profile id
        name: Full name
        initials: Two-letter avatar initials
        total_hours: All-time hours
        weekly_hours: Hours in the last 7 days
        monthly_hours: Hours in the last 30 days
        streak: Current streak in days
    """

    rank: int
    user_id: str
    name: str
    initials: str
    total_hours: float
    weekly_hours: float
    monthly_hours: float
    streak: int


def session_time(session: Dict[str, Any]) -> Optional[datetime]:
    """Parsed session_date, or None if missing or unparsable."""
    value = session.get("session_date")
    if not isinstance(value, str):
        return None
    try:
        return parse_iso(value)
    except ValueError:
        return None


def study_streak(sessions: Iterable[Dict[str, Any]], today: datetime) -> int:
    """Consecutive days with a session, counting back from today."""
    times = (session_time(s) for s in sessions)
    days = {t.astimezone(timezone.utc).strftime("%Y-%m-%d") for t in times if t is not None}
    today = today.astimezone(timezone.utc)
    streak = 0
    for i in range(STREAK_WINDOW_DAYS):
        day = (today - timedelta(days=i)).strftime("%Y-%m-%d")
        if day in days:
            streak += 1
        elif i > 0:
            break
    return streak


def initials(full_name: str) -> str:
    parts = full_name.split()
    if len(parts) >= 2:
        return f"{parts[0][0]}{parts[-1][0]}".upper()
    return full_name[:2].upper()


def _hours(sessions: Iterable[Dict[str, Any]], since: Optional[datetime] = None) -> float:
    total = 0.0
    for s in sessions:
        if since is not None:
            started = session_time(s)
            if started is None or started < since:
                continue
        total += float(s.get("duration_hours") or 0)
    return round(total, 1)


async def _students(client: LocalClient, organization_id: str, columns: str) -> List[Dict[str, Any]]:
    result = await (
        client.collection("profiles")
        .select(columns)
        .eq("organization_id", organization_id)
        .eq("role", "student")
    )
    return result.raise_for_error()


async def _sessions_by_user(
    client: LocalClient, user_ids: List[str]
) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {uid: [] for uid in user_ids}
    if not user_ids:
        return grouped
    result = await (
        client.collection("study_sessions")
        .select("user_id, duration_hours, session_date")
        .in_("user_id", user_ids)
    )
    for session in result.raise_for_error():
        grouped[session["user_id"]].append(session)
    return grouped


async def student_stats(
    client: LocalClient, organization_id: str, now: Optional[datetime] = None
) -> List[StudentStats]:
    """Hours, streak and activity of every student in an organization."""
    now = now or utc_now()
    week_ago = now - timedelta(days=ACTIVE_WINDOW_DAYS)

    profiles = await _students(client, organization_id, "id, full_name, email")
    sessions = await _sessions_by_user(client, [p["id"] for p in profiles])

    stats = []
    for profile in profiles:
        own = sessions[profile["id"]]
        times = [session_time(s) for s in own]
        active = any(t is not None and t >= week_ago for t in times)
        stats.append(
            StudentStats(
                id=profile["id"],
                name=profile.get("full_name") or "",
                email=profile.get("email") or "",
                hours=_hours(own),
                streak=study_streak(own, now),
                status="active" if active else "inactive",
            )
        )
    return stats


def organization_summary(stats: List[StudentStats]) -> OrganizationSummary:
    total_users = len(stats)
    total_hours = round(sum(s.hours for s in stats), 1)
    return OrganizationSummary(
        total_users=total_users,
        active_users=sum(1 for s in stats if s.status == "active"),
        total_hours=total_hours,
        avg_hours=round(total_hours / total_users, 2) if total_users else 0.0,
    )


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


async def monthly_activity(
    client: LocalClient, months: int = 7, now: Optional[datetime] = None
) -> List[MonthlyActivity]:
    """Hours and distinct students per calendar month, oldest first."""
    now = (now or utc_now()).astimezone(timezone.utc)
    activity = []
    for back in range(months - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -back)
        start = _month_start(year, month)
        end = _month_start(*_shift_month(year, month, 1)) - timedelta(milliseconds=1)

        result = await (
            client.collection("study_sessions")
            .select("duration_hours, user_id")
            .gte("session_date", to_iso(start))
            .lte("session_date", to_iso(end))
        )
        rows = result.raise_for_error()
        activity.append(
            MonthlyActivity(
                month=start.strftime("%b"),
                users=len({r["user_id"] for r in rows}),
                hours=round(sum(float(r.get("duration_hours") or 0) for r in rows), 1),
            )
        )
    return activity


async def leaderboard(
    client: LocalClient,
    organization_id: str,
    timeframe: Timeframe = Timeframe.WEEKLY,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> List[LeaderboardEntry]:
    """Top students of an organization for a timeframe.

    Args:
        client: StudyStore client
        organization_id: Organization to rank
        timeframe: Ranking window
        limit: Maximum entries
        now: Clock override

    Returns:
        Entries ordered by hours in the timeframe, descending
    """
    now = now or utc_now()
    timeframe = Timeframe(timeframe)
    week_ago = now - timedelta(days=WEEK_DAYS)
    month_ago = now - timedelta(days=MONTH_DAYS)

    profiles = await _students(client, organization_id, "id, full_name")
    sessions = await _sessions_by_user(client, [p["id"] for p in profiles])

    rows = []
    for profile in profiles:
        own = sessions[profile["id"]]
        name = profile.get("full_name") or ""
        rows.append(
            {
                "user_id": profile["id"],
                "name": name,
                "initials": initials(name) if name else "",
                "total_hours": _hours(own),
                "weekly_hours": _hours(own, week_ago),
                "monthly_hours": _hours(own, month_ago),
                "streak": study_streak(own, now),
            }
        )

    key = {
        Timeframe.WEEKLY: "weekly_hours",
        Timeframe.MONTHLY: "monthly_hours",
        Timeframe.ALL_TIME: "total_hours",
    }[timeframe]
    ranked = sorted(rows, key=lambda r: r[key], reverse=True)[:limit]
    return [LeaderboardEntry(rank=i + 1, **row) for i, row in enumerate(ranked)]
