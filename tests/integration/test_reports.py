"""
Integration tests for study reports over seeded data.
"""

from datetime import timedelta

import pytest
import pytest_asyncio

from studystore import reports
from studystore.reports import Timeframe
from studystore.timeutil import to_iso


async def add_student(client, email, full_name):
    result = await client.auth.sign_up(
        email=email,
        password="pw",
        data={"full_name": full_name, "organization_id": "org-1"},
    )
    return result.user.id


class TestStudentStats:
    """Tests for student_stats."""

    @pytest.mark.asyncio
    async def test_demo_student(self, client, now):
        stats = await reports.student_stats(client, "org-1", now=now)

        assert [s.id for s in stats] == ["student-1"]
        student = stats[0]
        assert student.name == "Demo Student"
        assert student.streak == 14
        assert student.status == "active"

        sessions = (await client.collection("study_sessions").select("duration_hours")).data
        assert student.hours == round(sum(s["duration_hours"] for s in sessions), 1)

    @pytest.mark.asyncio
    async def test_student_without_sessions(self, client, now):
        await add_student(client, "idle@example.com", "Idle Person")
        stats = {s.email: s for s in await reports.student_stats(client, "org-1", now=now)}

        idle = stats["idle@example.com"]
        assert (idle.hours, idle.streak, idle.status) == (0.0, 0, "inactive")

        summary = reports.organization_summary(list(stats.values()))
        assert summary.total_users == 2
        assert summary.active_users == 1

    @pytest.mark.asyncio
    async def test_other_organization_is_empty(self, client, now):
        assert await reports.student_stats(client, "org-2", now=now) == []


class TestMonthlyActivity:
    """Tests for monthly_activity."""

    @pytest.mark.asyncio
    async def test_months_oldest_first(self, client, now):
        activity = await reports.monthly_activity(client, months=3, now=now)

        assert [m.month for m in activity] == ["Jan", "Feb", "Mar"]
        assert (activity[0].hours, activity[0].users) == (0, 0)
        assert (activity[1].hours, activity[1].users) == (0, 0)
        assert activity[2].users == 1
        assert activity[2].hours > 0

    @pytest.mark.asyncio
    async def test_month_boundaries(self, client, now):
        await client.collection("study_sessions").insert(
            [
                {"user_id": "student-1", "subject": "Math", "duration_hours": 2.0,
                 "session_date": "2024-02-29T23:59:59.999Z"},
                {"user_id": "student-1", "subject": "Math", "duration_hours": 1.0,
                 "session_date": "2024-02-01T00:00:00.000Z"},
            ]
        )
        activity = await reports.monthly_activity(client, months=2, now=now)
        assert (activity[0].month, activity[0].hours) == ("Feb", 3.0)


class TestLeaderboard:
    """Tests for leaderboard."""

    @pytest_asyncio.fixture
    async def rival(self, client, now):
        user_id = await add_student(client, "rival@example.com", "Grace Hopper")
        await client.collection("study_sessions").insert(
            {"user_id": user_id, "subject": "Math", "duration_hours": 100.0,
             "session_date": to_iso(now - timedelta(days=20))}
        )
        return user_id

    @pytest.mark.asyncio
    async def test_weekly(self, client, now, rival):
        entries = await reports.leaderboard(client, "org-1", Timeframe.WEEKLY, now=now)

        assert [e.user_id for e in entries] == ["student-1", rival]
        assert [e.rank for e in entries] == [1, 2]
        assert entries[0].initials == "DS"
        assert entries[1].weekly_hours == 0.0

    @pytest.mark.asyncio
    async def test_monthly_and_all_time(self, client, now, rival):
        monthly = await reports.leaderboard(client, "org-1", Timeframe.MONTHLY, now=now)
        all_time = await reports.leaderboard(client, "org-1", "all_time", now=now)

        assert monthly[0].user_id == rival
        assert monthly[0].monthly_hours == 100.0
        assert all_time[0].user_id == rival
        assert all_time[0].initials == "GH"

    @pytest.mark.asyncio
    async def test_limit(self, client, now, rival):
        entries = await reports.leaderboard(client, "org-1", Timeframe.ALL_TIME, limit=1, now=now)
        assert len(entries) == 1


class TestUndatedSessions:
    """Reports over sessions stored without a session_date."""

    @pytest_asyncio.fixture
    async def undated(self, client):
        await client.collection("study_sessions").insert(
            {"user_id": "student-1", "subject": "Art", "duration_hours": 1.0}
        )

    @pytest.mark.asyncio
    async def test_leaderboard(self, client, now, undated):
        weekly = await reports.leaderboard(client, "org-1", Timeframe.WEEKLY, now=now)
        all_time = await reports.leaderboard(client, "org-1", Timeframe.ALL_TIME, now=now)

        assert weekly[0].streak == 14
        assert all_time[0].total_hours == pytest.approx(weekly[0].monthly_hours + 1.0)

    @pytest.mark.asyncio
    async def test_student_stats(self, client, now, undated):
        (student,) = await reports.student_stats(client, "org-1", now=now)
        assert student.status == "active"
        assert student.streak == 14

    @pytest.mark.asyncio
    async def test_monthly_activity(self, client, now, undated):
        activity = await reports.monthly_activity(client, months=1, now=now)
        assert activity[0].users == 1
