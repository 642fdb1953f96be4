from datetime import datetime

import pytest

from todo_ai.schemas import TodoIn
from todo_ai.statistics import (
    Tally,
    aggregate,
    format_rate,
    profile_stats,
    select_for_period,
    time_slot_for_hour,
)
from todo_ai.timeutil import get_zone

# Monday
REFERENCE = datetime(2025, 12, 22, 12, 0)


def todo(title="할 일", **fields):
    return TodoIn(title=title, **fields)


class TestCompletionRate:
    def test_five_of_eight(self):
        todos = [todo(completed=True)] * 5 + [todo(completed=False)] * 3
        snapshot = aggregate(todos, REFERENCE)
        assert snapshot.total == 8
        assert snapshot.completed == 5
        assert snapshot.pending == 3
        assert snapshot.completion_rate == "62.5"

    def test_half_way_rate_rounds_up(self):
        todos = [todo(completed=True)] + [todo(completed=False)] * 15
        assert aggregate(todos, REFERENCE).completion_rate == "6.3"

    def test_empty_collection(self):
        snapshot = aggregate([], REFERENCE)
        assert snapshot.completion_rate == "0"
        assert snapshot.deadline_compliance_rate == "0"
        assert snapshot.most_completed_category == "없음"
        assert snapshot.past_due_count == 0
        assert snapshot.weekday_pattern == {}
        assert all(n == 0 for n in snapshot.time_slots.values())

    @pytest.mark.parametrize(
        "part,whole,expected",
        [
            (1, 3, "33.3"),
            (2, 3, "66.7"),
            (3, 3, "100.0"),
            (0, 4, "0.0"),
            (0, 0, "0"),
            (1, 16, "6.3"),
            (5, 16, "31.3"),
            (1, 8, "12.5"),
        ],
    )
    def test_format_rate(self, part, whole, expected):
        assert format_rate(part, whole) == expected


class TestPriorities:
    def test_per_priority_counts_and_rates(self):
        todos = [
            todo(priority="high", completed=True),
            todo(priority="high", completed=False),
            todo(priority="low", completed=True),
            todo(),
        ]
        snapshot = aggregate(todos, REFERENCE)
        assert snapshot.priority_counts["high"] == Tally(total=2, completed=1)
        assert snapshot.priority_counts["medium"] == Tally(total=1, completed=0)
        assert snapshot.priority_counts["low"] == Tally(total=1, completed=1)
        assert snapshot.priority_rate("high") == "50.0"
        assert snapshot.priority_rate("medium") == "0.0"
        assert snapshot.priority_rate("low") == "100.0"

    def test_rate_for_empty_priority_is_zero(self):
        snapshot = aggregate([todo(priority="high")], REFERENCE)
        assert snapshot.priority_rate("low") == "0"

    def test_urgent_titles_are_open_high_priority(self):
        todos = [
            todo("보고서", priority="high"),
            todo("운동", priority="high", completed=True),
            todo("장보기", priority="low"),
        ]
        assert aggregate(todos, REFERENCE).urgent_titles == ["보고서"]


class TestCategories:
    def test_histogram_uses_placeholder_for_missing(self):
        todos = [todo(category="업무"), todo(category="업무"), todo(), todo(category="여행")]
        snapshot = aggregate(todos, REFERENCE)
        assert snapshot.category_counts == {"업무": 2, "기타": 1, "여행": 1}

    def test_most_completed_category(self):
        todos = [
            todo(category="학습", completed=True),
            todo(category="업무", completed=True),
            todo(category="업무", completed=True),
            todo(category="학습", completed=False),
        ]
        assert aggregate(todos, REFERENCE).most_completed_category == "업무"

    def test_most_completed_tie_keeps_first_encountered(self):
        todos = [
            todo(category="건강", completed=True),
            todo(category="업무", completed=True),
            todo(category="업무", completed=True),
            todo(category="건강", completed=True),
        ]
        assert aggregate(todos, REFERENCE).most_completed_category == "건강"

    def test_most_completed_counts_uncategorized(self):
        todos = [todo(completed=True), todo(completed=True), todo(category="업무", completed=True)]
        assert aggregate(todos, REFERENCE).most_completed_category == "없음"


class TestTimeSlots:
    @pytest.mark.parametrize(
        "hour,expected",
        [
            (0, "night"),
            (5, "night"),
            (6, "morning"),
            (8, "morning"),
            (9, "late_morning"),
            (11, "late_morning"),
            (12, "noon"),
            (13, "noon"),
            (14, "afternoon"),
            (15, "afternoon"),
            (17, "afternoon"),
            (18, "evening"),
            (21, "evening"),
            (22, "night"),
            (23, "night"),
        ],
    )
    def test_bucket_for_hour(self, hour, expected):
        assert time_slot_for_hour(hour) == expected

    def test_histogram_skips_undated(self):
        todos = [
            todo(due_date="2025-12-22T15:00:00"),
            todo(due_date="2025-12-23T05:00:00"),
            todo(due_date="2025-12-23T07:30:00"),
            todo(),
        ]
        slots = aggregate(todos, REFERENCE).time_slots
        assert slots["afternoon"] == 1
        assert slots["night"] == 1
        assert slots["morning"] == 1
        assert sum(slots.values()) == 3

    def test_aware_due_read_in_local_zone(self):
        todos = [todo(due_date="2025-12-22T06:00:00Z")]
        slots = aggregate(todos, REFERENCE, get_zone("Asia/Seoul")).time_slots
        assert slots["afternoon"] == 1


class TestDeadlines:
    def test_compliance_ratio(self):
        todos = [
            todo(completed=True, due_date="2025-12-25T09:00:00"),  # future
            todo(completed=True, due_date="2025-12-21T18:00:00"),  # within a day
            todo(completed=True, due_date="2025-12-19T09:00:00"),  # late
            todo(completed=True),  # no due date, ignored
            todo(completed=False, due_date="2025-12-01T09:00:00"),  # open, ignored
        ]
        assert aggregate(todos, REFERENCE).deadline_compliance_rate == "66.7"

    def test_past_due_counts_open_todos_before_today(self):
        todos = [
            todo(due_date="2025-12-21T23:00:00"),
            todo(due_date="2025-12-22T00:30:00"),
            todo(due_date="2025-12-10T09:00:00", completed=True),
            todo(due_date="2025-12-30T09:00:00"),
            todo(),
        ]
        assert aggregate(todos, REFERENCE).past_due_count == 1


class TestWeekdayPattern:
    def test_totals_and_completions_by_due_weekday(self):
        todos = [
            todo(due_date="2025-12-22T10:00:00", completed=True),  # Monday
            todo(due_date="2025-12-24T10:00:00"),  # Wednesday
            todo(due_date="2025-12-29T10:00:00"),  # Monday
            todo(completed=True),
        ]
        pattern = aggregate(todos, REFERENCE).weekday_pattern
        assert list(pattern) == ["월", "수"]
        assert pattern["월"] == Tally(total=2, completed=1)
        assert pattern["수"] == Tally(total=1, completed=0)


class TestSelectForPeriod:
    TODOS = [
        todo("일요일 아침", due_date="2025-12-21T08:00:00"),
        todo("오늘", due_date="2025-12-22T20:00:00"),
        todo("토요일 밤", due_date="2025-12-27T23:59:00"),
        todo("다음 주 일요일", due_date="2025-12-28T00:00:00"),
        todo("지난 토요일", due_date="2025-12-20T12:00:00"),
        todo("마감 없음"),
    ]

    def test_today(self):
        selected = select_for_period(self.TODOS, "today", REFERENCE)
        assert [t.title for t in selected] == ["오늘"]

    def test_week_starts_on_sunday(self):
        selected = select_for_period(self.TODOS, "week", REFERENCE)
        assert [t.title for t in selected] == ["일요일 아침", "오늘", "토요일 밤"]

    def test_week_when_reference_is_sunday(self):
        sunday = datetime(2025, 12, 21, 9, 0)
        selected = select_for_period(self.TODOS, "week", sunday)
        assert [t.title for t in selected] == ["일요일 아침", "오늘", "토요일 밤"]


class TestProfileStats:
    def test_rounded_rate_and_priorities(self):
        todos = [
            todo(priority="high", completed=True),
            todo(priority="high"),
            todo(priority="low", completed=True),
        ]
        stats = profile_stats(todos)
        assert stats.total_todos == 3
        assert stats.completed_todos == 2
        assert stats.completion_rate == 67
        assert stats.priority_stats["high"].total == 2
        assert stats.priority_stats["high"].completed == 1
        assert stats.priority_stats["medium"].total == 0

    def test_empty(self):
        stats = profile_stats([])
        assert stats.completion_rate == 0
        assert stats.total_todos == 0
