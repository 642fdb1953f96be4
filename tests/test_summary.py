import json
from datetime import datetime

from todo_ai.schemas import TodoIn
from todo_ai.statistics import aggregate
from todo_ai.summary import (
    SUMMARY_SCHEMA,
    build_summary_prompt,
    coerce_summary,
    project_todo,
    summarize,
)

from conftest import FakeGenerator

REFERENCE = datetime(2025, 12, 22, 12, 0)


def sample_todos():
    return [
        TodoIn(
            id="1",
            title="보고서 작성",
            description="비공개 메모",
            priority="high",
            category="업무",
            completed=True,
            due_date="2025-12-22T15:00:00",
            created_date="2025-12-20T09:00:00",
        ),
        TodoIn(title="헬스장", priority="low", completed=False),
    ]


class TestProjection:
    def test_redacted_fields_and_labels(self):
        first, second = [project_todo(t) for t in sample_todos()]
        assert first == {
            "제목": "보고서 작성",
            "완료여부": "완료",
            "우선순위": "높음",
            "카테고리": "업무",
            "마감일": "2025-12-22T15:00:00",
            "생성일": "2025-12-20T09:00:00",
        }
        assert second["완료여부"] == "미완료"
        assert second["우선순위"] == "낮음"
        assert second["카테고리"] == "없음"
        assert second["마감일"] == "없음"


class TestBuildSummaryPrompt:
    def build(self, period="today", todos=None):
        todos = sample_todos() if todos is None else todos
        snapshot = aggregate(todos, REFERENCE)
        return build_summary_prompt(todos, snapshot, period, REFERENCE.date())

    def test_contains_metrics(self):
        prompt = self.build()
        assert "오늘 날짜는 2025-12-22입니다." in prompt
        assert "- 전체 할 일: 2개" in prompt
        assert "- 완료: 1개 (완료율 50.0%)" in prompt
        assert "- 미완료: 1개" in prompt
        assert "높음 1개, 중간 0개, 낮음 1개" in prompt
        assert "  * 높음: 1/1개 완료 (100.0%)" in prompt
        assert "  * 중간: 0/0개 완료 (0%)" in prompt
        assert "- 카테고리 분포: 업무 1개, 기타 1개" in prompt
        assert "- 시간대별 분포: 오후 1개" in prompt
        assert "- 마감일 준수율: 100.0%" in prompt
        assert "- 연기된 할 일: 0개" in prompt
        assert "- 가장 많이 완료한 카테고리: 업무" in prompt
        assert "- 요일별 완료 패턴: 월요일 1/1개" in prompt

    def test_todo_projection_embedded_as_json(self):
        prompt = self.build()
        assert json.dumps("보고서 작성", ensure_ascii=False) in prompt
        assert "비공개 메모" not in prompt

    def test_today_wording(self):
        prompt = self.build("today")
        assert prompt.startswith("오늘 할 일 목록을")
        assert "**오늘의 요약**" in prompt
        assert "**이번 주 요약**" not in prompt

    def test_week_wording(self):
        prompt = self.build("week")
        assert prompt.startswith("이번 주 할 일 목록을")
        assert "**이번 주 요약**" in prompt
        assert "다음 주 계획" in prompt

    def test_no_due_dates(self):
        prompt = self.build(todos=[TodoIn(title="정리")])
        assert "- 시간대별 분포: 없음" in prompt
        assert "- 요일별 완료 패턴:" not in prompt


class TestCoerceSummary:
    def test_caps_and_filters(self):
        snapshot = aggregate(sample_todos(), REFERENCE)
        result = coerce_summary(
            {
                "summary": " 잘하고 있어요 ",
                "urgentTasks": ["a", "b", "c", "d", "e", "f"],
                "insights": ["첫 인사이트", 3, None, " "],
                "recommendations": ["r1", "r2", "r3", "r4"],
            },
            snapshot,
        )
        assert result.summary == "잘하고 있어요"
        assert result.urgentTasks == ["a", "b", "c", "d", "e"]
        assert result.insights == ["첫 인사이트"]
        assert result.recommendations == ["r1", "r2", "r3"]

    def test_missing_fields_default(self):
        todos = [TodoIn(title="급한 일", priority="high")]
        result = coerce_summary("not an object", aggregate(todos, REFERENCE))
        assert result.summary == ""
        assert result.urgentTasks == ["급한 일"]
        assert result.insights == []
        assert result.recommendations == []


class TestSummarize:
    def test_calls_generator_with_schema(self):
        generator = FakeGenerator({"summary": "요약", "urgentTasks": [], "insights": ["i"], "recommendations": []})
        result = summarize(sample_todos(), "week", generator, REFERENCE)
        assert result.summary == "요약"
        assert result.insights == ["i"]
        prompt, schema = generator.calls[0]
        assert schema is SUMMARY_SCHEMA
        assert prompt.startswith("이번 주")
