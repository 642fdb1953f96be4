"""
Summary prompt assembly and result coercion for the summarize pipeline.
"""
from __future__ import annotations

import json
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional, Sequence

from .llm import Schema, StructuredGenerator
from .models import PRIORITY_LABELS
from .schemas import SummaryResult, TodoIn
from .statistics import NO_CATEGORY, TIME_SLOT_LABELS, StatisticsSnapshot, aggregate

MAX_URGENT_TASKS = 5
MAX_RECOMMENDATIONS = 3

SUMMARY_SCHEMA: Schema = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING", "description": "할 일 요약 (완료율 포함)"},
        "urgentTasks": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "긴급한 할 일 목록 (제목만)",
        },
        "insights": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "인사이트 (분석 결과)",
        },
        "recommendations": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "추천 사항",
        },
    },
    "required": ["summary", "urgentTasks", "insights", "recommendations"],
}

MISSING = "없음"

PERIOD_LABELS = {"today": "오늘", "week": "이번 주"}

_PERIOD_FOCUS = {
    "today": (
        "- **오늘의 요약**에 집중: 오늘의 할 일 집중도와 남은 시간을 고려한 우선순위 제시\n"
        "- 오늘 하루 남은 시간을 효율적으로 활용할 수 있는 구체적인 제안"
    ),
    "week": (
        "- **이번 주 요약**에 집중: 주간 패턴과 트렌드 분석\n"
        "- 다음 주 계획 수립을 위한 구체적인 제안과 목표 설정"
    ),
}


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value is not None else MISSING


def project_todo(todo: TodoIn) -> Dict[str, str]:
    """Redacted view of a todo for the prompt; ids and descriptions are left out."""
    return {
        "제목": todo.title,
        "완료여부": "완료" if todo.completed else "미완료",
        "우선순위": PRIORITY_LABELS[todo.priority],
        "카테고리": todo.category or NO_CATEGORY,
        "마감일": _timestamp(todo.due_date),
        "생성일": _timestamp(todo.created_date),
    }


def _statistics_block(snapshot: StatisticsSnapshot) -> str:
    counts = snapshot.priority_counts
    lines = [
        f"- 전체 할 일: {snapshot.total}개",
        f"- 완료: {snapshot.completed}개 (완료율 {snapshot.completion_rate}%)",
        f"- 미완료: {snapshot.pending}개",
        "- 우선순위 분포: "
        f"높음 {counts['high'].total}개, 중간 {counts['medium'].total}개, 낮음 {counts['low'].total}개",
        "- 우선순위별 완료율:",
    ]
    for priority in ("high", "medium", "low"):
        tally = counts[priority]
        lines.append(
            f"  * {PRIORITY_LABELS[priority]}: {tally.completed}/{tally.total}개 완료 "
            f"({snapshot.priority_rate(priority)}%)"
        )

    categories = ", ".join(f"{cat} {n}개" for cat, n in snapshot.category_counts.items())
    slots = ", ".join(
        f"{TIME_SLOT_LABELS[key]} {n}개" for key, n in snapshot.time_slots.items() if n > 0
    )
    lines += [
        f"- 카테고리 분포: {categories}",
        f"- 시간대별 분포: {slots or '없음'}",
        f"- 마감일 준수율: {snapshot.deadline_compliance_rate}% (완료된 할 일 중 마감일에 맞춘 비율)",
        f"- 연기된 할 일: {snapshot.past_due_count}개 (과거 마감일이지만 아직 미완료)",
        f"- 가장 많이 완료한 카테고리: {snapshot.most_completed_category}",
    ]
    if snapshot.weekday_pattern:
        pattern = ", ".join(
            f"{day}요일 {t.completed}/{t.total}개" for day, t in snapshot.weekday_pattern.items()
        )
        lines.append(f"- 요일별 완료 패턴: {pattern}")
    return "\n".join(lines)


# PUBLIC_INTERFACE
def build_summary_prompt(
    todos: Sequence[TodoIn],
    snapshot: StatisticsSnapshot,
    period: str,
    today: date,
) -> str:
    """
    Render the analysis prompt: todo projection, every aggregated metric, and the
    analysis requests, with wording specific to ``period`` ("today" or "week").
    """
    label = PERIOD_LABELS[period]
    todos_json = json.dumps([project_todo(t) for t in todos], ensure_ascii=False, indent=2)
    compliance = snapshot.deadline_compliance_rate

    return f"""{label} 할 일 목록을 심층 분석하여 상세한 요약, 인사이트, 그리고 실행 가능한 추천을 제공해주세요. 오늘 날짜는 {today.isoformat()}입니다.

## 할 일 데이터:
{todos_json}

## 통계 데이터:
{_statistics_block(snapshot)}

## 분석 요청사항:

### 1. 완료율 분석
- {label} 전체 완료율과 우선순위별 완료 패턴을 분석해주세요
- 높은 우선순위 작업의 완료율이 낮다면 그 원인을 추론해주세요
- 완료율이 높은 우선순위나 카테고리에서 발견되는 패턴을 설명해주세요

### 2. 시간 관리 분석
- 마감일 준수율({compliance}%)을 기반으로 시간 관리 능력을 평가해주세요
- 연기된 할 일({snapshot.past_due_count}개)의 특징과 공통점을 분석해주세요 (카테고리, 우선순위 등)
- 시간대별 업무 집중도 분포를 분석하고, 업무가 집중된 시간대와 그 영향에 대해 설명해주세요

### 3. 생산성 패턴
- 요일별 완료 패턴을 분석하여 가장 생산적인 요일을 도출해주세요
- 시간대별 분포를 보고 가장 활발한 작업 시간대를 분석해주세요
- 완료하기 쉬운 작업의 공통 특징을 분석해주세요 (카테고리: {snapshot.most_completed_category} 등)
- 자주 미루거나 완료되지 않는 작업의 유형과 특징을 분석해주세요

### 4. 실행 가능한 추천
- 구체적이고 실천 가능한 시간 관리 팁 2-3가지를 제시해주세요
- 우선순위 조정이 필요한 항목이나 일정 재배치 제안을 구체적으로 해주세요
- 업무 과부하를 줄이기 위한 작업 분산 전략을 제시해주세요

### 5. 긍정적 피드백
- 사용자가 잘하고 있는 부분을 구체적으로 강조하고 칭찬해주세요
- 개선점을 지적할 때는 격려하고 동기부여하는 톤으로 작성해주세요
- 마지막에 "화이팅!" 또는 "좋은 일주일 되세요" 같은 긍정적인 메시지를 포함해주세요

### 6. 기간별 차별화
{_PERIOD_FOCUS[period]}

## 출력 형식:
1. **summary**: {label} 할 일 요약 (완료율, 주요 성과 포함)
2. **urgentTasks**: 긴급한 미완료 할 일 제목 목록 (최대 {MAX_URGENT_TASKS}개, 과거 마감일 포함)
3. **insights**: 완료율, 시간 관리, 생산성 패턴에 대한 분석 (각 2-3문장)
4. **recommendations**: 구체적이고 실행 가능한 추천 (각 한 문장, 최대 {MAX_RECOMMENDATIONS}개)

친근하고 격려하는 톤으로, 사용자의 노력을 인정하면서도 구체적인 개선 방향을 제시해주세요. 자연스럽고 이해하기 쉬운 한국어 문장으로 작성해주세요."""


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


# PUBLIC_INTERFACE
def coerce_summary(raw: Any, snapshot: StatisticsSnapshot) -> SummaryResult:
    """
    Shape generator output into a SummaryResult: non-string entries are dropped, list
    lengths are capped, and an empty urgent list falls back to the snapshot's
    unfinished high-priority titles.
    """
    fields = raw if isinstance(raw, dict) else {}
    summary = fields.get("summary")
    urgent = _strings(fields.get("urgentTasks")) or list(snapshot.urgent_titles)
    return SummaryResult(
        summary=summary.strip() if isinstance(summary, str) else "",
        urgentTasks=urgent[:MAX_URGENT_TASKS],
        insights=_strings(fields.get("insights")),
        recommendations=_strings(fields.get("recommendations"))[:MAX_RECOMMENDATIONS],
    )


# PUBLIC_INTERFACE
def summarize(
    todos: Sequence[TodoIn],
    period: str,
    generator: StructuredGenerator,
    reference: datetime,
    zone: Optional[tzinfo] = None,
) -> SummaryResult:
    """Aggregate ``todos``, prompt the generator, and return the coerced result."""
    snapshot = aggregate(todos, reference, zone)
    prompt = build_summary_prompt(todos, snapshot, period, reference.date())
    raw = generator.generate(prompt, SUMMARY_SCHEMA)
    return coerce_summary(raw, snapshot)
