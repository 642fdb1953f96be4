from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict

from .llm import Schema, StructuredGenerator
from .timeutil import WEEKDAY_NAMES

# Draft schema in the Generative Language API's OpenAPI subset.
TODO_DRAFT_SCHEMA: Schema = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "할 일의 제목"},
        "description": {"type": "STRING", "description": "할 일의 상세 설명"},
        "due_date": {"type": "STRING", "description": "마감일 (YYYY-MM-DD 형식)"},
        "due_time": {"type": "STRING", "description": "마감 시간 (HH:MM 형식, 24시간제)"},
        "priority": {
            "type": "STRING",
            "enum": ["high", "medium", "low"],
            "description": "우선순위 (high/medium/low)",
        },
        "category": {"type": "STRING", "description": "카테고리 (업무/개인/건강/학습)"},
    },
    "required": ["title", "due_date", "priority"],
}

_PROMPT_TEMPLATE = """다음 자연어 입력을 할 일 데이터로 변환해주세요. 오늘은 {today} ({weekday}요일)입니다.

입력: "{text}"

다음 규칙을 **반드시** 따르세요:

## 1. 날짜 처리 규칙 (due_date: YYYY-MM-DD 형식)
- "오늘" → {today} (현재 날짜)
- "내일" → {tomorrow} (현재 날짜 + 1일)
- "모레" → {day_after} (현재 날짜 + 2일)
- "이번 주 [요일]" → 가장 가까운 해당 요일 (이번 주 내)
- "다음 주 [요일]" → 다음 주의 해당 요일
- 구체적인 날짜가 명시되지 않았으면 오늘({today})로 설정

## 2. 시간 처리 규칙 (due_time: HH:MM 형식, 24시간제)
- "아침" → 09:00
- "점심" → 12:00
- "오후" → 14:00
- "저녁" → 18:00
- "밤" → 21:00
- 구체적인 시간이 명시되지 않았거나 불명확하면 기본값 "09:00" 사용
- "오전 N시" → 0N:00 형식 (예: 오전 10시 = 10:00)
- "오후 N시" → (N+12):00 형식 (예: 오후 3시 = 15:00)
- "PM N시" → (N+12):00 형식

## 3. 우선순위 판단 규칙 (priority)
- **high**: "급하게", "중요한", "빨리", "꼭", "반드시" 등의 키워드가 포함된 경우
- **medium**: "보통", "적당히" 또는 우선순위 관련 키워드가 없는 경우 (기본값)
- **low**: "여유롭게", "천천히", "언젠가" 등의 키워드가 포함된 경우

## 4. 카테고리 분류 규칙 (category, 선택사항)
- **업무**: "회의", "보고서", "프로젝트", "업무" 등의 키워드
- **개인**: "쇼핑", "친구", "가족", "개인" 등의 키워드
- **건강**: "운동", "병원", "건강", "요가" 등의 키워드
- **학습**: "공부", "책", "강의", "학습" 등의 키워드
- 카테고리가 불명확하면 생략

## 5. 출력 형식
- title: 할 일의 핵심 제목만 추출 (간결하게, 최대 100자)
- description: 입력 내용을 바탕으로 상세 설명 생성 (선택사항, 없으면 생략)
- due_date: YYYY-MM-DD 형식 (예: "{tomorrow}")
- due_time: HH:MM 형식 (예: "15:00")
- priority: "high", "medium", "low" 중 하나
- category: "업무", "개인", "건강", "학습" 중 하나 또는 생략

위 규칙을 정확히 따라 JSON 형식으로 응답해주세요."""


# PUBLIC_INTERFACE
def build_extraction_prompt(text: str, today: date) -> str:
    """
    Render the extraction prompt for already-normalized ``text``.

    Relative date words are only meaningful against a concrete anchor, so today,
    tomorrow and the day after tomorrow are written out as literal dates.
    """
    return _PROMPT_TEMPLATE.format(
        today=today.isoformat(),
        weekday=WEEKDAY_NAMES[today.weekday()],
        tomorrow=(today + timedelta(days=1)).isoformat(),
        day_after=(today + timedelta(days=2)).isoformat(),
        text=text,
    )


# PUBLIC_INTERFACE
def extract(text: str, today: date, generator: StructuredGenerator) -> Dict[str, Any]:
    """
    Ask the generator for a draft todo. The draft is unvalidated; run it through
    ``postprocess.postprocess``. Generator failures propagate unchanged.
    """
    return generator.generate(build_extraction_prompt(text, today), TODO_DRAFT_SCHEMA)
