"""Label assignment for ranking rows.

A label groups missions that describe the same habit ("영어 단어 20개 외우기"
and "영어 단어 30개 외우기" both become "영어 단어 외우기") so the popular
chart counts them together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from haruup.adapters.llm.base import AbstractLLMClient
from haruup.core.errors import LLMAppError

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 100

LABEL_SYSTEM_PROMPT = "당신은 미션 내용을 분석하여 대표 라벨(그룹명)을 생성하는 전문가입니다."

LABEL_PROMPT_TEMPLATE = """미션 내용을 분석하여 대표 라벨(그룹명)을 생성해주세요.

[규칙]
- 구체적인 숫자, 시간, 횟수는 제외하고 핵심 행동만 추출
- 10자 이내의 간결한 명사형으로 작성
- {{"label": "..."}} 형식의 JSON으로만 답변

[예시]
- "영어 단어 20개 외우기" → 영어 단어 외우기
- "30분 조깅하기" → 조깅하기
- "물 2L 마시기" → 물 마시기

[관심사 경로]
{interest_path}

[미션 내용]
{mission_content}
"""


def build_label_prompt(mission_content: str, interest_path: list[str] | None) -> str:
    path = " > ".join(interest_path) if interest_path else "없음"
    return LABEL_PROMPT_TEMPLATE.format(interest_path=path, mission_content=mission_content)


def clean_label(raw: object) -> str | None:
    """Strip quotes and whitespace and cap the length; blank results become None."""
    if not isinstance(raw, str):
        return None
    label = raw.replace('"', "").replace("'", "").strip()[:MAX_LABEL_LENGTH].strip()
    return label or None


@dataclass(frozen=True)
class LabelOutcome:
    label: str | None
    # True when the member mission already carried this label
    stored: bool


class RankingLabelService:
    """Reuses stored labels and asks the LLM for missing ones.

    Labels generated during one service lifetime are remembered by mission
    content, so identical missions in a batch share a label and cost one call.
    """

    def __init__(self, llm: AbstractLLMClient | None) -> None:
        self.llm = llm
        self._generated: dict[tuple[str, str], str] = {}

    async def generate_label(self, mission_content: str, interest_path: list[str] | None) -> str | None:
        """Ask the LLM for a label. Returns None on any provider failure."""
        if self.llm is None:
            return None

        try:
            data = await self.llm.generate_json(
                build_label_prompt(mission_content, interest_path),
                system_prompt=LABEL_SYSTEM_PROMPT,
                temperature=0.3,
            )
        except LLMAppError as exc:
            logger.error("ranking_label.generation_failed", extra={"error_code": exc.code})
            return None

        return clean_label(data.get("label"))

    async def process_label(
        self,
        member_mission_id: int,
        existing_label: str | None,
        mission_content: str,
        interest_path: list[str] | None,
    ) -> LabelOutcome:
        """Resolve the label for one member mission.

        Order: stored label, label generated earlier for the same content,
        fresh LLM label. ``label`` is None when every source fails.
        """
        existing = clean_label(existing_label)
        if existing:
            return LabelOutcome(label=existing, stored=True)

        cache_key = (mission_content.strip(), " > ".join(interest_path or []))
        cached = self._generated.get(cache_key)
        if cached:
            logger.debug("ranking_label.reused_in_run", extra={"member_mission_id": member_mission_id})
            return LabelOutcome(label=cached, stored=False)

        label = await self.generate_label(mission_content, interest_path)
        if label is None:
            logger.warning("ranking_label.missing", extra={"member_mission_id": member_mission_id})
            return LabelOutcome(label=None, stored=False)

        self._generated[cache_key] = label
        logger.info("ranking_label.generated", extra={"member_mission_id": member_mission_id, "label": label})
        return LabelOutcome(label=label, stored=False)
