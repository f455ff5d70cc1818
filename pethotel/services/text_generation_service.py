"""Owner-facing text generation through an OpenAI-compatible chat endpoint."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Protocol

from openai import OpenAI, OpenAIError

from pethotel.domain.models import (
    CareMentalStatus,
    FeedingStatus,
    LitterStatus,
    Pet,
    PreCheckRecord,
)
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)


class GenerationError(Exception):
    """Raised when the text generator is disabled or the call fails."""


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


class OpenAITextGenerator:
    """Single-turn chat completions; any OpenAI-compatible ``base_url`` works."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Any] = None) -> None:
        self._settings = settings or get_settings()
        if client is not None:
            self._client = client
        elif self._settings.text_generation_api_key:
            self._client = OpenAI(
                api_key=self._settings.text_generation_api_key,
                base_url=self._settings.text_generation_base_url,
                timeout=self._settings.text_generation_timeout_seconds,
            )
        else:
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def generate(self, prompt: str) -> str:
        if self._client is None:
            raise GenerationError(
                "Text generation is not configured. Set TEXT_GENERATION_API_KEY."
            )
        try:
            response = self._client.chat.completions.create(
                model=self._settings.text_generation_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._settings.text_generation_temperature,
            )
        except OpenAIError as exc:
            raise GenerationError(f"Text generation failed: {exc}") from exc
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationError("Text generation returned an empty response")
        return content.strip()


# --- prompts ----------------------------------------------------------------


def pre_check_summary_prompt(pet: Pet, record: PreCheckRecord) -> str:
    observations = "\n".join(
        f"{label}：{value.value}" for label, value in record.observations().items()
    )
    abnormal = record.abnormal_findings()
    abnormal_text = "、".join(f"{label}（{value}）" for label, value in abnormal.items()) or "無"
    return (
        f"你是寵物旅館專業管家。請根據以下檢查數據，為家長 {pet.owner_name} 寫一段溫馨且專業的"
        f"入館確認訊息，告訴家長毛孩 {pet.name} 已經順利接手並完成檢查。\n"
        f"體重：{record.weight} kg\n"
        f"{observations}\n"
        f"攜帶物品：{record.belongings or '無'}\n"
        f"異常項：{abnormal_text}\n"
        "繁體中文，語氣要讓家長感到安心與專業。請針對「異常項」給予溫馨提醒。150字內。"
    )


def care_message_prompt(
    pet: Pet,
    feeding: FeedingStatus,
    litter: LitterStatus,
    mental: CareMentalStatus,
) -> str:
    return (
        f"你是寵物旅館的管家，正在用親切、溫馨、像是在聊天分享趣聞的口氣跟 {pet.name} 的家長回報今日狀況。\n"
        f"數據：食慾 {feeding.value}, 精神活力 {mental.value}, 排便狀況 {litter.value}。\n"
        "請寫一段約 60 字的生活化訊息，包含這孩子今天在旅館的小細節或情緒，讓家長聽了會覺得心暖暖的。繁體中文。"
    )


def describe_pet(pet: Pet) -> str:
    return "\n".join(
        [
            f"名字：{pet.name}",
            f"品種：{pet.breed or '未填寫'}",
            f"年齡：{pet.age}",
            f"醫療備註：{pet.medical_notes or '無'}",
            f"飲食需求：{pet.dietary_needs or '無'}",
            f"過敏原：{pet.allergens or '無'}",
        ]
    )


def care_tips_prompt(pet: Pet) -> str:
    return f"請根據以下寵物資訊，提供專業的住宿照顧建議（繁體中文）：\n{describe_pet(pet)}"


def welcome_message_prompt(pet: Pet) -> str:
    return (
        f"身為寵物旅館經理，請寫一段親切、專業、充滿關懷的歡迎訊息給家長 {pet.owner_name}，"
        f"歡迎他們的毛孩 {pet.name} 入住。請使用繁體中文，語氣溫馨。"
    )


def pet_search_prompt(query: str, pets: Iterable[Pet]) -> str:
    context = [
        {
            "id": pet.id,
            "name": pet.name,
            "breed": pet.breed,
            "gender": pet.gender.value,
            "medical": pet.medical_notes,
            "allergens": pet.allergens,
            "diet": pet.dietary_needs,
        }
        for pet in pets
    ]
    return (
        f"你是一個專業的寵物管理助手。請根據以下毛孩清單，找出符合描述「{query}」的所有毛孩 ID。\n"
        f"毛孩數據：{json.dumps(context, ensure_ascii=False)}\n"
        '請僅返回一個包含符合條件 ID 的 JSON 陣列，例如：["p1", "p3"]。'
        "如果沒有符合條件的，請返回空陣列 []。不要包含任何解釋文字。"
    )


def parse_id_list(text: str) -> list[str]:
    """Read a JSON array of ids, tolerating markdown fences or surrounding prose."""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end < start:
        raise GenerationError("Expected a JSON array of pet ids")
    try:
        values = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Could not parse pet id list: {exc}") from exc
    if not isinstance(values, list):
        raise GenerationError("Expected a JSON array of pet ids")
    return [str(value) for value in values]
