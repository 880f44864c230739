"""Pydantic contracts for quiz questions and generated question payloads."""

import time
from typing import Any, Dict, List, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .ladder import Difficulty

CHOICE_COUNT = 4
DEFAULT_CATEGORY = "General Knowledge"


class Question(BaseModel):
    """A single multiple-choice question. Instances are immutable."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    category: str = DEFAULT_CATEGORY
    difficulty: Difficulty = Difficulty.EASY
    prompt: str = Field(..., min_length=1)
    choices: Tuple[str, str, str, str]
    correct_index: int = Field(..., ge=0, le=CHOICE_COUNT - 1, alias="correctIndex")

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready wire form (``correctIndex`` spelling)."""
        return self.model_dump(mode="json", by_alias=True)


class SchemaValidationError(Exception):
    """Raised when a generated payload fails schema validation."""

    def __init__(self, source: str, errors: list):
        self.source = source
        self.errors = errors
        super().__init__(f"Validation failed for {source} payload: {errors}")


def validate_questions(payload: Any, *, source: str = "generated") -> List[Question]:
    """Validate raw generated questions and normalise them into :class:`Question` records.

    Missing or repeated ids, missing categories and missing difficulties are filled in,
    and prompt/choice text is stripped. Anything structurally wrong (non-list payload, wrong choice count,
    correct index outside 0-3) raises :class:`SchemaValidationError`.
    """
    if not isinstance(payload, list):
        raise SchemaValidationError(source, ["Questions must be an array"])

    stamp = int(time.time() * 1000)
    questions: List[Question] = []
    seen_ids: Set[str] = set()
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise SchemaValidationError(source, [f"Invalid question format at index {index}"])

        prompt = item.get("prompt")
        choices = item.get("choices")
        if (
            not isinstance(prompt, str)
            or not prompt.strip()
            or not isinstance(choices, list)
            or len(choices) != CHOICE_COUNT
        ):
            raise SchemaValidationError(source, [f"Invalid question format at index {index}"])

        correct_index = item.get("correctIndex", item.get("correct_index"))
        if (
            not isinstance(correct_index, int)
            or isinstance(correct_index, bool)
            or not 0 <= correct_index < CHOICE_COUNT
        ):
            raise SchemaValidationError(source, [f"Invalid correctIndex at index {index}"])

        # Ids must be unique within a batch; repeats get a generated id
        question_id = str(item.get("id") or "")
        if not question_id or question_id in seen_ids:
            question_id = f"generated-{stamp}-{index}"
        seen_ids.add(question_id)

        try:
            questions.append(
                Question(
                    id=question_id,
                    category=item.get("category") or DEFAULT_CATEGORY,
                    difficulty=item.get("difficulty") or Difficulty.EASY,
                    prompt=prompt.strip(),
                    choices=tuple(str(choice).strip() for choice in choices),
                    correct_index=correct_index,
                )
            )
        except ValidationError as exc:
            raise SchemaValidationError(source, exc.errors()) from exc

    return questions
