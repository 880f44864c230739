"""Prompt construction for question generation."""

from __future__ import annotations

from itertools import groupby
from typing import Any, Dict, List, Sequence

from ..core.ladder import LADDER, difficulty_for_level

SYSTEM_PROMPT = (
    'You are a quiz question generator for "Who Wants to Be a Millionaire". '
    "Generate questions in the exact JSON format requested."
)

_FORMAT_EXAMPLE = """{
  "questions": [
    {
      "id": "unique-id-1",
      "category": "chosen category",
      "difficulty": "easy|medium|hard",
      "prompt": "Clear, concise question text?",
      "choices": ["Option A", "Option B", "Option C", "Option D"],
      "correctIndex": 0
    }
  ]
}"""


def _difficulty_lines() -> List[str]:
    lines: List[str] = []
    for tier, entries in groupby(LADDER, key=lambda entry: difficulty_for_level(entry.level)):
        levels = [entry.level for entry in entries]
        lines.append(f"- Questions {levels[0]}-{levels[-1]}: {tier.value}")
    return lines


def build_question_prompt(categories: Sequence[str], count: int) -> str:
    """Return the user prompt asking for ``count`` questions over ``categories``."""
    sections = [
        f'Generate {count} unique "Who Wants to Be a Millionaire" style questions.',
        "",
        f"Categories to choose from: {', '.join(categories)}",
        "",
        "Difficulty distribution:",
        *_difficulty_lines(),
        "",
        "Return ONLY valid JSON in this exact format:",
        _FORMAT_EXAMPLE,
        "",
        "Requirements:",
        "- Each question must have exactly 4 choices",
        "- correctIndex must be 0, 1, 2, or 3",
        "- Questions should be factual and have one clear correct answer",
        "- Avoid ambiguous or opinion-based questions",
        "- Make questions challenging but fair for the difficulty level",
        "- Ensure good variety across the selected categories",
    ]
    return "\n".join(sections)


def build_messages(
    categories: Sequence[str],
    count: int,
    *,
    system_role: bool = True,
) -> List[Dict[str, Any]]:
    """Build chat messages. Without a system role the instructions lead the user turn."""
    prompt = build_question_prompt(categories, count)
    if system_role:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
    return [{"role": "user", "content": f"{SYSTEM_PROMPT}\n\n{prompt}"}]
