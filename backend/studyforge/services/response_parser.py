"""
StudyForge Backend — Response Parser / Validator
==================================================

What:  Turns free-text model answers into validated Flashcard and QuizQuestion lists.
Why:   Models are asked for "only a JSON array" but routinely wrap it in markdown
       fences or add a sentence before or after it.
How:   Strip fences → locate the outermost [...] → json.loads → coerce each record.
       Records missing required fields are dropped, never raised.

Failure mapping:
    no [...] pair in the text   → MalformedGenerationOutput
    json.loads fails            → MalformedGenerationOutput
    JSON is not a list          → UnexpectedOutputShape (flashcards)
    nothing valid left          → UnexpectedOutputShape (quiz only)
"""

import json
import logging
import re
from typing import Any, List, Optional

from studyforge.exceptions import MalformedGenerationOutput, UnexpectedOutputShape
from studyforge.schemas.generation import (
    FLASHCARD_DIFFICULTIES,
    QUIZ_DIFFICULTIES,
    Flashcard,
    QuizQuestion,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

MIN_QUIZ_OPTIONS = 2
MAX_QUIZ_OPTIONS = 6
DEFAULT_TIME_LIMIT = 60
DEFAULT_POINTS = 10


def strip_fences(raw_text: str) -> str:
    return _FENCE_RE.sub("", raw_text or "").strip()


def extract_json_array(raw_text: str) -> str:
    """
    Locate the JSON array inside a model answer.

    Returns the whole text when it already is a bracketed array, otherwise the
    slice from the first "[" to the last "]".

    Raises:
        MalformedGenerationOutput: No bracket pair present.
    """
    text = strip_fences(raw_text)
    if text.startswith("[") and text.endswith("]"):
        return text

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        return text[start:end + 1]

    raise MalformedGenerationOutput(
        message="The AI response did not contain a JSON array.",
        context={"preview": text[:200]},
    )


def _load_json(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("AI response is not valid JSON: %s", exc)
        raise MalformedGenerationOutput(
            cause=exc,
            context={"preview": candidate[:200]},
        ) from exc


def normalize_difficulty(value: Any) -> str:
    """Lower-case; "hard" becomes "advanced"; anything else unknown becomes "medium"."""
    if not value:
        return "medium"
    difficulty = str(value).strip().lower()
    if difficulty == "hard":
        return "advanced"
    return difficulty if difficulty in FLASHCARD_DIFFICULTIES else "medium"


def _quiz_difficulty(value: Any) -> str:
    difficulty = normalize_difficulty(value)
    if difficulty == "advanced":
        return "hard"
    return difficulty if difficulty in QUIZ_DIFFICULTIES else "medium"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _text_list(value: Any, unique: bool = False) -> List[str]:
    if not isinstance(value, list):
        return []
    items = [_text(item) for item in value]
    items = [item for item in items if item]
    if unique:
        items = list(dict.fromkeys(items))
    return items


def parse_flashcards(raw_text: str, fallback_subject: str = "General Studies") -> List[Flashcard]:
    """
    Parse a model answer into flashcards.

    Args:
        raw_text:         The model's answer, possibly fenced or wrapped in prose.
        fallback_subject: Subject for cards that do not name one.

    Returns:
        Valid flashcards in answer order (may be empty).

    Raises:
        MalformedGenerationOutput: No JSON array could be found or decoded.
        UnexpectedOutputShape:     The decoded JSON is not a list.
    """
    data = _load_json(extract_json_array(raw_text))
    if not isinstance(data, list):
        raise UnexpectedOutputShape(
            message="The AI returned an unexpected format (expected a list of flashcards).",
            context={"type": type(data).__name__},
        )

    cards: List[Flashcard] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        question = _text(item.get("question"))
        answer = _text(item.get("answer"))
        if not question or not answer:
            continue
        cards.append(Flashcard(
            question=question,
            answer=answer,
            hint=_text(item.get("hint")),
            difficulty=normalize_difficulty(item.get("difficulty")),
            subject=_text(item.get("subject")) or fallback_subject,
            tags=_text_list(item.get("tags"), unique=True),
            examples=_text_list(item.get("examples")),
        ))

    dropped = len(data) - len(cards)
    if dropped:
        logger.info("Dropped %d invalid flashcard records", dropped)
    return cards


def _extract_quiz_json(raw_text: str) -> str:
    text = strip_fences(raw_text)
    object_start = text.find("{")
    array_start = text.find("[")
    # A single question may come back as a bare object
    if object_start != -1 and (array_start == -1 or object_start < array_start):
        end = text.rfind("}")
        if end > object_start:
            return text[object_start:end + 1]
    return extract_json_array(text)


def _answer_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _time_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_TIME_LIMIT
    return limit if limit > 0 else DEFAULT_TIME_LIMIT


def parse_quiz_questions(raw_text: str, subject: str, max_questions: int) -> List[QuizQuestion]:
    """
    Parse a model answer into multiple-choice questions.

    A question is kept when it has text, 2 to 6 non-empty options, and an
    integer correctAnswer indexing a non-empty entry of the options as sent.
    Blank options are dropped and the answer index is shifted to match.
    At most `max_questions` are returned.

    Raises:
        MalformedGenerationOutput: No JSON could be found or decoded.
        UnexpectedOutputShape:     No valid question survived validation.
    """
    data = _load_json(_extract_quiz_json(raw_text))
    if not isinstance(data, list):
        data = [data]

    questions: List[QuizQuestion] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        question = _text(item.get("question"))
        raw_options = item.get("options")
        if not question or not isinstance(raw_options, list):
            continue
        texts = [_text(opt) for opt in raw_options]
        options = [opt for opt in texts if opt]
        if not MIN_QUIZ_OPTIONS <= len(options) <= MAX_QUIZ_OPTIONS:
            continue
        answer = _answer_index(item.get("correctAnswer", item.get("correct_answer")))
        if answer is None or not 0 <= answer < len(texts) or not texts[answer]:
            continue
        answer -= sum(1 for opt in texts[:answer] if not opt)

        questions.append(QuizQuestion(
            question=question,
            options=options,
            correct_answer=answer,
            explanation=_text(item.get("explanation")),
            category=_text(item.get("category")) or subject,
            difficulty=_quiz_difficulty(item.get("difficulty")),
            subject=subject,
            tags=list(dict.fromkeys(tag.lower() for tag in _text_list(item.get("tags")))),
            time_limit=_time_limit(item.get("timeLimit", item.get("time_limit"))),
            points=DEFAULT_POINTS,
        ))
        if len(questions) >= max_questions:
            break

    if not questions:
        raise UnexpectedOutputShape(
            message="No valid questions were generated from this content.",
            context={"records": len(data)},
        )
    return questions
