"""
StudyForge Backend — Response Parser Tests
============================================

What:  Tests for the JSON-in-free-text parsing of flashcards and quiz questions.

What we test:
    ✅ Fenced / prose-wrapped arrays are located
    ✅ Invalid records dropped, valid ones coerced
    ✅ Difficulty normalization
    ✅ Malformed and wrongly shaped output → typed errors
    ✅ Quiz option / answer validation and max_questions cap
"""

import json

import pytest

from studyforge.exceptions import MalformedGenerationOutput, UnexpectedOutputShape
from studyforge.services.response_parser import (
    extract_json_array,
    normalize_difficulty,
    parse_flashcards,
    parse_quiz_questions,
    strip_fences,
)


def _quiz_item(**overrides):
    item = {
        "question": "What do plants convert light into?",
        "options": ["Chemical energy", "Sound", "Heat only", "Magnetism"],
        "correctAnswer": 0,
        "explanation": "Photosynthesis stores light as chemical energy.",
        "category": "Biology",
        "difficulty": "easy",
        "timeLimit": 45,
    }
    item.update(overrides)
    return item


class TestArrayExtraction:
    def test_fenced_json(self):
        raw = '```json\n[{"question": "Q", "answer": "A"}]\n```'
        assert extract_json_array(raw) == '[{"question": "Q", "answer": "A"}]'

    def test_array_inside_prose(self):
        raw = 'Here are your cards:\n[{"question": "Q", "answer": "A"}]\nGood luck!'
        assert json.loads(extract_json_array(raw)) == [{"question": "Q", "answer": "A"}]

    def test_no_brackets(self):
        with pytest.raises(MalformedGenerationOutput):
            extract_json_array("I could not create flashcards from this.")

    def test_strip_fences_handles_none(self):
        assert strip_fences(None) == ""


class TestDifficulty:
    @pytest.mark.parametrize("value,expected", [
        ("easy", "easy"),
        ("MEDIUM", "medium"),
        ("hard", "advanced"),
        ("HARD", "advanced"),
        ("unknown", "medium"),
        ("Advanced", "advanced"),
        ("impossible", "medium"),
        (None, "medium"),
        ("", "medium"),
    ])
    def test_normalize(self, value, expected):
        assert normalize_difficulty(value) == expected


class TestParseFlashcards:
    def test_fenced_answer_with_preamble(self):
        raw = 'Here you go:\n```json\n[{"question":"Q1","answer":"A1"}]\n```'

        cards = parse_flashcards(raw)

        assert len(cards) == 1
        card = cards[0]
        assert (card.question, card.answer, card.difficulty) == ("Q1", "A1", "medium")
        assert card.tags == [] and card.examples == [] and card.hint == ""

    def test_blank_question_dropped(self):
        raw = '[{"question":"","answer":"A"}, {"question":"Q","answer":"A"}]'
        assert [c.question for c in parse_flashcards(raw)] == ["Q"]

    def test_valid_cards(self):
        raw = json.dumps([
            {
                "question": " What is ATP? ",
                "answer": "The cell's energy currency",
                "hint": "Adenosine...",
                "difficulty": "hard",
                "subject": "Biology",
                "tags": ["cells", "energy", "cells"],
                "examples": ["Muscle contraction uses ATP"],
            },
        ])

        cards = parse_flashcards(raw)

        assert len(cards) == 1
        card = cards[0]
        assert card.question == "What is ATP?"
        assert card.difficulty == "advanced"
        assert card.subject == "Biology"
        assert card.tags == ["cells", "energy"]
        assert card.examples == ["Muscle contraction uses ATP"]

    def test_incomplete_records_dropped(self):
        raw = json.dumps([
            {"question": "Kept?", "answer": "Yes"},
            {"question": "No answer"},
            {"answer": "No question"},
            {"question": "   ", "answer": "Blank question"},
            "not an object",
        ])

        cards = parse_flashcards(raw)

        assert [c.question for c in cards] == ["Kept?"]

    def test_defaults_applied(self):
        cards = parse_flashcards('[{"question": "Q", "answer": "A", "tags": "oops"}]', "Chemistry")

        assert cards[0].subject == "Chemistry"
        assert cards[0].difficulty == "medium"
        assert cards[0].hint == ""
        assert cards[0].tags == []

    def test_empty_array_is_empty_list(self):
        assert parse_flashcards("[]") == []

    def test_invalid_json(self):
        with pytest.raises(MalformedGenerationOutput):
            parse_flashcards('[{"question": "Q", "answer": }]')

    def test_array_wrapped_in_object(self):
        """The outermost bracket pair is used even when an object wraps it."""
        cards = parse_flashcards('{"cards": [{"question": "Q", "answer": "A"}]}')
        assert [c.answer for c in cards] == ["A"]

    def test_two_arrays_are_malformed(self):
        with pytest.raises(MalformedGenerationOutput):
            parse_flashcards('[{"question": "Q", "answer": "A"}] and [{"question": "R"}]')


class TestParseQuiz:
    def test_valid_question(self):
        raw = "```json\n" + json.dumps([_quiz_item(tags=["Plants", "plants", "Energy"])]) + "\n```"

        questions = parse_quiz_questions(raw, subject="Biology", max_questions=5)

        assert len(questions) == 1
        q = questions[0]
        assert q.correct_answer == 0
        assert q.difficulty == "easy"
        assert q.time_limit == 45
        assert q.points == 10
        assert q.subject == "Biology"
        assert q.tags == ["plants", "energy"]

    def test_hard_stays_hard(self):
        questions = parse_quiz_questions(json.dumps([_quiz_item(difficulty="hard")]), "Bio", 5)
        assert questions[0].difficulty == "hard"

    def test_snake_case_answer_accepted(self):
        item = _quiz_item()
        del item["correctAnswer"]
        item["correct_answer"] = 2
        questions = parse_quiz_questions(json.dumps([item]), "Bio", 5)
        assert questions[0].correct_answer == 2

    @pytest.mark.parametrize("overrides", [
        {"correctAnswer": 4},
        {"correctAnswer": -1},
        {"correctAnswer": "0"},
        {"correctAnswer": True},
        {"options": ["Only one"]},
        {"options": ["a", "b", "c", "d", "e", "f", "g"]},
        {"options": "A, B, C"},
        {"question": ""},
    ])
    def test_invalid_questions_dropped(self, overrides):
        raw = json.dumps([_quiz_item(), _quiz_item(**overrides)])

        questions = parse_quiz_questions(raw, "Bio", 5)

        assert len(questions) == 1

    def test_blank_options_removed_before_counting(self):
        item = _quiz_item(options=["A", "  ", "B"], correctAnswer=2)
        questions = parse_quiz_questions(json.dumps([item]), "Bio", 5)
        assert questions[0].options == ["A", "B"]
        assert questions[0].correct_answer == 1

    def test_answer_follows_its_option_when_blanks_removed(self):
        item = _quiz_item(
            question="What is the capital of Italy?",
            options=["", "Paris", "Rome", "Oslo"],
            correctAnswer=2,
        )

        q = parse_quiz_questions(json.dumps([item]), "Geography", 5)[0]

        assert q.options == ["Paris", "Rome", "Oslo"]
        assert q.options[q.correct_answer] == "Rome"

    def test_answer_pointing_at_blank_option_dropped(self):
        raw = json.dumps([
            _quiz_item(),
            _quiz_item(options=["Paris", " ", "Rome", "Oslo"], correctAnswer=1),
        ])

        questions = parse_quiz_questions(raw, "Geography", 5)

        assert len(questions) == 1
        assert questions[0].options[0] == "Chemical energy"

    def test_max_questions_cap(self):
        raw = json.dumps([_quiz_item(question=f"Q{i}?") for i in range(8)])

        questions = parse_quiz_questions(raw, "Bio", max_questions=3)

        assert [q.question for q in questions] == ["Q0?", "Q1?", "Q2?"]

    def test_single_object_accepted(self):
        raw = "Here you go: " + json.dumps(_quiz_item())
        questions = parse_quiz_questions(raw, "Bio", 5)
        assert len(questions) == 1

    def test_missing_fields_defaulted(self):
        item = _quiz_item()
        for key in ("explanation", "category", "difficulty", "timeLimit"):
            del item[key]

        q = parse_quiz_questions(json.dumps([item]), "Physics", 5)[0]

        assert q.category == "Physics"
        assert q.difficulty == "medium"
        assert q.time_limit == 60
        assert q.explanation == ""

    def test_nothing_valid(self):
        with pytest.raises(UnexpectedOutputShape):
            parse_quiz_questions(json.dumps([{"question": "Q?"}]), "Bio", 5)

    def test_no_json_at_all(self):
        with pytest.raises(MalformedGenerationOutput):
            parse_quiz_questions("Sorry, I cannot help with that.", "Bio", 5)
