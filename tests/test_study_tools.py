"""Tests for quiz option handling and model-output parsing."""

import json

import pytest

from study_buddy.models.tool_models import QuizRequest
from study_buddy.services.errors import InvalidOption, ModelCallFailed, NoContentProvided
from study_buddy.services.study_tools import (
    DEFAULT_EXPLANATION,
    join_topics,
    parse_quiz,
    question_count,
    quiz_topics,
)


def test_join_topics():
    assert join_topics(["cells"]) == "cells"
    assert join_topics(["cells", "tissues"]) == "cells and tissues"
    assert join_topics(["cells", "tissues", "organs"]) == "cells, tissues and organs"


def test_topics_list_wins_over_single_topic():
    body = QuizRequest(topics=["cells", "  "], topic="ignored")
    assert quiz_topics(body) == ["cells"]
    assert quiz_topics(QuizRequest(topic=" genetics ")) == ["genetics"]


def test_blank_topics_are_rejected():
    with pytest.raises(NoContentProvided):
        quiz_topics(QuizRequest(topic="   "))
    with pytest.raises(NoContentProvided):
        quiz_topics(QuizRequest())


@pytest.mark.parametrize(
    "value, expected",
    [(None, 5), (0, 5), ("7", 7), (" 3 ", 3), (50, 20), ("100", 20), (-4, 1)],
)
def test_question_count(value, expected):
    assert question_count(value) == expected


def test_question_count_rejects_words():
    with pytest.raises(InvalidOption):
        question_count("ten")


def test_parse_quiz_limits_count_and_skips_junk():
    raw = json.dumps(
        [
            "not an object",
            {"options": ["a", "b", "c", "d"]},
            {"question": "Q1", "options": ["a", "b", "c", "d", "e"], "correctAnswer": "e"},
            {"question": "Q2", "options": ["a", "b", "c", "d"], "correctAnswer": "c", "explanation": "x"},
            {"question": "Q3", "options": ["a", "b", "c", "d"], "correctAnswer": "a"},
        ]
    )
    questions = parse_quiz(raw, 2)
    assert [q.question for q in questions] == ["Q1", "Q2"]
    assert questions[0].options == ["a", "b", "c", "d"]
    assert questions[0].correct_answer == "a"
    assert questions[0].explanation == DEFAULT_EXPLANATION
    assert questions[1].correct_answer == "c"


def test_parse_quiz_pads_missing_options():
    questions = parse_quiz('[{"question": "Q", "correctAnswer": "Option 2"}]', 5)
    assert questions[0].options == ["Option 1", "Option 2", "Option 3", "Option 4"]
    assert questions[0].correct_answer == "Option 2"


@pytest.mark.parametrize("raw", ["not json", '{"question": "Q"}', "[]", '["a", "b"]'])
def test_parse_quiz_unusable_output(raw):
    with pytest.raises(ModelCallFailed):
        parse_quiz(raw, 5)
