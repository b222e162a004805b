"""Model-backed study tools: questions about PDFs, summaries and quizzes."""

from __future__ import annotations

import json
import logging

from study_buddy.models.ingest_models import UploadedDocument
from study_buddy.models.llm_models import Attachment
from study_buddy.models.tool_models import QuizQuestion, QuizRequest, SummarizeRequest
from study_buddy.services.errors import InvalidOption, ModelCallFailed, NoContentProvided
from study_buddy.services.generation import generate, strip_markdown_fences
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.prompts import (
    build_direct_query_prompt,
    build_pdf_query_prompt,
    build_quiz_prompt,
    build_summary_prompt,
)
from study_buddy.services.upload_validator import PDF_MEDIA_TYPE

logger = logging.getLogger(__name__)

MIN_SUMMARY_CHARS = 100

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 20
OPTIONS_PER_QUESTION = 4
DEFAULT_EXPLANATION = "This is the correct answer based on the topic."


def require_query(query: str | None) -> str:
    if not query or not query.strip():
        raise NoContentProvided("No query provided")
    return query.strip()


async def answer_pdf_query(
    query: str | None, pdf_text: str | None, provider: BaseLLMProvider
) -> str:
    query = require_query(query)
    if not pdf_text or not pdf_text.strip():
        raise NoContentProvided("No PDF content provided")
    logger.info("PDF query: %d chars of question, %d chars of text", len(query), len(pdf_text))
    return await generate(
        provider,
        build_pdf_query_prompt(query, pdf_text),
        error_message="Failed to process your question about the PDF",
        temperature=0.2,
        max_tokens=1000,
    )


async def answer_direct_query(
    query: str | None, document: UploadedDocument, provider: BaseLLMProvider
) -> str:
    """Send the PDF itself to the model along with the question."""
    query = require_query(query)
    attachment = Attachment(
        mime_type=PDF_MEDIA_TYPE, data=document.content, filename=document.filename
    )
    logger.info("Direct PDF query for %s (%d bytes)", document.filename, document.byte_size)
    return await generate(
        provider,
        build_direct_query_prompt(query),
        attachments=[attachment],
        error_message="Failed to process your question about the PDF",
        temperature=0.2,
        max_tokens=1000,
    )


async def summarize(body: SummarizeRequest, provider: BaseLLMProvider) -> str:
    if len(body.text.strip()) < MIN_SUMMARY_CHARS:
        raise NoContentProvided(
            f"Please provide at least {MIN_SUMMARY_CHARS} characters of text to summarize"
        )
    return await generate(
        provider,
        build_summary_prompt(body.text, body.summary_length, body.summary_style),
        error_message="Failed to generate summary",
        temperature=0.2,
        max_tokens=1000,
    )


def quiz_topics(body: QuizRequest) -> list[str]:
    topics = body.topics if body.topics is not None else [body.topic or ""]
    topics = [t.strip() for t in topics if t and t.strip()]
    if not topics:
        raise NoContentProvided("At least one topic is required")
    return topics


def join_topics(topics: list[str]) -> str:
    """Join topics as "a", "a and b" or "a, b and c"."""
    if len(topics) == 1:
        return topics[0]
    return f"{', '.join(topics[:-1])} and {topics[-1]}"


def question_count(value: int | str | None) -> int:
    """Requested count clamped to 1..MAX_QUESTION_COUNT; missing or 0 means the default."""
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidOption("numQuestions must be a whole number") from None
    if not value:
        return DEFAULT_QUESTION_COUNT
    return max(1, min(value, MAX_QUESTION_COUNT))


def _normalize_question(item: dict) -> QuizQuestion | None:
    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        return None

    raw_options = item.get("options")
    options = [str(o) for o in raw_options] if isinstance(raw_options, list) else []
    options = options[:OPTIONS_PER_QUESTION]
    while len(options) < OPTIONS_PER_QUESTION:
        options.append(f"Option {len(options) + 1}")

    answer = item.get("correctAnswer")
    if answer not in options:
        answer = options[0]

    explanation = item.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        explanation = DEFAULT_EXPLANATION

    return QuizQuestion(
        question=question.strip(), options=options, correct_answer=answer, explanation=explanation
    )


def parse_quiz(raw: str, count: int) -> list[QuizQuestion]:
    """Parse the model's JSON array into at most `count` well-formed questions.

    Missing options are padded to four, an answer that is not one of the
    options becomes the first option, and a missing explanation gets a
    generic one. Raises ModelCallFailed when nothing usable comes back.
    """
    try:
        data = json.loads(strip_markdown_fences(raw))
    except json.JSONDecodeError as exc:
        logger.warning("Quiz: model output is not valid JSON (%s)", exc)
        raise ModelCallFailed("Failed to generate quiz") from exc
    if not isinstance(data, list):
        logger.warning("Quiz: expected a JSON array, got %s", type(data).__name__)
        raise ModelCallFailed("Failed to generate quiz")

    questions = []
    for item in data:
        if not isinstance(item, dict):
            continue
        question = _normalize_question(item)
        if question is not None:
            questions.append(question)
        if len(questions) == count:
            break
    if not questions:
        raise ModelCallFailed("Failed to generate quiz")
    return questions


async def generate_quiz(body: QuizRequest, provider: BaseLLMProvider) -> list[QuizQuestion]:
    topics = quiz_topics(body)
    difficulty = body.difficulty or "medium"
    if difficulty not in DIFFICULTIES:
        raise InvalidOption(f"Invalid difficulty. Must be one of: {', '.join(DIFFICULTIES)}")
    count = question_count(body.num_questions)

    logger.info("Quiz: %d topic(s), %s difficulty, %d questions", len(topics), difficulty, count)
    raw = await generate(
        provider,
        build_quiz_prompt(join_topics(topics), difficulty, count),
        error_message="Failed to generate quiz",
        temperature=0.7,
        max_tokens=2000,
        json_output=True,
    )
    return parse_quiz(raw, count)
