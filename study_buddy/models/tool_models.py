"""Pydantic models for the study tools endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SummarizeRequest(BaseModel):
    text: str = ""
    summary_length: Literal["short", "medium", "long"] = "medium"
    summary_style: Literal["concise", "detailed", "bullets"] = "concise"


class SummarizeResponse(BaseModel):
    success: bool = True
    summary: str
    word_count: int


class QuizRequest(BaseModel):
    """Quiz options. `topic` is the single-topic form of `topics`."""

    model_config = ConfigDict(populate_by_name=True)

    topics: list[str] | None = None
    topic: str | None = None
    difficulty: str | None = None
    num_questions: int | str | None = Field(None, alias="numQuestions")


class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: list[str]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str


class QuizResponse(BaseModel):
    success: bool = True
    quiz: list[QuizQuestion]
