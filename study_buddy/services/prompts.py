"""Prompt templates for mind maps, PDF questions, image transcription and summaries."""

from __future__ import annotations

import re

from study_buddy.models.ingest_models import OutlineLine

_MAX_USER_INPUT_LEN = 30_000
MAX_PDF_QUERY_CHARS = 14_000
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _sanitize_user_input(text: str, limit: int = _MAX_USER_INPUT_LEN) -> str:
    """Strip control characters and enforce length limit on user-supplied text."""
    text = _CONTROL_CHAR_RE.sub("", text)
    return text[:limit]


MINDMAP_SYSTEM_PROMPT = (
    "You turn study material into mind maps. Respond with a single JSON object "
    "and nothing else: no prose, no code fences."
)

IMAGE_TRANSCRIPTION_PROMPT = (
    "Extract and organize the text content from this image in a structured format. "
    "Focus on identifying main topics, subtopics, and their relationships."
)


def build_mindmap_prompt(content: str, topics: list[OutlineLine]) -> list[dict]:
    """Build messages asking for a {nodes, links} mind-map structure."""
    hint = ""
    if topics:
        listed = "\n".join(f"- {t.text}" for t in topics[:10])
        hint = f"\nHeadings detected in the content (may be incomplete):\n{listed}\n"

    user = (
        "Analyze the following content and create a detailed mind map structure.\n"
        "Organize it into a hierarchical format with:\n"
        "- A main central topic\n"
        "- Key topics (3-5)\n"
        "- Subtopics for each key topic (2-4 each)\n"
        "- Detailed points for subtopics where relevant\n\n"
        "Format the response as a JSON structure with:\n"
        '- "nodes": array of {"id", "text", "type" ("main" | "sub" | "leaf"), "color"}\n'
        '- "links": array of {"source", "target"} connections from parent to child\n\n'
        "Exactly one node has type \"main\". Key topics are \"sub\"; everything "
        "below them is \"leaf\". Colors are hex strings like \"#2E86C1\".\n"
        f"{hint}\n"
        "Make the structure logical and educational. Content to analyze:\n\n"
        f"{_sanitize_user_input(content)}"
    )
    return [
        {"role": "system", "content": MINDMAP_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


def build_image_transcription_prompt() -> list[dict]:
    return [{"role": "user", "content": IMAGE_TRANSCRIPTION_PROMPT}]


def build_pdf_query_prompt(query: str, pdf_text: str) -> list[dict]:
    """Question about already-extracted PDF text; the text is capped."""
    user = (
        f'Based on the following PDF content, please answer this question: "{_sanitize_user_input(query)}"\n\n'
        "PDF Content:\n"
        f"{_sanitize_user_input(pdf_text, MAX_PDF_QUERY_CHARS)}\n\n"
        "Please answer the question based ONLY on the information provided in the PDF. "
        "If the PDF doesn't contain relevant information to answer the question, please "
        "say so clearly. Format your answer in markdown for readability."
    )
    return [{"role": "user", "content": user}]


def build_direct_query_prompt(query: str) -> list[dict]:
    """Question about a PDF sent as an attachment."""
    return [
        {
            "role": "user",
            "content": (
                "This is a PDF document. Please analyze it and answer this question: "
                f"{_sanitize_user_input(query)}"
            ),
        }
    ]


_LENGTH_INSTRUCTIONS = {
    "short": "Create a very brief summary in 1-2 sentences.",
    "medium": "Create a moderate-length summary in 3-4 sentences.",
    "long": "Create a comprehensive summary in 5-7 sentences.",
}

_STYLE_INSTRUCTIONS = {
    "concise": "Focus only on the most important points in a direct, straightforward manner.",
    "detailed": "Include important details and nuances while maintaining clarity.",
    "bullets": "Format the summary as a bullet-point list of key points.",
}


def build_summary_prompt(text: str, length: str, style: str) -> list[dict]:
    closing = (
        "Use bullet points (•) for each main point."
        if style == "bullets"
        else "Use clear, concise language appropriate for a study context."
    )
    user = (
        "Summarize the following text:\n\n"
        f"{_sanitize_user_input(text)}\n\n"
        f"{_LENGTH_INSTRUCTIONS[length]}\n"
        f"{_STYLE_INSTRUCTIONS[style]}\n\n"
        f"{closing}\n"
        "Ensure the summary captures the essential meaning and most important points "
        "of the original text."
    )
    return [{"role": "user", "content": user}]


_DIFFICULTY_FOCUS = {
    "easy": "basic understanding and recall of fundamental concepts",
    "medium": "application of concepts and moderate analytical thinking",
    "hard": "complex problem-solving, critical analysis, and synthesis of multiple concepts",
}


def build_quiz_prompt(topic: str, difficulty: str, count: int) -> list[dict]:
    topic = _sanitize_user_input(topic, limit=500)
    user = (
        f'Generate a quiz about "{topic}" with exactly {count} multiple-choice questions '
        f"at a {difficulty} difficulty level ({_DIFFICULTY_FOCUS[difficulty]}).\n\n"
        "Return ONLY valid JSON in the following format:\n"
        "[\n"
        "  {\n"
        '    "question": "Question text here",\n'
        '    "options": ["Option A", "Option B", "Option C", "Option D"],\n'
        '    "correctAnswer": "Option A",\n'
        '    "explanation": "Brief explanation of why this answer is correct"\n'
        "  }\n"
        "]\n\n"
        "Make sure to:\n"
        f"1. Create exactly {count} questions about {topic}\n"
        f"2. Make each question specific to {topic} and appropriate for the {difficulty} level\n"
        "3. Give each question exactly 4 options\n"
        "4. Return only the JSON array, with no text before or after it\n"
        "5. Provide short, educational explanations for the correct answers"
    )
    return [{"role": "user", "content": user}]
