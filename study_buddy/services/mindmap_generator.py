"""Model-generated mind maps, with an outline-derived fallback."""

from __future__ import annotations

import json
import logging
import os
import random
import re

from study_buddy.models.mindmap_models import (
    MindMapResponse,
    MindMapStructure,
    StructureLink,
    StructureNode,
)
from study_buddy.services.errors import ModelCallFailed, NoContentProvided
from study_buddy.services.generation import generate, strip_markdown_fences
from study_buddy.services.llm.base import BaseLLMProvider
from study_buddy.services.outline_segmenter import main_topics, segment_text
from study_buddy.services.prompts import build_mindmap_prompt
from study_buddy.services.structure_builder import build_structure, layout_structure

logger = logging.getLogger(__name__)

_NODE_TYPES = {"main", "sub", "leaf"}
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{3,8}$")


def fallback_enabled() -> bool:
    return os.environ.get("STUDY_BUDDY_MINDMAP_FALLBACK", "true").lower() != "false"


def _repair_truncated_json(text: str) -> str | None:
    """Close a JSON object cut off by the token limit after its last complete item."""
    last_brace = text.rfind("}")
    if last_brace < 0:
        return None
    truncated = text[: last_brace + 1]
    open_brackets = truncated.count("[") - truncated.count("]")
    open_braces = truncated.count("{") - truncated.count("}")
    truncated += "]" * open_brackets + "}" * open_braces
    try:
        json.loads(truncated)
        return truncated
    except json.JSONDecodeError:
        return None


def parse_structure(raw: str) -> MindMapStructure | None:
    """Parse model output into a structure, or None if unusable.

    Duplicate node ids keep their first occurrence, unknown node types become
    leaves, and links pointing at unknown nodes are dropped.
    """
    cleaned = strip_markdown_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        repaired = _repair_truncated_json(cleaned)
        if repaired is None:
            logger.warning("Mind map: failed to parse JSON (%d chars)", len(raw))
            return None
        logger.info("Mind map: recovered truncated JSON response.")
        data = json.loads(repaired)

    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
        logger.warning("Mind map: response has no 'nodes' array.")
        return None

    nodes: list[StructureNode] = []
    seen: set[str] = set()
    for entry in data["nodes"]:
        if not isinstance(entry, dict):
            continue
        node_id = str(entry.get("id", "")).strip()
        text = str(entry.get("text", "")).strip()
        if not node_id or not text or node_id in seen:
            continue
        node_type = str(entry.get("type", "")).lower()
        if node_type not in _NODE_TYPES:
            logger.debug("Mind map: coercing node type %r to leaf", node_type)
            node_type = "leaf"
        color = entry.get("color")
        node = StructureNode(id=node_id, text=text, type=node_type)
        if isinstance(color, str) and _HEX_COLOR.match(color):
            node.color = color
        seen.add(node_id)
        nodes.append(node)

    if not nodes:
        return None

    links: list[StructureLink] = []
    raw_links = data.get("links", [])
    for entry in raw_links if isinstance(raw_links, list) else []:
        if not isinstance(entry, dict):
            continue
        source = str(entry.get("source", ""))
        target = str(entry.get("target", ""))
        if target not in seen:
            logger.debug("Mind map: dropping link to unknown node %s", target)
            continue
        links.append(StructureLink(source=source, target=target))

    return MindMapStructure(nodes=nodes, links=links)


async def generate_mindmap(
    content: str,
    provider: BaseLLMProvider | None,
    rng: random.Random | None = None,
    allow_fallback: bool | None = None,
) -> MindMapResponse:
    """Ask the model for a mind map and lay it out.

    When the call fails or the answer cannot be used and fallback is on, the
    outline-built structure is returned instead, flagged as a fallback. A
    None provider counts as a failed call.
    """
    lines = segment_text(content)
    if not lines:
        raise NoContentProvided()
    if allow_fallback is None:
        allow_fallback = fallback_enabled()

    messages = build_mindmap_prompt(content, main_topics(lines))
    try:
        if provider is None:
            raise ModelCallFailed("LLM provider is misconfigured")
        raw = await generate(provider, messages, temperature=0.4, max_tokens=4096, json_output=True)
        structure = parse_structure(raw)
        if structure is None:
            raise ModelCallFailed("Model returned an invalid mind map structure")
    except ModelCallFailed as exc:
        if not allow_fallback:
            raise
        logger.warning("Mind map: serving outline fallback (%s)", exc.message)
        fallback = layout_structure(build_structure(lines), rng)
        return MindMapResponse(
            nodes=fallback.nodes,
            links=fallback.links,
            source="outline",
            fallback=True,
            warning="AI analysis unavailable; structure derived from the document outline",
        )

    layout_structure(structure, rng)
    logger.info("Mind map: %d nodes, %d links", len(structure.nodes), len(structure.links))
    return MindMapResponse(nodes=structure.nodes, links=structure.links)
