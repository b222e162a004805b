"""Pydantic models for mind-map structures."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

NodeType = Literal["main", "sub", "leaf"]


class StructureNode(BaseModel):
    """A node in a mind map. x/y are set by layout, not at creation."""

    id: str
    text: str
    type: NodeType
    color: str = "#9E9E9E"
    x: float | None = None
    y: float | None = None


class StructureLink(BaseModel):
    source: str  # parent node id
    target: str  # child node id


class MindMapStructure(BaseModel):
    nodes: list[StructureNode] = []
    links: list[StructureLink] = []


class MindMapResponse(MindMapStructure):
    success: bool = True
    source: Literal["model", "outline"] = "model"
    fallback: bool = False
    warning: str | None = None
