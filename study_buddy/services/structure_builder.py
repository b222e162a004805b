"""Turn outlines into mind-map structures and assign layout coordinates."""

from __future__ import annotations

import math
import random

from study_buddy.models.ingest_models import OutlineLine
from study_buddy.models.mindmap_models import MindMapStructure, StructureLink, StructureNode

# Reference canvas is 800x400
CENTER_X = 400.0
CENTER_Y = 200.0
RING_RADIUS = 200.0
LEAF_RADIUS = 100.0

MAIN_COLOR = "#4F46E5"
SUB_PALETTE: list[str] = [
    "#2E86C1",
    "#27AE60",
    "#E67E22",
    "#8E44AD",
    "#C0392B",
    "#16A085",
    "#D4AC0D",
    "#5D6D7E",
]


def get_layout_rng() -> random.Random:
    """FastAPI dependency for leaf angles; tests override it with a seeded Random."""
    return random.Random()


def build_structure(lines: list[OutlineLine]) -> MindMapStructure:
    """Build a node/link graph from segmented outline lines.

    The first line at the smallest level is the central node. Other lines
    hang off the nearest preceding line with a smaller level, or off the
    central node when there is none.
    """
    if not lines:
        return MindMapStructure()

    min_level = min(line.level for line in lines)
    root_index = next(i for i, line in enumerate(lines) if line.level == min_level)

    nodes: list[StructureNode] = []
    links: list[StructureLink] = []
    root_id = f"node-{root_index}"
    sub_count = 0
    colors: dict[str, str] = {root_id: MAIN_COLOR}
    # Stack of (level, node id)
    stack: list[tuple[int, str]] = []

    for index, line in enumerate(lines):
        node_id = f"node-{index}"
        if index == root_index:
            nodes.append(StructureNode(id=node_id, text=line.text, type="main", color=MAIN_COLOR))
            continue

        while stack and stack[-1][0] >= line.level:
            stack.pop()
        parent_id = stack[-1][1] if stack else root_id

        if parent_id == root_id:
            color = SUB_PALETTE[sub_count % len(SUB_PALETTE)]
            sub_count += 1
            node = StructureNode(id=node_id, text=line.text, type="sub", color=color)
        else:
            color = colors[parent_id]
            node = StructureNode(id=node_id, text=line.text, type="leaf", color=color)

        colors[node_id] = color
        nodes.append(node)
        links.append(StructureLink(source=parent_id, target=node_id))
        stack.append((line.level, node_id))

    return MindMapStructure(nodes=nodes, links=links)


def layout_structure(
    structure: MindMapStructure, rng: random.Random | None = None
) -> MindMapStructure:
    """Assign x/y to nodes in place and return the structure.

    The first `main` node sits at the canvas center. Remaining `main` nodes
    and all `sub` nodes share the ring around it. Each leaf is placed at a
    random angle around the source of the first link that targets it; a leaf
    whose parent cannot be resolved, or has no position yet, is left alone.
    """
    rng = rng or random.Random()
    nodes_by_id = {node.id: node for node in structure.nodes}

    center = next((n for n in structure.nodes if n.type == "main"), None)
    if center is not None:
        center.x, center.y = CENTER_X, CENTER_Y

    ring = [n for n in structure.nodes if n.type == "sub" or (n.type == "main" and n is not center)]
    for i, node in enumerate(ring):
        angle = 2 * math.pi * i / len(ring)
        node.x = CENTER_X + RING_RADIUS * math.cos(angle)
        node.y = CENTER_Y + RING_RADIUS * math.sin(angle)

    for node in structure.nodes:
        if node.type != "leaf":
            continue
        parent_link = next((l for l in structure.links if l.target == node.id), None)
        if parent_link is None:
            continue
        parent = nodes_by_id.get(parent_link.source)
        if parent is None or parent.x is None or parent.y is None:
            continue
        angle = rng.random() * 2 * math.pi
        node.x = parent.x + LEAF_RADIUS * math.cos(angle)
        node.y = parent.y + LEAF_RADIUS * math.sin(angle)

    return structure
