"""
Surgical edits on Mermaid source.

Each operation rewrites the smallest span it can (one bracket body, one
line, one direction token) and leaves every other character of the
document alone, so comments, styling directives and hand formatting
survive structural edits. The graph is never re-serialized.
"""

import re
from typing import List, Optional

from flowsync.dsl.mermaid import (
    ARROW,
    BRACKETED,
    CLASS_SUFFIX,
    DECLARATION_RE,
    STYLING_LINE_RE,
    is_reserved,
    render_shape,
)
from flowsync.dsl.parser import extract_edges, mask_labels
from flowsync.visual.visual_schema import Direction, NodeShape, VisualGraph


DEFAULT_INDENT = "    "


def _styling_start(lines: List[str]) -> Optional[int]:
    for index, line in enumerate(lines):
        if STYLING_LINE_RE.match(line):
            return index
    return None


def _body_indent(lines: List[str]) -> str:
    """Indentation of the first content line after the declaration."""
    for line in lines:
        if not line.strip() or DECLARATION_RE.match(line):
            continue
        return line[: len(line) - len(line.lstrip())]
    return DEFAULT_INDENT


def _insert_line(code: str, new_line: str) -> str:
    """Insert before the styling section, else after the last content line."""
    if not code.strip():
        return new_line

    lines = code.split("\n")
    index = _styling_start(lines)
    if index is None:
        index = len(lines)
        while index > 0 and not lines[index - 1].strip():
            index -= 1

    lines.insert(index, _body_indent(lines) + new_line)
    return "\n".join(lines)


def next_node_id(graph: VisualGraph) -> str:
    """A, B, ... Z, then N26, N27, ...; ids already in the graph are skipped."""
    taken = set(graph.node_ids())
    index = len(graph.nodes)
    while True:
        candidate = chr(ord("A") + index) if index < 26 else f"N{index}"
        if candidate not in taken and not is_reserved(candidate):
            return candidate
        index += 1


def edit_node(code: str, node_id: str, label: str, shape) -> str:
    """Swap the bracket body of `node_id`'s declaration; class suffix kept."""
    pattern = re.compile(
        r"(?<!\w)" + re.escape(node_id) + r"[ \t]*" + BRACKETED + "(" + CLASS_SUFFIX + ")"
    )
    rendered = render_shape(node_id, label, shape)
    return pattern.sub(lambda m: rendered + m.group(1), code, count=1)


def delete_node(code: str, node_id: str) -> str:
    """Drop every line declaring `node_id` or using it as an arrow endpoint."""
    escaped = re.escape(node_id)
    declaration = re.compile(r"^\s*" + escaped + r"\s*[\[({>]")
    as_source = re.compile(
        r"(?<!\w)" + escaped + BRACKETED + "?" + CLASS_SUFFIX + r"[ \t]*" + ARROW
    )
    as_target = re.compile(
        r"-*>[ \t]*(?:\|[^|\n]*\|)?[ \t]*" + escaped + r"(?!\w)"
    )

    kept = []
    for line in code.split("\n"):
        if declaration.match(line):
            continue
        # Arrows are looked for outside labels only
        masked = mask_labels(line)
        if as_source.search(masked) or as_target.search(masked):
            continue
        kept.append(line)
    return "\n".join(kept)


def add_node(code: str, node_id: str, label: str, shape=NodeShape.RECTANGLE) -> str:
    return _insert_line(code, render_shape(node_id, label, shape))


def add_edge(code: str, source: str, target: str, label: Optional[str] = None) -> str:
    if label:
        safe = label.replace('"', "'")
        line = f'{source} -->|"{safe}"| {target}'
    else:
        line = f"{source} --> {target}"
    return _insert_line(code, line)


def delete_edge(code: str, source: str, target: str, label: Optional[str] = None) -> str:
    """
    Drop the lines carrying the edge source -> target (with exactly `label`).

    Endpoints are matched as whole ids and the label by equality, so
    "A --> B" never takes "AB --> C" or "A --> BC" with it. A chained line
    (A --> B --> C) holding the edge goes as a whole.
    """
    wanted = (source, target, (label or "").strip())

    kept = [
        line for line in code.split("\n")
        if wanted not in extract_edges(line)
    ]
    return "\n".join(kept)


def _direction_token(direction) -> Optional[str]:
    if isinstance(direction, Direction):
        return direction.value
    token = str(direction or "").strip().upper()
    if token == "TB":
        return Direction.TD.value
    try:
        return Direction(token).value
    except ValueError:
        return None


def set_direction(code: str, direction) -> str:
    """Rewrite the declaration's direction; unknown directions leave code as is."""
    direction = _direction_token(direction)
    if direction is None:
        return code

    match = DECLARATION_RE.search(code)

    if match is None:
        return f"flowchart {direction}\n{code}"

    if match.group(3):
        start, end = match.span(3)
        return code[:start] + direction + code[end:]

    end = match.end(1)
    return code[:end] + " " + direction + code[end:]
