"""
Mermaid source -> VisualGraph.

Best-effort and total: anything the grammar does not model (comments,
styling directives, subgraph headers, unsupported shapes) is skipped, and
no input makes parse_mermaid raise.
"""

import re
from typing import Dict, List, Optional, Tuple

from flowsync.dsl.mermaid import (
    BRACKETED,
    EDGE_RE,
    NODE_RE,
    NON_NODE_LINE_RE,
    clean_label,
    find_direction,
    is_reserved,
    shape_for_group,
)
from flowsync.visual.visual_schema import (
    Direction,
    NodeShape,
    VisualEdge,
    VisualGraph,
    VisualNode,
)

_QUOTED_RE = re.compile(r'"[^"\n]*"')
_DECLARED_BODY_RE = re.compile(r"(?<!\w)\w+(" + BRACKETED + ")")


def _scannable(code: str) -> str:
    """Blank out comment and styling lines, keeping line structure."""
    return "\n".join(
        "" if NON_NODE_LINE_RE.match(line) else line
        for line in code.split("\n")
    )


def _mask_quotes(code: str) -> str:
    """
    Replace the inside of quoted strings with spaces, same length, so arrows
    written inside labels are not read as edges. Spans found in the masked
    text are still valid offsets into the original.
    """
    return _QUOTED_RE.sub(lambda m: '"' + " " * (len(m.group(0)) - 2) + '"', code)


def _mask_body(match: re.Match) -> str:
    whole, body = match.group(0), match.group(1)
    return whole[: len(whole) - len(body)] + body[0] + " " * (len(body) - 2) + body[-1]


def mask_labels(code: str) -> str:
    """
    Same-length copy of `code` with quoted strings and node bracket bodies
    blanked, so nothing written inside a label ("<br>", "Score > A") can
    look like an arrow. Bracket pairs survive, shapes may not.
    """
    return _DECLARED_BODY_RE.sub(_mask_body, _mask_quotes(code))


def _blank_spans(code: str, spans: List[Tuple[int, int]]) -> str:
    chars = list(code)
    for start, end in spans:
        chars[start:end] = " " * (end - start)
    return "".join(chars)


def extract_edges(code: str) -> List[Tuple[str, str, str]]:
    """Raw (source, target, label) triples in source order, reserved ids skipped."""
    return _edges_and_label_spans(code)[0]


def _edges_and_label_spans(code: str):
    """Edge triples plus the spans of their labels in `code`."""
    triples: List[Tuple[str, str, str]] = []
    spans: List[Tuple[int, int]] = []
    masked = mask_labels(code)

    for match in EDGE_RE.finditer(masked):
        label = ""
        for group in (2, 3):
            if match.group(group) is not None:
                start, end = match.span(group)
                spans.append((start, end))
                label = clean_label(code[start:end])
                break

        source = match.group(1)
        target = match.group(4)
        if is_reserved(source) or is_reserved(target):
            continue

        triples.append((source, target, label))

    return triples, spans


def parse_mermaid(code: str, default_direction: Optional[Direction] = None) -> VisualGraph:
    """
    Parse diagram text into a VisualGraph.

    Direction falls back to `default_direction` (or TD) when the text
    declares none. Nodes keep first-seen order; nodes referenced only by
    edges are registered afterwards as rectangles labelled with their id.
    """
    fallback = default_direction or Direction.TD
    if not isinstance(code, str) or not code.strip():
        return VisualGraph(direction=fallback)

    text = _scannable(code)
    direction = find_direction(text) or fallback

    triples, label_spans = _edges_and_label_spans(text)
    # Edge labels are text, not declarations
    declarations = _blank_spans(text, label_spans)

    nodes: Dict[str, VisualNode] = {}

    for match in NODE_RE.finditer(declarations):
        node_id = match.group(1)
        if is_reserved(node_id) or node_id in nodes:
            continue
        group = match.lastindex or 2
        nodes[node_id] = VisualNode(
            id=node_id,
            label=clean_label(match.group(group)),
            shape=shape_for_group(group),
        )

    edges: List[VisualEdge] = []
    seen = set()

    for source, target, label in triples:
        edge = VisualEdge(source=source, target=target, label=label)
        if edge.key in seen:
            continue
        seen.add(edge.key)
        edges.append(edge)

        for endpoint in (source, target):
            if endpoint not in nodes:
                nodes[endpoint] = VisualNode(
                    id=endpoint, label=endpoint, shape=NodeShape.RECTANGLE
                )

    return VisualGraph(
        direction=direction,
        nodes=list(nodes.values()),
        edges=edges,
    )
