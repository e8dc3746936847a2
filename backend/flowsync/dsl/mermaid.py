"""
Mermaid flowchart grammar shared by the parser and the mutator.

Only the subset the workflow editor models is described here:
  - the declaration line (graph / flowchart + optional direction)
  - five node shapes, each with a bracket pair
  - dash arrows with an optional |pipe| or "-- text -->" label
  - trailing styling directives (classDef, class, style, linkStyle)

Everything else in a diagram is carried through untouched.
"""

import re

from flowsync.visual.visual_schema import Direction, NodeShape


RESERVED_WORDS = {
    "graph", "flowchart", "subgraph", "end", "direction",
    "TD", "TB", "LR", "BT", "RL",
    "classDef", "class", "style", "linkStyle", "click", "default",
}

# Declaration with optional direction; group 1 = keyword, group 3 = direction
DECLARATION_RE = re.compile(
    r"^([ \t]*(?:graph|flowchart))(?:([ \t]+)(TD|TB|LR|BT|RL))?\b",
    re.MULTILINE | re.IGNORECASE,
)

STYLING_LINE_RE = re.compile(r"^\s*(?:classDef\b|class\s|style\s|linkStyle\s)")
COMMENT_LINE_RE = re.compile(r"^\s*%%")
NON_NODE_LINE_RE = re.compile(r"^\s*(?:%%|classDef\b|class\s|style\s|linkStyle\s|click\s)")

# Order is priority: quoted and double-bracket forms before looser ones.
# Each pattern carries exactly one capture group (the raw label).
SHAPE_PATTERNS = [
    (NodeShape.CIRCLE, r'\(\("([^"\n]*)"\)\)'),
    (NodeShape.CIRCLE, r"\(\(([^()\n]*)\)\)"),
    (NodeShape.DIAMOND, r'\{"([^"\n]*)"\}'),
    (NodeShape.DIAMOND, r"\{([^{}\n]*)\}"),
    (NodeShape.PARALLELOGRAM, r'\[/"([^"\n]*)"/\]'),
    (NodeShape.PARALLELOGRAM, r'\[/([^\[\]"\n]*)/\]'),
    (NodeShape.ROUNDED, r'\("([^"\n]*)"\)'),
    (NodeShape.ROUNDED, r"\(([^()\n]*)\)"),
    (NodeShape.RECTANGLE, r'\["([^"\n]*)"\]'),
    (NodeShape.RECTANGLE, r"\[([^\[\]\n]*)\]"),
]

# Any shape body, without captures
BRACKETED = (
    r'(?:\(\("[^"\n]*"\)\)|\(\([^()\n]*\)\)'
    r'|\{"[^"\n]*"\}|\{[^{}\n]*\}'
    r'|\[/"[^"\n]*"/\]|\[/[^\[\]"\n]*/\]'
    r'|\("[^"\n]*"\)|\([^()\n]*\)'
    r'|\["[^"\n]*"\]|\[[^\[\]\n]*\])'
)

ID_RE = re.compile(r"\w+")

CLASS_SUFFIX = r"(?::::?[\w-]+)?"

# id followed by one of the shape bodies; group 1 = id, groups 2.. = label per shape
NODE_RE = re.compile(
    r"(?<!\w)(\w+)(?:" + "|".join(p for _, p in SHAPE_PATTERNS) + ")"
)

# Arrow: "-->", "->", ">" or "-- text -->"; group = inline text label
ARROW = r"(?:--\s+([^\s>|\-][^\n>|]*?)\s+-*>|-*>)"

# Source is consumed, target sits in a lookahead so chained edges
# (A --> B --> C) yield both links.
EDGE_RE = re.compile(
    r"(?<!\w)(\w+)" + BRACKETED + "?" + CLASS_SUFFIX
    + r"[ \t]*" + ARROW
    + r"[ \t]*(?:\|([^|\n]*)\|)?[ \t]*"
    + r"(?=(\w+))"
)

BR_RE = re.compile(r"<br\s*/?>|\\n", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]*>")


def shape_for_group(group_index: int) -> NodeShape:
    """Map a NODE_RE group index (2-based) back to its shape."""
    return SHAPE_PATTERNS[group_index - 2][0]


def clean_label(raw: str) -> str:
    """Strip line-break escapes, residual HTML tags and surrounding quotes."""
    if raw is None:
        return ""
    label = BR_RE.sub(" ", raw)
    label = TAG_RE.sub("", label)
    label = label.strip().strip('"').strip("'")
    return re.sub(r"\s+", " ", label).strip()


def render_shape(node_id: str, label: str, shape) -> str:
    """Render the declaration syntax for one node."""
    safe = (label or "").replace('"', "'")
    shape = NodeShape.coerce(shape)

    if shape == NodeShape.ROUNDED:
        return f'{node_id}("{safe}")'
    if shape == NodeShape.DIAMOND:
        return f'{node_id}{{"{safe}"}}'
    if shape == NodeShape.CIRCLE:
        return f'{node_id}(("{safe}"))'
    if shape == NodeShape.PARALLELOGRAM:
        return f'{node_id}[/"{safe}"/]'
    return f'{node_id}["{safe}"]'


def is_reserved(token: str) -> bool:
    return token in RESERVED_WORDS


def is_valid_id(token: str) -> bool:
    """A node id the parser will read back: word characters, not a keyword."""
    return bool(token) and ID_RE.fullmatch(token) is not None and not is_reserved(token)


def find_direction(code: str):
    """Return the declared Direction, or None when there is none."""
    match = DECLARATION_RE.search(code)
    if not match or not match.group(3):
        return None
    token = match.group(3).upper()
    if token == "TB":
        return Direction.TD
    return Direction(token)


def strip_code_fences(code: str) -> str:
    """Remove markdown ```mermaid fences pasted along with a diagram."""
    if "```" not in code:
        return code
    return re.sub(r"```mermaid|```", "", code, flags=re.IGNORECASE).strip("\n")


def validate_mermaid(code: str) -> bool:
    if not code:
        return False

    lines = [
        l for l in code.splitlines()
        if l.strip() and not COMMENT_LINE_RE.match(l)
    ]
    if not lines:
        return False

    # First meaningful line must be a flowchart declaration
    if not DECLARATION_RE.match(lines[0]):
        return False

    # Basic safety: no script tags or markdown fences
    forbidden = re.search(r"<script|```", code, re.IGNORECASE)
    return forbidden is None
