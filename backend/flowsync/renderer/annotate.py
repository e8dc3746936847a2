import re
from typing import Iterable

from flowsync.dsl.mermaid import BRACKETED, CLASS_SUFFIX, clean_label


STATUS_CLASSES = {
    "Terminé": "node-done",
    "En cours": "node-progress",
    "En attente": "node-pending",
}

CLASS_DEFS = [
    "classDef node-done fill:#f0fdf4,stroke:#22c55e,stroke-width:2px,color:#166534;",
    "classDef node-progress fill:#fff7ed,stroke:#f97316,stroke-width:2px,color:#9a3412;",
    "classDef node-pending fill:#ffffff,stroke:#cbd5e1,stroke-width:1.5px,color:#1e293b;",
]

_BODY_RE = re.compile(r"^(\(\(|\[/|\(|\{|\[)(.*?)(\)\)|/\]|\)|\}|\])$")


def sanitize(text: str) -> str:
    """Strip characters that would break out of a quoted Mermaid label."""
    if not text:
        return ""
    text = re.sub(r"[<>]", "", text)
    text = re.sub(r"[()\[\]{}]", " ", text)
    return re.sub(r'[";]', "", text).strip()


def _annotated_body(body: str, name: str, role: str) -> str:
    match = _BODY_RE.match(body)
    if not match:
        return body
    opener, raw_label, closer = match.groups()
    label = clean_label(raw_label.split("<br")[0].split("<div")[0])
    info = (
        f"<div style='font-weight:700;font-size:13px'>{label}</div>"
        f"<div style='font-size:11px;color:#475569'>👤 {name}</div>"
        f"<div style='font-size:9px;color:#64748b'>{role}</div>"
    )
    return f'{opener}"{info}"{closer}'


def annotate_chart(code: str, tasks: Iterable) -> str:
    """
    Decorate assigned nodes for display: assignee and role inside the label,
    a status class per node, then the status classDefs.

    Works on a copy of the text meant for the renderer only; the stored
    source is never annotated.
    """
    annotated = code
    applied = False

    for task in tasks or []:
        node_id = task.node_id
        pattern = re.compile(
            r"(?<!\w)(" + re.escape(node_id) + r")[ \t]*(" + BRACKETED + ")(" + CLASS_SUFFIX + ")"
        )
        if not pattern.search(annotated):
            continue

        name = sanitize(task.responsible_user_name or "")
        role = sanitize(task.role_required or "").upper()
        annotated = pattern.sub(
            lambda m: m.group(1) + _annotated_body(m.group(2), name, role) + m.group(3),
            annotated,
            count=1,
        )

        status_class = STATUS_CLASSES.get(task.status, "node-pending")
        annotated += f"\nclass {node_id} {status_class};"
        applied = True

    if applied:
        annotated += "\n" + "\n".join(CLASS_DEFS)

    return annotated
