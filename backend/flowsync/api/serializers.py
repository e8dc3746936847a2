from typing import Any, Dict, Iterable, List, Optional

from flowsync.dsl.parser import parse_mermaid
from flowsync.validation import validate_diagram


def serialize_diagram(code: str, node_id: Optional[str] = None, with_validation: bool = True) -> Dict[str, Any]:
    """Parse `code` and bundle it with its graph (and lint) for a response."""
    graph = parse_mermaid(code)
    payload = {
        "code": code,
        "graph": graph.to_dict(),
        "validation": validate_diagram(graph).to_dict() if with_validation else None,
    }
    if node_id is not None:
        payload["node_id"] = node_id
    return payload


def serialize_detected_nodes(code: str, tasks: Iterable) -> List[Dict[str, Any]]:
    """Detected steps of a diagram, each joined with its assigned task."""
    by_node = {t.node_id: t for t in tasks}
    nodes = []
    for node in parse_mermaid(code).nodes:
        task = by_node.get(node.id)
        nodes.append({
            "id": node.id,
            "label": node.label,
            "shape": node.shape.value,
            "task_id": task.id if task else None,
            "status": task.status if task else None,
            "responsible_user_name": task.responsible_user_name if task else None,
        })
    return nodes
