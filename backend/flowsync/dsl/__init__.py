from flowsync.dsl.parser import extract_edges, parse_mermaid
from flowsync.dsl.mutator import (
    add_edge,
    add_node,
    delete_edge,
    delete_node,
    edit_node,
    next_node_id,
    set_direction,
)
from flowsync.dsl.mermaid import render_shape, strip_code_fences, validate_mermaid

__all__ = [
    "add_edge",
    "add_node",
    "delete_edge",
    "delete_node",
    "edit_node",
    "extract_edges",
    "next_node_id",
    "parse_mermaid",
    "render_shape",
    "set_direction",
    "strip_code_fences",
    "validate_mermaid",
]
