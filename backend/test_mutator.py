"""Tests for the surgical Mermaid text edits"""

import pytest

from flowsync.dsl import mutator
from flowsync.dsl.mermaid import render_shape
from flowsync.dsl.parser import parse_mermaid
from flowsync.visual.visual_schema import Direction, NodeShape, VisualGraph, VisualNode


def make_graph(*ids: str) -> VisualGraph:
    return VisualGraph(nodes=[VisualNode(id=i, label=i) for i in ids])


@pytest.mark.parametrize("shape, expected", [
    (NodeShape.ROUNDED, 'A("Label")'),
    (NodeShape.DIAMOND, 'A{"Label"}'),
    (NodeShape.CIRCLE, 'A(("Label"))'),
    (NodeShape.PARALLELOGRAM, 'A[/"Label"/]'),
    (NodeShape.RECTANGLE, 'A["Label"]'),
    ("unknown", 'A["Label"]'),
])
def test_shape_syntax_templates(shape, expected):
    assert render_shape("A", "Label", shape) == expected


# ---------------------------------------------------------------------- #
# edit
# ---------------------------------------------------------------------- #

def test_edit_node_rewrites_only_the_bracket_body():
    code = (
        "flowchart TD\n"
        '    A["Old"] --> B\n'
        "    %% keep me\n"
        "    classDef done fill:#0f0"
    )
    result = mutator.edit_node(code, "A", 'New "quoted"', NodeShape.DIAMOND)

    assert result == (
        "flowchart TD\n"
        "    A{\"New 'quoted'\"} --> B\n"
        "    %% keep me\n"
        "    classDef done fill:#0f0"
    )


def test_edit_node_keeps_class_suffix():
    code = 'graph TD\n  A["x"]:::done --> B'
    result = mutator.edit_node(code, "A", "y", NodeShape.ROUNDED)
    assert result == 'graph TD\n  A("y"):::done --> B'


def test_edit_node_matches_whole_ids_only():
    code = 'AB["x"]\nB["y"]'
    assert mutator.edit_node(code, "B", "z", NodeShape.RECTANGLE) == 'AB["x"]\nB["z"]'


def test_edit_unknown_node_is_a_no_op():
    code = "graph TD\n  A --> B"
    assert mutator.edit_node(code, "Z", "nope", NodeShape.CIRCLE) == code


# ---------------------------------------------------------------------- #
# delete
# ---------------------------------------------------------------------- #

def test_delete_node_removes_declaration_and_edges():
    code = 'A["X"]\nB["Y"]\nA --> B'
    assert mutator.delete_node(code, "A") == 'B["Y"]'


def test_delete_node_keeps_unrelated_lines():
    code = "A --> B\nC --> D\nAB --> C\nX -->|go| A\nstyle A fill:#f00"
    result = mutator.delete_node(code, "A")
    assert result == "C --> D\nAB --> C\nstyle A fill:#f00"


def test_delete_node_ignores_arrows_inside_other_labels():
    code = 'graph TD\n  A["Start"]\n  C["Score > A"]\n  D[Score > A]\n  A --> B'
    assert mutator.delete_node(code, "A") == 'graph TD\n  C["Score > A"]\n  D[Score > A]'


def test_delete_unknown_node_removes_nothing():
    code = 'graph TD\n  A["x"] --> B'
    assert mutator.delete_node(code, "Q") == code


# ---------------------------------------------------------------------- #
# add
# ---------------------------------------------------------------------- #

def test_add_node_appends_with_body_indent():
    code = "flowchart TD\n    A --> B"
    result = mutator.add_node(code, "C", "Review", NodeShape.ROUNDED)
    assert result == 'flowchart TD\n    A --> B\n    C("Review")'


def test_add_node_goes_before_styling_section():
    code = (
        "flowchart TD\n"
        "  A --> B\n"
        "  classDef done fill:#0f0\n"
        "  class A done"
    )
    result = mutator.add_node(code, "C", "New")
    assert result == (
        "flowchart TD\n"
        "  A --> B\n"
        '  C["New"]\n'
        "  classDef done fill:#0f0\n"
        "  class A done"
    )


def test_add_node_keeps_trailing_newline_trailing():
    code = "graph TD\n  A --> B\n"
    assert mutator.add_node(code, "C", "x") == 'graph TD\n  A --> B\n  C["x"]\n'


def test_add_node_round_trips_through_parser():
    code = 'flowchart LR\n    A["Start"] --> B{"Check"}\n    style B fill:#ff0'
    before = parse_mermaid(code)

    after = parse_mermaid(mutator.add_node(code, "C", "Escalate", NodeShape.PARALLELOGRAM))

    assert after.nodes[: len(before.nodes)] == before.nodes
    assert after.edges == before.edges
    new_nodes = after.nodes[len(before.nodes):]
    assert len(new_nodes) == 1
    assert new_nodes[0] == VisualNode(id="C", label="Escalate", shape=NodeShape.PARALLELOGRAM)


def test_add_edge_with_and_without_label():
    code = "graph TD\n  A[a]\n  B[b]"
    assert mutator.add_edge(code, "A", "B") == "graph TD\n  A[a]\n  B[b]\n  A --> B"
    assert mutator.add_edge(code, "A", "B", 'say "hi"') == (
        "graph TD\n  A[a]\n  B[b]\n  A -->|\"say 'hi'\"| B"
    )


def test_add_edge_to_empty_text():
    assert mutator.add_edge("", "A", "B") == "A --> B"


def test_added_edge_is_parsed_with_label():
    code = mutator.add_edge("graph TD\n  A --> B", "B", "C", "Oui")
    edges = [(e.source, e.target, e.label) for e in parse_mermaid(code).edges]
    assert edges == [("A", "B", ""), ("B", "C", "Oui")]


# ---------------------------------------------------------------------- #
# edges
# ---------------------------------------------------------------------- #

def test_delete_edge_matches_whole_endpoints():
    code = "A --> B\nA --> BC\nAB --> B"
    assert mutator.delete_edge(code, "A", "B") == "A --> BC\nAB --> B"


def test_delete_edge_matches_label_exactly():
    code = 'A -->|yes| B\nA -->|"no"| B'
    assert mutator.delete_edge(code, "A", "B", "no") == "A -->|yes| B"


def test_delete_missing_edge_is_a_no_op():
    code = "graph TD\n  A --> B"
    assert mutator.delete_edge(code, "B", "A") == code


# ---------------------------------------------------------------------- #
# direction
# ---------------------------------------------------------------------- #

def test_direction_inserted_when_declaration_has_none():
    assert mutator.set_direction("flowchart\n  A-->B", Direction.LR) == "flowchart LR\n  A-->B"


def test_direction_replaced_in_place():
    assert mutator.set_direction("graph TD\n  A-->B", "LR") == "graph LR\n  A-->B"


def test_declaration_prepended_when_missing():
    assert mutator.set_direction("A --> B", "RL") == "flowchart RL\nA --> B"


def test_unknown_direction_leaves_text_alone():
    assert mutator.set_direction("graph TD", "XX") == "graph TD"
    assert mutator.set_direction("graph LR", "TB") == "graph TD"


# ---------------------------------------------------------------------- #
# id generation
# ---------------------------------------------------------------------- #

def test_next_node_id_sequence():
    assert mutator.next_node_id(VisualGraph()) == "A"
    assert mutator.next_node_id(make_graph("A", "B")) == "C"
    assert mutator.next_node_id(make_graph("B")) == "C"


def test_next_node_id_past_z():
    letters = [chr(ord("A") + i) for i in range(26)]
    assert mutator.next_node_id(make_graph(*letters)) == "N26"
    assert mutator.next_node_id(make_graph(*letters, "N27")) == "N28"
