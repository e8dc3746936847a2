"""Tests for render-time annotation and the Kroki rendering collaborator"""

from types import SimpleNamespace

import requests

from flowsync.dsl.parser import parse_mermaid
from flowsync.renderer import MermaidRenderer, annotate_chart
from flowsync.renderer import mermaid_renderer


CODE = 'graph TD\n  A["Collect KYC"] --> B{"Sanctions hit?"}\n  B -->|Non| C("Open account")'


def make_task(node_id, status="En attente", name="Claire Martin", role="Manager"):
    return SimpleNamespace(
        node_id=node_id,
        status=status,
        responsible_user_name=name,
        role_required=role,
    )


class FakeResponse:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text


def test_annotation_injects_assignee_and_status_class():
    annotated = annotate_chart(CODE, [make_task("B", status="Terminé", name="Jean (Dupont)")])

    assert "Jean  Dupont" in annotated
    assert "MANAGER" in annotated
    assert "class B node-done;" in annotated
    assert annotated.count("classDef node-") == 3
    # Source lines for other nodes are untouched
    assert '  A["Collect KYC"] --> ' in annotated


def test_annotated_chart_still_parses_to_same_structure():
    annotated = annotate_chart(CODE, [make_task("A"), make_task("C", status="En cours")])
    original = parse_mermaid(CODE)
    graph = parse_mermaid(annotated)

    assert graph.node_ids() == original.node_ids()
    assert graph.edges == original.edges
    assert graph.get_node("B").shape == original.get_node("B").shape
    assert graph.get_node("A").label.startswith("Collect KYC")


def test_tasks_for_undeclared_nodes_are_ignored():
    assert annotate_chart(CODE, [make_task("Z")]) == CODE
    assert annotate_chart(CODE, []) == CODE


def test_render_returns_svg(monkeypatch):
    sent = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        sent["url"] = url
        sent["body"] = data.decode("utf-8")
        return FakeResponse(200, "<svg>ok</svg>")

    monkeypatch.setattr(mermaid_renderer.requests, "post", fake_post)
    result = MermaidRenderer(base_url="http://kroki.local/").render(CODE, tasks=[make_task("A")])

    assert result.ok
    assert result.svg == "<svg>ok</svg>"
    assert sent["url"] == "http://kroki.local/mermaid/svg"
    assert "class A node-pending;" in sent["body"]


def test_render_reports_syntax_errors(monkeypatch):
    monkeypatch.setattr(
        mermaid_renderer.requests, "post",
        lambda *a, **kw: FakeResponse(400, "Parse error on line 3"),
    )
    result = MermaidRenderer().render(CODE)

    assert not result.ok
    assert result.error == "Mermaid render error: Parse error on line 3"


def test_render_reports_network_failures(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(mermaid_renderer.requests, "post", boom)
    result = MermaidRenderer().render(CODE)

    assert result.svg is None
    assert "refused" in result.error


def test_render_rejects_text_without_declaration(monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("should not reach the renderer")

    monkeypatch.setattr(mermaid_renderer.requests, "post", unexpected)
    result = MermaidRenderer().render("A --> B")

    assert not result.ok
    assert "declaration" in result.error
