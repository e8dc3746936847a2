from flowsync.renderer.annotate import annotate_chart
from flowsync.renderer.mermaid_renderer import MermaidRenderer, RenderResult

__all__ = ["annotate_chart", "MermaidRenderer", "RenderResult"]
