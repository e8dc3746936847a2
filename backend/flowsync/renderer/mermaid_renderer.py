from dataclasses import dataclass
from typing import Optional

import requests

from flowsync.config import KROKI_URL, RENDER_TIMEOUT
from flowsync.dsl.mermaid import validate_mermaid
from flowsync.renderer.annotate import annotate_chart


@dataclass
class RenderResult:
    svg: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.svg is not None

    def to_dict(self) -> dict:
        return {"svg": self.svg, "error": self.error}


class MermaidRenderer:
    """
    Rendering collaborator backed by a Kroki server.

    Syntax errors come back from Kroki as HTTP 400 with the Mermaid message
    in the body; they are reported in RenderResult.error, never raised.
    """

    def __init__(self, base_url: str = KROKI_URL, timeout: int = RENDER_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def render(self, code: str, tasks=None) -> RenderResult:
        if not validate_mermaid(code):
            return RenderResult(error="Mermaid render error: missing flowchart declaration")

        chart = annotate_chart(code, tasks) if tasks else code

        try:
            response = requests.post(
                f"{self.base_url}/mermaid/svg",
                data=chart.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            print(f"[RENDER] Kroki unreachable: {e}")
            return RenderResult(error=f"Mermaid render error: {e}")

        if response.status_code != 200:
            detail = response.text.strip() or f"HTTP {response.status_code}"
            print(f"[RENDER] Kroki rejected diagram ({response.status_code})")
            return RenderResult(error=f"Mermaid render error: {detail}")

        return RenderResult(svg=response.text)
