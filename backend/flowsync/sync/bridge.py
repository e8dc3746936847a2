"""
Bidirectional sync between a raw-text editor and the structural views.

The bridge owns the one authoritative text buffer. Structural actions go
through the mutator and push the result into the editor; editor keystrokes
only re-parse. Pushing text into an editor makes it fire its own change
notification, so every push arms one pending echo that the next
notification consumes instead of re-parsing.
"""

from typing import Callable, List, Optional

from flowsync.dsl import mutator
from flowsync.dsl.mermaid import is_valid_id
from flowsync.dsl.parser import parse_mermaid
from flowsync.visual.visual_schema import Direction, NodeShape, VisualGraph


class TextEditor:
    """Editor collaborator: anything that can display text."""

    def set_value(self, text: str) -> None:
        raise NotImplementedError("Subclasses must implement set_value().")


class SyncBridge:
    """
    Usage:
        bridge = SyncBridge(editor=monaco_adapter, renderer=MermaidRenderer())
        bridge.load(store.load_latest_code("processus-eer"))
        bridge.add_edge("A", "B", "Oui")
        ...
        editor.on_change(bridge.on_editor_change)
    """

    def __init__(self, code: str = "", editor: Optional[TextEditor] = None, renderer=None):
        self.editor = editor
        self.renderer = renderer
        self.code = code
        self.graph = VisualGraph()
        self.parse_count = 0
        self.render_error: Optional[str] = None
        self.svg: Optional[str] = None
        self._pending_echoes = 0
        self._listeners: List[Callable[[VisualGraph], None]] = []
        self._reparse()

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    @property
    def awaiting_echo(self) -> bool:
        return self._pending_echoes > 0

    def on_graph(self, callback: Callable[[VisualGraph], None]) -> None:
        """Register a structural view; called after every re-parse."""
        self._listeners.append(callback)

    def _reparse(self) -> VisualGraph:
        previous = self.graph.direction if self.graph else Direction.TD
        self.graph = parse_mermaid(self.code, default_direction=previous)
        self.parse_count += 1
        for callback in self._listeners:
            callback(self.graph)
        return self.graph

    def _push_to_editor(self) -> None:
        if self.editor is None:
            return
        # Arm before pushing: some editors notify synchronously inside set_value
        self._pending_echoes += 1
        self.editor.set_value(self.code)

    def _commit(self, new_code: str) -> VisualGraph:
        """Structural-origin write: buffer, one re-parse, editor push."""
        self.code = new_code
        graph = self._reparse()
        self._push_to_editor()
        return graph

    # ------------------------------------------------------------------ #
    # Text-editor origin
    # ------------------------------------------------------------------ #

    def on_editor_change(self, text: str) -> Optional[VisualGraph]:
        """Editor change notification. Returns the new graph, or None for an echo."""
        if self._pending_echoes > 0:
            self._pending_echoes -= 1
            return None

        self.code = text
        return self._reparse()

    def load(self, code: str) -> VisualGraph:
        """Replace the buffer wholesale, e.g. with the latest stored version."""
        return self._commit(code or "")

    # ------------------------------------------------------------------ #
    # Structural-UI origin
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_id(node_id: str) -> None:
        if not is_valid_id(node_id):
            raise ValueError(f"'{node_id}' cannot be used as a node id")

    def add_node(self, label: str, shape=NodeShape.RECTANGLE, node_id: Optional[str] = None) -> str:
        """
        Append a node declaration and return its id (generated when omitted).
        Raises ValueError for an id that is taken, reserved or not a word.
        """
        if node_id is None:
            node_id = mutator.next_node_id(self.graph)
        else:
            self._check_id(node_id)
            if self.graph.get_node(node_id) is not None:
                raise ValueError(f"Node '{node_id}' already exists")
        self._commit(mutator.add_node(self.code, node_id, label, shape))
        return node_id

    def edit_node(self, node_id: str, label: str, shape) -> VisualGraph:
        return self._commit(mutator.edit_node(self.code, node_id, label, shape))

    def delete_node(self, node_id: str) -> VisualGraph:
        return self._commit(mutator.delete_node(self.code, node_id))

    def add_edge(self, source: str, target: str, label: Optional[str] = None) -> VisualGraph:
        self._check_id(source)
        self._check_id(target)
        return self._commit(mutator.add_edge(self.code, source, target, label))

    def delete_edge(self, source: str, target: str, label: Optional[str] = None) -> VisualGraph:
        return self._commit(mutator.delete_edge(self.code, source, target, label))

    def set_direction(self, direction) -> VisualGraph:
        return self._commit(mutator.set_direction(self.code, direction))

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render(self, tasks=None):
        """
        Ask the renderer collaborator for an SVG of the current buffer.
        A failure is kept in `render_error`; buffer and graph are untouched.
        """
        if self.renderer is None:
            return None

        result = self.renderer.render(self.code, tasks=tasks)
        if result.ok:
            self.svg = result.svg
            self.render_error = None
        else:
            self.render_error = result.error
            print(f"[SYNC] Render failed: {result.error}")
        return result
