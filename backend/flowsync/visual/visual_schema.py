from dataclasses import dataclass, field
from enum import Enum
from typing import List


class NodeShape(str, Enum):
    RECTANGLE = "rectangle"
    ROUNDED = "rounded"
    DIAMOND = "diamond"
    CIRCLE = "circle"
    PARALLELOGRAM = "parallelogram"

    @classmethod
    def coerce(cls, value) -> "NodeShape":
        """Unknown or empty shapes fall back to rectangle."""
        try:
            return cls(value)
        except ValueError:
            return cls.RECTANGLE


class Direction(str, Enum):
    TD = "TD"   # top-down
    LR = "LR"   # left-right
    BT = "BT"   # bottom-top
    RL = "RL"   # right-left


@dataclass
class VisualNode:
    id: str
    label: str
    shape: NodeShape = NodeShape.RECTANGLE


@dataclass
class VisualEdge:
    source: str
    target: str
    label: str = ""

    @property
    def key(self) -> tuple:
        return (self.source, self.target, self.label)


@dataclass
class VisualGraph:
    direction: Direction = Direction.TD
    nodes: List[VisualNode] = field(default_factory=list)
    edges: List[VisualEdge] = field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str):
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "nodes": [
                {"id": n.id, "label": n.label, "shape": n.shape.value}
                for n in self.nodes
            ],
            "edges": [
                {"from": e.source, "to": e.target, "label": e.label}
                for e in self.edges
            ],
        }
