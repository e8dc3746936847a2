from flowsync.visual.visual_schema import (
    Direction,
    NodeShape,
    VisualEdge,
    VisualGraph,
    VisualNode,
)

__all__ = ["Direction", "NodeShape", "VisualEdge", "VisualGraph", "VisualNode"]
