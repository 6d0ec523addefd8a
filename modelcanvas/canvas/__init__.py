"""Canvas synchronization component package."""
from .changes import NodeChange
from .nodes import CanvasEdge, CanvasNode
from .synchronizer import CanvasSynchronizer

__all__ = [
    "CanvasSynchronizer",
    "CanvasNode",
    "CanvasEdge",
    "NodeChange",
]
