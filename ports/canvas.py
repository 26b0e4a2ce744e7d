from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple


class NodeRole(str, Enum):
    FRAME = "frame"
    TEXT = "text"
    FILLABLE_SHAPE = "fillable_shape"
    OTHER = "other"


RGB = Tuple[float, float, float]


class CanvasNode(Protocol):
    id: str
    name: str
    role: NodeRole
    x: float
    y: float
    width: float
    height: float
    characters: str
    font_family: Optional[str]
    font_style: Optional[str]
    children: List["CanvasNode"]
    parent: Optional["CanvasNode"]


class CanvasPort(Protocol):
    """Host document surface consumed by the allocator and population engine."""

    def selection(self) -> List[CanvasNode]:
        ...

    def find_all(self, predicate: Callable[[CanvasNode], bool], root: Optional[CanvasNode] = None) -> List[CanvasNode]:
        ...

    def create_frame(self, name: str, width: float, height: float, fill: Optional[RGB] = None) -> CanvasNode:
        ...

    def create_text(self, name: str, characters: str, family: str, style: str, font_size: Optional[float] = None) -> CanvasNode:
        ...

    def create_rectangle(self, name: str, width: float, height: float, fill: Optional[RGB] = None) -> CanvasNode:
        ...

    def clone(self, node: CanvasNode) -> CanvasNode:
        ...

    def append_child(self, parent: CanvasNode, child: CanvasNode) -> None:
        ...

    def move(self, node: CanvasNode, x: float, y: float) -> None:
        ...

    def rename(self, node: CanvasNode, name: str) -> None:
        ...

    def load_font(self, family: str, style: str) -> None:
        """Raise errors.FontLoadError when the font is unavailable."""
        ...

    def set_text(self, node: CanvasNode, characters: str, family: Optional[str] = None, style: Optional[str] = None) -> None:
        ...

    def set_image_fill(self, node: CanvasNode, image_hash: str) -> None:
        ...

    def set_solid_fill(self, node: CanvasNode, color: RGB) -> None:
        ...

    def set_stroke(self, node: CanvasNode, color: RGB, weight: float) -> None:
        ...

    def create_image(self, data: bytes) -> str:
        """Decode raw bytes into a registered image; returns its hash."""
        ...

    def descendants(self, node: CanvasNode) -> Sequence[CanvasNode]:
        ...
