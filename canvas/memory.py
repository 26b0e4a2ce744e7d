from __future__ import annotations

import base64
import copy
import hashlib
import io
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from errors import FetchError, FontLoadError
from ports.canvas import NodeRole, RGB


_ROLE_BY_KIND: Dict[str, NodeRole] = {
    "FRAME": NodeRole.FRAME,
    "TEXT": NodeRole.TEXT,
    "RECTANGLE": NodeRole.FILLABLE_SHAPE,
    "ELLIPSE": NodeRole.FILLABLE_SHAPE,
}

DEFAULT_FONTS: Tuple[Tuple[str, str], ...] = (
    ("Inter", "Regular"),
    ("Inter", "Bold"),
    ("Roboto", "Regular"),
    ("Roboto", "Bold"),
)


@dataclass(eq=False)
class Node:
    id: str
    name: str
    kind: str
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    characters: str = ""
    font_family: Optional[str] = None
    font_style: Optional[str] = None
    font_size: Optional[float] = None
    fills: List[Dict[str, Any]] = field(default_factory=list)
    strokes: List[Dict[str, Any]] = field(default_factory=list)
    stroke_weight: float = 0.0
    children: List["Node"] = field(default_factory=list)
    parent: Optional["Node"] = field(default=None, repr=False)

    @property
    def role(self) -> NodeRole:
        return _ROLE_BY_KIND.get(self.kind, NodeRole.OTHER)


def _solid(color: RGB) -> Dict[str, Any]:
    r, g, b = color
    return {"type": "SOLID", "color": {"r": r, "g": g, "b": b}}


class MemoryCanvas:
    """In-process canvas: a page of nodes, a selection, fonts and an image registry.

    All mutations take one lock so concurrent population units can share it.
    """

    def __init__(self, fonts: Optional[Iterable[Tuple[str, str]]] = None) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(2)
        self.page = Node(id="0:1", name="Page 1", kind="PAGE", width=0, height=0)
        self._selection: List[Node] = []
        self.available_fonts = set(fonts if fonts is not None else DEFAULT_FONTS)
        self.loaded_fonts: set = set()
        self.images: Dict[str, bytes] = {}

    # Building helpers (documents, tests)

    def _next_id(self) -> str:
        return f"1:{next(self._ids)}"

    def add_node(self, kind: str, name: str, parent: Optional[Node] = None, **attrs: Any) -> Node:
        with self._lock:
            node = Node(id=self._next_id(), name=name, kind=kind.upper(), **attrs)
            self._attach(parent or self.page, node)
            return node

    def select(self, nodes: Sequence[Node]) -> None:
        with self._lock:
            self._selection = list(nodes)

    # Queries

    def selection(self) -> List[Node]:
        with self._lock:
            return list(self._selection)

    def descendants(self, node: Node) -> List[Node]:
        out: List[Node] = []
        stack = list(reversed(node.children))
        while stack:
            current = stack.pop()
            out.append(current)
            stack.extend(reversed(current.children))
        return out

    def find_all(self, predicate: Callable[[Node], bool], root: Optional[Node] = None) -> List[Node]:
        with self._lock:
            return [n for n in self.descendants(root or self.page) if predicate(n)]

    # Creation

    def create_frame(self, name: str, width: float, height: float, fill: Optional[RGB] = None) -> Node:
        fills = [_solid(fill)] if fill else []
        return self.add_node("FRAME", name, width=width, height=height, fills=fills)

    def create_rectangle(self, name: str, width: float, height: float, fill: Optional[RGB] = None) -> Node:
        fills = [_solid(fill)] if fill else []
        return self.add_node("RECTANGLE", name, width=width, height=height, fills=fills)

    def create_text(self, name: str, characters: str, family: str, style: str, font_size: Optional[float] = None) -> Node:
        self._require_font(family, style)
        return self.add_node(
            "TEXT",
            name,
            characters=characters,
            font_family=family,
            font_style=style,
            font_size=font_size,
            width=max(len(characters), 1) * (font_size or 12) * 0.6,
            height=(font_size or 12) * 1.2,
        )

    def clone(self, node: Node) -> Node:
        with self._lock:
            parent = node.parent or self.page
            dup = self._copy_tree(node)
            index = parent.children.index(node) + 1 if node in parent.children else len(parent.children)
            dup.parent = parent
            parent.children.insert(index, dup)
            return dup

    def _copy_tree(self, node: Node) -> Node:
        dup = copy.copy(node)
        dup.id = self._next_id()
        dup.fills = copy.deepcopy(node.fills)
        dup.strokes = copy.deepcopy(node.strokes)
        dup.children = []
        for child in node.children:
            child_dup = self._copy_tree(child)
            child_dup.parent = dup
            dup.children.append(child_dup)
        return dup

    def append_child(self, parent: Node, child: Node) -> None:
        with self._lock:
            self._attach(parent, child)

    def _attach(self, parent: Node, child: Node) -> None:
        if child.parent is not None and child in child.parent.children:
            child.parent.children.remove(child)
        child.parent = parent
        parent.children.append(child)

    # Mutation

    def move(self, node: Node, x: float, y: float) -> None:
        with self._lock:
            node.x, node.y = x, y

    def rename(self, node: Node, name: str) -> None:
        with self._lock:
            node.name = name

    def load_font(self, family: str, style: str) -> None:
        with self._lock:
            if (family, style) not in self.available_fonts:
                raise FontLoadError(f"Font not available: {family} {style}")
            self.loaded_fonts.add((family, style))

    def _require_font(self, family: Optional[str], style: Optional[str]) -> None:
        if (family, style) not in self.loaded_fonts:
            raise FontLoadError(f"Font must be loaded before editing text: {family} {style}")

    def set_text(self, node: Node, characters: str, family: Optional[str] = None, style: Optional[str] = None) -> None:
        with self._lock:
            if family is not None:
                self._require_font(family, style)
                node.font_family, node.font_style = family, style
            else:
                self._require_font(node.font_family, node.font_style)
            node.characters = characters

    def set_image_fill(self, node: Node, image_hash: str) -> None:
        with self._lock:
            if image_hash not in self.images:
                raise KeyError(f"Unknown image hash: {image_hash}")
            node.fills = [{"type": "IMAGE", "imageHash": image_hash, "scaleMode": "FILL"}]

    def set_solid_fill(self, node: Node, color: RGB) -> None:
        with self._lock:
            node.fills = [_solid(color)]

    def set_stroke(self, node: Node, color: RGB, weight: float) -> None:
        with self._lock:
            node.strokes = [_solid(color)]
            node.stroke_weight = weight

    def create_image(self, data: bytes) -> str:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise FetchError(f"Unsupported image data: {e}") from e
        image_hash = hashlib.sha1(data).hexdigest()
        with self._lock:
            self.images.setdefault(image_hash, data)
        return image_hash

    # Documents

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "page": _node_to_dict(self.page),
                "selection": [n.id for n in self._selection],
                "fonts": sorted([list(f) for f in self.available_fonts]),
                "images": {h: base64.b64encode(b).decode("ascii") for h, b in self.images.items()},
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryCanvas":
        fonts = [tuple(f) for f in data.get("fonts") or []] or None
        canvas = cls(fonts=fonts)
        page = data.get("page") or {}
        for child in page.get("children") or []:
            canvas._node_from_dict(child, canvas.page)
        for h, b64 in (data.get("images") or {}).items():
            canvas.images[h] = base64.b64decode(b64)
        by_id = {n.id: n for n in canvas.descendants(canvas.page)}
        suffixes = [int(i.rsplit(":", 1)[-1]) for i in by_id if i.rsplit(":", 1)[-1].isdigit()]
        canvas._ids = itertools.count(max(suffixes, default=1) + 1)
        wanted = data.get("selection") or []
        canvas._selection = [by_id[i] for i in wanted if i in by_id]
        return canvas

    def _node_from_dict(self, raw: Dict[str, Any], parent: Node) -> Node:
        font = raw.get("fontName") or {}
        node = Node(
            id=str(raw.get("id") or f"2:{next(self._ids)}"),
            name=str(raw.get("name") or ""),
            kind=str(raw.get("type") or "FRAME").upper(),
            x=float(raw.get("x") or 0),
            y=float(raw.get("y") or 0),
            width=float(raw.get("width") or 100),
            height=float(raw.get("height") or 100),
            characters=str(raw.get("characters") or ""),
            font_family=font.get("family"),
            font_style=font.get("style"),
            font_size=raw.get("fontSize"),
            fills=list(raw.get("fills") or []),
            strokes=list(raw.get("strokes") or []),
            stroke_weight=float(raw.get("strokeWeight") or 0),
        )
        self._attach(parent, node)
        for child in raw.get("children") or []:
            self._node_from_dict(child, node)
        return node


def _node_to_dict(node: Node) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.kind,
        "x": node.x,
        "y": node.y,
        "width": node.width,
        "height": node.height,
    }
    if node.kind == "TEXT":
        out["characters"] = node.characters
        out["fontName"] = {"family": node.font_family, "style": node.font_style}
        if node.font_size is not None:
            out["fontSize"] = node.font_size
    if node.fills:
        out["fills"] = node.fills
    if node.strokes:
        out["strokes"] = node.strokes
        out["strokeWeight"] = node.stroke_weight
    if node.children:
        out["children"] = [_node_to_dict(c) for c in node.children]
    return out
