from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from config.keywords import TEMPLATE_KEYWORDS, matches_any
from config.settings import Settings, get_settings
from errors import FontLoadError, NoTemplateError
from ports.canvas import CanvasNode, CanvasPort, NodeRole


logger = logging.getLogger(__name__)

LAYOUT_GAP = 20
GRID_COLUMNS = 4

DEFAULT_TEMPLATE_NAME = "Profile Template"
DEFAULT_TEMPLATE_SIZE = (300, 400)
DEFAULT_TEMPLATE_FILL = (1.0, 1.0, 1.0)
DEFAULT_SLOT_FILL = (0.9, 0.9, 0.9)

# (node name, placeholder text, x, y)
DEFAULT_TEMPLATE_TEXTS: List[Tuple[str, str, float, float]] = [
    ("Name", "Name", 20, 20),
    ("Designation", "Designation", 20, 50),
    ("Org", "Organization", 20, 80),
]
DEFAULT_TEMPLATE_IMAGE = ("ProfileImage", 100, 100, 20, 120)


def clone_position(template: CanvasNode, index: int, layout: str) -> Tuple[float, float]:
    """Position of the container at ``index`` in the final list, relative to ``template``."""
    step_x = template.width + LAYOUT_GAP
    step_y = template.height + LAYOUT_GAP
    if layout == "grid":
        row, col = divmod(index, GRID_COLUMNS)
        return template.x + col * step_x, template.y + row * step_y
    if layout == "list":
        return template.x, template.y + index * step_y
    return template.x + index * step_x, template.y


def _is_ancestor(candidate: CanvasNode, node: CanvasNode) -> bool:
    current = node.parent
    while current is not None:
        if current is candidate:
            return True
        current = current.parent
    return False


class ContainerAllocator:
    def __init__(self, canvas: CanvasPort, settings: Optional[Settings] = None) -> None:
        self.canvas = canvas
        self.settings = settings or get_settings()

    def allocate(self, required_count: int, layout: str = "auto") -> List[CanvasNode]:
        """Return exactly ``required_count`` frame containers, creating what is missing."""
        if required_count <= 0:
            return []
        chosen: List[CanvasNode] = []

        for node in self.canvas.selection():
            if node.role == NodeRole.FRAME and self._is_free(node, chosen):
                chosen.append(node)
        logger.info(f"Using {len(chosen)} selected frames", extra={"step": "allocate"})

        if len(chosen) < required_count:
            candidates = self.canvas.find_all(
                lambda n: n.role == NodeRole.FRAME and matches_any(n.name, TEMPLATE_KEYWORDS)
            )
            for node in candidates:
                if len(chosen) >= required_count:
                    break
                if self._is_free(node, chosen):
                    chosen.append(node)
            logger.info(f"Found {len(chosen)} template frames", extra={"step": "allocate"})

        if chosen and len(chosen) < required_count:
            self._clone_to_fill(chosen, required_count, layout)

        if not chosen:
            chosen.append(self._synthesize_template())
            self._clone_to_fill(chosen, required_count, "auto")

        if not chosen:
            raise NoTemplateError(
                'No template frames found. Please create a template frame and select it, '
                'or name it with "template" in the title.'
            )
        return chosen[:required_count]

    @staticmethod
    def _is_free(node: CanvasNode, chosen: List[CanvasNode]) -> bool:
        """Not already chosen, and not nested inside (or around) a chosen container."""
        for other in chosen:
            if node is other or _is_ancestor(other, node) or _is_ancestor(node, other):
                return False
        return True

    def _clone_to_fill(self, chosen: List[CanvasNode], required_count: int, layout: str) -> None:
        template = chosen[0]
        needed = required_count - len(chosen)
        logger.info(f"Duplicating template frame {template.name} {needed} times", extra={"step": "allocate"})
        while len(chosen) < required_count:
            index = len(chosen)
            duplicate = self.canvas.clone(template)
            x, y = clone_position(template, index, layout)
            self.canvas.move(duplicate, x, y)
            self.canvas.rename(duplicate, f"{template.name} {index + 1}")
            chosen.append(duplicate)

    def _load_template_font(self) -> Tuple[str, str]:
        fonts = [
            (self.settings.template_font_family, self.settings.template_font_style),
            (self.settings.default_font_family, self.settings.default_font_style),
        ]
        for family, style in fonts:
            try:
                self.canvas.load_font(family, style)
                return family, style
            except FontLoadError as e:
                logger.warning(f"Template font unavailable: {e}", extra={"step": "allocate"})
        raise NoTemplateError("No template frames found and no font is available to create one.")

    def _synthesize_template(self) -> CanvasNode:
        logger.info("No template frames found, creating basic template", extra={"step": "allocate"})
        family, style = self._load_template_font()
        width, height = DEFAULT_TEMPLATE_SIZE
        frame = self.canvas.create_frame(DEFAULT_TEMPLATE_NAME, width, height, fill=DEFAULT_TEMPLATE_FILL)

        for name, characters, x, y in DEFAULT_TEMPLATE_TEXTS:
            text = self.canvas.create_text(name, characters, family, style)
            self.canvas.append_child(frame, text)
            self.canvas.move(text, x, y)

        slot_name, slot_w, slot_h, slot_x, slot_y = DEFAULT_TEMPLATE_IMAGE
        slot = self.canvas.create_rectangle(slot_name, slot_w, slot_h, fill=DEFAULT_SLOT_FILL)
        self.canvas.append_child(frame, slot)
        self.canvas.move(slot, slot_x, slot_y)
        return frame
