from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

from config.keywords import IMAGE_SLOT_KEYWORDS, TEXT_ROLE_KEYWORDS, matches_any
from config.settings import Settings, get_settings
from errors import FontLoadError
from models import CompleteEvent, ImageFill, PlaceholderFill, ProcessingSettings, ProfileRecord, ProgressEvent
from models.image_result import ImageApplyResult
from ports.canvas import CanvasNode, CanvasPort, NodeRole
from services.image_resolver import ImageResolver


logger = logging.getLogger(__name__)

T = TypeVar("T")

NEW_SLOT_NAME = "Profile Image"
NEW_SLOT_SIZE = 100
INITIALS_LABEL_NAME = "Initials Label"


def classify_text_role(node_name: str) -> Optional[str]:
    for role, keywords in TEXT_ROLE_KEYWORDS:
        if matches_any(node_name, keywords):
            return role
    return None


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class PopulationEngine:
    """Binds records to containers in sequential batches with intra-batch concurrency."""

    def __init__(
        self,
        canvas: CanvasPort,
        resolver: ImageResolver,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.canvas = canvas
        self.resolver = resolver
        self.settings = settings or get_settings()
        self._sleep = sleep
        self._clock = clock

    def populate(
        self,
        containers: Sequence[CanvasNode],
        records: Sequence[ProfileRecord],
        processing: ProcessingSettings,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[Union[ProgressEvent, CompleteEvent]]:
        """Yield one progress event per finished batch, then one completion event."""
        pairs: List[Tuple[ProfileRecord, CanvasNode]] = list(zip(records, containers))
        if len(records) > len(containers):
            logger.warning(
                f"{len(records) - len(containers)} records have no container and are skipped",
                extra={"step": "populate"},
            )
        total = len(pairs)
        start = self._clock()
        processed = 0

        for batch_no, batch in enumerate(chunked(pairs, processing.batch_size), start=1):
            if cancel is not None and cancel.is_set():
                logger.info(f"Run cancelled before batch {batch_no}", extra={"step": "populate", "status": "cancelled"})
                break
            with ThreadPoolExecutor(max_workers=len(batch)) as ex:
                futures = [ex.submit(self.populate_one, container, record, processing) for record, container in batch]
                failed = sum(1 for fut in futures if not fut.result())
            processed += len(batch)

            elapsed_ms = (self._clock() - start) * 1000
            avg_ms = elapsed_ms / processed
            logger.info(
                f"Batch {batch_no} done: {processed}/{total} ({failed} failed)",
                extra={"step": "populate", "status": "ok", "duration_ms": int(elapsed_ms)},
            )
            yield ProgressEvent(
                current=processed,
                total=total,
                avg_time=round(avg_ms),
                remaining=round((total - processed) * avg_ms / 1000),
            )
            if processed < total and self.settings.batch_delay_ms > 0:
                self._sleep(self.settings.batch_delay_ms / 1000)

        yield CompleteEvent(total=processed, time=round((self._clock() - start) * 1000))

    def populate_one(self, container: CanvasNode, record: ProfileRecord, processing: ProcessingSettings) -> bool:
        """Populate one container; failures are logged, never raised."""
        try:
            self.bind_text(container, record)
            self.bind_image(container, record, processing.image_processing)
            return True
        except Exception as e:
            logger.warning(
                f"Failed to populate {container.name!r} with {record.name!r}: {e}",
                extra={"step": "populate", "status": "error", "record": record.name, "error": type(e).__name__},
            )
            return False

    # Text

    def bind_text(self, container: CanvasNode, record: ProfileRecord) -> int:
        values: Dict[str, str] = {
            "name": record.name,
            "designation": record.designation,
            "organization": record.organization,
        }
        updated = 0
        for node in self.canvas.find_all(lambda n: n.role == NodeRole.TEXT, root=container):
            role = classify_text_role(node.name)
            if role is None:
                continue
            new_text = values[role]
            if new_text == node.characters:
                continue
            if self._set_text(node, new_text):
                updated += 1
        return updated

    def _set_text(self, node: CanvasNode, text: str) -> bool:
        try:
            self.canvas.load_font(node.font_family, node.font_style)
            self.canvas.set_text(node, text)
            return True
        except FontLoadError as e:
            logger.debug(f"Font fallback for {node.name!r}: {e}")
        family, style = self.settings.default_font_family, self.settings.default_font_style
        try:
            self.canvas.load_font(family, style)
            self.canvas.set_text(node, text, family=family, style=style)
            return True
        except FontLoadError as e:
            logger.warning(f"Could not update text for {node.name!r}: {e}", extra={"step": "text", "status": "error"})
            return False

    # Image

    def find_image_slot(self, container: CanvasNode) -> Optional[CanvasNode]:
        slots = self.canvas.find_all(
            lambda n: n.role == NodeRole.FILLABLE_SHAPE and matches_any(n.name, IMAGE_SLOT_KEYWORDS),
            root=container,
        )
        return slots[0] if slots else None

    def create_image_slot(self, container: CanvasNode) -> CanvasNode:
        slot = self.canvas.create_rectangle(NEW_SLOT_NAME, NEW_SLOT_SIZE, NEW_SLOT_SIZE)
        self.canvas.append_child(container, slot)
        self.canvas.move(slot, 0, 0)
        return slot

    def bind_image(self, container: CanvasNode, record: ProfileRecord, processing_mode: str) -> ImageApplyResult:
        slot = self.find_image_slot(container) or self.create_image_slot(container)
        result = self.resolver.resolve(record.image_url, record.name, processing_mode)
        self.apply_image(slot, result)
        return result

    def apply_image(self, slot: CanvasNode, result: ImageApplyResult) -> None:
        label = self._find_initials_label(slot)
        if isinstance(result, ImageFill):
            self.canvas.set_image_fill(slot, result.image_hash)
            if label is not None and label.characters:
                self._set_text(label, "")
            return
        if not isinstance(result, PlaceholderFill):
            raise TypeError(f"Unsupported image result: {type(result).__name__}")

        self.canvas.set_solid_fill(slot, result.fill_color)
        self.canvas.set_stroke(slot, result.stroke_color, result.stroke_weight)
        if label is not None:
            self._set_text(label, result.initials)
            return
        family, style = self.settings.template_font_family, self.settings.template_font_style
        try:
            self.canvas.load_font(family, style)
        except FontLoadError:
            family, style = self.settings.default_font_family, self.settings.default_font_style
            self.canvas.load_font(family, style)
        font_size = PlaceholderFill.font_size_for(slot.width, slot.height)
        label = self.canvas.create_text(INITIALS_LABEL_NAME, result.initials, family, style, font_size=font_size)
        self.canvas.set_solid_fill(label, result.text_color)
        self.canvas.append_child(slot.parent, label)
        self.canvas.move(
            label,
            slot.x + (slot.width - label.width) / 2,
            slot.y + (slot.height - label.height) / 2,
        )

    def _find_initials_label(self, slot: CanvasNode) -> Optional[CanvasNode]:
        parent = slot.parent
        if parent is None:
            return None
        for child in parent.children:
            if child.role == NodeRole.TEXT and child.name == INITIALS_LABEL_NAME:
                return child
        return None
