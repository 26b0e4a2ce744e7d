from .canvas import CanvasNode, CanvasPort, NodeRole
from .sheets import SheetRef, SheetStrategyPort
from .images import BackgroundRemoverPort, ImageFetcherPort

__all__ = [
    "CanvasNode",
    "CanvasPort",
    "NodeRole",
    "SheetRef",
    "SheetStrategyPort",
    "BackgroundRemoverPort",
    "ImageFetcherPort",
]
