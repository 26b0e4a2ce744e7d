from __future__ import annotations

from typing import Any, Dict, List


_REGISTRY: Dict[str, Any] = {}


def register(name: str, factory) -> None:
    _REGISTRY[name] = factory


def get_strategy(name: str, **kwargs):
    if name not in _REGISTRY:
        raise KeyError(f"Unknown strategy: {name}")
    return _REGISTRY[name](**kwargs)


def available_strategies() -> Dict[str, Any]:
    return dict(_REGISTRY)


def build_ladder(names: List[str], **kwargs) -> List[Any]:
    return [get_strategy(name, **kwargs) for name in names]
