from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional


def summarize_events(events: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Fold a run's event messages into the numbers shown by ``print_summary``."""
    summary: Dict[str, Any] = {"statuses": 0, "batches": 0, "processed": 0, "total": 0, "time_ms": 0, "errors": []}
    for event in events:
        kind = event.get("type")
        if kind == "status":
            summary["statuses"] += 1
        elif kind == "progress":
            summary["batches"] += 1
            summary["total"] = event.get("total", 0)
        elif kind == "complete":
            summary["processed"] = event.get("total", 0)
            summary["time_ms"] = event.get("time", 0)
        elif kind == "error":
            summary["errors"].append(event.get("message", ""))
    return summary


def print_summary(events: List[Dict[str, Any]], records: int = 0, containers: int = 0, output_path: Optional[Path] = None) -> None:
    """Print summary of a population run."""
    summary = summarize_events(events)

    print("\n" + "="*60)
    print("PROFILE POPULATOR - SUMMARY")
    print("="*60)
    print(f"Records Parsed: {records}")
    print(f"Containers Allocated: {containers}")
    print(f"Profiles Processed: {summary['processed']}/{summary['total']}")
    print(f"Batches: {summary['batches']}")
    print(f"Elapsed: {summary['time_ms']} ms")
    if summary["errors"]:
        print()
        print("Errors:")
        for message in summary["errors"]:
            print(f"  {message}")
    if output_path:
        print(f"Output File: {output_path}")
    print("="*60)
