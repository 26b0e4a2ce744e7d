import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from canvas.memory import MemoryCanvas
from config.settings import get_settings
from message_handler import MessageHandler
from models.events import Event
from ports.canvas import NodeRole
from services.reporting import print_summary
from utils.logging_setup import init_logging


def _load_canvas(path) -> MemoryCanvas:
	if not path:
		return MemoryCanvas()
	data = json.loads(Path(path).read_text(encoding="utf-8"))
	return MemoryCanvas.from_dict(data)


def _select_frames(canvas: MemoryCanvas, names: List[str]) -> None:
	if not names:
		return
	wanted = set(names)
	frames = canvas.find_all(lambda n: n.role == NodeRole.FRAME and n.name in wanted)
	canvas.select(frames)


def _settings_payload(args) -> Dict[str, Any]:
	return {
		"batchSize": args.batch_size,
		"imageProcessing": args.image_processing,
		"frameLayout": args.layout,
	}


def _run(message: Dict[str, Any], args) -> int:
	canvas = _load_canvas(getattr(args, "canvas", None))
	_select_frames(canvas, getattr(args, "select", None) or [])
	events: List[Dict[str, Any]] = []

	def _emit(event: Event) -> None:
		msg = event.to_message()
		events.append(msg)
		print(json.dumps(msg, ensure_ascii=False), flush=True)

	handler = MessageHandler(canvas, _emit)
	ctx = handler.handle(message)

	output = getattr(args, "output", None)
	output_path = Path(output) if output else None
	if output_path is not None:
		output_path.write_text(json.dumps(canvas.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
	if getattr(args, "summary", False):
		records = len(ctx.records) if ctx else 0
		containers = len(ctx.containers) if ctx else 0
		print_summary(events, records=records, containers=containers, output_path=output_path)
	return 1 if any(e.get("type") == "error" for e in events) else 0


def cmd_process_csv(args) -> int:
	csv_text = Path(args.input).read_text(encoding="utf-8")
	return _run({"type": "process-data", "csvData": csv_text, "settings": _settings_payload(args)}, args)


def cmd_process_sheets(args) -> int:
	return _run({"type": "process-sheets", "sheetsUrl": args.url, "settings": _settings_payload(args)}, args)


def cmd_test_connection(args) -> int:
	results: List[Dict[str, Any]] = []

	def _emit(event: Event) -> None:
		msg = event.to_message()
		results.append(msg)
		print(json.dumps(msg, indent=2, ensure_ascii=False), flush=True)

	MessageHandler(MemoryCanvas(), _emit).handle({"type": "test-connection", "sheetsUrl": args.url})
	return 0 if results and results[-1].get("success") else 1


def _add_run_flags(p: argparse.ArgumentParser) -> None:
	p.add_argument("--canvas", help="Canvas JSON document to populate (empty canvas if omitted)")
	p.add_argument("--output", "-o", help="Write the populated canvas JSON here")
	p.add_argument("--batch-size", type=int, default=10, help="Profiles processed concurrently per batch (default: 10)")
	p.add_argument("--image-processing", choices=["original", "remove-background"], default="original")
	p.add_argument("--layout", choices=["auto", "grid", "list"], default="auto", help="Placement of cloned frames")
	p.add_argument("--select", action="append", help="Pre-select a frame by name (repeatable)")
	p.add_argument("--summary", action="store_true", help="Print a run summary after the event stream")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Profile populator CLI")
	sub = parser.add_subparsers(dest="command", required=True)

	p_csv = sub.add_parser("process-csv", help="Populate frames from a CSV file")
	p_csv.add_argument("--input", "-i", required=True, help="CSV file with a Name column")
	_add_run_flags(p_csv)
	p_csv.set_defaults(func=cmd_process_csv)

	p_sheets = sub.add_parser("process-sheets", help="Populate frames from a shared Google Sheet")
	p_sheets.add_argument("--url", required=True, help="Google Sheets sharing URL")
	_add_run_flags(p_sheets)
	p_sheets.set_defaults(func=cmd_process_sheets)

	p_test = sub.add_parser("test-connection", help="Diagnose access to a shared Google Sheet")
	p_test.add_argument("--url", required=True, help="Google Sheets sharing URL")
	p_test.set_defaults(func=cmd_test_connection)
	return parser


def main(argv=None) -> int:
	init_logging(get_settings().log_level)
	args = build_parser().parse_args(argv)
	return args.func(args)


if __name__ == "__main__":
	sys.exit(main())
