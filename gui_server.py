#!/usr/bin/env python3
"""Local editor server: post event JSON, get the schedule back."""

from __future__ import annotations

import argparse
import hashlib
import json
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

import layout_config
from schedule_tool import (
    describe_schedule,
    render_schedule_html,
    schedule_or_error,
    schedule_to_dict,
)


def build_payload(text: str, layout: dict | None = None) -> dict:
    schedule, error = schedule_or_error(text)
    if schedule is None:
        return {"ok": False, "error": error}
    minutes_per_unit, _ = layout_config.get_scale(layout)
    return {
        "ok": True,
        "summary": describe_schedule(schedule),
        "schedule": schedule_to_dict(schedule, minutes_per_unit),
        "html": render_schedule_html(schedule, layout=layout),
    }


class ResultCache:
    """Holds the payload for the most recent input only."""

    def __init__(self) -> None:
        self._entry: tuple[str, dict] | None = None

    @staticmethod
    def key_for(text: str, layout: dict | None) -> str:
        layout_key = json.dumps(layout or {}, sort_keys=True)
        return hashlib.sha256(f"{layout_key}\0{text}".encode("utf-8")).hexdigest()

    def get_or_build(
        self,
        text: str,
        layout: dict | None,
        build: Callable[[str, dict | None], dict] = build_payload,
    ) -> dict:
        key = self.key_for(text, layout)
        entry = self._entry
        if entry is not None and entry[0] == key:
            return entry[1]
        payload = build(text, layout)
        self._entry = (key, payload)
        return payload


class ScheduleHandler(SimpleHTTPRequestHandler):
    def __init__(self, *args, directory: Path, layout_path: Path, cache: ResultCache, **kwargs):
        self.layout_path = layout_path
        self.cache = cache
        super().__init__(*args, directory=str(directory), **kwargs)

    def log_message(self, format: str, *args) -> None:
        return

    def send_json(self, status: int, payload: dict | list) -> None:
        body = json.dumps(payload, indent=2).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def read_body(self) -> str:
        length = int(self.headers.get("Content-Length", "0"))
        return self.rfile.read(length).decode("utf-8") if length else ""

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/layout":
            self.handle_layout()
            return
        super().do_GET()

    def do_POST(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/schedule":
            self.handle_schedule()
            return
        if parsed.path == "/api/layout":
            self.handle_layout_update()
            return
        self.send_error(404, "Unknown endpoint")

    def handle_schedule(self) -> None:
        try:
            text = self.read_body()
        except UnicodeDecodeError:
            self.send_json(400, {"ok": False, "error": "Request body is not valid UTF-8"})
            return
        layout = layout_config.load_layout(self.layout_path)
        self.send_json(200, self.cache.get_or_build(text, layout))

    def handle_layout(self) -> None:
        layout = layout_config.load_layout(self.layout_path)
        self.send_json(200, layout)

    def handle_layout_update(self) -> None:
        try:
            raw = self.read_body()
            payload = json.loads(raw) if raw else {}
        except (ValueError, RecursionError):
            self.send_json(400, {"error": "Invalid JSON"})
            return
        layout_config.save_layout(self.layout_path, payload)
        self.send_json(200, {"ok": True})


def make_server(host: str, port: int, layout_path: Path, ui_dir: Path) -> ThreadingHTTPServer:
    cache = ResultCache()
    handler = lambda *args, **kwargs: ScheduleHandler(
        *args,
        directory=ui_dir,
        layout_path=layout_path,
        cache=cache,
        **kwargs,
    )
    return ThreadingHTTPServer((host, port), handler)


def run_server(host: str, port: int, layout_path: Path, ui_dir: Path) -> None:
    server = make_server(host, port, layout_path, ui_dir)
    print(f"Editor running at http://{host}:{port}")
    server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the schedule editor server.")
    parser.add_argument("--layout", type=Path, default=Path("layout.json"))
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8787)
    parser.add_argument("--ui-dir", type=Path, default=Path(__file__).resolve().parent / "ui")
    args = parser.parse_args()

    if not args.ui_dir.exists():
        raise SystemExit(f"UI directory not found: {args.ui_dir}")

    run_server(args.host, args.port, args.layout, args.ui_dir)


if __name__ == "__main__":
    main()
