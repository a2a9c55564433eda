import json
import threading
import urllib.request
from pathlib import Path

import gui_server

EVENTS = json.dumps(
    [{"description": "Standup", "start": "9:15am", "end": "9:30am", "location": "Office"}]
)


def test_payload_for_valid_input() -> None:
    payload = gui_server.build_payload(EVENTS)
    assert payload["ok"] is True
    assert payload["summary"] == "1 event in 1 location, 9am-10am"
    assert payload["schedule"]["groups"][0]["location"] == "Office"
    assert "Standup" in payload["html"]


def test_payload_for_invalid_input() -> None:
    payload = gui_server.build_payload("[1, 2")
    assert payload["ok"] is False
    assert payload["error"].startswith("Problem with the value at json")


def test_cache_reuses_result_for_same_input() -> None:
    calls: list[str] = []

    def build(text: str, layout: dict | None) -> dict:
        calls.append(text)
        return {"text": text}

    cache = gui_server.ResultCache()
    first = cache.get_or_build("[]", None, build)
    assert cache.get_or_build("[]", None, build) is first
    cache.get_or_build("[ ]", None, build)
    cache.get_or_build("[]", None, build)
    cache.get_or_build("[]", {"unit_width": 2.0}, build)
    assert calls == ["[]", "[ ]", "[]", "[]"]


def test_server_round_trip(tmp_path: Path) -> None:
    ui_dir = tmp_path / "ui"
    ui_dir.mkdir()
    (ui_dir / "index.html").write_text("<h1>editor</h1>", encoding="utf-8")
    server = gui_server.make_server("127.0.0.1", 0, tmp_path / "layout.json", ui_dir)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        request = urllib.request.Request(
            f"{base}/api/schedule", data=EVENTS.encode("utf-8"), method="POST"
        )
        with urllib.request.urlopen(request) as response:
            payload = json.loads(response.read())
        assert payload["ok"] is True
        assert payload["schedule"]["window"] == {"start_hour": 9, "end_hour": 10}

        request = urllib.request.Request(
            f"{base}/api/layout", data=b'{"minutes_per_unit": 5}', method="POST"
        )
        with urllib.request.urlopen(request) as response:
            assert json.loads(response.read()) == {"ok": True}
        with urllib.request.urlopen(f"{base}/api/layout") as response:
            assert json.loads(response.read())["minutes_per_unit"] == 5

        with urllib.request.urlopen(f"{base}/index.html") as response:
            assert b"editor" in response.read()
    finally:
        server.shutdown()
        server.server_close()
