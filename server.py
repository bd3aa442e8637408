#!/usr/bin/env python3
"""Video-to-App web UI server."""

import logging
import os

from flask import Flask, jsonify, request, send_file

from config.defaults import DEFAULTS
from config.examples import EXAMPLES, example_files, find_example
from core.controller import RunController
from core.errors import InputValidationError
from core.state import GenerationRequest, SourceFile, files_to_dicts
from utils.history import HistoryStore
from utils.youtube import get_thumbnail_url, validate_youtube_url


_SHELL_PAGE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "VideoToApp.html")

app = Flask(__name__)
history = HistoryStore()
controller = RunController(history=history)


def _history_item_to_dict(item, include_files=False):
    data = {
        "id": item.id,
        "title": item.title,
        "video_url": item.video_url,
        "timestamp": item.timestamp,
    }
    if include_files:
        data["spec"] = item.spec
        data["files"] = files_to_dicts(item.files)
    return data


def _files_from_json(raw):
    if not isinstance(raw, list):
        return None
    files = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            return None
        files.append(SourceFile(name=item["name"], content=str(item.get("content", ""))))
    return files


@app.route("/")
def index():
    return send_file(_SHELL_PAGE)


@app.route("/api/generate", methods=["POST"])
def api_generate():
    """Start a generation run for a YouTube URL (supersedes any run in flight).

    Optional "spec" plus "files" (or a single-document "code") skip generation
    and show the supplied app directly.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not str(data.get("url", "")).strip():
        return jsonify({"error": "Missing url"}), 400

    url = str(data["url"]).strip()
    spec = data.get("spec")
    files = _files_from_json(data["files"]) if "files" in data else None
    if files is None and isinstance(data.get("code"), str):
        files = [SourceFile(name="index.html", content=data["code"])]
    pre_seeded = bool(spec) and bool(files)

    # A typed URL that matches a gallery example shows that example.
    example_index = None if pre_seeded else find_example(url)
    if example_index is not None:
        return _start_example(example_index)

    if not pre_seeded and DEFAULTS["validate_input_url"]:
        try:
            url = validate_youtube_url(url)
        except InputValidationError as e:
            return jsonify({"error": str(e)}), 400

    run_id = controller.start(GenerationRequest(
        video_url=url,
        spec=spec if pre_seeded else None,
        files=files if pre_seeded else None,
    ))
    return jsonify({"run_id": run_id, "video_url": url}), 202


@app.route("/api/status")
def api_status():
    """Snapshot of the current run."""
    snapshot = controller.snapshot()
    if snapshot is None:
        return jsonify({"step": "idle", "run_id": None})
    return jsonify(snapshot)


@app.route("/api/console", methods=["POST"])
def api_console():
    """Receive a console-bridge envelope from the visible preview."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    run_id = data.get("run_id")
    if run_id != controller.current_run_id:
        return jsonify({"accepted": False, "reason": "stale run"}), 409
    message = controller.publish_console(run_id, data.get("message"))
    return jsonify({"accepted": message is not None})


@app.route("/api/history")
def api_history():
    return jsonify([_history_item_to_dict(i) for i in history.list()])


@app.route("/api/history", methods=["DELETE"])
def api_clear_history():
    history.clear()
    return jsonify({"cleared": True})


@app.route("/api/history/<int:item_id>")
def api_history_item(item_id):
    item = history.get(item_id)
    if item is None:
        return jsonify({"error": "History entry not found"}), 404
    return jsonify(_history_item_to_dict(item, include_files=True))


@app.route("/api/history/<int:item_id>/load", methods=["POST"])
def api_history_load(item_id):
    """Show a history entry again without calling the model."""
    item = history.get(item_id)
    if item is None:
        return jsonify({"error": "History entry not found"}), 404
    run_id = controller.start(GenerationRequest(
        video_url=item.video_url, spec=item.spec, files=list(item.files),
    ))
    return jsonify({"run_id": run_id, "video_url": item.video_url}), 202


def _start_example(index):
    example = EXAMPLES[index]
    run_id = controller.start(GenerationRequest(
        video_url=example["url"], spec=example["spec"], files=example_files(example),
    ))
    return jsonify({"run_id": run_id, "video_url": example["url"],
                    "example": index}), 202


@app.route("/api/examples")
def api_examples():
    return jsonify([
        {"index": i, "title": e["title"], "video_url": e["url"],
         "thumbnail_url": get_thumbnail_url(e["url"])}
        for i, e in enumerate(EXAMPLES)
    ])


@app.route("/api/examples/<int:index>/load", methods=["POST"])
def api_example_load(index):
    """Show a gallery example without validation or model calls."""
    if index >= len(EXAMPLES):
        return jsonify({"error": "Example not found"}), 404
    return _start_example(index)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5001))
    print(f"Video-to-App running at http://localhost:{port}")
    app.run(debug=False, port=port, threaded=True)
