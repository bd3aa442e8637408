#!/usr/bin/env python3
"""Video-to-App - turn a YouTube video into an interactive web mini-app.

Usage:
    python main.py generate --url "https://www.youtube.com/watch?v=..."
    python main.py generate --url "..." --output-dir out/my-app --verbose
    python main.py generate --url "..." --no-validate
    python main.py serve --port 5001
"""

import argparse
import logging
import os
import sys

from agents.reviewer import format_runtime_errors
from config.defaults import DEFAULTS
from core.errors import InputValidationError
from core.orchestrator import Orchestrator
from core.state import STEP_MESSAGES, GenerationRequest, GenerationStep
from utils.youtube import validate_youtube_url


def _print_step(state):
    print(f"[{state.step.value}] {STEP_MESSAGES[state.step]}")


def cmd_generate(args):
    url = args.url.strip()
    if not args.no_validate and DEFAULTS["validate_input_url"]:
        try:
            url = validate_youtube_url(url)
        except InputValidationError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)

    orchestrator = Orchestrator()
    state = orchestrator.create_state(GenerationRequest(video_url=url))
    state = orchestrator.run(state, on_step=_print_step)

    if state.step == GenerationStep.ERROR:
        print(f"\nContent generation failed: {state.error}", file=sys.stderr)
        sys.exit(1)

    print(f"\nTitle:  {state.title}")
    print(f"Runtime errors fixed during review:\n{format_runtime_errors(state.probe_errors)}")
    if args.verbose:
        print(f"\nSpec:\n{state.spec}")

    output_dir = args.output_dir or os.path.join("output", _slug(state.title))
    written = orchestrator.write_files(state, output_dir)
    preview_path = os.path.join(output_dir, "preview.html")
    with open(preview_path, "w") as fp:
        fp.write(state.render_html)

    print(f"\nWrote {len(written)} file(s) to {output_dir}:")
    for name in written:
        print(f"  {name}")
    print(f"Preview: {preview_path}")


def _slug(title):
    cleaned = "".join(c.lower() if c.isalnum() else "-" for c in title)
    return "-".join(part for part in cleaned.split("-") if part)[:60] or "app"


def cmd_serve(args):
    from server import app
    print(f"Video-to-App running at http://localhost:{args.port}")
    app.run(debug=False, port=args.port, threaded=True)


def main():
    parser = argparse.ArgumentParser(
        prog="video2app",
        description="Generate an interactive web app from a YouTube video",
    )
    parser.add_argument("--log-level", default="WARNING",
                        help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser("generate", help="Run the generation pipeline once")
    gen_parser.add_argument("--url", required=True, help="YouTube video URL")
    gen_parser.add_argument("--output-dir", help="Where to write the generated files")
    gen_parser.add_argument("--no-validate", action="store_true",
                            help="Skip the YouTube URL existence check")
    gen_parser.add_argument("--verbose", action="store_true",
                            help="Print the generated spec")

    serve_parser = subparsers.add_parser("serve", help="Start the web UI")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 5001)))

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if args.command == "generate":
        cmd_generate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
