"""Run the ChessGPT web app: `python -m chessgpt` or the `chessgpt` console script."""
from __future__ import annotations

import argparse
import getpass
import logging
from typing import Callable

from .config import Settings, load_settings
from .llm_client import LLMClient
from .server import create_app


def resolve_api_key(settings: Settings, ask: Callable[[str], str] = getpass.getpass) -> str:
    """Use the configured key, or ask for one interactively when none is set."""
    key = settings.openai_api_key
    if not key:
        key = ask("Please enter your OpenAI API key (local only): ").strip()
    if not key:
        raise SystemExit("An OpenAI API key is required to run ChessGPT.")
    return key


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="ChessGPT: let language models play chess in the browser")
    ap.add_argument("--settings", default=None, help="Path to a settings.yml (defaults to repo root / CHESSGPT_SETTINGS)")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")
    ap.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    args = ap.parse_args(argv)

    settings = load_settings(args.settings)
    log_level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("chessgpt")

    client = LLMClient.from_settings(settings, api_key=resolve_api_key(settings))
    app = create_app(client, settings=settings)
    host = args.host or settings.host
    port = args.port or settings.port
    log.info("Serving ChessGPT on http://%s:%d", host, port)
    app.run(host=host, port=port, debug=args.debug, use_reloader=False, threaded=True)


if __name__ == "__main__":
    main()
