"""Entry point for the scrollpad CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from scrollpad.config import Config
from scrollpad.errors import TerminalModeError

logger = logging.getLogger(__name__)


def _configure_logging(log_file: str | None, log_level: str) -> None:
    # Log records must never reach the alternate screen.
    if not log_file:
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="scrollpad",
        description="Type into a scrollable text buffer. Enter breaks the line, "
        "Up/Down scroll, q quits.",
    )
    parser.add_argument("--log-file", default=None, help="Write debug logs to this file")
    parser.add_argument(
        "--log-level", default="info", choices=["debug", "info", "warning", "error"]
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_file, args.log_level)

    config = Config()

    from scrollpad.app import run
    from scrollpad.render import Renderer
    from scrollpad.terminal import ProcessTerminal

    terminal = ProcessTerminal()
    renderer = Renderer(terminal, title=config.title)

    try:
        result = asyncio.run(run(terminal, renderer, config))
    except TerminalModeError as exc:
        # Restore failures after a session arrive on the result instead.
        logger.error("terminal setup failed: %s", exc)
        print(f"Terminal error: {exc}")
        return 1

    for message in result.error_messages():
        print(message)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
