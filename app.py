#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Application entrypoint for Aurora Journal.

This file is intentionally minimal. It sets up logging and boots the Textual UI app.
"""
from __future__ import annotations

import asyncio
import logging

from aurorajournal.logic import config_dir
from aurorajournal.ui import AuroraJournalApp


def setup_logging(level: int = logging.INFO) -> None:
    """Log to a file; stdout belongs to the terminal UI."""
    log_dir = config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_dir / "aurorajournal.log"),
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Run the Textual application."""
    setup_logging()
    asyncio.run(AuroraJournalApp().run_async())


if __name__ == "__main__":
    main()
