# src/autopost/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then on one asyncio loop:
- connects the Matrix connector (optional),
- loads the responder index and resumes every task flagged active,
- runs the connectors until a signal, /exit or a connector stop,
- shuts down: timers first, then the transport, then the stores.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import StoreError
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def run_app(state: AppState) -> int:
    settings = state.settings
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers.
            pass

    matrix = None
    if settings.matrix_enabled:
        from ..connectors.matrix_connector import MatrixConnector

        if isinstance(state.messenger, MatrixConnector):
            matrix = state.messenger
            if not await matrix.connect():
                logger.error("Matrix connector could not start; exiting.")
                await matrix.close()
                return 1

    runners: list[asyncio.Task[None]] = []
    try:
        await state.responders.rebuild()
        await state.scheduler.resume_all()

        if matrix is not None:
            runners.append(asyncio.create_task(matrix.run(state, stop_event), name="matrix"))
        if settings.console_enabled:
            runners.append(asyncio.create_task(run_console_loop(state, stop_event), name="console"))
        if not runners:
            logger.info("No interactive connector enabled. Press Ctrl+C to stop.")

        await stop_event.wait()
    finally:
        for t in runners:
            t.cancel()
        for t in runners:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await t

        # Timers go before the transport and the stores so no send races a closed resource.
        await state.scheduler.shutdown(timeout=float(getattr(settings, "shutdown_timeout", 10.0)))
        if matrix is not None:
            await matrix.close()
    return 0


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except StoreError:
        logger.critical("Cannot prepare the data dir or database at %s; aborting startup.", settings.db_path, exc_info=True)
        sys.exit(1)

    code = 1
    try:
        code = asyncio.run(run_app(state))
    except KeyboardInterrupt:
        code = 0
    finally:
        state.close()
        logger.info("Bye.")
    sys.exit(code)


if __name__ == "__main__":
    main()
