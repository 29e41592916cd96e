import asyncio
import signal
from typing import Optional

from hypercorn.asyncio import serve
from hypercorn.config import Config

from config import DEBUG, SERVER
from logging_config import setup_logging, get_logger
from models import utc_now

logger = get_logger(__name__)

# Seconds between checks of the terminal surface
TERMINAL_POLL_INTERVAL = 0.5

_shutdown_event: Optional[asyncio.Event] = None

async def run_server(port: int) -> None:
    """Serve the Quart app with Hypercorn until shutdown is requested."""
    from server import app

    config = Config()
    config.bind = [f"{SERVER.get('host', '0.0.0.0')}:{port}"]
    config.use_reloader = False
    config.graceful_timeout = 2
    config.shutdown_timeout = 2

    logger.info(f"Starting server on {config.bind[0]}...")
    await serve(app, config, shutdown_trigger=_shutdown_event.wait)

async def run_terminal() -> None:
    """
    Print the current lyric line whenever it changes.

    Uses the same shared builder and refresh lock as the HTTP surface, so
    running both never doubles the network traffic.
    """
    from server import get_timeline_builder, refresh_if_needed

    builder = get_timeline_builder()
    last_printed = None
    while not _shutdown_event.is_set():
        try:
            await refresh_if_needed()
            state = builder.current_state(utc_now())
            line = f"{state.artist} - {state.title}: {state.line}" if state else None
            if line is not None and line != last_printed:
                print(line)
                last_printed = line
        except Exception as e:
            # Keep the terminal alive; the next poll is the retry
            logger.error(f"Terminal update failed: {e}", exc_info=True)

        try:
            await asyncio.wait_for(_shutdown_event.wait(), timeout=TERMINAL_POLL_INTERVAL)
        except asyncio.TimeoutError:
            pass

async def main(port: int, terminal: bool) -> None:
    """
    Run the server and, optionally, the terminal surface until interrupted.
    """
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, _shutdown_event.set)
        loop.add_signal_handler(signal.SIGTERM, _shutdown_event.set)
    except NotImplementedError:
        # Windows event loops have no signal handlers; KeyboardInterrupt still ends asyncio.run
        pass

    tasks = [asyncio.create_task(run_server(port))]
    if terminal:
        logger.info("Terminal output enabled")
        tasks.append(asyncio.create_task(run_terminal()))

    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        logger.info("Main loop cancelled...")
    finally:
        _shutdown_event.set()
        for task in tasks:
            task.cancel()
        logger.info("Shutdown complete")

if __name__ == "__main__":
    # Parse command line arguments
    import argparse
    parser = argparse.ArgumentParser(description='LyricWidget - Spotify lyrics timeline server')
    parser.add_argument('--terminal', action='store_true',
                        help='Also print the current lyric line to the terminal')
    parser.add_argument('--port', type=int, default=SERVER.get("port", 9012),
                        help='Port for the HTTP server')
    args = parser.parse_args()

    # Set up logging
    setup_logging(
        console_level=DEBUG.get("log_level", "INFO"),
        file_level="DEBUG" if DEBUG.get("log_detailed", False) else "INFO",
        console=DEBUG.get("log_to_console", True),
        log_file=DEBUG.get("log_file", "lyricwidget.log"),
        log_providers=DEBUG.get("log_providers", True),
        max_bytes=DEBUG["log_rotation"]["max_bytes"],
        backup_count=DEBUG["log_rotation"]["backup_count"]
    )

    try:
        logger.info("Starting LyricWidget...")
        asyncio.run(main(args.port, args.terminal))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt caught in main...")
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise
