import asyncio
import webbrowser

import structlog

logger = structlog.get_logger(__name__)


def _log_outcome(future: asyncio.Future) -> None:
    try:
        opened = future.result()
    except Exception as exc:
        logger.warning("browser_open_failed", error=str(exc))
        return
    if not opened:
        logger.warning("browser_open_failed", error="no runnable browser")


def open_in_browser(url: str) -> asyncio.Future:
    """Open ``url`` in a thread so the caller never waits on the browser.

    The returned future is only observed by its logging callback.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, webbrowser.open, url)
    future.add_done_callback(_log_outcome)
    return future
