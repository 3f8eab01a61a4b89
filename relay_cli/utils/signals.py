"""Interrupt handling for state-changing workflow steps."""

import signal
import threading
from contextlib import contextmanager

from rich.console import Console

from relay_cli.exceptions import WorkflowCancelled
from relay_cli.utils.logging import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)


@contextmanager
def defer_interrupts(operation: str):
    """Hold Ctrl-C until the wrapped operation finishes.

    A destructive or state-changing external call is allowed to complete;
    the interrupt is then reported as ``WorkflowCancelled``.
    """
    if threading.current_thread() is not threading.main_thread():
        # signal handlers can only be installed from the main thread
        yield
        return

    received = []

    def _handler(signum, frame):
        received.append(signum)
        console.print(
            f"\n[yellow]Interrupted! Waiting for {operation} to complete...[/yellow]"
        )

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)

    if received:
        logger.info(f"Interrupt received during {operation}; stopping after it completed")
        raise WorkflowCancelled()
