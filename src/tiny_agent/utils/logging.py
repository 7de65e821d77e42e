"""
Rich-formatted logging for tiny-agent.

Three verbosity levels:
- Normal: warnings and errors only, rich-formatted
- Verbose (--verbose): adds INFO events such as model loading and session setup
- Debug (--debug): low-level DEBUG messages, unformatted

Usage:
    from tiny_agent.utils.logging import setup_logging

    setup_logging(verbose=args.verbose, debug=args.debug)
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = [
    "llama_cpp",
    "huggingface_hub",
    "huggingface_hub.file_download",
    "urllib3",
    "urllib3.connectionpool",
    "filelock",
    "httpx",
    "httpcore",
    "markdown_it",
    "tqdm",
]

_console: Console | None = None


def get_console() -> Console:
    """Get the shared stderr console used for log output."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        verbose: Show INFO events.
        debug: Show DEBUG messages with a plain format.
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    if debug:
        # Debug mode: simple format, no rich
        logging.basicConfig(
            level=level,
            format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S",
            force=True,
        )
    else:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(
                console=get_console(),
                show_path=False,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
            )],
            force=True,
        )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING if not debug else logging.INFO)

    # Download progress bars only in debug mode
    if not debug:
        os.environ.setdefault("HF_HUB_DISABLE_PROGRESS_BARS", "1")
