"""Command line entry point for the hook."""

import logging
import os
import sys
from collections.abc import Sequence

from txthook._logging import configure_logging, get_logger
from txthook.exceptions import HookError
from txthook.hook import HookDispatcher

logger = get_logger(__name__)


def main(argv: Sequence[str] | None = None, dispatcher: HookDispatcher | None = None) -> int:
    """Run one hook invocation and return the process exit status.

    Args:
        argv: Hook arguments without the program name (default: sys.argv[1:]).
        dispatcher: Dispatcher to use (default: one reading the environment).

    Returns:
        0 on success, the failing error's exit code otherwise.
    """
    if argv is None:
        argv = sys.argv[1:]
    if dispatcher is None:
        dispatcher = HookDispatcher()

    package_logger = logging.getLogger("txthook")
    previous_level = package_logger.level
    handler = configure_logging(os.environ.get("TXTHOOK_LOG_LEVEL", "INFO"))
    try:
        dispatcher.dispatch(argv)
    except HookError as e:
        logger.error(str(e))
        return e.exit_code
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
    return 0
