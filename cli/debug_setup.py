"""Logging and console setup for CLI"""

import logging
import os

from rich.console import Console

import settings
from utils.debug_console import create_debug_console, setup_debug_logger

logger = logging.getLogger(__name__)

DEBUG_LOG_FILE = "session_debug.log"


def setup_logging(debug: bool = False) -> Console:
    """
    Configure the root logger and pick the console to print with

    Args:
        debug: Whether debug mode is enabled

    Returns:
        Console instance (either regular or debug-capturing)
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if not debug:
        root_logger.setLevel(getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO))
        return Console()

    root_logger.setLevel(logging.DEBUG)

    log_file = os.path.abspath(DEBUG_LOG_FILE)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Rich console output goes to the same file
    debug_logger = setup_debug_logger(log_file)
    debug_logger.debug("[CLI] ===== CLI SESSION STARTED =====")
    logger.info(f"Debug logging enabled - appending to {log_file}")

    return create_debug_console(debug_enabled=True, debug_logger=debug_logger)
