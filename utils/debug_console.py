"""Rich console that mirrors CLI output into the session debug log.

With ``--debug`` the terminal keeps its colours while a plain-text copy of
every printed line lands in the session debug log, next to the HTTP and
refresh traces emitted by the session layer. Bearer credentials that end up
in printed text are masked before they reach the file.
"""

import io
import logging
import re
from typing import Optional
from rich.console import Console as RichConsole

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
_BEARER = re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE)


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also writes a plain-text copy of its output to a logger.

    Terminal rendering is untouched. The logged copy has markup and ANSI
    codes stripped and any bearer credential masked.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        """
        Initialize the capturing console.

        Args:
            debug_logger: Logger that receives the plain-text copy
            *args, **kwargs: Arguments passed to Rich Console
        """
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        """
        Print to the terminal, then log a masked plain-text copy.

        Nothing is rendered a second time unless the debug logger is
        enabled for DEBUG.
        """
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = mask_credentials(self._render_to_plain_text(*objects, **kwargs))
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """
        Render objects through a throwaway console without terminal features.

        Args:
            *objects: Objects to render
            **kwargs: Keyword arguments from the print call

        Returns:
            Plain text with ANSI codes and trailing whitespace removed
        """
        string_buffer = io.StringIO()
        temp_console = RichConsole(
            file=string_buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        temp_console.print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', string_buffer.getvalue()).rstrip()


def mask_credentials(text: str) -> str:
    """
    Replace bearer credentials in text with a placeholder.

    Args:
        text: Console text that may contain ``Bearer <token>``

    Returns:
        Text with every token value replaced by ``[REDACTED]``
    """
    return _BEARER.sub(r'\1[REDACTED]', text)


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create the console the CLI prints with.

    Args:
        debug_enabled: Whether debug mode is enabled
        debug_logger: Logger instance for the captured copy

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logger(log_file: str = "session_debug.log") -> logging.Logger:
    """
    Set up the dedicated logger for captured console output.

    Args:
        log_file: Path to the session debug log (opened in append mode)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("debug_console")
    logger.setLevel(logging.DEBUG)

    # Re-running setup must not duplicate lines
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    # The root logger writes to the same file
    logger.propagate = False

    return logger
