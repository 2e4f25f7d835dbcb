import inspect
import os
import time
from datetime import datetime, timezone

import psutil
from rich import print as _print
from rich.markup import escape

# Mapping of logType to symbols
LOG_TYPE_SYMBOLS = {
    'SUCCESS': ('^^^', '^^^'),
    'FAILURE': ('###', '###'),
    'STATE': ('~~~', '~~~'),
    'INFO': ('---', '---'),
    'WARNING': ('(((', ')))'),
    'DEBUG': ('[[[', ']]]'),
    'STARTING': ('>>>', '>>>'),
    'PROGRESS': ('vvv', 'vvv'),
    'COMPLETED': ('<<<', '<<<'),
}

# Mapping of logType to styles
LOG_TYPE_STYLES = {
    'SUCCESS': 'green',
    'FAILURE': 'red bold',
    'STATE': 'cyan',
    'INFO': 'blue',
    'WARNING': 'yellow',
    'DEBUG': 'white',
    'STARTING': 'green',
    'PROGRESS': 'blue',
    'COMPLETED': 'green',
}

_debug_enabled = False


def set_debug(enabled: bool) -> None:
    """Turn DEBUG output on or off for the whole process."""
    global _debug_enabled
    _debug_enabled = enabled


def debug_enabled() -> bool:
    return _debug_enabled


def Print(logType: str, message: str) -> None:
    """
    Prints a log message with timestamp, function name, symbols wrapping the logType, and the message.

    DEBUG messages are dropped unless set_debug(True) was called.
    """
    logTypeUpper = logType.upper()
    if logTypeUpper == 'DEBUG' and not _debug_enabled:
        return

    try:
        timestamp = datetime.fromtimestamp(time.time(), tz=timezone.utc).isoformat(timespec='microseconds')

        before_symbol, after_symbol = LOG_TYPE_SYMBOLS.get(logTypeUpper, ('', ''))
        formattedLogType = f"{before_symbol} {logTypeUpper} {after_symbol}"

        style = LOG_TYPE_STYLES.get(logTypeUpper, '')
        if style:
            formattedLogType = f"[{style}]{formattedLogType}[/{style}]"

        # Caller of Print, not Print itself
        function_name = inspect.currentframe().f_back.f_code.co_name
        paddedFunctionName = function_name.ljust(32)

        _print(f"{timestamp} {formattedLogType} {paddedFunctionName} {escape(message)}")

    except Exception as e:
        print(f"Something went wrong when attempting to print.\nError: {e}")


def format_bytes(size: int) -> str:
    """Human readable byte count (B, KB, MB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 ** 2:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 ** 2):.2f} MB"


def memory_usage() -> str:
    """
    Returns a string with the resident memory of the current process.
    """
    current_process = psutil.Process(os.getpid())
    memory_usage_mb = current_process.memory_info().rss / (1024 ** 2)
    return f"Process Memory Usage: {memory_usage_mb:.2f} MB"
