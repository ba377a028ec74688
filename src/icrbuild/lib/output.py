"""Pretty output and formatting utilities for icrbuild CLI."""

import sys


# Global color state
_color_enabled = None  # None = auto-detect, True = force on, False = force off


def set_color_enabled(enabled: bool) -> None:
    """
    Set global color output preference.

    Parameters
    ----------
    enabled : bool
        True to enable colors, False to disable.
    """
    global _color_enabled
    _color_enabled = enabled


# ANSI color codes
class Colors:
    """
    ANSI color codes for terminal output.

    Provides constants for text formatting and colorization in terminals
    that support ANSI escape sequences.
    """

    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    CYAN = "\033[36m"


def supports_color() -> bool:
    """
    Check if the terminal supports color output.

    Returns
    -------
    bool
        True if stdout is a TTY and platform is not Windows.
    """
    if _color_enabled is not None:
        return _color_enabled

    return sys.stdout.isatty() and not sys.platform.startswith("win")


def colorize(text: str, color: str) -> str:
    """
    Colorize text if terminal supports it.

    Parameters
    ----------
    text : str
        Text to colorize.
    color : str
        ANSI color code from the Colors class.

    Returns
    -------
    str
        Colorized text if supported, plain text otherwise.
    """
    if supports_color():
        return f"{color}{text}{Colors.RESET}"
    return text


def success(message: str) -> None:
    """
    Print success message with green checkmark.

    Parameters
    ----------
    message : str
        Success message to display.
    """
    symbol = colorize("✓", Colors.GREEN)
    print(f"{symbol} {message}")


def error(message: str) -> None:
    """
    Print error message with red X symbol to stderr.

    Parameters
    ----------
    message : str
        Error message to display.
    """
    symbol = colorize("✗", Colors.RED)
    print(f"{symbol} {message}", file=sys.stderr)


def info(message: str) -> None:
    """
    Print informational message with indentation.

    Parameters
    ----------
    message : str
        Informational message to display.
    """
    print(f"  {message}")


def print_key_value(key: str, value: str, indent: int = 0) -> None:
    """
    Print key-value pair with formatting and indentation.

    Parameters
    ----------
    key : str
        Key to print (displayed in cyan).
    value : str
        Value to print.
    indent : int, optional
        Indentation level (number of 2-space indents), by default 0.
    """
    indent_str = "  " * indent
    key_colored = colorize(key, Colors.CYAN)
    print(f"{indent_str}{key_colored}: {value}")
