# ==============================================================================
# Shared Helpers for CLI Commands
# ==============================================================================
"""
Terminal styling and logging setup used by the shardcache commands.

Output is plain ANSI; colors are dropped when NO_COLOR is set or stdout is
not a terminal, so piped and --json output stays clean.
"""

import logging
import os
import re
import sys

from shardcache.utils.config import get_settings

# Inner width of framed output, border excluded
PANEL_WIDTH = 72

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _use_color() -> bool:
    return "NO_COLOR" not in os.environ and sys.stdout.isatty()


class Style:
    """ANSI sequences, empty strings when color is disabled."""

    _CODES = {
        "RESET": "0",
        "BOLD": "1",
        "DIM": "2",
        "RED": "31",
        "GREEN": "32",
        "YELLOW": "33",
        "CYAN": "36",
        "WHITE": "37",
    }

    def __getattr__(self, name: str) -> str:
        code = self._CODES.get(name)
        if code is None:
            raise AttributeError(name)
        return f"\033[{code}m" if _use_color() else ""


class Glyph:
    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"


S = Style()
G = Glyph


def configure_logging() -> None:
    """Send log records to stderr at the configured level (DEBUG in debug mode)."""
    settings = get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ==============================================================================
# Framed Output
# ==============================================================================


def _pad(text: str, width: int) -> str:
    """Left-justify text that may contain ANSI sequences."""
    return text + " " * max(width - len(_ANSI.sub("", text)), 0)


def panel(title: str, rows: list[str], width: int = PANEL_WIDTH) -> str:
    """
    Frame rows under a title.

    ┌─ Title ──────┐
    │ row          │
    └──────────────┘
    """
    heading = f"─ {title} "
    lines = [f"{S.CYAN}┌{heading}{'─' * (width - len(heading))}┐{S.RESET}"]
    for row in rows:
        lines.append(f"{S.CYAN}│{S.RESET} {_pad(row, width - 2)} {S.CYAN}│{S.RESET}")
    lines.append(f"{S.CYAN}└{'─' * width}┘{S.RESET}")
    return "\n".join(lines)


def badge(ok: bool, label: str) -> str:
    """A green check or red cross followed by a label."""
    if ok:
        return f"{S.GREEN}{G.CHECK} {label}{S.RESET}"
    return f"{S.RED}{G.CROSS} {label}{S.RESET}"
