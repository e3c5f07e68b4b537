"""Centralized style constants for certificate PDF output."""

from __future__ import annotations

from labcert.markup import RunColor

# ── Inline run colours (hex strings) ─────────────────────────────────
# Kept as plain hex so the renderer converts them to reportlab HexColor.

RUN_COLORS: dict[RunColor, str] = {
    RunColor.BLACK: "#000000",
    RunColor.RED: "#FF0000",
    RunColor.BLUE: "#0000FF",
    RunColor.GREEN: "#00FF00",
}

# ── Table layout ─────────────────────────────────────────────────────

CELL_BORDER_COLOR = "#000000"
CELL_BORDER_WIDTH = 0.5
CELL_HORIZONTAL_PADDING = 3.0
CELL_VERTICAL_PADDING = 2.0
LEADING_FACTOR = 1.2

# ── Rule ─────────────────────────────────────────────────────────────

LINE_BREAK_THICKNESS = 0.75

# ── Unicode sanitization ─────────────────────────────────────────────
# The standard Type 1 fonts lack glyphs for these characters.

UNICODE_REPLACEMENTS: dict[str, str] = {
    "\u2011": "-",       # non-breaking hyphen
    "\u2010": "-",       # hyphen
    "\u2013": "-",       # en-dash
    "\u2014": "-",       # em-dash
    "\u202f": " ",       # narrow no-break space
    "\u00a0": " ",       # non-breaking space
    "\u2009": " ",       # thin space
    "\u2018": "'",       # left single quote
    "\u2019": "'",       # right single quote
    "\u201c": '"',       # left double quote
    "\u201d": '"',       # right double quote
    "\u2026": "...",     # ellipsis
}
