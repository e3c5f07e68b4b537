"""Inline rich-text markup used in statements, addresses and table cells.

Syntax::

    *bold*            bold token (may be followed by ``.``, ``,`` or ``:``)
    [text:COLOR]      coloured phrase, may span several tokens
    [a:b:COLOR]       everything before the last two parts is the text
    http..., www....  underlined; blue unless a colour was given

Parsing is lenient and never raises: unknown colours fall back to black and
an unterminated ``[`` at the end of input drops the accumulated phrase.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

# Delimiters (whitespace, carets, commas) are captured so they survive as runs.
_TOKEN_SPLIT = re.compile(r"([\s^,]+)")
_DISCARDED_TOKENS = frozenset({"", "\r"})
_BOLD_ENDINGS = ("*", "*.", "*,", "*:")
_LINK_PREFIXES = ("http", "www.")


class RunColor(str, Enum):
    BLACK = "BLACK"
    RED = "RED"
    BLUE = "BLUE"
    GREEN = "GREEN"

    @classmethod
    def parse(cls, name: str) -> RunColor:
        try:
            return cls(name.strip().upper())
        except ValueError:
            return cls.BLACK


@dataclass(frozen=True)
class StyledRun:
    """A contiguous piece of text sharing one style."""

    text: str
    bold: bool = False
    underline: bool = False
    color: RunColor = RunColor.BLACK
    has_trailing_period: bool = False

    @property
    def rendered(self) -> str:
        return f"{self.text}." if self.has_trailing_period else self.text


def tokenize(text: str) -> list[str]:
    """Split *text* into words and delimiter runs, keeping both."""
    return [token for token in _TOKEN_SPLIT.split(text) if token not in _DISCARDED_TOKENS]


def format_markup(text: Optional[str], base_underline: bool = False) -> list[StyledRun]:
    """Parse *text* into ordered styled runs."""
    if not text:
        return []
    return format_tokens(tokenize(text), base_underline)


def format_tokens(tokens: Iterable[str], base_underline: bool = False) -> list[StyledRun]:
    """Run the markup state machine over an already-tokenised sequence."""
    runs: list[StyledRun] = []
    formatting = False
    phrase = ""

    for token in tokens:
        word = token
        has_period = word.endswith(".")
        if has_period:
            word = word[:-1]

        bold = word.startswith("*") and word.endswith(_BOLD_ENDINGS)
        word = word.replace("*", "")
        color: Optional[RunColor] = None

        if formatting:
            phrase += word
        elif word.startswith("["):
            formatting = True
            phrase = word[1:]

        if formatting and word.endswith("]"):
            word, color = _resolve_directive(phrase)
            formatting = False

        if formatting:
            continue

        underline = base_underline
        if word.startswith(_LINK_PREFIXES):
            underline = True
            if color is None:
                color = RunColor.BLUE

        runs.append(
            StyledRun(
                text=word,
                bold=bold,
                underline=underline,
                color=color or RunColor.BLACK,
                has_trailing_period=has_period,
            )
        )
        phrase = ""

    return runs


def _resolve_directive(phrase: str) -> tuple[str, Optional[RunColor]]:
    """Split a closed ``[text:COLOR]`` phrase into its text and colour."""
    parts = phrase.replace("[", "").replace("]", "").split(":")
    color = RunColor.parse(parts[-1]) if len(parts) > 1 else None
    if len(parts) > 2:
        return "".join(parts[:-2]), color
    return parts[0], color


def plain_text(runs: Iterable[StyledRun]) -> str:
    """Concatenate the rendered text of *runs*."""
    return "".join(run.rendered for run in runs)
