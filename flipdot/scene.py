from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from .ticker import TickContext


@dataclass(frozen=True)
class GameState:
    """Snapshot of the hangman game read by the scene each tick.

    Attributes:
    - turns_left: remaining wrong guesses; lower values reveal more of the figure
    - max_turns: turns at the start of a game
    """

    turns_left: int = 0
    max_turns: int = 11


FOREGROUND = (255, 255, 255, 255)
BACKGROUND = (0, 0, 0, 255)

# Gallows anchor and head size, in display pixels
GALLOWS_X = 11
GALLOWS_Y = 5
HEAD_SIZE = 5

WORD_X = 24
WORD_Y = 4
LETTER_PITCH = 10
UNDERLINE_Y = 20
UNDERLINE_WIDTH = 9
FONT_SIZE = 14

# Round glyphs sit one dot further left to look centred over their underline
GLYPH_NUDGE = {"O": -1, "N": -1}

Stage = Tuple[str, Callable[[ImageDraw.ImageDraw], None]]


def _rect(draw: ImageDraw.ImageDraw, x: int, y: int, w: int, h: int) -> None:
    draw.rectangle([x, y, x + w - 1, y + h - 1], fill=FOREGROUND)


def _line(draw: ImageDraw.ImageDraw, x0: int, y0: int, x1: int, y1: int) -> None:
    draw.line([(x0, y0), (x1, y1)], fill=FOREGROUND, width=1)


def _head(draw: ImageDraw.ImageDraw) -> None:
    x, y = GALLOWS_X + 2, GALLOWS_Y
    draw.ellipse([x - 2, y, x + 2, y + HEAD_SIZE - 1], fill=FOREGROUND)


_X, _Y = GALLOWS_X, GALLOWS_Y

# Drawn in order; stage i shows once turns_left <= len(STAGES) - 1 - i
STAGES: List[Stage] = [
    ("pole", lambda d: _rect(d, _X - 8, _Y - 3, 1, 24)),
    ("beam", lambda d: _rect(d, _X - 8, _Y - 3, 15, 1)),
    ("support", lambda d: _line(d, _X - 8, _Y + 5, _X, _Y - 3)),
    ("base", lambda d: _rect(d, _X - 10, _Y + 20, 19, 1)),
    ("rope", lambda d: _rect(d, _X + 2, _Y - 3, 1, 3)),
    ("head", _head),
    ("body", lambda d: _rect(d, _X + 2, _Y + 5, 1, 4)),
    ("right_arm", lambda d: _line(d, _X + 2, _Y + 5, _X + 6, _Y + 9)),
    ("left_arm", lambda d: _line(d, _X + 3, _Y + 5, _X - 1, _Y + 9)),
    ("left_leg", lambda d: _line(d, _X + 3, _Y + 9, _X - 1, _Y + 15)),
    ("right_leg", lambda d: _line(d, _X + 2, _Y + 9, _X + 6, _Y + 15)),
]


def visible_stages(turns_left: int) -> List[str]:
    """Names of the gallows stages shown for the given number of turns left."""
    last = len(STAGES) - 1
    return [name for i, (name, _) in enumerate(STAGES) if turns_left <= last - i]


class HangmanScene:
    """
    Draws the hangman board: the word with one underline per letter, and the
    gallows revealed stage by stage as turns run out.
    """

    def __init__(self, word: str = "BOEKEN", font_path: Optional[Path] = None):
        self.word = word
        if font_path is not None:
            self.font = ImageFont.truetype(str(font_path), size=FONT_SIZE)
        else:
            self.font = ImageFont.load_default()

    def draw(self, image: Image.Image, ctx: TickContext, state: GameState) -> None:
        draw = ImageDraw.Draw(image)
        draw.rectangle([0, 0, image.width - 1, image.height - 1], fill=BACKGROUND)

        for i, char in enumerate(self.word):
            left = WORD_X + i * LETTER_PITCH
            draw.text(
                (left + GLYPH_NUDGE.get(char, 0), WORD_Y),
                char,
                font=self.font,
                fill=FOREGROUND,
            )
            _rect(draw, left - 1, UNDERLINE_Y, UNDERLINE_WIDTH, 1)

        last = len(STAGES) - 1
        for i, (_, paint) in enumerate(STAGES):
            if state.turns_left <= last - i:
                paint(draw)
