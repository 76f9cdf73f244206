"""Raw-mode terminal input and colored output."""

import sys
from contextlib import contextmanager
from enum import Enum
from typing import BinaryIO, Iterator, Optional, TextIO

from rich.console import Console

from lopper.git import BranchType

try:
    import termios
    import tty

    _HAS_TERMIOS = True
except ImportError:
    _HAS_TERMIOS = False

# Raw mode disables output post-processing, so "\n" alone does not return the carriage
LINE_END = "\r\n"


class Color(Enum):
    """Foreground colors, one per message category."""

    YELLOW = "yellow"  # summary and informational notices
    GREEN = "green"  # local branch prompts
    CYAN = "cyan"  # remote branch prompts
    BLUE = "blue"  # action prompt
    RED = "red"  # deletion and refusal notices
    WHITE = "white"  # restore hint


def color_for(branch_type: BranchType) -> Color:
    """Pick the prompt color for a branch kind."""
    if branch_type is BranchType.LOCAL:
        return Color.GREEN
    return Color.CYAN


class Terminal:
    """Line-oriented writer and single-byte reader for a raw-mode terminal."""

    def __init__(self, console: Optional[Console] = None, stdin: Optional[BinaryIO] = None) -> None:
        self.console = console or Console()
        self.stdin = stdin if stdin is not None else sys.stdin.buffer

    def write(self, text: str, color: Optional[Color] = None) -> None:
        """Write text without a line ending."""
        self.console.print(
            text,
            style=color.value if color else None,
            end="",
            markup=False,
            emoji=False,
            highlight=False,
            soft_wrap=True,
        )

    def write_line(self, text: str = "", color: Optional[Color] = None) -> None:
        """Write text followed by a raw-mode line ending."""
        if text:
            self.write(text, color)
        self.console.file.write(LINE_END)

    def flush(self) -> None:
        self.console.file.flush()

    def read_byte(self) -> Optional[bytes]:
        """Block for one byte of input; None once the input is exhausted."""
        byte = self.stdin.read(1)
        return byte or None


@contextmanager
def raw_mode(stream: TextIO) -> Iterator[None]:
    """Put a terminal into raw mode, restoring its previous mode on exit.

    Streams that are not terminals, or terminals whose mode cannot be read
    or changed, are left untouched.
    """
    if not _HAS_TERMIOS or not stream.isatty():
        yield
        return

    fd = stream.fileno()
    try:
        saved = termios.tcgetattr(fd)
        tty.setraw(fd)
    except termios.error:
        yield
        return
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
