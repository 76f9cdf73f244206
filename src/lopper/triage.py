"""Interactive keep/delete/quit walk over a list of branches."""

from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet

from lopper.git import Branch, BranchType, GitRepo, branch_type_to_str, count_by_type
from lopper.terminal import Color, Terminal, color_for

HELP_KEY = "?"
PROMPT = "(k/d/q/?) > "
HELP_LINES = (
    "select from the following:",
    "\tk - Keep the branch",
    "\td - Delete the branch",
    "\tq - Quit",
    "\t? - Help",
)
REMOTE_REFUSAL = (
    "\tI don't want to be responsible for deleting remote branches.",
    "\tgithub.com has a great interface for such endeavours.",
)


class InvalidInputError(Exception):
    """Keystroke that maps to no action."""

    def __init__(self, char: str) -> None:
        super().__init__(f"Invalid input, don't know {char!r}")
        self.char = char


class BranchAction(Enum):
    """Possible user actions."""

    KEEP = "k"
    DELETE = "d"
    QUIT = "q"

    @classmethod
    def from_char(cls, char: str) -> "BranchAction":
        """Map a keystroke to its action.

        Raises:
            InvalidInputError: If the keystroke is not k, d or q
        """
        try:
            return cls(char)
        except ValueError as err:
            raise InvalidInputError(char) from err


@dataclass
class TriageSummary:
    """Outcome of a triage run."""

    total: int = 0
    kept: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    refused: list[str] = field(default_factory=list)
    skipped_head: list[str] = field(default_factory=list)
    quit: bool = False

    @property
    def remaining(self) -> int:
        """Branches the walk never reached or never resolved."""
        visited = len(self.kept) + len(self.deleted) + len(self.refused) + len(self.skipped_head)
        return self.total - visited

    def tally(self) -> str:
        """One-line count of every outcome except deletions."""
        return (
            f"Kept {len(self.kept)}, refused {len(self.refused)}, "
            f"skipped current {len(self.skipped_head)}, left {self.remaining} untouched"
        )


def announce(terminal: Terminal, branches: list[Branch], protected: AbstractSet[str]) -> None:
    """Print the header line for a triage run."""
    if not branches:
        ignoring = ", ".join(sorted(protected))
        terminal.write_line(f"No branches found. Ignoring: {ignoring}", Color.YELLOW)
        return

    local, remote = count_by_type(branches)
    terminal.write_line(
        f"{len(branches)} Total Branches Found ({local} Local and {remote} Remote)",
        Color.YELLOW,
    )


def render_branch(terminal: Terminal, branch: Branch) -> None:
    """Show a branch and its last commit."""
    color = color_for(branch.branch_type)
    terminal.write_line()
    terminal.write_line(f"'{branch_type_to_str(branch.branch_type)}' ({branch.name})", color)
    terminal.write_line(f"\tlast commit as {branch.commit_time}", color)
    terminal.write_line(f"\tlast commit id: {branch.short_id}", color)
    terminal.write_line(f"\tcommit author: {branch.commit_author}", color)
    terminal.write_line(f"\tcommit summary: {branch.commit_summary}", color)


def request_action(terminal: Terminal, branch: Branch) -> BranchAction:
    """Prompt until a keystroke resolves to an action.

    The help key prints the menu and prompts again. End of input resolves to
    QUIT so a closed stdin cannot spin forever.
    """
    while True:
        render_branch(terminal, branch)
        terminal.write(PROMPT, Color.BLUE)
        terminal.flush()

        byte = terminal.read_byte()
        if byte is None:
            terminal.write_line()
            return BranchAction.QUIT

        # One byte is one character, the same as latin-1
        char = byte.decode("latin-1")
        terminal.write_line(char)

        if char != HELP_KEY:
            return BranchAction.from_char(char)

        for line in HELP_LINES:
            terminal.write_line(line)
        terminal.flush()


def delete_branch(repo: GitRepo, terminal: Terminal, branch: Branch) -> bool:
    """Delete a local branch; refuse remote ones. Returns True if deleted."""
    if branch.branch_type is BranchType.REMOTE:
        for line in REMOTE_REFUSAL:
            terminal.write_line(line, Color.RED)
        return False

    repo.delete_branch(branch.name)
    terminal.write_line(f"'{branch.name}' was deleted.", Color.RED)
    terminal.write_line("to undo, run:", Color.WHITE)
    terminal.write_line(f"\t{branch.restore_command}", Color.WHITE)
    terminal.write_line()
    return True


def triage(repo: GitRepo, branches: list[Branch], terminal: Terminal) -> TriageSummary:
    """Walk the branches in order, asking what to do with each one.

    The checked-out branch is announced and skipped without a prompt. QUIT
    stops the walk and leaves every branch from the current one on untouched.

    Raises:
        InvalidInputError: On an unrecognized keystroke
        GitError: If deleting a branch fails
    """
    summary = TriageSummary(total=len(branches))

    for branch in branches:
        if branch.is_head:
            terminal.write_line(f"Ignoring current branch: '{branch.name}'", Color.YELLOW)
            summary.skipped_head.append(branch.name)
            continue

        action = request_action(terminal, branch)
        if action is BranchAction.QUIT:
            summary.quit = True
            break
        if action is BranchAction.KEEP:
            summary.kept.append(branch.name)
        elif delete_branch(repo, terminal, branch):
            summary.deleted.append(branch.name)
        else:
            summary.refused.append(branch.name)

    terminal.flush()
    return summary
