"""Test configuration and fixtures."""

import io
from pathlib import Path
from typing import Callable, Generator

import pytest
from git import Actor, Repo
from rich.console import Console

from lopper.terminal import Terminal

AUTHOR = Actor("Test User", "test@example.com")

MakeTerminal = Callable[[bytes], tuple[Terminal, io.StringIO]]

# Commit dates in git's internal "<epoch> <offset>" format
MAIN_DATE = "1609459200 +0000"  # 2021-01-01 00:00 UTC
OLD_DATE = "1609545600 +0200"  # 2021-01-02 00:00 UTC, 02:00 committer time
NEW_DATE = "1609632000 -0500"  # 2021-01-03 00:00 UTC, 2021-01-02 19:00 committer time
MIXED_DATE = "1609718400 +0000"
CURRENT_DATE = "1609804800 +0000"
REMOTE_DATE = "1609891200 +0000"


def commit_file(repo: Repo, name: str, date: str) -> None:
    """Commit a file named after the branch at a fixed date."""
    path = Path(repo.working_tree_dir) / f"{name.replace('/', '_')}.txt"
    path.write_text(f"{name} content")
    repo.index.add([path.name])
    repo.index.commit(
        f"Add {name}",
        author=AUTHOR,
        committer=AUTHOR,
        author_date=date,
        commit_date=date,
    )


def init_repo(path: Path) -> Repo:
    """Create a repository whose main branch holds one commit."""
    path.mkdir()
    repo = Repo.init(path)
    repo.config_writer().set_value("user", "name", AUTHOR.name).release()
    repo.config_writer().set_value("user", "email", AUTHOR.email).release()

    readme = path / "README.md"
    readme.write_text("# Test Repository")
    repo.index.add(["README.md"])
    repo.index.commit(
        "Initial commit",
        author=AUTHOR,
        committer=AUTHOR,
        author_date=MAIN_DATE,
        commit_date=MAIN_DATE,
    )

    # Ensure we're on main branch
    if "main" not in repo.heads:
        repo.create_head("main")
    repo.heads.main.checkout()
    return repo


def create_branch(repo: Repo, name: str, date: str) -> None:
    """Create a branch off main with a single commit of its own."""
    repo.heads.main.checkout()
    branch = repo.create_head(name, "main")
    branch.checkout()
    commit_file(repo, name, date)


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    Local branches: main, feature/old, feature/new, Hotfix/MixedCase and the
    checked out feature/current. Remote branches: origin/main, origin/HEAD,
    origin/feature/old, origin/feature/new and the remote-only
    origin/feature/remote.

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = init_repo(local_path)

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")

    create_branch(local_repo, "feature/old", OLD_DATE)
    create_branch(local_repo, "feature/new", NEW_DATE)
    create_branch(local_repo, "Hotfix/MixedCase", MIXED_DATE)
    create_branch(local_repo, "feature/current", CURRENT_DATE)
    origin.push("feature/old")
    origin.push("feature/new")

    # Create a remote-only branch
    create_branch(local_repo, "feature/remote", REMOTE_DATE)
    origin.push("feature/remote")
    local_repo.heads["feature/current"].checkout()
    local_repo.delete_head("feature/remote", force=True)

    local_repo.git.remote("set-head", "origin", "main")

    yield local_path, remote_path


@pytest.fixture
def make_terminal() -> MakeTerminal:
    """Build a terminal that reads the given keystrokes and records its output."""

    def _make(keys: bytes) -> tuple[Terminal, io.StringIO]:
        output = io.StringIO()
        console = Console(file=output, force_terminal=False, color_system=None, width=200)
        return Terminal(console=console, stdin=io.BytesIO(keys)), output

    return _make
