"""Git repository operations."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import AbstractSet, Iterator, Optional

from git import Commit, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName, BadObject

logger = logging.getLogger(__name__)

PROTECTED_BRANCHES: frozenset[str] = frozenset(
    {
        "main",
        "origin/main",
        "master",
        "origin/master",
        "default",
        "origin/default",
        "origin/HEAD",
    }
)

NO_AUTHOR = "no author"
NO_SUMMARY = "no summary"

EPOCH = datetime(1970, 1, 1)

LOCAL_PREFIX = b"refs/heads/"
REMOTE_PREFIX = b"refs/remotes/"


class BranchType(Enum):
    """Branch kind."""

    LOCAL = "local"
    REMOTE = "remote"


def branch_type_to_str(branch_type: BranchType) -> str:
    """Return the display name of a branch kind."""
    if branch_type is BranchType.LOCAL:
        return "local"
    if branch_type is BranchType.REMOTE:
        return "remote"
    raise ValueError(f"Unknown branch type: {branch_type!r}")


class GitError(Exception):
    """Git operation error."""


class InvalidEncodingError(Exception):
    """Branch name is not valid UTF-8."""

    def __init__(self, name_bytes: bytes) -> None:
        """Initialize error.

        Args:
            name_bytes: Raw branch name as stored in the repository
        """
        super().__init__(f"Branch name is not valid UTF-8: {name_bytes!r}")
        self.name_bytes = name_bytes


@dataclass(frozen=True)
class BranchRef:
    """Raw branch reference as enumerated from the repository."""

    name_bytes: bytes
    target: str
    branch_type: BranchType
    is_head: bool = False


@dataclass(frozen=True)
class Branch:
    """A branch together with the attributes of its last commit."""

    id: str
    name: str
    commit_author: str
    commit_summary: str
    branch_type: BranchType
    commit_time: datetime
    is_head: bool = False

    @property
    def short_id(self) -> str:
        """Ten hex characters of the commit id, skipping the first one."""
        return self.id[1:11]

    @property
    def restore_command(self) -> str:
        """Command that recreates the branch at the same commit."""
        return f"git branch {self.name} {self.id}"


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path, search_parent_directories: bool = True) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=search_parent_directories)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {err}") from err
        logger.debug("Opened repository at %s", self.repo.working_tree_dir)

    def iter_branch_refs(self, local_only: bool = False) -> Iterator[BranchRef]:
        """Yield local and, unless local_only is set, remote branch refs.

        Names are read as raw bytes so that decoding stays the caller's decision.
        """
        patterns = ["refs/heads"] if local_only else ["refs/heads", "refs/remotes"]
        try:
            output = self.repo.git.for_each_ref(
                "--format=%(HEAD)%00%(refname)%00%(objectname)",
                *patterns,
                stdout_as_string=False,
            )
        except GitCommandError as err:
            raise GitError(f"Failed to list branches: {err}") from err

        for line in output.splitlines():
            if not line:
                continue
            head_marker, refname, target = line.split(b"\x00")
            if refname.startswith(LOCAL_PREFIX):
                name_bytes = refname[len(LOCAL_PREFIX) :]
                branch_type = BranchType.LOCAL
            elif refname.startswith(REMOTE_PREFIX):
                name_bytes = refname[len(REMOTE_PREFIX) :]
                branch_type = BranchType.REMOTE
            else:
                continue
            yield BranchRef(
                name_bytes=name_bytes,
                target=target.decode("ascii"),
                branch_type=branch_type,
                is_head=head_marker.strip() == b"*",
            )

    def commit(self, sha: str) -> Commit:
        """Resolve a commit id to its commit."""
        try:
            return self.repo.commit(sha)
        except (BadName, BadObject, ValueError, GitCommandError) as err:
            raise GitError(f"Failed to resolve commit {sha}: {err}") from err

    def delete_branch(self, branch_name: str) -> None:
        """Delete a local branch regardless of its merge state."""
        try:
            self.repo.git.branch("-D", branch_name)
        except GitCommandError as err:
            raise GitError(f"Failed to delete branch '{branch_name}': {err}") from err


def extract_branch(repo: GitRepo, ref: BranchRef) -> Branch:
    """Build a Branch record from a raw ref.

    The commit time is kept in the committer's own frame: the recorded UTC
    offset is added to the epoch seconds and the result carries no tzinfo.

    Raises:
        InvalidEncodingError: If the branch name is not valid UTF-8
        GitError: If the ref does not resolve to a commit
    """
    try:
        name = ref.name_bytes.decode("utf-8")
    except UnicodeDecodeError as err:
        raise InvalidEncodingError(ref.name_bytes) from err

    commit = repo.commit(ref.target)

    # GitPython stores the offset as seconds west of UTC
    commit_time = EPOCH + timedelta(seconds=commit.committed_date - commit.committer_tz_offset)

    summary = commit.summary
    if isinstance(summary, bytes):
        summary = summary.decode("utf-8", errors="replace")

    return Branch(
        id=commit.hexsha,
        name=name,
        commit_author=(commit.author.name if commit.author else None) or NO_AUTHOR,
        commit_summary=summary or NO_SUMMARY,
        branch_type=ref.branch_type,
        commit_time=commit_time,
        is_head=ref.is_head,
    )


def collect_branches(
    repo: GitRepo,
    protected: AbstractSet[str] = PROTECTED_BRANCHES,
    filter_in: Optional[str] = None,
    local_only: bool = False,
) -> list[Branch]:
    """Collect the branches to triage, oldest last commit first.

    Every ref is extracted before filtering, so a single bad ref fails the
    whole collection instead of producing a partial list.
    """
    needle = filter_in.lower() if filter_in else None

    branches = []
    for ref in repo.iter_branch_refs(local_only=local_only):
        branch = extract_branch(repo, ref)
        if branch.name in protected:
            logger.debug("Skipping protected branch %s", branch.name)
            continue
        if needle is not None and needle not in branch.name.lower():
            logger.debug("Filtered out branch %s", branch.name)
            continue
        branches.append(branch)

    logger.debug("Collected %d branch(es)", len(branches))
    # sorted() is stable, equal commit times keep enumeration order
    return sorted(branches, key=lambda branch: branch.commit_time)


def count_by_type(branches: list[Branch]) -> tuple[int, int]:
    """Return the number of local and remote branches."""
    local = sum(1 for branch in branches if branch.branch_type is BranchType.LOCAL)
    return local, len(branches) - local
