"""
Diff provider backed by the ``git`` command line.

Produces the line-level ``Diff`` the review engine consumes: for every file
changed between two commits, the added lines (new line numbers) and the
removed lines (old line numbers). Context lines are never reported.
"""

import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

from auditor.models.diff import Diff, LineDiff
from auditor.utils.logging import get_logger

logger = get_logger(__name__)

# Escapes git uses in quoted paths: \NNN octal bytes and C character escapes
_QUOTED_ESCAPE = re.compile(rb'\\([0-3][0-7]{2}|[abtnvfr"\\])')
_CHAR_ESCAPES = {
    b"a": b"\a", b"b": b"\b", b"t": b"\t", b"n": b"\n",
    b"v": b"\v", b"f": b"\f", b"r": b"\r", b'"': b'"', b"\\": b"\\",
}


class GitError(Exception):
    """Raised when a git command fails or its output cannot be parsed."""
    pass


class DiffProvider(ABC):
    """Source of the current commit and of diffs against older commits."""

    @abstractmethod
    def current_commit(self) -> str:
        """Return the hash of the current commit."""

    @abstractmethod
    def diff_against(
        self,
        prior_commit: Optional[str],
        exclusions: Sequence[str],
        paths: Optional[Sequence[str]] = None,
    ) -> Optional[Diff]:
        """
        Diff a prior commit against the current commit.

        Args:
            prior_commit: Commit the stored review state belongs to
            exclusions: Path prefixes left out of the diff
            paths: Restrict the diff to these files, when given

        Returns:
            The diff, or None when there is no prior commit or it is current
        """


def is_excluded(path: str, exclusions: Sequence[str]) -> bool:
    """Check whether a path sits under one of the excluded prefixes."""
    return any(path.startswith(prefix) for prefix in exclusions if prefix)


def unquote_git_path(path: str) -> str:
    """
    Undo git's C-style quoting of a path.

    Git wraps paths holding control characters, quotes or backslashes (and,
    unless ``core.quotepath`` is off, non-ASCII bytes) in double quotes and
    escapes them. Unquoted paths are returned unchanged.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    def _unescape(match: "re.Match[bytes]") -> bytes:
        escape = match.group(1)
        if len(escape) == 3:
            return bytes([int(escape, 8)])
        return _CHAR_ESCAPES[escape]

    raw = _QUOTED_ESCAPE.sub(_unescape, path[1:-1].encode("utf-8"))
    return raw.decode("utf-8", errors="surrogateescape")


def parse_unified_diff(diff_text: str, exclusions: Sequence[str] = ()) -> Diff:
    """
    Parse a unified diff into per-file line diffs.

    Added lines become ``LineDiff(new=...)`` and removed lines
    ``LineDiff(old=...)``, both one-based. Files without line changes
    (binary files, pure renames, mode changes) are omitted.

    Args:
        diff_text: Output of ``git diff``
        exclusions: Path prefixes to drop

    Returns:
        Parsed diff

    Raises:
        GitError: If the text is not a valid unified diff
    """
    try:
        patch = PatchSet.from_string(diff_text)
    except UnidiffParseError as e:
        raise GitError(f"Could not parse diff output: {e}") from e

    files = {}
    for patched_file in patch:
        path = unquote_git_path(patched_file.path)
        if is_excluded(path, exclusions):
            continue

        line_diffs: List[LineDiff] = []
        for hunk in patched_file:
            for line in hunk:
                if line.is_added:
                    line_diffs.append(LineDiff(new=line.target_line_no))
                elif line.is_removed:
                    line_diffs.append(LineDiff(old=line.source_line_no))

        if line_diffs:
            files[path] = line_diffs

    return Diff(files=files)


class GitDiffProvider(DiffProvider):
    """Runs ``git`` inside a working tree to produce diffs."""

    def __init__(self, repository_path: str):
        """
        Initialize the provider.

        Args:
            repository_path: Path of the git working tree
        """
        self._repository_path = Path(repository_path)

    def _run_git(self, args: List[str]) -> str:
        try:
            result = subprocess.run(
                ["git", "-c", "core.quotepath=off", *args],
                cwd=self._repository_path,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
        except OSError as e:
            raise GitError(f"git {' '.join(args)} could not be started: {e}") from e

        if result.returncode != 0:
            raise GitError(
                f"git {' '.join(args)} failed (cwd={self._repository_path}): "
                f"{result.stderr.strip() or result.stdout.strip()}"
            )
        return result.stdout

    def current_commit(self) -> str:
        return self._run_git(["rev-parse", "HEAD"]).strip()

    def diff_against(
        self,
        prior_commit: Optional[str],
        exclusions: Sequence[str],
        paths: Optional[Sequence[str]] = None,
    ) -> Optional[Diff]:
        if not prior_commit:
            return None

        current = self.current_commit()
        if prior_commit == current:
            return None

        pathspecs = [f":(literal){path}" for path in paths] if paths else ["."]
        pathspecs.extend(f":(exclude){prefix}" for prefix in exclusions if prefix)
        diff_text = self._run_git(
            ["diff", "-U0", "--no-color", "--no-renames", "--no-ext-diff",
             prior_commit, current, "--", *pathspecs]
        )
        diff = parse_unified_diff(diff_text, exclusions)

        logger.info(
            f"Diffed {prior_commit[:12]}..{current[:12]}: {len(diff.files)} changed file(s)",
            extra={"commit": current},
        )
        return diff
