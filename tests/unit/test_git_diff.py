"""
Unit tests for the git diff provider.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from auditor.models.diff import LineDiff
from auditor.services.git_diff import (
    GitDiffProvider,
    GitError,
    is_excluded,
    parse_unified_diff,
    unquote_git_path,
)

SAMPLE_DIFF = """\
diff --git a/src/main.c b/src/main.c
index 1111111..2222222 100644
--- a/src/main.c
+++ b/src/main.c
@@ -2 +2 @@
-int x = 1;
+int x = 2;
@@ -5,0 +6,2 @@
+int y;
+int z;
@@ -9 +10,0 @@
-return;
diff --git a/vendor/lib.c b/vendor/lib.c
index 3333333..4444444 100644
--- a/vendor/lib.c
+++ b/vendor/lib.c
@@ -1 +1 @@
-a
+b
diff --git a/docs/old.md b/docs/old.md
deleted file mode 100644
index 5555555..0000000
--- a/docs/old.md
+++ /dev/null
@@ -1,2 +0,0 @@
-one
-two
"""

QUOTED_DIFF = r'''diff --git "a/caf\303\251.c" "b/caf\303\251.c"
index 1111111..2222222 100644
--- "a/caf\303\251.c"
+++ "b/caf\303\251.c"
@@ -2 +2 @@
-x
+y
'''


class TestParseUnifiedDiff:
    """Test parsing git diff output."""

    def test_added_and_removed_lines(self):
        """Test that hunks turn into old/new line diffs without context."""
        diff = parse_unified_diff(SAMPLE_DIFF)

        assert diff.files["src/main.c"] == [
            LineDiff(old=2),
            LineDiff(new=2),
            LineDiff(new=6),
            LineDiff(new=7),
            LineDiff(old=9),
        ]

    def test_deleted_file_uses_source_path(self):
        """Test that a removed file is reported under its old path."""
        diff = parse_unified_diff(SAMPLE_DIFF)
        assert diff.files["docs/old.md"] == [LineDiff(old=1), LineDiff(old=2)]

    def test_excluded_prefixes_dropped(self):
        """Test that files under excluded prefixes are skipped."""
        diff = parse_unified_diff(SAMPLE_DIFF, exclusions=["vendor/", "docs/"])
        assert set(diff.files) == {"src/main.c"}

    def test_quoted_path_is_unquoted(self):
        """Test that git's octal-escaped file names come back as text."""
        diff = parse_unified_diff(QUOTED_DIFF)
        assert diff.files == {"café.c": [LineDiff(old=2), LineDiff(new=2)]}

    def test_empty_diff(self):
        """Test that no output means no changed files."""
        assert parse_unified_diff("").files == {}


class TestUnquoteGitPath:
    """Test decoding of git's quoted path syntax."""

    def test_plain_path_unchanged(self):
        assert unquote_git_path("src/main.c") == "src/main.c"

    def test_octal_bytes(self):
        assert unquote_git_path(r'"caf\303\251.c"') == "café.c"

    def test_character_escapes(self):
        assert unquote_git_path(r'"tab\there \"q\".c"') == 'tab\there "q".c'
        assert unquote_git_path(r'"back\\slash.c"') == "back\\slash.c"


def test_is_excluded():
    """Test prefix matching of exclusions."""
    assert is_excluded("vendor/lib.c", ["vendor/"])
    assert not is_excluded("src/vendor.c", ["vendor/"])
    assert not is_excluded("src/a.c", ["", "docs/"])


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def repo(tmp_path) -> Path:
    """Create a git repository with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    git(tmp_path, "init", "-q")
    (tmp_path / "main.c").write_text("a\nb\nc\nd\n")
    (tmp_path / "vendor").mkdir()
    (tmp_path / "vendor" / "lib.c").write_text("x\n")
    git(tmp_path, "add", ".")
    git(tmp_path, "commit", "-q", "-m", "initial")
    return tmp_path


class TestGitDiffProvider:
    """Test diffs computed by running git."""

    def test_current_commit(self, repo):
        """Test reading HEAD."""
        provider = GitDiffProvider(str(repo))
        assert provider.current_commit() == git(repo, "rev-parse", "HEAD")

    def test_no_prior_commit(self, repo):
        """Test that there is no diff without a prior commit."""
        assert GitDiffProvider(str(repo)).diff_against(None, []) is None

    def test_prior_commit_is_current(self, repo):
        """Test that there is no diff against the current commit."""
        provider = GitDiffProvider(str(repo))
        assert provider.diff_against(provider.current_commit(), []) is None

    def test_diff_between_commits(self, repo):
        """Test a change committed after the prior commit."""
        provider = GitDiffProvider(str(repo))
        prior = provider.current_commit()

        (repo / "main.c").write_text("a\nB\nc\nd\ne\n")
        (repo / "vendor" / "lib.c").write_text("y\n")
        git(repo, "commit", "-q", "-am", "change")

        diff = provider.diff_against(prior, ["vendor/"])

        assert set(diff.files) == {"main.c"}
        assert diff.files["main.c"] == [LineDiff(old=2), LineDiff(new=2), LineDiff(new=5)]

    def test_diff_restricted_to_paths(self, repo):
        """Test restricting the diff to selected files."""
        provider = GitDiffProvider(str(repo))
        prior = provider.current_commit()

        (repo / "main.c").write_text("z\nb\nc\nd\n")
        (repo / "vendor" / "lib.c").write_text("y\n")
        git(repo, "commit", "-q", "-am", "change")

        diff = provider.diff_against(prior, [], paths=["vendor/lib.c"])
        assert set(diff.files) == {"vendor/lib.c"}

    def test_unknown_commit_raises(self, repo):
        """Test that a bad commit id surfaces as GitError."""
        with pytest.raises(GitError):
            GitDiffProvider(str(repo)).diff_against("0" * 40, [])

    def test_non_ascii_file_name(self, repo):
        """Test that changes to a non-ASCII file name are keyed by its real name."""
        (repo / "café.c").write_text("a\nb\nc\n")
        git(repo, "add", ".")
        git(repo, "commit", "-q", "-m", "add cafe")
        provider = GitDiffProvider(str(repo))
        prior = provider.current_commit()

        (repo / "café.c").write_text("a\nB\nc\n")
        git(repo, "commit", "-q", "-am", "change cafe")

        diff = provider.diff_against(prior, [], paths=["café.c"])
        assert diff.files == {"café.c": [LineDiff(old=2), LineDiff(new=2)]}

    def test_colon_file_name_is_literal(self, repo):
        """Test that a file name starting with a colon is not read as pathspec magic."""
        (repo / ":odd.c").write_text("a\n")
        git(repo, "add", ".")
        git(repo, "commit", "-q", "-m", "add odd")
        provider = GitDiffProvider(str(repo))
        prior = provider.current_commit()

        (repo / ":odd.c").write_text("b\n")
        git(repo, "commit", "-q", "-am", "change odd")

        diff = provider.diff_against(prior, [], paths=[":odd.c"])
        assert diff.files == {":odd.c": [LineDiff(old=1), LineDiff(new=1)]}

    def test_not_a_repository(self, tmp_path):
        """Test running outside a git repository."""
        if shutil.which("git") is None:
            pytest.skip("git is not installed")
        with pytest.raises(GitError):
            GitDiffProvider(str(tmp_path)).current_commit()
