from __future__ import annotations

import os
import re
import subprocess
import sys
from dataclasses import dataclass
from typing import Iterator

from ..errors import (
    DiffComputationError,
    ObjectLookupError,
    ReferenceResolutionError,
    RepositoryAccessError,
)

BLOB = "blob"
TREE = "tree"

_HEX_SHA_RE = re.compile(r"(?:[0-9a-fA-F]{40}|[0-9a-fA-F]{64})")


def _log(msg: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(msg, file=sys.stderr, flush=True)


def _run_git(
    repo_dir: str, args: list[str], *, text: bool = True
) -> subprocess.CompletedProcess:
    _log(f"git -C {repo_dir} {' '.join(args)}")
    try:
        return subprocess.run(
            ["git", "-C", repo_dir, "--literal-pathspecs", *args],
            check=True,
            capture_output=True,
            text=text,
        )
    except FileNotFoundError as exc:
        raise RepositoryAccessError("git executable not found") from exc


def _stderr(exc: subprocess.CalledProcessError) -> str:
    err = exc.stderr
    if isinstance(err, bytes):
        err = err.decode("utf-8", errors="replace")
    return (err or "").strip() or f"git exited with status {exc.returncode}"


@dataclass(frozen=True)
class Commit:
    sha: str
    tree: str


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a recursive tree walk.

    ``parent`` is the enclosing directory with a trailing ``/``, or ``""`` for
    entries at the root of the tree.
    """

    parent: str
    name: str
    kind: str
    sha: str

    @property
    def path(self) -> str:
        return f"{self.parent}{self.name}"


def _split_path(path: str) -> tuple[str, str]:
    head, sep, name = path.rpartition("/")
    return (head + sep, name)


def _parse_ls_tree(output: str) -> Iterator[TreeEntry]:
    for record in output.split("\0"):
        if not record:
            continue
        meta, _, path = record.partition("\t")
        parts = meta.split()
        if len(parts) != 3 or not path:
            raise RepositoryAccessError(f"Unexpected ls-tree output: {record!r}")
        _, kind, sha = parts
        parent, name = _split_path(path)
        yield TreeEntry(parent=parent, name=name, kind=kind, sha=sha)


class GitRepository:
    """
    Read-only handle on a git repository, backed by the ``git`` executable.

    Every method maps to one or two plumbing commands; nothing is cached
    between calls, so a handle always reflects the repository's current state.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory

    @classmethod
    def open(cls, directory: str) -> "GitRepository":
        path = os.path.abspath(os.path.expanduser(directory))
        if not os.path.isdir(path):
            raise RepositoryAccessError(f"Not a directory: {directory}")
        try:
            _run_git(path, ["rev-parse", "--git-dir"])
        except subprocess.CalledProcessError as exc:
            raise RepositoryAccessError(
                f"Cannot open repository at {directory}: {_stderr(exc)}"
            ) from exc
        return cls(path)

    def _git(self, args: list[str], *, text: bool = True) -> subprocess.CompletedProcess:
        return _run_git(self.directory, args, text=text)

    def is_empty(self) -> bool:
        try:
            refs = self._git(
                ["for-each-ref", "--count=1", "--format=%(objectname)"]
            ).stdout.strip()
        except subprocess.CalledProcessError as exc:
            raise RepositoryAccessError(_stderr(exc)) from exc
        if refs:
            return False
        # a detached HEAD can point at a commit without any ref
        try:
            self._git(["rev-parse", "--verify", "--quiet", "HEAD"])
        except subprocess.CalledProcessError:
            return True
        return False

    def _resolve(self, rev: str, label: str) -> Commit:
        try:
            sha = self._git(
                ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"]
            ).stdout.strip()
        except subprocess.CalledProcessError as exc:
            raise ReferenceResolutionError(f"Cannot resolve {label}") from exc
        try:
            tree = self._git(
                ["rev-parse", "--verify", "--quiet", f"{sha}^{{tree}}"]
            ).stdout.strip()
        except subprocess.CalledProcessError as exc:
            raise ObjectLookupError(f"Cannot read tree of commit {sha}") from exc
        return Commit(sha=sha, tree=tree)

    def branch_commit(self, branch: str) -> Commit:
        if not branch or branch.startswith("-"):
            raise ReferenceResolutionError(f"Invalid branch name: {branch!r}")
        return self._resolve(f"refs/heads/{branch}", f"branch '{branch}'")

    def lookup_commit(self, sha: str) -> Commit:
        if not _HEX_SHA_RE.fullmatch(sha or ""):
            raise ReferenceResolutionError(f"Invalid commit sha: {sha!r}")
        return self._resolve(sha.lower(), f"commit {sha}")

    def walk(self, tree: str) -> Iterator[TreeEntry]:
        """Yield every entry below ``tree`` once, parents before children."""
        try:
            out = self._git(["ls-tree", "-r", "-t", "-z", "--full-tree", tree]).stdout
        except subprocess.CalledProcessError as exc:
            raise RepositoryAccessError(
                f"Cannot walk tree {tree}: {_stderr(exc)}"
            ) from exc
        yield from _parse_ls_tree(out)

    def entry_by_path(self, tree: str, path: str) -> TreeEntry:
        try:
            out = self._git(["ls-tree", "-z", "--full-tree", tree, "--", path]).stdout
        except subprocess.CalledProcessError as exc:
            raise ObjectLookupError(
                f"Cannot look up '{path}' in tree {tree}: {_stderr(exc)}"
            ) from exc
        for entry in _parse_ls_tree(out):
            if entry.path == path:
                return entry
        raise ObjectLookupError(f"No entry '{path}' in tree {tree}")

    def read_blob(self, sha: str) -> bytes:
        try:
            return self._git(["cat-file", "blob", sha], text=False).stdout
        except subprocess.CalledProcessError as exc:
            raise ObjectLookupError(
                f"Cannot read blob {sha}: {_stderr(exc)}"
            ) from exc

    def merge_base(self, head: Commit, other: Commit) -> str:
        try:
            base = self._git(["merge-base", head.sha, other.sha]).stdout.strip()
        except subprocess.CalledProcessError as exc:
            raise DiffComputationError(
                f"No merge base between {head.sha} and {other.sha}"
            ) from exc
        if not base:
            raise DiffComputationError(
                f"No merge base between {head.sha} and {other.sha}"
            )
        return base

    def diff_from_merge_base(self, head: Commit, other: Commit) -> list[str]:
        """
        Paths changed on ``head`` since its merge base with ``other``.

        Renames are disabled, so a moved file reports both its old and new path.
        """
        base = self.merge_base(head, other)
        try:
            out = self._git(
                [
                    "diff",
                    "--name-only",
                    "-z",
                    "--no-renames",
                    "--no-ext-diff",
                    base,
                    head.sha,
                    "--",
                ]
            ).stdout
        except subprocess.CalledProcessError as exc:
            raise DiffComputationError(
                f"Cannot diff {base}..{head.sha}: {_stderr(exc)}"
            ) from exc
        return [path for path in out.split("\0") if path]
