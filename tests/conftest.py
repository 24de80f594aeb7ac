from __future__ import annotations

import hashlib
import shutil
import subprocess
from pathlib import Path

import pytest

from mbt.errors import ObjectLookupError
from mbt.git.repo import BLOB, TREE, Commit, TreeEntry


def _sha(payload: bytes) -> str:
    return hashlib.sha1(payload).hexdigest()


class FakeRepository:
    """In-memory stand-in for GitRepository keyed by content hashes."""

    def __init__(self) -> None:
        self.commits: dict[str, Commit] = {}
        self._trees: dict[str, dict[str, tuple[str, str]]] = {}
        self._blobs: dict[str, bytes] = {}
        self.unreadable: set[str] = set()
        self.walk_calls = 0

    def _store_tree(self, files: dict[str, bytes]) -> str:
        children: dict[str, dict[str, bytes]] = {}
        entries: dict[str, tuple[str, str]] = {}
        for path, data in files.items():
            head, sep, rest = path.partition("/")
            if sep:
                children.setdefault(head, {})[rest] = data
            else:
                blob_sha = _sha(b"blob:" + data)
                self._blobs[blob_sha] = data
                entries[head] = (BLOB, blob_sha)
        for name, sub in children.items():
            entries[name] = (TREE, self._store_tree(sub))
        listing = "".join(
            f"{kind} {sha} {name}\n" for name, (kind, sha) in sorted(entries.items())
        )
        tree_sha = _sha(b"tree:" + listing.encode())
        self._trees[tree_sha] = entries
        return tree_sha

    def commit(self, files: dict[str, str | bytes], message: str = "") -> Commit:
        encoded = {
            path: data.encode() if isinstance(data, str) else data
            for path, data in files.items()
        }
        tree = self._store_tree(encoded)
        sha = _sha(f"commit:{tree}:{message}:{len(self.commits)}".encode())
        commit = Commit(sha=sha, tree=tree)
        self.commits[sha] = commit
        return commit

    def walk(self, tree: str, parent: str = ""):
        if parent == "":
            self.walk_calls += 1
        for name, (kind, sha) in self._trees[tree].items():
            yield TreeEntry(parent=parent, name=name, kind=kind, sha=sha)
            if kind == TREE:
                yield from self.walk(sha, f"{parent}{name}/")

    def entry_by_path(self, tree: str, path: str) -> TreeEntry:
        current = tree
        parts = path.split("/")
        for index, part in enumerate(parts):
            entries = self._trees.get(current, {})
            if part not in entries:
                raise ObjectLookupError(f"No entry '{path}'")
            kind, sha = entries[part]
            if index == len(parts) - 1:
                parent = "/".join(parts[:-1])
                return TreeEntry(
                    parent=f"{parent}/" if parent else "", name=part, kind=kind, sha=sha
                )
            if kind != TREE:
                raise ObjectLookupError(f"No entry '{path}'")
            current = sha
        raise ObjectLookupError(f"No entry '{path}'")

    def read_blob(self, sha: str) -> bytes:
        if sha in self.unreadable or sha not in self._blobs:
            raise ObjectLookupError(f"Cannot read blob {sha}")
        return self._blobs[sha]


@pytest.fixture
def fake_repo() -> FakeRepository:
    return FakeRepository()


class GitWorkspace:
    def __init__(self, root: Path) -> None:
        self.root = root

    def git(self, *args: str) -> str:
        return subprocess.run(
            [
                "git",
                "-C",
                str(self.root),
                "-c",
                "user.name=mbt",
                "-c",
                "user.email=mbt@example.com",
                "-c",
                "commit.gpgsign=false",
                *args,
            ],
            check=True,
            capture_output=True,
            text=True,
        ).stdout.strip()

    def commit(self, files: dict[str, str | None], message: str = "change") -> str:
        for rel, content in files.items():
            target = self.root / rel
            if content is None:
                target.unlink()
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tree_sha(self, rev: str, path: str) -> str:
        return self.git("rev-parse", f"{rev}:{path}")


@pytest.fixture
def git_workspace(tmp_path: Path) -> GitWorkspace:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    root = tmp_path / "repo"
    root.mkdir()
    workspace = GitWorkspace(root)
    workspace.git("init", "-q")
    workspace.git("symbolic-ref", "HEAD", "refs/heads/main")
    return workspace


def descriptor(name: str, **build: str) -> str:
    lines = ["version: '1.0'", f"name: {name}"]
    if build:
        lines.append("build:")
        for step, cmd in build.items():
            lines.append(f"  {step}:")
            lines.append(f"    cmd: {cmd}")
            lines.append("    args: [build]")
    return "\n".join(lines) + "\n"
