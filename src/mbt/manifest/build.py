from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Any

from ..concurrency import map_in_order_fail_fast
from ..errors import MalformedDescriptor, ObjectLookupError
from ..git.repo import BLOB, TREE, Commit, TreeEntry
from .application import Application, Applications
from .descriptor import DESCRIPTOR_FILENAME, parse_descriptor

logger = logging.getLogger(__name__)


def _log(msg: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(msg, file=sys.stderr, flush=True)


@dataclass(frozen=True)
class SkippedDescriptor:
    path: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "reason": self.reason}


@dataclass(frozen=True)
class Manifest:
    dir: str
    sha: str
    applications: Applications = field(default_factory=Applications)
    skipped: tuple[SkippedDescriptor, ...] = ()

    @classmethod
    def empty(cls, dir: str) -> "Manifest":
        return cls(dir=dir, sha="")

    def by_name(self) -> dict[str, Application]:
        return self.applications.by_name()

    def by_path(self) -> dict[str, Application]:
        return self.applications.by_path()

    def to_dict(self) -> dict[str, Any]:
        return {
            "dir": self.dir,
            "sha": self.sha,
            "applications": [app.to_dict() for app in self.applications],
            "skipped": [item.to_dict() for item in self.skipped],
        }


def _scan_tree(repo, tree: str) -> tuple[list[TreeEntry], dict[str, str]]:
    """Descriptor blobs and the sha of every subtree, from a single walk."""
    descriptors: list[TreeEntry] = []
    subtrees: dict[str, str] = {}
    for entry in repo.walk(tree):
        if entry.kind == TREE:
            subtrees[entry.path] = entry.sha
        elif entry.kind == BLOB and entry.name == DESCRIPTOR_FILENAME:
            descriptors.append(entry)
    return descriptors, subtrees


def _application_version(
    repo, commit: Commit, path: str, subtrees: dict[str, str]
) -> str:
    if not path:
        return commit.sha
    sha = subtrees.get(path)
    if sha is not None:
        return sha
    return repo.entry_by_path(commit.tree, path).sha


def _resolve_entry(
    repo,
    commit: Commit,
    entry: TreeEntry,
    subtrees: dict[str, str],
    strict: bool,
) -> Application | SkippedDescriptor:
    path = entry.parent.rstrip("/")
    try:
        contents = repo.read_blob(entry.sha)
        version = _application_version(repo, commit, path, subtrees)
        spec = parse_descriptor(contents)
    except (MalformedDescriptor, ObjectLookupError) as exc:
        if isinstance(exc, MalformedDescriptor) and exc.path is None:
            exc.path = path
        if strict:
            raise
        logger.warning("Skipping descriptor at %s: %s", path or ".", exc)
        return SkippedDescriptor(path=path, reason=str(exc))
    _log(f"resolved {spec.name or '<unnamed>'} at {path or '.'} ({version})")
    return Application.from_spec(path, version, spec)


def build_manifest(
    repo,
    commit: Commit,
    dir: str,
    *,
    strict: bool = False,
    jobs: int | None = None,
) -> Manifest:
    """
    Discover every application in ``commit`` and return them sorted by path.

    An application is versioned with the SHA of the tree at its path, or with
    the commit SHA when it lives at the repository root. Descriptors that fail
    to parse or whose objects cannot be read are recorded in
    ``Manifest.skipped`` unless ``strict`` is set, in which case the error
    propagates.
    """
    if jobs is None:
        from ..runtime import get_manifest_jobs

        jobs = get_manifest_jobs()

    entries, subtrees = _scan_tree(repo, commit.tree)
    _log(f"found {len(entries)} descriptor(s) in {commit.sha}")

    results = map_in_order_fail_fast(
        lambda entry: _resolve_entry(repo, commit, entry, subtrees, strict),
        entries,
        max_workers=jobs,
    )

    apps = [item for item in results if isinstance(item, Application)]
    skipped = [item for item in results if isinstance(item, SkippedDescriptor)]

    return Manifest(
        dir=dir,
        sha=commit.sha,
        applications=Applications(apps).sorted(),
        skipped=tuple(sorted(skipped, key=lambda item: item.path)),
    )
