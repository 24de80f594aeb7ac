from __future__ import annotations

from ..git.repo import GitRepository
from .build import Manifest, build_manifest
from .reduce import reduce_to_diff


def _open_repo(dir: str) -> tuple[GitRepository | None, Manifest | None]:
    repo = GitRepository.open(dir)
    if repo.is_empty():
        return None, Manifest.empty(dir)
    return repo, None


def manifest_by_sha(
    dir: str, sha: str, *, strict: bool = False, jobs: int | None = None
) -> Manifest:
    repo, empty = _open_repo(dir)
    if empty is not None:
        return empty
    commit = repo.lookup_commit(sha)
    return build_manifest(repo, commit, dir, strict=strict, jobs=jobs)


def manifest_by_branch(
    dir: str, branch: str, *, strict: bool = False, jobs: int | None = None
) -> Manifest:
    repo, empty = _open_repo(dir)
    if empty is not None:
        return empty
    commit = repo.branch_commit(branch)
    return build_manifest(repo, commit, dir, strict=strict, jobs=jobs)


def manifest_by_pr(
    dir: str, src: str, dst: str, *, strict: bool = False, jobs: int | None = None
) -> Manifest:
    """Applications of branch ``src`` changed since it forked from ``dst``."""
    repo, empty = _open_repo(dir)
    if empty is not None:
        return empty
    src_commit = repo.branch_commit(src)
    dst_commit = repo.branch_commit(dst)
    changed = repo.diff_from_merge_base(src_commit, dst_commit)
    manifest = build_manifest(repo, src_commit, dir, strict=strict, jobs=jobs)
    return reduce_to_diff(manifest, changed)


def manifest_by_diff(
    dir: str,
    from_sha: str,
    to_sha: str,
    *,
    strict: bool = False,
    jobs: int | None = None,
) -> Manifest:
    """Applications of commit ``to_sha`` changed since its merge base with ``from_sha``."""
    repo, empty = _open_repo(dir)
    if empty is not None:
        return empty
    from_commit = repo.lookup_commit(from_sha)
    to_commit = repo.lookup_commit(to_sha)
    changed = repo.diff_from_merge_base(to_commit, from_commit)
    manifest = build_manifest(repo, to_commit, dir, strict=strict, jobs=jobs)
    return reduce_to_diff(manifest, changed)
