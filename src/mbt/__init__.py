from typing import TYPE_CHECKING

from .errors import (
    DiffComputationError,
    MalformedDescriptor,
    MbtError,
    ObjectLookupError,
    ReferenceResolutionError,
    RepositoryAccessError,
)

if TYPE_CHECKING:
    from .manifest.build import Manifest


def manifest_by_sha(
    dir: str, sha: str, *, strict: bool = False, jobs: int | None = None
) -> "Manifest":
    from .manifest.resolve import manifest_by_sha as _by_sha

    return _by_sha(dir, sha, strict=strict, jobs=jobs)


def manifest_by_branch(
    dir: str, branch: str, *, strict: bool = False, jobs: int | None = None
) -> "Manifest":
    from .manifest.resolve import manifest_by_branch as _by_branch

    return _by_branch(dir, branch, strict=strict, jobs=jobs)


def manifest_by_pr(
    dir: str, src: str, dst: str, *, strict: bool = False, jobs: int | None = None
) -> "Manifest":
    from .manifest.resolve import manifest_by_pr as _by_pr

    return _by_pr(dir, src, dst, strict=strict, jobs=jobs)


def manifest_by_diff(
    dir: str,
    from_sha: str,
    to_sha: str,
    *,
    strict: bool = False,
    jobs: int | None = None,
) -> "Manifest":
    from .manifest.resolve import manifest_by_diff as _by_diff

    return _by_diff(dir, from_sha, to_sha, strict=strict, jobs=jobs)


__all__ = [
    "manifest_by_sha",
    "manifest_by_branch",
    "manifest_by_pr",
    "manifest_by_diff",
    "MbtError",
    "RepositoryAccessError",
    "ObjectLookupError",
    "ReferenceResolutionError",
    "DiffComputationError",
    "MalformedDescriptor",
]
