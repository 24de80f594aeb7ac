from __future__ import annotations

from typing import Iterable

from .application import Application, Applications
from .build import Manifest


def reduce_to_diff(manifest: Manifest, changed_paths: Iterable[str]) -> Manifest:
    """
    Keep only the applications whose path prefixes one of ``changed_paths``.

    The comparison is a plain string prefix, so the root application (path
    ``""``) is kept for any change. The result is sorted by path.
    """
    candidates = manifest.by_path()
    selected: dict[str, Application] = {}
    for changed in changed_paths:
        for path, app in candidates.items():
            if path in selected:
                continue
            if changed.startswith(path):
                selected[path] = app
        if len(selected) == len(candidates):
            break

    return Manifest(
        dir=manifest.dir,
        sha=manifest.sha,
        applications=Applications(selected.values()).sorted(),
        skipped=manifest.skipped,
    )
