from __future__ import annotations

import pytest

from conftest import descriptor
from mbt.errors import (
    DiffComputationError,
    ReferenceResolutionError,
    RepositoryAccessError,
)
from mbt.manifest.resolve import (
    manifest_by_branch,
    manifest_by_diff,
    manifest_by_pr,
    manifest_by_sha,
)


@pytest.fixture
def monorepo(git_workspace):
    c1 = git_workspace.commit(
        {
            "services/api/.mbt.yml": descriptor("api", default="make"),
            "services/api/main": "api v1",
            "services/worker/.mbt.yml": descriptor("worker"),
            "services/worker/main": "worker v1",
        },
        "c1",
    )
    return git_workspace, c1


def test_empty_repository_short_circuits_every_strategy(git_workspace) -> None:
    d = str(git_workspace.root)

    results = [
        manifest_by_sha(d, "not-even-a-sha"),
        manifest_by_branch(d, "main"),
        manifest_by_pr(d, "feature", "main"),
        manifest_by_diff(d, "a", "b"),
    ]

    for manifest in results:
        assert manifest.dir == d
        assert manifest.sha == ""
        assert len(manifest.applications) == 0


def test_manifest_by_sha(monorepo) -> None:
    ws, c1 = monorepo

    manifest = manifest_by_sha(str(ws.root), c1)

    assert manifest.sha == c1
    assert [app.path for app in manifest.applications] == [
        "services/api",
        "services/worker",
    ]
    assert manifest.by_name()["api"].version == ws.tree_sha(c1, "services/api")
    assert manifest.by_name()["worker"].version == ws.tree_sha(c1, "services/worker")
    assert manifest.by_name()["api"].build["default"].cmd == "make"


def test_manifest_by_sha_accepts_uppercase_hex(monorepo) -> None:
    ws, c1 = monorepo

    assert manifest_by_sha(str(ws.root), c1.upper()).sha == c1


def test_diff_selects_only_changed_application(monorepo) -> None:
    ws, c1 = monorepo
    c2 = ws.commit({"services/worker/main": "worker v2"}, "c2")

    manifest = manifest_by_diff(str(ws.root), c1, c2)

    assert manifest.sha == c2
    assert manifest.applications.names() == ["worker"]
    assert manifest.by_name()["worker"].version == ws.tree_sha(c2, "services/worker")


def test_unchanged_application_keeps_its_version(monorepo) -> None:
    ws, c1 = monorepo
    c2 = ws.commit({"services/worker/main": "worker v2"}, "c2")

    before = manifest_by_sha(str(ws.root), c1).by_name()
    after = manifest_by_sha(str(ws.root), c2).by_name()

    assert before["api"].version == after["api"].version
    assert before["worker"].version != after["worker"].version


def test_root_application(monorepo) -> None:
    ws, _ = monorepo
    c2 = ws.commit({".mbt.yml": descriptor("root")}, "root app")
    c3 = ws.commit({"docs/index.md": "docs"}, "docs")

    manifest = manifest_by_sha(str(ws.root), c3)
    assert manifest.by_path()[""].version == c3
    assert [app.path for app in manifest.applications][0] == ""

    reduced = manifest_by_diff(str(ws.root), c2, c3)
    assert reduced.applications.names() == ["root"]


def test_broken_descriptor_is_skipped(monorepo) -> None:
    ws, _ = monorepo
    c2 = ws.commit({"services/broken/.mbt.yml": "name: [oops\n"}, "broken")

    manifest = manifest_by_sha(str(ws.root), c2)

    assert manifest.applications.names() == ["api", "worker"]
    assert [item.path for item in manifest.skipped] == ["services/broken"]


def test_manifest_by_branch(monorepo) -> None:
    ws, c1 = monorepo
    ws.git("branch", "release", c1)
    ws.commit({"services/queue/.mbt.yml": descriptor("queue")}, "queue")

    assert manifest_by_branch(str(ws.root), "main").applications.names() == [
        "api",
        "queue",
        "worker",
    ]
    release = manifest_by_branch(str(ws.root), "release")
    assert release.sha == c1
    assert release.applications.names() == ["api", "worker"]


def test_manifest_by_pr_uses_merge_base(monorepo) -> None:
    ws, _ = monorepo
    ws.git("checkout", "-q", "-b", "feature")
    feature_tip = ws.commit({"services/api/main": "api v2"}, "feature work")
    ws.git("checkout", "-q", "main")
    ws.commit({"services/worker/main": "worker v2"}, "main moves on")

    manifest = manifest_by_pr(str(ws.root), "feature", "main")

    assert manifest.sha == feature_tip
    assert manifest.applications.names() == ["api"]


def test_removed_application_is_not_reported(monorepo) -> None:
    ws, c1 = monorepo
    c2 = ws.commit(
        {"services/worker/.mbt.yml": None, "services/worker/main": None}, "drop worker"
    )

    manifest = manifest_by_diff(str(ws.root), c1, c2)

    assert len(manifest.applications) == 0


def test_unknown_branch_raises(monorepo) -> None:
    ws, _ = monorepo

    with pytest.raises(ReferenceResolutionError):
        manifest_by_branch(str(ws.root), "does-not-exist")


@pytest.mark.parametrize("sha", ["xyz", "abc123", "0" * 40])
def test_unresolvable_sha_raises(monorepo, sha) -> None:
    ws, _ = monorepo

    with pytest.raises(ReferenceResolutionError):
        manifest_by_sha(str(ws.root), sha)


def test_not_a_repository_raises(tmp_path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()

    with pytest.raises(RepositoryAccessError):
        manifest_by_branch(str(plain), "main")


def test_missing_directory_raises(tmp_path) -> None:
    with pytest.raises(RepositoryAccessError):
        manifest_by_branch(str(tmp_path / "missing"), "main")


def test_unrelated_histories_raise_diff_error(monorepo) -> None:
    ws, c1 = monorepo
    ws.git("checkout", "-q", "--orphan", "island")
    ws.git("rm", "-rqf", ".")
    other = ws.commit({"island/.mbt.yml": descriptor("island")}, "orphan")

    with pytest.raises(DiffComputationError):
        manifest_by_diff(str(ws.root), c1, other)


def test_package_level_strategies_return_manifests(monorepo) -> None:
    import typing

    import mbt
    from mbt.manifest.build import Manifest

    ws, c1 = monorepo

    manifest = mbt.manifest_by_sha(str(ws.root), c1)

    assert isinstance(manifest, Manifest)
    assert manifest.applications.names() == ["api", "worker"]
    for func in (
        mbt.manifest_by_sha,
        mbt.manifest_by_branch,
        mbt.manifest_by_pr,
        mbt.manifest_by_diff,
    ):
        assert typing.get_type_hints(func, localns={"Manifest": Manifest})["return"] is Manifest
