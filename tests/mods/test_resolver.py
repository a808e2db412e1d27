import pytest

from modkit.core.errors import CircularDependencyError, DuplicateManifestError, MissingDependencyWarning
from modkit.mods.manifest import ModManifest
from modkit.mods.resolver import resolveLoadOrder


def make(modId: str, *deps: str) -> ModManifest:
    return ModManifest(id=modId, dependencies=list(deps))


def ids(manifests) -> list[str]:
    return [manifest.id for manifest in manifests]


def test_dependencies_come_first_and_loadOrder_is_stamped():
    ordered = resolveLoadOrder([make("c", "b"), make("b", "a"), make("a")])

    assert ids(ordered) == ["a", "b", "c"]
    assert [manifest.loadOrder for manifest in ordered] == [0, 1, 2]


def test_unrelated_manifests_keep_input_order():
    assert ids(resolveLoadOrder([make("z"), make("m"), make("a")])) == ["z", "m", "a"]


def test_dependencies_visited_in_declared_order():
    assert ids(resolveLoadOrder([make("x", "b", "a"), make("a"), make("b")])) == ["b", "a", "x"]


def test_diamond_visits_shared_dependency_once():
    ordered = resolveLoadOrder([make("top", "left", "right"), make("left", "base"), make("right", "base"), make("base")])

    assert ids(ordered) == ["base", "left", "right", "top"]


def test_cycle_is_fatal_and_reports_path():
    with pytest.raises(CircularDependencyError) as excInfo:
        resolveLoadOrder([make("a", "b"), make("b", "c"), make("c", "a")])

    assert excInfo.value.cycle == ("a", "b", "c", "a")
    assert excInfo.value.modId == "a"


def test_self_dependency_is_a_cycle():
    with pytest.raises(CircularDependencyError) as excInfo:
        resolveLoadOrder([make("solo", "solo")])
    assert excInfo.value.cycle == ("solo", "solo")


def test_cycle_does_not_stamp_partial_order():
    manifests = [make("ok"), make("a", "b"), make("b", "a")]

    with pytest.raises(CircularDependencyError):
        resolveLoadOrder(manifests)
    assert all(manifest.loadOrder == -1 for manifest in manifests)


def test_missing_dependency_is_only_a_warning():
    warnings: list[MissingDependencyWarning] = []

    ordered = resolveLoadOrder([make("needs", "ghost"), make("other")], warnings=warnings)

    assert ids(ordered) == ["needs", "other"]
    assert len(warnings) == 1
    assert warnings[0].modId == "needs"
    assert warnings[0].dependencyId == "ghost"


def test_duplicate_ids_rejected():
    with pytest.raises(DuplicateManifestError):
        resolveLoadOrder([make("a"), make("a")])
