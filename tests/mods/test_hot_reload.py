from dataclasses import dataclass

import pytest

from modkit.content.asset_registry import DefaultAssetRegistry
from modkit.content.type_registry import DefaultTypeRegistry
from modkit.mods.hot_reload import HotReloadTracker
from modkit.mods.lifecycle import ModLifecycleManager


@dataclass
class Note:
    text: str = ""


class FakeClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


@pytest.fixture()
def manager(mods_root):
    types = DefaultTypeRegistry()
    types.register("Note", Note)
    return ModLifecycleManager(mods_root, types, DefaultAssetRegistry())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def reloads(manager):
    seen = {"one": [], "batch": []}
    manager.events.subscribe("packageReloaded", seen["one"].append)
    manager.events.subscribe("packagesReloaded", seen["batch"].append)
    return seen


@pytest.fixture()
def loaded(manager, make_package, write_content):
    """Loads two packages, p and s, each with one note. Returns their note files."""
    files = {}
    for modId in ("p", "s"):
        packageDir = make_package(modId, modId)
        files[modId] = write_content(packageDir / "content" / "note.json", {"$type": "Note", "text": modId})
    manager.loadAll()
    return files


def test_reload_happens_on_the_tick_after_detection(manager, loaded, clock, reloads, bump_mtime):
    tracker = HotReloadTracker(manager, checkIntervalMs=0, clock=clock)
    bump_mtime(loaded["p"])

    assert tracker.checkForChanges() == ["p"]
    assert tracker.pending == ["p"]
    assert reloads["one"] == []

    assert tracker.tick() == ["p"]
    assert reloads["one"] == ["p"]
    assert reloads["batch"] == [["p"]]
    assert tracker.pending == []
    # Timestamps were refreshed by the reload
    assert manager.detectChangedPackages() == set()


def test_queue_is_deduplicated(manager, loaded, clock, bump_mtime):
    tracker = HotReloadTracker(manager, checkIntervalMs=0, clock=clock)
    bump_mtime(loaded["p"])

    tracker.checkForChanges()
    tracker.checkForChanges()

    assert tracker.pending == ["p"]


def test_periodic_check_results_wait_for_next_tick(manager, loaded, clock, reloads, bump_mtime):
    tracker = HotReloadTracker(manager, checkIntervalMs=500, clock=clock)
    bump_mtime(loaded["s"])

    clock.now = 100
    assert tracker.tick() == []
    assert tracker.pending == []  # interval not elapsed yet

    clock.now = 600
    assert tracker.tick() == []
    assert tracker.pending == ["s"]

    clock.now = 616
    assert tracker.tick() == ["s"]
    assert reloads["batch"] == [["s"]]


def test_focus_regain_triggers_check_and_ticks_pause_while_unfocused(manager, loaded, clock, reloads, bump_mtime):
    tracker = HotReloadTracker(manager, checkIntervalMs=0, clock=clock)

    tracker.notifyFocusChanged(False)
    bump_mtime(loaded["p"])
    assert tracker.tick() == []
    assert tracker.pending == []

    tracker.notifyFocusChanged(True)
    assert tracker.pending == ["p"]
    assert tracker.tick() == ["p"]


def test_focus_without_losing_it_does_not_check(manager, loaded, clock, bump_mtime):
    tracker = HotReloadTracker(manager, checkIntervalMs=0, clock=clock)
    bump_mtime(loaded["p"])

    tracker.notifyFocusChanged(True)

    assert tracker.pending == []


def test_disabled_tracker_ignores_triggers(manager, loaded, clock, bump_mtime):
    tracker = HotReloadTracker(manager, enabled=False, checkIntervalMs=1, clock=clock)
    bump_mtime(loaded["p"])
    clock.now = 10_000

    assert tracker.checkForChanges() == []
    assert tracker.tick() == []
    assert tracker.pending == []


def test_failed_reload_does_not_stop_the_batch(manager, loaded, clock, reloads, bump_mtime, mods_root):
    tracker = HotReloadTracker(manager, checkIntervalMs=0, clock=clock)
    (mods_root / "p" / "manifest.json").write_text("{ broken", encoding="utf-8")
    bump_mtime(mods_root / "p" / "manifest.json")
    bump_mtime(loaded["s"])

    assert tracker.checkForChanges() == ["p", "s"]
    assert tracker.tick() == ["s"]

    assert reloads["one"] == ["s"]
    assert reloads["batch"] == [["s"]]
    # A manifest that cannot be read keeps the old package loaded
    assert manager.isLoaded("p")


def test_forceReload_and_forceReloadAll(manager, loaded, clock, reloads):
    tracker = HotReloadTracker(manager, clock=clock)

    assert tracker.forceReload("p") is True
    assert tracker.forceReload("ghost") is False
    assert tracker.forceReloadAll() == ["p", "s"]

    assert reloads["one"] == ["p", "p", "s"]
    assert reloads["batch"] == [["p"], ["p", "s"]]
