import json
import os
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



def _writeJson(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path



@pytest.fixture()
def mods_root(tmp_path: Path) -> Path:
    root = tmp_path / "Mods"
    root.mkdir()
    return root



@pytest.fixture()
def write_manifest() -> Callable[[Path, dict[str, Any]], Path]:
    def _write(packageDir: Path, payload: dict[str, Any]) -> Path:
        return _writeJson(packageDir / "manifest.json", payload)
    return _write



@pytest.fixture()
def write_content() -> Callable[[Path, Any], Path]:
    return _writeJson



@pytest.fixture()
def make_package(mods_root: Path, write_manifest) -> Callable[..., Path]:
    """Creates <mods_root>/<dirName> with a manifest and its content folders."""
    def _make(
        dirName: str,
        modId: str,
        *,
        dependencies: Iterable[str] = (),
        conflicts: Iterable[str] = (),
        contentPaths: Iterable[str] | None = ("content",),
        **extra: Any,
    ) -> Path:
        packageDir = mods_root / dirName
        payload: dict[str, Any] = {
            "Id": modId,
            "Name": modId.title(),
            "Version": "1.0.0",
            "Dependencies": list(dependencies),
            "Conflicts": list(conflicts),
            "ContentPaths": list(contentPaths) if contentPaths is not None else None,
        }
        payload.update(extra)
        write_manifest(packageDir, payload)
        for contentPath in contentPaths or ():
            (packageDir / contentPath).mkdir(parents=True, exist_ok=True)
        return packageDir
    return _make



@pytest.fixture()
def bump_mtime() -> Callable[..., None]:
    """Moves a file's modification time forward without touching its content."""
    def _bump(path: Path, seconds: int = 5) -> None:
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))
    return _bump
