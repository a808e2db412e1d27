# modkit/mods/resolver.py
from __future__ import annotations
import logging
from collections.abc import Iterable

from modkit.core.errors import CircularDependencyError, DuplicateManifestError, MissingDependencyWarning
from modkit.mods.manifest import ModManifest

logger = logging.getLogger(__name__)

__all__ = ["resolveLoadOrder", "ResolutionWarnings"]


ResolutionWarnings = list[MissingDependencyWarning]



def resolveLoadOrder(
    manifests: Iterable[ModManifest],
    *,
    warnings: ResolutionWarnings | None = None,
) -> list[ModManifest]:
    """
    Depth-first topological sort of the manifests by their dependencies.

    - Dependencies are visited before their dependents, in declared order.
    - Manifests with no relationship keep their input order.
    - A dependency id not present in the batch is only a warning; the
      dependent is still ordered (loading will fail it later if the
      dependency is truly absent).
    - A cycle raises CircularDependencyError and no order is returned.

    Each returned manifest gets loadOrder set to its 0-based position.
    Missing-dependency warnings are appended to `warnings` when given.
    """
    ordered: list[ModManifest] = []
    byId: dict[str, ModManifest] = {}
    inputOrder: list[ModManifest] = []
    for manifest in manifests:
        if manifest.id in byId:
            raise DuplicateManifestError(f"Duplicate mod id '{manifest.id}' in resolution batch", modId=manifest.id)
        byId[manifest.id] = manifest
        inputOrder.append(manifest)

    visited: set[str] = set()
    # Recursion stack, kept ordered so a cycle can be reported
    visiting: list[str] = []

    def visit(manifest: ModManifest) -> None:
        if manifest.id in visited:
            return
        if manifest.id in visiting:
            cycle = visiting[visiting.index(manifest.id):] + [manifest.id]
            raise CircularDependencyError(manifest.id, cycle)

        visiting.append(manifest.id)
        for depId in manifest.dependencies:
            dependency = byId.get(depId)
            if dependency is not None:
                visit(dependency)
            else:
                warning = MissingDependencyWarning(manifest.id, depId)
                logger.warning("%s", warning.message)
                if warnings is not None:
                    warnings.append(warning)
        visiting.pop()

        visited.add(manifest.id)
        ordered.append(manifest)

    for manifest in inputOrder:
        visit(manifest)

    for index, manifest in enumerate(ordered):
        manifest.loadOrder = index

    logger.debug("Resolved load order: %s", [manifest.id for manifest in ordered])
    return ordered
