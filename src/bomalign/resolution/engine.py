"""Flat requirement resolution against a shared platform version."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from bomalign.common.logging_utils import extra_context, is_debug_enabled, Timer
from bomalign.errors import ConflictingVersionError, ExcludedVersionError
from bomalign.policy.exclusion import ExclusionPolicy
from bomalign.versioning.catalog import VersionCatalog
from bomalign.versioning.models import (
    ModuleIdentifier,
    ModuleRequirement,
    ResolvedGraph,
    ResolvedModule,
    VersionMode,
)

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """Reconciles declared requirements into one ResolvedGraph.

    Stateless; a single engine can serve any number of evaluations.
    """

    def resolve(
        self,
        requirements: Sequence[ModuleRequirement],
        catalog: VersionCatalog,
        policy: Optional[ExclusionPolicy] = None,
    ) -> ResolvedGraph:
        """Resolve every requirement or raise the first ResolutionError.

        Args:
            requirements: Declared requirements, in declaration order.
            catalog: Catalog for platform, alias and latest lookups.
            policy: Exclusion rules the final versions must pass.

        Returns:
            ResolvedGraph with one entry per distinct module identifier.
        """
        policy = policy or ExclusionPolicy()
        groups = self._group(requirements)
        resolved: Dict[ModuleIdentifier, ResolvedModule] = {}

        with Timer() as t:
            for module, group in groups.items():
                chosen = self._pick_version(module, group, catalog)
                rule = policy.first_match(
                    {"group": module.group, "name": module.name, "version": chosen}
                )
                if rule is not None:
                    raise ExcludedVersionError(module, chosen, rule)

                resolved[module] = ResolvedModule(
                    id=module,
                    version=chosen,
                    kinds=frozenset(r.kind for r in group),
                    axes=frozenset(r.variant_axis for r in group if r.variant_axis),
                )
                if is_debug_enabled(logger):
                    logger.debug(
                        "Resolved module",
                        extra=extra_context(
                            event="resolve_module",
                            component="resolution_engine",
                            module=str(module),
                            version=chosen,
                            requirement_count=len(group)
                        )
                    )

        logger.info(
            "Resolved %d modules from %d requirements",
            len(resolved),
            len(requirements),
            extra=extra_context(event="resolve", duration_ms=t.duration_ms()),
        )
        return ResolvedGraph(resolved)

    @staticmethod
    def _group(
        requirements: Sequence[ModuleRequirement],
    ) -> Dict[ModuleIdentifier, List[ModuleRequirement]]:
        """Group by identifier, keeping first-appearance order."""
        groups: Dict[ModuleIdentifier, List[ModuleRequirement]] = {}
        for req in requirements:
            groups.setdefault(req.id, []).append(req)
        return groups

    @staticmethod
    def _pick_version(
        module: ModuleIdentifier,
        group: List[ModuleRequirement],
        catalog: VersionCatalog,
    ) -> str:
        """Explicit pins win, then one latest selector, then the platform version."""
        pinned: List[str] = []
        selectors: List[str] = []
        for req in group:
            spec = req.version
            if spec.mode == VersionMode.EXPLICIT:
                value = spec.value
            elif spec.mode == VersionMode.REFERENCE:
                value = catalog.resolve_reference(spec.value)
            else:
                if spec.mode == VersionMode.LATEST and spec.value not in selectors:
                    selectors.append(spec.value)
                continue
            if value not in pinned:
                pinned.append(value)

        if len(pinned) > 1:
            raise ConflictingVersionError(module, pinned)
        if pinned:
            return pinned[0]
        if len(selectors) > 1:
            raise ConflictingVersionError(module, selectors)
        if selectors:
            return catalog.resolve_latest(module, selectors[0])
        return catalog.resolve_platform_version()


def resolve(
    requirements: Sequence[ModuleRequirement],
    catalog: VersionCatalog,
    policy: Optional[ExclusionPolicy] = None,
) -> ResolvedGraph:
    """Module-level shortcut for ``ResolutionEngine().resolve``."""
    return ResolutionEngine().resolve(requirements, catalog, policy)
