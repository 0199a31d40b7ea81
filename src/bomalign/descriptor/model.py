"""Build descriptor: the top-level entity tying requirements to a platform."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from bomalign.common.logging_utils import extra_context
from bomalign.constants import Constants, VariantAxes
from bomalign.policy.exclusion import ExclusionPolicy, ExclusionRule
from bomalign.resolution.engine import ResolutionEngine
from bomalign.resolution.profiles import PriorityEntry, ProfileSelector, entry_matches
from bomalign.versioning.cache import TTLCache
from bomalign.versioning.catalog import VersionCatalog
from bomalign.versioning.models import (
    ModuleIdentifier,
    ModuleRequirement,
    ProfileSelection,
    RequirementKind,
    ResolvedGraph,
    VersionSpec,
)
from bomalign.versioning.sources import MavenMetadataSource, RepositorySource, VersionSource

logger = logging.getLogger(__name__)


def default_axis_priority() -> Dict[str, List[PriorityEntry]]:
    return {VariantAxes.TEST_RUNTIME.value: list(Constants.DEFAULT_TEST_RUNTIME_PRIORITY)}


@dataclass(frozen=True)
class PlatformImport:
    """The BOM a descriptor aligns against, e.g. ``platform("g:bom:$v")``."""
    id: ModuleIdentifier
    version: VersionSpec = field(default_factory=VersionSpec.latest)


@dataclass(frozen=True)
class DescriptorResolution:
    """Outcome of one descriptor evaluation."""
    descriptor: "BuildDescriptor"
    platform_version: Optional[str]
    graph: ResolvedGraph
    selections: ProfileSelection

    def module_tuples(self) -> List[Tuple[str, str, str, Tuple[str, ...]]]:
        return self.graph.to_tuples()

    def selection_tuples(self) -> List[Tuple[str, str]]:
        return [(axis, str(module)) for axis, module in self.selections.items()]


@dataclass
class BuildDescriptor:
    """A recipe module and the requirements it aggregates."""
    group: str
    name: str
    description: str = ""
    repositories: List[RepositorySource] = field(default_factory=list)
    platform: Optional[PlatformImport] = None
    requirements: List[ModuleRequirement] = field(default_factory=list)
    axis_priority: Dict[str, List[PriorityEntry]] = field(default_factory=default_axis_priority)
    aliases: Dict[str, str] = field(default_factory=dict)
    exclusions: List[ExclusionRule] = field(default_factory=list)

    @property
    def coordinate(self) -> str:
        return f"{self.group}:{self.name}"

    def exclusion_policy(self) -> ExclusionPolicy:
        """Repository content filters merged with descriptor-level rules."""
        return ExclusionPolicy.merge(
            *(repo.exclusions for repo in self.repositories),
            ExclusionPolicy(self.exclusions),
        )

    def all_requirements(self) -> List[ModuleRequirement]:
        """Declared requirements, preceded by the platform import if any."""
        reqs: List[ModuleRequirement] = []
        if self.platform is not None:
            reqs.append(ModuleRequirement(
                id=self.platform.id,
                version=VersionSpec.reference(Constants.PLATFORM_ALIAS),
                kind=RequirementKind.PLATFORM,
            ))
        reqs.extend(self.requirements)
        return reqs

    def build_catalog(
        self, source: Optional[VersionSource], policy: ExclusionPolicy
    ) -> VersionCatalog:
        return VersionCatalog(
            platform_module=self.platform.id if self.platform else None,
            platform_version=self.platform.version if self.platform else None,
            aliases=self.aliases,
            source=source,
            policy=policy,
        )

    def evaluate(
        self,
        source: Optional[VersionSource] = None,
        cache: Optional[TTLCache] = None,
    ) -> DescriptorResolution:
        """Resolve requirements and select variants from scratch.

        Args:
            source: Version source for ``latest`` lookups; defaults to the
                descriptor's Maven repositories.
            cache: Optional candidate cache for the default source.

        Raises:
            ResolutionError: the first failure; no partial result is returned.
        """
        logger.info(
            "Evaluating descriptor %s",
            self.coordinate,
            extra=extra_context(event="evaluate", requirement_count=len(self.requirements)),
        )
        policy = self.exclusion_policy()
        if source is None:
            source = MavenMetadataSource(self.repositories, cache=cache)
        catalog = self.build_catalog(source, policy)

        graph = ResolutionEngine().resolve(self.all_requirements(), catalog, policy)
        selections = ProfileSelector().select(graph, self.axis_priority)

        platform_version = graph[self.platform.id].version if self.platform else None
        return DescriptorResolution(
            descriptor=self,
            platform_version=platform_version,
            graph=graph,
            selections=selections,
        )


def evaluate_all(
    descriptors: Sequence[BuildDescriptor],
    source: Optional[VersionSource] = None,
) -> List[DescriptorResolution]:
    """Evaluate independent descriptors one after another."""
    return [d.evaluate(source) for d in descriptors]


# Requirement kind an undeclared axis tag is inferred from
AXIS_KINDS: Dict[str, RequirementKind] = {
    VariantAxes.TEST_RUNTIME.value: RequirementKind.TEST_RUNTIME_ONLY,
}


def infer_axis(
    module: ModuleIdentifier,
    kind: RequirementKind,
    axis_priority: Dict[str, List[PriorityEntry]],
) -> Optional[str]:
    """Axis whose priority list names ``module``, if any.

    Only requirements of the axis' own kind are tagged, so an
    ``implementation`` dependency never competes for the test runtime.
    Axes missing from AXIS_KINDS must be tagged explicitly.
    """
    for axis, entries in axis_priority.items():
        if AXIS_KINDS.get(axis) != kind:
            continue
        if any(entry_matches(entry, module) for entry in entries):
            return axis
    return None


def refers_to_platform(name: str, aliases: Dict[str, str]) -> bool:
    """True when the alias chain starting at ``name`` ends at the platform alias."""
    seen = set()
    current = name
    while current not in seen:
        if current == Constants.PLATFORM_ALIAS:
            return True
        seen.add(current)
        value = aliases.get(current)
        if value is None or not value.startswith("$"):
            return False
        current = value.lstrip("$").strip("{}")
    return False
