"""Data models for module requirements and resolution results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from bomalign.constants import Constants


class VersionMode(Enum):
    """How a requirement's version is determined."""
    EXPLICIT = "explicit"
    INHERITED = "inherited"
    LATEST = "latest"
    REFERENCE = "reference"


class RequirementKind(Enum):
    """Dependency configuration a requirement is declared under."""
    COMPILE_ONLY = "compileOnly"
    ANNOTATION_PROCESSOR = "annotationProcessor"
    IMPLEMENTATION = "implementation"
    TEST_IMPLEMENTATION = "testImplementation"
    TEST_RUNTIME_ONLY = "testRuntimeOnly"
    PLATFORM = "platform"


@dataclass(frozen=True, order=True)
class ModuleIdentifier:
    """A module's (group, name) coordinate."""
    group: str
    name: str

    def __str__(self) -> str:
        return f"{self.group}:{self.name}"

    @classmethod
    def parse(cls, coordinate: str) -> "ModuleIdentifier":
        """Build an identifier from ``group:name``."""
        group, sep, name = coordinate.strip().partition(":")
        if not sep or not group or not name or ":" in name:
            raise ValueError(f"Expected 'group:name', got '{coordinate}'")
        return cls(group.strip(), name.strip())


@dataclass(frozen=True)
class VersionSpec:
    """Requested version: an explicit string, the platform version, the latest
    release, or a symbolic catalog reference."""
    mode: VersionMode
    value: Optional[str] = None

    @classmethod
    def explicit(cls, version: str) -> "VersionSpec":
        return cls(VersionMode.EXPLICIT, version)

    @classmethod
    def inherited(cls) -> "VersionSpec":
        return cls(VersionMode.INHERITED)

    @classmethod
    def latest(cls, selector: str = Constants.LATEST_RELEASE) -> "VersionSpec":
        return cls(VersionMode.LATEST, selector)

    @classmethod
    def reference(cls, name: str) -> "VersionSpec":
        return cls(VersionMode.REFERENCE, name)

    def __str__(self) -> str:
        if self.mode == VersionMode.INHERITED:
            return "<platform>"
        if self.mode == VersionMode.REFERENCE:
            return f"${self.value}"
        return str(self.value)


@dataclass(frozen=True)
class ModuleRequirement:
    """A single declared dependency."""
    id: ModuleIdentifier
    version: VersionSpec = field(default_factory=VersionSpec.inherited)
    kind: RequirementKind = RequirementKind.IMPLEMENTATION
    variant_axis: Optional[str] = None


@dataclass(frozen=True)
class ResolvedModule:
    """Resolution outcome for one module identifier."""
    id: ModuleIdentifier
    version: str
    kinds: FrozenSet[RequirementKind]
    axes: FrozenSet[str] = frozenset()

    def sorted_kinds(self) -> List[str]:
        """Kind names in a stable order for serialization."""
        return sorted(k.value for k in self.kinds)


class ResolvedGraph(Mapping):
    """Read-only mapping from ModuleIdentifier to ResolvedModule.

    Iteration follows the order in which identifiers were first declared.
    """

    def __init__(self, modules: Optional[Dict[ModuleIdentifier, ResolvedModule]] = None):
        self._modules: Dict[ModuleIdentifier, ResolvedModule] = dict(modules or {})

    def __getitem__(self, key: ModuleIdentifier) -> ResolvedModule:
        return self._modules[key]

    def __iter__(self) -> Iterator[ModuleIdentifier]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"ResolvedGraph({list(self._modules.values())!r})"

    def tagged(self, axis: str) -> List[ResolvedModule]:
        """Modules declared for the given variant axis, in graph order."""
        return [m for m in self._modules.values() if axis in m.axes]

    def to_tuples(self) -> List[Tuple[str, str, str, Tuple[str, ...]]]:
        """Flatten to ``(group, name, version, kinds)`` tuples."""
        return [
            (m.id.group, m.id.name, m.version, tuple(m.sorted_kinds()))
            for m in self._modules.values()
        ]


# Type alias for axis -> chosen module lookups.
ProfileSelection = Dict[str, ModuleIdentifier]
