"""Version-aligned dependency resolution for multi-module build descriptors.

Requirements are reconciled against one shared platform (BOM) version,
pre-release versions are filtered by exclusion rules, and one module is
selected per variant axis such as the test runtime.
"""

from .errors import (
    AmbiguousProfileError,
    BomAlignError,
    ConflictingVersionError,
    DescriptorError,
    ExcludedVersionError,
    ExportError,
    ResolutionError,
    UnresolvedVersionError,
)
from .policy.exclusion import ExclusionPolicy, ExclusionRule
from .versioning.models import (
    ModuleIdentifier,
    ModuleRequirement,
    RequirementKind,
    ResolvedGraph,
    ResolvedModule,
    VersionMode,
    VersionSpec,
)
from .versioning.catalog import VersionCatalog
from .versioning.sources import MavenMetadataSource, RepositorySource, StaticVersionSource
from .resolution.engine import ResolutionEngine, resolve
from .resolution.profiles import ProfileSelector, select
from .descriptor.model import BuildDescriptor, DescriptorResolution, PlatformImport

__all__ = [
    "AmbiguousProfileError",
    "BomAlignError",
    "BuildDescriptor",
    "ConflictingVersionError",
    "DescriptorError",
    "DescriptorResolution",
    "ExcludedVersionError",
    "ExclusionPolicy",
    "ExclusionRule",
    "ExportError",
    "MavenMetadataSource",
    "ModuleIdentifier",
    "ModuleRequirement",
    "PlatformImport",
    "ProfileSelector",
    "RepositorySource",
    "RequirementKind",
    "ResolutionEngine",
    "ResolutionError",
    "ResolvedGraph",
    "ResolvedModule",
    "StaticVersionSource",
    "UnresolvedVersionError",
    "VersionCatalog",
    "VersionMode",
    "VersionSpec",
    "resolve",
    "select",
]
