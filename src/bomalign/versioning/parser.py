"""Coordinate parsing utilities for module requirements."""

from typing import Optional, Tuple

from bomalign.constants import Constants
from .models import ModuleIdentifier, ModuleRequirement, RequirementKind, VersionSpec

_LATEST_SELECTORS = (Constants.LATEST_RELEASE, Constants.LATEST_INTEGRATION, "latest")


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule.

    ``group:name`` has no spec; ``group:name:version`` splits on the last colon.
    """
    s = s.strip()
    if s.count(':') <= 1:
        return s, None
    identifier, spec_part = s.rsplit(':', 1)
    spec = spec_part.strip() or None
    return identifier.strip(), spec


def parse_version_spec(raw: Optional[str]) -> VersionSpec:
    """Map a raw version token onto a VersionSpec.

    Empty means inherit the platform version, ``latest.release`` and friends
    mean latest, ``$name`` or ``${name}`` is a catalog reference.
    """
    if raw is None or not raw.strip():
        return VersionSpec.inherited()
    spec = raw.strip()
    if spec.lower() in _LATEST_SELECTORS:
        selector = Constants.LATEST_RELEASE if spec.lower() == "latest" else spec.lower()
        return VersionSpec.latest(selector)
    if spec.startswith("${") and spec.endswith("}"):
        return VersionSpec.reference(spec[2:-1].strip())
    if spec.startswith("$"):
        return VersionSpec.reference(spec[1:].strip())
    return VersionSpec.explicit(spec)


def parse_coordinate(
    token: str,
    kind: RequirementKind = RequirementKind.IMPLEMENTATION,
    variant_axis: Optional[str] = None,
) -> ModuleRequirement:
    """Parse ``group:name[:version]`` into a ModuleRequirement.

    Raises:
        ValueError: if the token is not a group:name coordinate.
    """
    id_part, spec = tokenize_rightmost_colon(token)
    return ModuleRequirement(
        id=ModuleIdentifier.parse(id_part),
        version=parse_version_spec(spec),
        kind=kind,
        variant_axis=variant_axis,
    )


def parse_kind(name: str) -> RequirementKind:
    """Accept either the configuration name (``testRuntimeOnly``) or the enum
    member name (``TEST_RUNTIME_ONLY``)."""
    value = name.strip()
    for kind in RequirementKind:
        if value == kind.value or value.upper() == kind.name:
            return kind
    raise ValueError(f"Unknown requirement kind '{name}'")
