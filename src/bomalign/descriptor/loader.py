"""Load build descriptors from YAML or JSON declarations.

Example::

    group: org.openrewrite.recipe
    name: rewrite-all
    description: Recipes depending on many language parsers.
    repositories:
      - url: https://repo.gradle.org/gradle/libs-releases/
        exclude:
          - {group: ".+", name: ".+", version: ".+-rc-?[0-9]*"}
    platform:
      module: org.openrewrite:rewrite-bom
      version: latest.release
    aliases:
      latest: $platform
    dependencies:
      implementation:
        - org.openrewrite:rewrite-java
        - org.openrewrite:rewrite-cobol:$latest
      testRuntimeOnly:
        - {module: org.openrewrite:rewrite-java-21, axis: test-runtime}
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from bomalign.errors import DescriptorError
from bomalign.policy.exclusion import ExclusionPolicy, ExclusionRule
from bomalign.versioning.models import ModuleIdentifier, ModuleRequirement, VersionMode, VersionSpec
from bomalign.versioning.parser import parse_coordinate, parse_kind, parse_version_spec
from bomalign.versioning.sources import RepositorySource
from .model import (
    BuildDescriptor,
    PlatformImport,
    default_axis_priority,
    infer_axis,
    refers_to_platform,
)

logger = logging.getLogger(__name__)


def load_descriptor(path: str) -> BuildDescriptor:
    """Read a descriptor file (``.json``, otherwise YAML).

    Raises:
        DescriptorError: unreadable file or malformed declaration.
    """
    if not os.path.isfile(path):
        raise DescriptorError(f"Descriptor file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DescriptorError(f"Failed to read descriptor {path}: {exc}") from exc
    logger.debug("Loaded descriptor declaration from %s", path)
    return descriptor_from_dict(data)


def descriptor_from_dict(data: Any) -> BuildDescriptor:
    """Validate a parsed declaration and build a BuildDescriptor."""
    if not isinstance(data, Mapping):
        raise DescriptorError("Descriptor declaration must be a mapping")
    for key in ("group", "name"):
        if not isinstance(data.get(key), str) or not data[key].strip():
            raise DescriptorError(f"Descriptor is missing '{key}'")

    axis_priority = _parse_axes(data.get("axes"))
    try:
        aliases = {str(k): str(v) for k, v in (data.get("aliases") or {}).items()}
        return BuildDescriptor(
            group=data["group"].strip(),
            name=data["name"].strip(),
            description=str(data.get("description") or ""),
            repositories=[_parse_repository(r) for r in _as_list(data.get("repositories"), "repositories")],
            platform=_parse_platform(data.get("platform"), aliases),
            requirements=_parse_dependencies(data.get("dependencies"), axis_priority),
            axis_priority=axis_priority,
            aliases=aliases,
            exclusions=[_parse_rule(r) for r in _as_list(data.get("exclusions"), "exclusions")],
        )
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        raise DescriptorError(f"Invalid descriptor {data.get('group')}:{data.get('name')}: {exc}") from exc


def _as_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DescriptorError(f"'{what}' must be a list")
    return value


def _parse_rule(raw: Any) -> ExclusionRule:
    if isinstance(raw, str):
        # Bare string: a version pattern for every module
        return ExclusionRule.regex(".+", ".+", raw)
    syntax = raw.get("syntax", "regex")
    wildcard = "*" if syntax == "glob" else ".+"
    return ExclusionRule(
        raw.get("group", wildcard),
        raw.get("name", wildcard),
        raw["version"],
        syntax,
    )


def _parse_repository(raw: Any) -> RepositorySource:
    if isinstance(raw, str):
        return RepositorySource(raw)
    policy = ExclusionPolicy([_parse_rule(r) for r in _as_list(raw.get("exclude"), "exclude")])
    if raw.get("exclude_prereleases"):
        policy = ExclusionPolicy.merge(policy, ExclusionPolicy.prereleases())
    return RepositorySource(raw["url"], policy)


def _parse_platform(raw: Any, aliases: Dict[str, str]) -> Optional[PlatformImport]:
    if raw is None:
        return None
    if isinstance(raw, str):
        req = parse_coordinate(raw)
        module, version = req.id, req.version
    else:
        module = ModuleIdentifier.parse(raw["module"])
        version = parse_version_spec(raw.get("version", "latest.release"))
    if version.mode == VersionMode.INHERITED:
        # A platform cannot inherit from itself
        version = VersionSpec.latest()
    elif version.mode == VersionMode.REFERENCE and refers_to_platform(version.value, aliases):
        # $latest bound to the platform version means the latest release of the BOM
        version = VersionSpec.latest()
    return PlatformImport(module, version)


def _parse_axes(raw: Any) -> Dict[str, list]:
    if raw is None:
        return default_axis_priority()
    if not isinstance(raw, Mapping):
        raise DescriptorError("'axes' must map axis names to priority lists")
    return {str(axis): [str(e) for e in _as_list(entries, f"axes.{axis}")] for axis, entries in raw.items()}


def _parse_dependencies(raw: Any, axis_priority: Dict[str, list]) -> List[ModuleRequirement]:
    if raw is None:
        return []
    if not isinstance(raw, Mapping):
        raise DescriptorError("'dependencies' must map configuration names to lists")
    requirements: List[ModuleRequirement] = []
    for kind_name, entries in raw.items():
        kind = parse_kind(str(kind_name))
        for entry in _as_list(entries, f"dependencies.{kind_name}"):
            if isinstance(entry, str):
                req = parse_coordinate(entry, kind)
                axis = None
            else:
                req = parse_coordinate(entry["module"], kind)
                if "version" in entry:
                    req = ModuleRequirement(req.id, parse_version_spec(str(entry["version"])), kind)
                axis = entry.get("axis")
            axis = axis or infer_axis(req.id, kind, axis_priority)
            requirements.append(ModuleRequirement(req.id, req.version, kind, axis))
    return requirements
