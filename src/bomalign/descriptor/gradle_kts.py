"""Read recipe build scripts written in the Gradle Kotlin DSL.

Only the declarative subset recipe modules use is understood: ``group``,
``description``, repository blocks with ``excludeVersionByRegex`` content
filters, ``val`` version aliases and dependency configurations. Anything
else in the script is ignored.
"""
from __future__ import annotations

import logging
import os
import re
from typing import Dict, List, Optional

from bomalign.constants import Constants
from bomalign.errors import DescriptorError
from bomalign.policy.exclusion import ExclusionPolicy, ExclusionRule
from bomalign.versioning.models import ModuleRequirement, VersionMode, VersionSpec
from bomalign.versioning.parser import parse_coordinate, parse_kind
from bomalign.versioning.sources import RepositorySource
from .model import (
    BuildDescriptor,
    PlatformImport,
    default_axis_priority,
    infer_axis,
    refers_to_platform,
)

logger = logging.getLogger(__name__)

_ASSIGN_RE = re.compile(r'^\s*(group|description)\s*=\s*"((?:[^"\\]|\\.)*)"', re.MULTILINE)
_VAL_RE = re.compile(r'^\s*val\s+(\w+)\s*=\s*(.+?)\s*$', re.MULTILINE)
_PLATFORM_VERSION_EXPR = re.compile(r'^\w+\.rewriteVersion(\.get\(\))?$')
_URL_RE = re.compile(r'url\s*=\s*uri\(\s*"([^"]+)"\s*\)|url\s*\(\s*"([^"]+)"\s*\)')
_EXCLUDE_RE = re.compile(r'excludeVersionByRegex\(\s*"([^"]*)"\s*,\s*"([^"]*)"\s*,\s*"([^"]*)"\s*\)')
_DEP_RE = re.compile(
    r'^\s*(\w+)\(\s*(platform\(\s*)?"([^"]+)"\s*\)?\s*\)',
    re.MULTILINE,
)
_KNOWN_REPOSITORIES = {
    "mavenCentral": Constants.DEFAULT_REPOSITORY_URL,
    "gradlePluginPortal": "https://plugins.gradle.org/m2/",
    "google": "https://maven.google.com/",
}


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside string literals."""
    out: List[str] = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            while i < n and text[i] != "\n":
                i += 1
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _blocks(text: str, name: str) -> List[str]:
    """Bodies of every ``name { ... }`` block, braces matched."""
    bodies = []
    for match in re.finditer(r'\b%s\s*\{' % re.escape(name), text):
        depth, start = 1, match.end()
        i = start
        while i < len(text) and depth:
            if text[i] == "{":
                depth += 1
            elif text[i] == "}":
                depth -= 1
            i += 1
        if depth:
            raise DescriptorError(f"Unbalanced braces in '{name}' block")
        bodies.append(text[start:i - 1])
    return bodies


def _parse_aliases(text: str) -> Dict[str, str]:
    """``val`` bindings: string literals, or the platform version."""
    aliases: Dict[str, str] = {}
    for name, expr in _VAL_RE.findall(text):
        if _PLATFORM_VERSION_EXPR.match(expr):
            aliases[name] = f"${Constants.PLATFORM_ALIAS}"
        elif expr.startswith('"') and expr.endswith('"'):
            aliases[name] = expr[1:-1]
        else:
            logger.debug("Ignoring non-literal val %s = %s", name, expr)
    return aliases


def _parse_repositories(text: str) -> List[RepositorySource]:
    repos: List[RepositorySource] = []
    for body in _blocks(text, "repositories"):
        for known, url in _KNOWN_REPOSITORIES.items():
            if re.search(r'\b%s\(\s*\)' % known, body):
                repos.append(RepositorySource(url))
        for maven in _blocks(body, "maven"):
            url_match = _URL_RE.search(maven)
            if not url_match:
                raise DescriptorError("maven repository block without a url")
            try:
                rules = [ExclusionRule.regex(*args) for args in _EXCLUDE_RE.findall(maven)]
            except ValueError as exc:
                raise DescriptorError(f"Bad excludeVersionByRegex filter: {exc}") from exc
            repos.append(RepositorySource(url_match.group(1) or url_match.group(2), ExclusionPolicy(rules)))
    return repos


def parse_build_script(text: str, name: Optional[str] = None) -> BuildDescriptor:
    """Build a descriptor from a ``build.gradle.kts`` script.

    Args:
        text: Script contents.
        name: Module name; Gradle takes it from the project directory.

    Raises:
        DescriptorError: no group declared or an unreadable block.
    """
    text = strip_comments(text)
    assigns = dict(_ASSIGN_RE.findall(text))
    if "group" not in assigns:
        raise DescriptorError("Build script does not declare a group")

    aliases = _parse_aliases(text)
    axis_priority = default_axis_priority()
    platform: Optional[PlatformImport] = None
    requirements: List[ModuleRequirement] = []

    for body in _blocks(text, "dependencies"):
        for config, is_platform, coordinate in _DEP_RE.findall(body):
            try:
                kind = parse_kind(config)
                req = parse_coordinate(coordinate, kind)
            except ValueError as exc:
                raise DescriptorError(f"Bad dependency {config}(\"{coordinate}\"): {exc}") from exc
            if is_platform:
                version = req.version
                if version.mode == VersionMode.REFERENCE and refers_to_platform(version.value, aliases):
                    # The platform version is the latest release of the BOM itself
                    version = VersionSpec.latest()
                elif version.mode == VersionMode.INHERITED:
                    version = VersionSpec.latest()
                platform = PlatformImport(req.id, version)
                continue
            axis = infer_axis(req.id, kind, axis_priority)
            requirements.append(ModuleRequirement(req.id, req.version, kind, axis))

    descriptor = BuildDescriptor(
        group=assigns["group"],
        name=name or "",
        description=assigns.get("description", ""),
        repositories=_parse_repositories(text),
        platform=platform,
        requirements=requirements,
        axis_priority=axis_priority,
        aliases=aliases,
    )
    logger.debug(
        "Parsed build script for %s with %d requirements", descriptor.coordinate, len(requirements)
    )
    return descriptor


def load_build_script(path: str, name: Optional[str] = None) -> BuildDescriptor:
    """Read ``path``; the module name defaults to its parent directory."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise DescriptorError(f"Failed to read build script {path}: {exc}") from exc
    if name is None:
        name = os.path.basename(os.path.dirname(os.path.abspath(path)))
    return parse_build_script(text, name)
