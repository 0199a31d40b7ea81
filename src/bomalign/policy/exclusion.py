"""Pattern based version exclusion.

A rule matches a candidate when its group, name and version patterns all
match; a policy rejects a candidate when any of its rules match.
"""
from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Pattern, Tuple

from bomalign.constants import Constants


@dataclass(frozen=True)
class ExclusionRule:
    """Three full-match patterns over a candidate's group, name and version."""

    group_pattern: str
    name_pattern: str
    version_pattern: str
    syntax: str = "regex"

    def __post_init__(self) -> None:
        if self.syntax not in ("regex", "glob"):
            raise ValueError(f"Unsupported pattern syntax '{self.syntax}'")
        compiled = tuple(self._compile(p) for p in self.patterns())
        object.__setattr__(self, "_compiled", compiled)

    @classmethod
    def regex(cls, group: str, name: str, version: str) -> "ExclusionRule":
        """Rule with Gradle ``excludeVersionByRegex`` semantics."""
        return cls(group, name, version, "regex")

    @classmethod
    def glob(cls, group: str, name: str, version: str) -> "ExclusionRule":
        """Rule with shell-style wildcards, e.g. ``*-rc*``."""
        return cls(group, name, version, "glob")

    def patterns(self) -> Tuple[str, str, str]:
        return self.group_pattern, self.name_pattern, self.version_pattern

    def _compile(self, pattern: str) -> Pattern[str]:
        if self.syntax == "glob":
            return re.compile(fnmatch.translate(pattern))
        try:
            return re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"Invalid exclusion pattern '{pattern}': {exc}") from exc

    def matches(self, group: str, name: str, version: str) -> bool:
        """True when all three patterns match their field in full."""
        compiled = getattr(self, "_compiled")
        return all(
            p.fullmatch(value) is not None
            for p, value in zip(compiled, (group, name, version))
        )

    def __str__(self) -> str:
        return f"{self.syntax}({self.group_pattern}, {self.name_pattern}, {self.version_pattern})"


def _fields(candidate: Any) -> Tuple[str, str, str]:
    """Extract (group, name, version) from a mapping or an object."""
    if isinstance(candidate, Mapping):
        return candidate["group"], candidate["name"], candidate["version"]
    module = getattr(candidate, "id", None)
    if module is not None:
        return module.group, module.name, candidate.version
    return candidate.group, candidate.name, candidate.version


class ExclusionPolicy:
    """Immutable set of exclusion rules. An empty policy accepts everything."""

    def __init__(self, rules: Iterable[ExclusionRule] = ()):
        self._rules: Tuple[ExclusionRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[ExclusionRule, ...]:
        return self._rules

    @classmethod
    def prereleases(cls) -> "ExclusionPolicy":
        """Reject release candidates of every module."""
        return cls([ExclusionRule.regex(".+", ".+", Constants.PRERELEASE_VERSION_REGEX)])

    @classmethod
    def merge(cls, *policies: "ExclusionPolicy") -> "ExclusionPolicy":
        """Combine policies, keeping the first occurrence of each rule."""
        merged = []
        for policy in policies:
            for rule in policy.rules:
                if rule not in merged:
                    merged.append(rule)
        return cls(merged)

    def first_match(self, candidate: Any) -> Optional[ExclusionRule]:
        """Return the first rule rejecting ``candidate``, if any."""
        group, name, version = _fields(candidate)
        for rule in self._rules:
            if rule.matches(group, name, version):
                return rule
        return None

    def accepts(self, candidate: Any) -> bool:
        """Candidate is a mapping or object carrying group, name and version."""
        return self.first_match(candidate) is None

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"ExclusionPolicy({[str(r) for r in self._rules]})"
