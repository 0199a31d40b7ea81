"""Per-evaluation catalog of symbolic version references."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from bomalign.constants import Constants
from bomalign.errors import UnresolvedVersionError
from bomalign.policy.exclusion import ExclusionPolicy
from .models import ModuleIdentifier, VersionMode, VersionSpec
from .sources import VersionSource, pick_latest

logger = logging.getLogger(__name__)


class VersionCatalog:
    """Maps symbolic references to concrete versions.

    Built once per descriptor evaluation. Every lookup is memoized so the
    platform version, aliases and ``latest`` answers stay identical for the
    whole resolution pass.
    """

    def __init__(
        self,
        platform_module: Optional[ModuleIdentifier] = None,
        platform_version: Optional[VersionSpec] = None,
        aliases: Optional[Mapping[str, str]] = None,
        source: Optional[VersionSource] = None,
        policy: Optional[ExclusionPolicy] = None,
        platform_alias: str = Constants.PLATFORM_ALIAS,
    ):
        self._platform_module = platform_module
        self._platform_spec = platform_version
        self._aliases = MappingProxyType(dict(aliases or {}))
        self._source = source
        self._policy = policy or ExclusionPolicy()
        self._platform_alias = platform_alias
        self._platform: Optional[str] = None
        self._resolving_platform = False
        self._latest: Dict[tuple, str] = {}

    @property
    def platform_module(self) -> Optional[ModuleIdentifier]:
        return self._platform_module

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def resolve_platform_version(self) -> str:
        """Return the shared platform (BOM) version."""
        if self._platform is not None:
            return self._platform

        if self._resolving_platform:
            raise UnresolvedVersionError(
                self._platform_alias, self._platform_module, reason="platform version refers to itself"
            )
        self._resolving_platform = True
        try:
            resolved = self._resolve_platform_spec()
        finally:
            self._resolving_platform = False

        self._platform = resolved
        logger.info("Platform version resolved to %s", resolved)
        return resolved

    def _resolve_platform_spec(self) -> str:
        spec = self._platform_spec
        if spec is None or spec.mode == VersionMode.INHERITED:
            raise UnresolvedVersionError(
                self._platform_alias, self._platform_module, reason="no platform version declared"
            )
        if spec.mode == VersionMode.EXPLICIT:
            return spec.value
        if spec.mode == VersionMode.REFERENCE:
            return self.resolve_reference(spec.value)
        if self._platform_module is None:
            raise UnresolvedVersionError(
                str(spec.value), reason="latest platform version needs a platform module"
            )
        return self.resolve_latest(self._platform_module, spec.value)

    def resolve_reference(self, name: str) -> str:
        """Look up a symbolic alias such as ``$latest``."""
        if name == self._platform_alias:
            return self.resolve_platform_version()
        return self._lookup_alias(name)

    def resolve_latest(
        self, module: ModuleIdentifier, selector: Optional[str] = None
    ) -> str:
        """Highest acceptable version of ``module`` for a ``latest.*`` selector."""
        selector = selector or Constants.LATEST_RELEASE
        key = (module, selector)
        if key in self._latest:
            return self._latest[key]
        if self._source is None:
            raise UnresolvedVersionError(selector, module, reason="no version source configured")

        candidates = self._source.fetch_candidates(module)
        accepted = [
            c for c in candidates
            if self._policy.accepts({"group": module.group, "name": module.name, "version": c})
        ]
        chosen = pick_latest(accepted, selector)
        if chosen is None:
            raise UnresolvedVersionError(
                selector,
                module,
                reason=f"no acceptable candidate among {len(candidates)} published versions",
            )
        logger.debug("Resolved %s %s -> %s", module, selector, chosen)
        self._latest[key] = chosen
        return chosen

    def _lookup_alias(self, name: str) -> str:
        # Aliases may point at other aliases; follow them without looping
        seen = set()
        current = name
        while True:
            if current in seen:
                raise UnresolvedVersionError(name, reason="alias cycle")
            seen.add(current)
            if current == self._platform_alias and current != name:
                return self.resolve_platform_version()
            if current not in self._aliases:
                raise UnresolvedVersionError(name, reason="unknown version reference")
            value = self._aliases[current]
            if value.startswith("$"):
                current = value.lstrip("$").strip("{}")
                continue
            return value
