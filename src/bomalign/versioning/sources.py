"""External version sources consulted for ``latest`` lookups."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from packaging import version

from bomalign.constants import Constants
from bomalign.common.http_client import robust_get
from bomalign.common.logging_utils import extra_context, is_debug_enabled, safe_url
from bomalign.errors import UnresolvedVersionError
from bomalign.policy.exclusion import ExclusionPolicy
from .cache import TTLCache
from .models import ModuleIdentifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositorySource:
    """A Maven repository URL and the content filter applied to it."""
    url: str
    exclusions: ExclusionPolicy = field(default_factory=ExclusionPolicy)

    def metadata_url(self, module: ModuleIdentifier) -> str:
        base = self.url if self.url.endswith("/") else self.url + "/"
        return (
            f"{base}{module.group.replace('.', '/')}/{module.name}/"
            f"{Constants.MAVEN_METADATA_FILE}"
        )


class VersionSource:
    """Base class for candidate version providers."""

    def fetch_candidates(self, module: ModuleIdentifier) -> List[str]:
        """Return every published version of ``module``.

        Raises:
            UnresolvedVersionError: if the source cannot be read.
        """
        raise NotImplementedError


class StaticVersionSource(VersionSource):
    """In-memory source, mainly for offline evaluation and tests."""

    def __init__(self, versions: Optional[Mapping[object, Iterable[str]]] = None):
        self._versions: Dict[ModuleIdentifier, List[str]] = {}
        for key, values in (versions or {}).items():
            module = key if isinstance(key, ModuleIdentifier) else ModuleIdentifier.parse(str(key))
            self._versions[module] = list(values)

    def fetch_candidates(self, module: ModuleIdentifier) -> List[str]:
        return list(self._versions.get(module, []))


class MavenMetadataSource(VersionSource):
    """Reads ``maven-metadata.xml`` from each repository in declaration order.

    Versions a repository's content filter excludes are dropped before they
    reach the catalog, the way Gradle applies repository content filtering.
    """

    def __init__(self, repositories: Sequence[RepositorySource], cache: Optional[TTLCache] = None):
        self.repositories = list(repositories) or [RepositorySource(Constants.DEFAULT_REPOSITORY_URL)]
        self.cache = cache

    def fetch_candidates(self, module: ModuleIdentifier) -> List[str]:
        cache_key = f"maven:{module}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        versions: List[str] = []
        failures: List[str] = []
        for repo in self.repositories:
            url = repo.metadata_url(module)
            status_code, _, text = robust_get(url)
            if status_code == 404:
                continue
            if status_code != 200 or not text:
                failures.append(f"{safe_url(url)} -> {status_code or text}")
                continue
            for candidate in self._parse_metadata(text, url):
                if candidate in versions:
                    continue
                if not repo.exclusions.accepts(
                    {"group": module.group, "name": module.name, "version": candidate}
                ):
                    continue
                versions.append(candidate)

        if not versions and failures:
            raise UnresolvedVersionError(
                Constants.LATEST_RELEASE, module, reason="; ".join(failures)
            )

        if is_debug_enabled(logger):
            logger.debug(
                "Fetched candidates",
                extra=extra_context(
                    event="fetch_candidates",
                    component="maven_metadata",
                    module=str(module),
                    candidate_count=len(versions)
                )
            )
        if self.cache is not None:
            self.cache.set(cache_key, versions, Constants.METADATA_CACHE_TTL_SEC)
        return versions

    @staticmethod
    def _parse_metadata(text: str, url: str) -> List[str]:
        """Extract versioning/versions/version entries."""
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            logger.warning("Unparseable metadata at %s: %s", safe_url(url), exc)
            return []
        versions = []
        versioning = root.find("versioning")
        if versioning is not None:
            versions_elem = versioning.find("versions")
            if versions_elem is not None:
                for version_elem in versions_elem.findall("version"):
                    if version_elem.text and version_elem.text.strip():
                        versions.append(version_elem.text.strip())
        return versions


def is_stable(candidate: str) -> bool:
    """Non-SNAPSHOT and not a PEP 440 pre/dev release."""
    if candidate.upper().endswith(Constants.SNAPSHOT_SUFFIX):
        return False
    try:
        parsed = version.Version(candidate)
    except version.InvalidVersion:
        return False
    return not (parsed.is_prerelease or parsed.is_devrelease)


def pick_latest(candidates: Iterable[str], selector: str = Constants.LATEST_RELEASE) -> Optional[str]:
    """Pick the highest version for a ``latest.*`` selector.

    ``latest.release`` only considers stable versions; ``latest.integration``
    considers everything. Unparseable versions are skipped.
    """
    pool = list(candidates)
    if selector != Constants.LATEST_INTEGRATION:
        pool = [c for c in pool if is_stable(c)]
    parsed = []
    for candidate in pool:
        # SNAPSHOT is not PEP 440; compare it by its base version
        base = candidate[: -len(Constants.SNAPSHOT_SUFFIX)] if candidate.upper().endswith(
            Constants.SNAPSHOT_SUFFIX) else candidate
        try:
            parsed.append((version.Version(base), candidate))
        except version.InvalidVersion:
            continue
    if not parsed:
        return None
    parsed.sort(key=lambda pair: pair[0])
    return parsed[-1][1]
