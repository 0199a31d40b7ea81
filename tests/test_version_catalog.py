"""Tests for the per-evaluation version catalog."""

import pytest

from bomalign.errors import UnresolvedVersionError
from bomalign.policy.exclusion import ExclusionPolicy, ExclusionRule
from bomalign.versioning.catalog import VersionCatalog
from bomalign.versioning.models import ModuleIdentifier, VersionSpec
from bomalign.versioning.sources import StaticVersionSource, VersionSource

BOM = ModuleIdentifier("org.openrewrite", "rewrite-bom")
LOMBOK = ModuleIdentifier("org.projectlombok", "lombok")


class CountingSource(VersionSource):
    """Static source that records every lookup."""

    def __init__(self, versions):
        self.versions = versions
        self.calls = []

    def fetch_candidates(self, module):
        self.calls.append(module)
        return list(self.versions.get(module, []))


def test_explicit_platform_version():
    catalog = VersionCatalog(BOM, VersionSpec.explicit("8.40.0"))
    assert catalog.resolve_platform_version() == "8.40.0"


def test_latest_platform_version_is_memoized():
    source = CountingSource({BOM: ["8.39.0", "8.40.0", "8.41.0-rc-1"]})
    policy = ExclusionPolicy.prereleases()
    catalog = VersionCatalog(BOM, VersionSpec.latest(), source=source, policy=policy)

    first = catalog.resolve_platform_version()
    second = catalog.resolve_platform_version()

    assert first == second == "8.40.0"
    assert source.calls == [BOM]


def test_missing_platform_raises():
    catalog = VersionCatalog()
    with pytest.raises(UnresolvedVersionError) as excinfo:
        catalog.resolve_platform_version()
    assert excinfo.value.reference == "platform"


def test_latest_skips_snapshots_and_prereleases():
    source = StaticVersionSource({LOMBOK: ["1.18.30", "1.18.32", "1.18.34-SNAPSHOT", "1.19.0b1"]})
    catalog = VersionCatalog(source=source)
    assert catalog.resolve_latest(LOMBOK) == "1.18.32"


def test_latest_integration_considers_everything():
    source = StaticVersionSource({LOMBOK: ["1.18.30", "1.18.32", "1.18.34-SNAPSHOT"]})
    catalog = VersionCatalog(source=source)
    assert catalog.resolve_latest(LOMBOK, "latest.integration") == "1.18.34-SNAPSHOT"


def test_latest_applies_exclusion_policy_before_picking():
    source = StaticVersionSource({"org.projectlombok:lombok": ["1.18.30", "1.18.32"]})
    policy = ExclusionPolicy([ExclusionRule.glob("org.projectlombok", "lombok", "1.18.32")])
    catalog = VersionCatalog(source=source, policy=policy)
    assert catalog.resolve_latest(LOMBOK) == "1.18.30"


def test_latest_without_candidates_raises():
    catalog = VersionCatalog(source=StaticVersionSource({}))
    with pytest.raises(UnresolvedVersionError) as excinfo:
        catalog.resolve_latest(LOMBOK)
    assert excinfo.value.module == LOMBOK


def test_latest_without_source_raises():
    with pytest.raises(UnresolvedVersionError):
        VersionCatalog().resolve_latest(LOMBOK)


def test_reference_aliases_follow_chains_to_platform():
    catalog = VersionCatalog(
        BOM,
        VersionSpec.explicit("8.40.0"),
        aliases={"latest": "$platform", "rewrite": "${latest}", "jsr305": "3.0.2"},
    )
    assert catalog.resolve_reference("platform") == "8.40.0"
    assert catalog.resolve_reference("latest") == "8.40.0"
    assert catalog.resolve_reference("rewrite") == "8.40.0"
    assert catalog.resolve_reference("jsr305") == "3.0.2"


def test_unknown_reference_raises():
    catalog = VersionCatalog(BOM, VersionSpec.explicit("8.40.0"))
    with pytest.raises(UnresolvedVersionError):
        catalog.resolve_reference("nope")


def test_alias_cycle_raises():
    catalog = VersionCatalog(aliases={"a": "$b", "b": "$a"})
    with pytest.raises(UnresolvedVersionError):
        catalog.resolve_reference("a")


def test_platform_referencing_itself_raises():
    catalog = VersionCatalog(BOM, VersionSpec.reference("latest"), aliases={"latest": "$platform"})
    with pytest.raises(UnresolvedVersionError):
        catalog.resolve_platform_version()


def test_aliases_are_read_only():
    catalog = VersionCatalog(aliases={"a": "1.0"})
    with pytest.raises(TypeError):
        catalog.aliases["a"] = "2.0"
