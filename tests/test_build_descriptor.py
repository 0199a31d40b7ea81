"""End-to-end evaluation of build descriptors."""

from pathlib import Path
from unittest.mock import patch

import pytest

from bomalign.descriptor.gradle_kts import parse_build_script
from bomalign.descriptor.model import BuildDescriptor, PlatformImport, evaluate_all
from bomalign.errors import ExcludedVersionError, UnresolvedVersionError
from bomalign.policy.exclusion import ExclusionPolicy, ExclusionRule
from bomalign.versioning.models import (
    ModuleIdentifier,
    ModuleRequirement,
    RequirementKind,
    VersionSpec,
)
from bomalign.versioning.sources import RepositorySource, StaticVersionSource

FIXTURE = Path(__file__).parent / "fixtures" / "rewrite-all.build.gradle.kts"
BOM = ModuleIdentifier("org.openrewrite", "rewrite-bom")


@pytest.fixture
def source():
    return StaticVersionSource({
        "org.openrewrite:rewrite-bom": ["8.39.0", "8.40.0", "8.41.0-rc-1"],
        "org.projectlombok:lombok": ["1.18.30", "1.18.32"],
        "com.google.code.findbugs:jsr305": ["3.0.1", "3.0.2"],
    })


@pytest.fixture
def rewrite_all():
    return parse_build_script(FIXTURE.read_text(encoding="utf-8"), "rewrite-all")


def test_rewrite_all_resolves_against_latest_bom(rewrite_all, source):
    resolution = rewrite_all.evaluate(source)
    graph = resolution.graph

    assert resolution.platform_version == "8.40.0"
    assert graph[BOM].kinds == frozenset({RequirementKind.PLATFORM})
    for module, resolved in graph.items():
        if module.group.startswith("org.openrewrite"):
            assert resolved.version == "8.40.0", module

    lombok = graph[ModuleIdentifier("org.projectlombok", "lombok")]
    assert lombok.version == "1.18.32"
    assert lombok.sorted_kinds() == ["annotationProcessor", "compileOnly"]
    assert graph[ModuleIdentifier("com.google.code.findbugs", "jsr305")].version == "3.0.2"

    # 21 distinct declared modules plus the platform import
    assert len(graph) == 22
    assert resolution.selections == {
        "test-runtime": ModuleIdentifier("org.openrewrite", "rewrite-java-21")
    }


def test_evaluation_is_repeatable(rewrite_all, source):
    first = rewrite_all.evaluate(source)
    second = rewrite_all.evaluate(source)
    assert first.module_tuples() == second.module_tuples()
    assert first.selection_tuples() == second.selection_tuples()


def test_descriptor_level_exclusion_fails_explicit_prerelease(source):
    descriptor = BuildDescriptor(
        group="org.example",
        name="recipes",
        platform=PlatformImport(BOM, VersionSpec.explicit("8.40.0")),
        requirements=[
            ModuleRequirement(
                ModuleIdentifier("org.openrewrite", "rewrite-kotlin"),
                VersionSpec.explicit("2.0.0-rc1"),
            )
        ],
        exclusions=[ExclusionRule.glob("*", "*", "*-rc*")],
    )
    with pytest.raises(ExcludedVersionError) as excinfo:
        descriptor.evaluate(source)
    assert str(excinfo.value.module) == "org.openrewrite:rewrite-kotlin"


def test_missing_test_runtime_is_not_an_error(source):
    descriptor = BuildDescriptor(
        group="org.example",
        name="recipes",
        platform=PlatformImport(BOM, VersionSpec.explicit("8.40.0")),
        requirements=[ModuleRequirement(ModuleIdentifier("org.openrewrite", "rewrite-java"))],
    )
    resolution = descriptor.evaluate(source)
    assert resolution.selections == {}
    assert resolution.selection_tuples() == []


def test_inherited_requirement_without_platform_fails(source):
    descriptor = BuildDescriptor(
        group="org.example",
        name="recipes",
        requirements=[ModuleRequirement(ModuleIdentifier("org.openrewrite", "rewrite-java"))],
    )
    with pytest.raises(UnresolvedVersionError):
        descriptor.evaluate(source)
    # A descriptor without a platform resolves nothing for it
    assert BuildDescriptor(group="g", name="n").evaluate(source).platform_version is None


def test_exclusion_policy_merges_repository_filters():
    repo_rule = ExclusionRule.regex(".+", ".+", ".+-rc-?[0-9]*")
    own_rule = ExclusionRule.glob("*", "*", "*-SNAPSHOT")
    descriptor = BuildDescriptor(
        group="g",
        name="n",
        repositories=[RepositorySource("https://repo.example/", ExclusionPolicy([repo_rule]))],
        exclusions=[own_rule],
    )
    assert descriptor.exclusion_policy().rules == (repo_rule, own_rule)


def test_default_source_reads_repository_metadata(rewrite_all):
    metadata = {
        "rewrite-bom": "<metadata><versioning><versions><version>8.40.0</version>"
                       "<version>8.41.0-rc-1</version></versions></versioning></metadata>",
        "lombok": "<metadata><versioning><versions><version>1.18.32</version>"
                  "</versions></versioning></metadata>",
        "jsr305": "<metadata><versioning><versions><version>3.0.2</version>"
                  "</versions></versioning></metadata>",
    }

    def fake_get(url, **_kwargs):
        artifact = url.rstrip("/").split("/")[-2]
        return 200, {}, metadata[artifact]

    with patch("bomalign.versioning.sources.robust_get", side_effect=fake_get) as mock_get:
        resolution = rewrite_all.evaluate()

    assert resolution.platform_version == "8.40.0"
    assert mock_get.call_args_list[0].args[0] == (
        "https://repo.gradle.org/gradle/libs-releases/org/openrewrite/rewrite-bom/maven-metadata.xml"
    )


def test_evaluate_all_keeps_descriptors_independent(rewrite_all, source):
    pinned = BuildDescriptor(
        group="org.example",
        name="pinned",
        platform=PlatformImport(BOM, VersionSpec.explicit("8.1.0")),
        requirements=[ModuleRequirement(ModuleIdentifier("org.openrewrite", "rewrite-java"))],
    )
    first, second = evaluate_all([rewrite_all, pinned], source)
    assert first.platform_version == "8.40.0"
    assert second.platform_version == "8.1.0"
