import csv
import json

import pytest

from bomalign.descriptor.model import BuildDescriptor, PlatformImport
from bomalign.errors import ExportError
from bomalign.export import export_csv, export_json, to_rows
from bomalign.versioning.models import (
    ModuleIdentifier,
    ModuleRequirement,
    RequirementKind,
    VersionSpec,
)
from bomalign.versioning.sources import StaticVersionSource


@pytest.fixture
def resolution():
    java21 = ModuleIdentifier("org.openrewrite", "rewrite-java-21")
    descriptor = BuildDescriptor(
        group="org.openrewrite.recipe",
        name="rewrite-all",
        description="All the parsers",
        platform=PlatformImport(ModuleIdentifier("org.openrewrite", "rewrite-bom"), VersionSpec.explicit("8.40.0")),
        requirements=[
            ModuleRequirement(ModuleIdentifier("org.openrewrite", "rewrite-java")),
            ModuleRequirement(ModuleIdentifier("org.openrewrite", "rewrite-java"),
                              kind=RequirementKind.TEST_IMPLEMENTATION),
            ModuleRequirement(java21, kind=RequirementKind.TEST_RUNTIME_ONLY, variant_axis="test-runtime"),
        ],
    )
    return descriptor.evaluate(StaticVersionSource())


def test_rows_are_flat_module_then_selection_tuples(resolution):
    assert to_rows(resolution) == [
        ("org.openrewrite", "rewrite-bom", "8.40.0", ("platform",)),
        ("org.openrewrite", "rewrite-java", "8.40.0", ("implementation", "testImplementation")),
        ("org.openrewrite", "rewrite-java-21", "8.40.0", ("testRuntimeOnly",)),
        ("test-runtime", "org.openrewrite:rewrite-java-21"),
    ]


def test_json_export(resolution, tmp_path):
    out = tmp_path / "out.json"
    export_json(resolution, str(out))

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["module"] == "org.openrewrite.recipe:rewrite-all"
    assert data["platformVersion"] == "8.40.0"
    assert data["dependencies"][1] == {
        "group": "org.openrewrite",
        "name": "rewrite-java",
        "version": "8.40.0",
        "kinds": ["implementation", "testImplementation"],
    }
    assert data["selections"] == [{"axis": "test-runtime", "module": "org.openrewrite:rewrite-java-21"}]


def test_json_export_is_byte_identical_across_runs(resolution, tmp_path):
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    export_json(resolution, str(a))
    export_json(resolution, str(b))
    assert a.read_bytes() == b.read_bytes()


def test_csv_export(resolution, tmp_path):
    out = tmp_path / "out.csv"
    export_csv(resolution, str(out))

    rows = list(csv.reader(out.open("r", encoding="utf-8")))
    assert rows[0] == ["record", "group", "name", "version", "kinds"]
    assert rows[2] == ["module", "org.openrewrite", "rewrite-java", "8.40.0", "implementation;testImplementation"]
    assert rows[-1] == ["selection", "test-runtime", "org.openrewrite:rewrite-java-21", "", ""]
    assert len(rows) == 5


def test_unwritable_path_raises(resolution, tmp_path):
    with pytest.raises(ExportError):
        export_json(resolution, str(tmp_path / "missing" / "out.json"))
    with pytest.raises(ExportError):
        export_csv(resolution, str(tmp_path / "missing" / "out.csv"))
