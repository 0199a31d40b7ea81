"""Serialize descriptor resolutions for downstream build tooling."""
from __future__ import annotations

import csv
import json
import logging
from typing import Any, Dict, List, Tuple, Union

from bomalign.descriptor.model import DescriptorResolution
from bomalign.errors import ExportError

logger = logging.getLogger(__name__)

ModuleRow = Tuple[str, str, str, Tuple[str, ...]]
SelectionRow = Tuple[str, str]


def to_rows(resolution: DescriptorResolution) -> List[Union[ModuleRow, SelectionRow]]:
    """Flat ``(group, name, version, kinds)`` tuples followed by ``(axis, module)`` tuples."""
    rows: List[Union[ModuleRow, SelectionRow]] = []
    rows.extend(resolution.module_tuples())
    rows.extend(resolution.selection_tuples())
    return rows


def to_dict(resolution: DescriptorResolution) -> Dict[str, Any]:
    """JSON-ready view of a resolution."""
    descriptor = resolution.descriptor
    return {
        "module": descriptor.coordinate,
        "description": descriptor.description,
        "platformVersion": resolution.platform_version,
        "dependencies": [
            {"group": g, "name": n, "version": v, "kinds": list(k)}
            for g, n, v, k in resolution.module_tuples()
        ],
        "selections": [
            {"axis": axis, "module": module}
            for axis, module in resolution.selection_tuples()
        ],
    }


def export_json(resolution: DescriptorResolution, path: str) -> None:
    """Exports the resolution to a JSON file.

    Raises:
        ExportError: the file couldn't be written.
    """
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(to_dict(resolution), file, ensure_ascii=False, indent=4)
        logger.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logger.error("JSON file couldn't be written to disk: %s", e)
        raise ExportError(f"Unable to write {path}: {e}") from e


def export_csv(resolution: DescriptorResolution, path: str) -> None:
    """Exports the resolution to a CSV file.

    Module rows carry kinds joined by ``;``; selection rows use the
    ``selection`` record type with the axis in the group column.

    Raises:
        ExportError: the file couldn't be written.
    """
    rows: List[List[str]] = [["record", "group", "name", "version", "kinds"]]
    for group, name, version, kinds in resolution.module_tuples():
        rows.append(["module", group, name, version, ";".join(kinds)])
    for axis, module in resolution.selection_tuples():
        rows.append(["selection", axis, module, "", ""])
    try:
        with open(path, 'w', newline='', encoding='utf-8') as file:
            export = csv.writer(file)
            export.writerows(rows)
        logger.info("CSV file has been successfully exported at: %s", path)
    except (OSError, csv.Error) as e:
        logger.error("CSV file couldn't be written to disk: %s", e)
        raise ExportError(f"Unable to write {path}: {e}") from e
