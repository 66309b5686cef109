# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""JSON scanner-engine input document."""

import json
from collections.abc import Iterable
from pathlib import Path

from scanshim.analysis_config import AnalysisConfig
from scanshim.project_data import AnalysisFiles, ProjectData
from scanshim.properties import Property, SonarProperties
from scanshim.writers.entries import (
    Entry,
    global_entries,
    identity_entries,
    project_entries,
    shared_entries,
)
from scanshim.writers.multi_value import join_csv

ROOT_KEY = "scannerProperties"


class ScannerEngineInput:
    """Accumulate analysis properties as ``{"key", "value"}`` objects.

    ``sonar.modules`` is always the first entry and is updated in place as
    projects are added.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        if config is None:
            raise ValueError("config is required")
        self._config = config
        self._module_keys: list[str] = []
        self._modules: dict[str, str] = {"key": SonarProperties.MODULES, "value": ""}
        self._properties: list[dict[str, str]] = [self._modules]

    def write_sonar_project_info(self, base_dir: Path) -> None:
        self._append(identity_entries(self._config, base_dir))

    def write_settings_for_project(self, project: ProjectData) -> None:
        """Add one module's settings and register its GUID.

        Args:
            project: Valid project with assigned module files.

        Raises:
            ValueError: If ``project`` is missing.
        """
        if project is None:
            raise ValueError("project is required")
        self._module_keys.append(project.guid)
        self._modules["value"] = ",".join(self._module_keys)
        self._append(project_entries(self._config, project, len(self._module_keys) - 1))

    def write_shared_files(self, files: AnalysisFiles) -> None:
        self._append(shared_entries(files))

    def write_global_settings(self, properties: Iterable[Property]) -> None:
        self._append(global_entries(properties))

    def properties(self) -> list[tuple[str, str]]:
        return [(item["key"], item["value"]) for item in self._properties]

    def to_json(self) -> str:
        return json.dumps({ROOT_KEY: self._properties}, indent=2, ensure_ascii=False)

    def __str__(self) -> str:
        return self.to_json()

    def _append(self, entries: list[Entry]) -> None:
        for entry in entries:
            value = join_csv(list(entry.values or ())) if entry.is_multi_value else entry.value
            self._properties.append({"key": entry.key, "value": value})


def read_engine_input(content: str) -> list[tuple[str, str]]:
    """Parse a scanner-engine input document into ``(key, value)`` pairs.

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    payload = json.loads(content)
    if not isinstance(payload, dict) or not isinstance(payload.get(ROOT_KEY), list):
        raise ValueError(f"Missing {ROOT_KEY} array")
    return [(str(item["key"]), str(item["value"])) for item in payload[ROOT_KEY]]
