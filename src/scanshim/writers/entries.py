# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Build the ordered key/value entries shared by both output formats."""

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from scanshim.analysis_config import AnalysisConfig
from scanshim.project_data import AnalysisFiles, ProjectData, structural_key
from scanshim.project_info import ProjectType
from scanshim.properties import (
    Property,
    SonarProperties,
    contains_sensitive_data,
    is_secured_key,
)


@dataclass(frozen=True)
class Entry:
    """Represent one output property.

    Attributes:
        key: Full property key.
        value: Single value.
        values: Multi-value list; ``None`` for single-valued entries.
    """

    key: str
    value: str = ""
    values: tuple[str, ...] | None = None

    @property
    def is_multi_value(self) -> bool:
        return self.values is not None


def single(key: str, value: str) -> Entry:
    entry = Entry(key=key, value=value)
    _assert_not_sensitive(key, [value])
    return entry


def multi(key: str, values: Iterable[str]) -> Entry:
    collected = tuple(values)
    _assert_not_sensitive(key, collected)
    return Entry(key=key, values=collected)


def identity_entries(config: AnalysisConfig, base_dir: Path) -> list[Entry]:
    """Return the global project identity entries."""
    entries = [single(SonarProperties.PROJECT_KEY, config.sonar_project_key)]
    if config.sonar_project_name:
        entries.append(single(SonarProperties.PROJECT_NAME, config.sonar_project_name))
    if config.sonar_project_version:
        entries.append(
            single(SonarProperties.PROJECT_VERSION, config.sonar_project_version)
        )
    entries.append(
        single(SonarProperties.WORKING_DIRECTORY, _join(config.sonar_output_dir, ".sonar"))
    )
    entries.append(single(SonarProperties.PROJECT_BASE_DIR, str(base_dir)))
    cache_base_path = config.get_config_value(SonarProperties.PULL_REQUEST_CACHE_BASE_PATH)
    if cache_base_path:
        entries.append(
            single(SonarProperties.PULL_REQUEST_CACHE_BASE_PATH, cache_base_path)
        )
    return entries


def project_entries(
    config: AnalysisConfig, project: ProjectData, module_index: int
) -> list[Entry]:
    """Return the module entries of one valid project.

    Args:
        config: Analysis configuration.
        project: Valid project with assigned module files.
        module_index: Zero-based position of the project in ``sonar.modules``.

    Returns:
        Entries prefixed with the project GUID.
    """
    guid = project.guid
    info = project.project
    entries = [
        single(f"{guid}.{SonarProperties.PROJECT_KEY}", f"{config.sonar_project_key}:{guid}"),
        single(f"{guid}.{SonarProperties.PROJECT_NAME}", info.project_name),
        single(f"{guid}.{SonarProperties.PROJECT_BASE_DIR}", str(info.directory)),
    ]
    if info.encoding and info.encoding.strip():
        entries.append(
            single(f"{guid}.{SonarProperties.SOURCE_ENCODING}", info.encoding.lower())
        )
    if info.project_type == ProjectType.PRODUCT:
        files_key, empty_key = SonarProperties.SOURCES, SonarProperties.TESTS
    else:
        files_key, empty_key = SonarProperties.TESTS, SonarProperties.SOURCES
    entries.append(single(f"{guid}.{empty_key}", ""))
    entries.append(multi(f"{guid}.{files_key}", (str(path) for path in project.module_files)))
    for key, value in project.pass_through_settings():
        entries.append(single(f"{guid}.{key}", value))
    for kind, paths in project.output_paths():
        key = structural_key(kind, info.project_language)
        if key is None or not paths:
            continue
        entries.append(multi(f"{guid}.{key}", (str(path) for path in paths)))
    entries.append(
        single(
            f"{guid}.{SonarProperties.WORKING_DIRECTORY}",
            _join(config.sonar_output_dir, ".sonar", f"mod{module_index}"),
        )
    )
    return entries


def shared_entries(files: AnalysisFiles) -> list[Entry]:
    """Return root-level source and test lists; empty lists are omitted."""
    entries: list[Entry] = []
    if files.sources:
        entries.append(multi(SonarProperties.SOURCES, (str(path) for path in files.sources)))
    if files.tests:
        entries.append(multi(SonarProperties.TESTS, (str(path) for path in files.tests)))
    return entries


def global_entries(properties: Iterable[Property]) -> list[Entry]:
    """Return merged global settings without the internal verbose flag."""
    return [
        single(item.key, item.value)
        for item in properties
        if item.key != SonarProperties.VERBOSE
    ]


def _join(directory: Path, *parts: str) -> str:
    return os.path.join(str(directory), *parts)


def _assert_not_sensitive(key: str, values: Iterable[str]) -> None:
    assert not is_secured_key(key) and not contains_sensitive_data(key) and not any(
        contains_sensitive_data(value) for value in values
    ), f"Sensitive data must not be written to the analysis properties (key={key})"
