# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Per-GUID aggregation of project descriptors."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from scanshim.path_helper import PathComparer
from scanshim.project_info import ProjectInfo, ProjectInfoValidity
from scanshim.properties import SonarProperties

logger = logging.getLogger(__name__)

REPORT_PATHS_DELIMITER = "|"
ANALYZER_OUT_PATHS_DELIMITER = ","


class SettingKind(Enum):
    """Represent how a project analysis setting is handled."""

    REPORT_PATHS = "report_paths"
    ANALYZER_OUT_PATHS = "analyzer_out_paths"
    TELEMETRY_PATHS = "telemetry_paths"
    PASS_THROUGH = "pass_through"


_STRUCTURAL_KEYS: dict[SettingKind, tuple[str, str]] = {
    SettingKind.REPORT_PATHS: (
        SonarProperties.CS_REPORT_PATHS,
        SonarProperties.VB_REPORT_PATHS,
    ),
    SettingKind.ANALYZER_OUT_PATHS: (
        SonarProperties.CS_ANALYZER_OUT_PATHS,
        SonarProperties.VB_ANALYZER_OUT_PATHS,
    ),
    SettingKind.TELEMETRY_PATHS: (
        SonarProperties.CS_TELEMETRY_PATHS,
        SonarProperties.VB_TELEMETRY_PATHS,
    ),
}


def setting_kind(key: str) -> SettingKind:
    """Classify a project setting key.

    Args:
        key: Analysis setting key.

    Returns:
        Structural kind for path-list settings, ``PASS_THROUGH`` otherwise.
    """
    for kind, keys in _STRUCTURAL_KEYS.items():
        if key in keys:
            return kind
    return SettingKind.PASS_THROUGH


def is_csharp(language: str | None) -> bool:
    return (language or "").lower() == "c#"


def is_vbnet(language: str | None) -> bool:
    return (language or "").lower() == "vb"


def structural_key(kind: SettingKind, language: str | None) -> str | None:
    """Return the language-specific output key of a structural setting.

    Args:
        kind: Structural setting kind.
        language: Project language tag.

    Returns:
        C# or VB key, or ``None`` for other languages and pass-through kinds.
    """
    keys = _STRUCTURAL_KEYS.get(kind)
    if keys is None:
        return None
    if is_csharp(language):
        return keys[0]
    if is_vbnet(language):
        return keys[1]
    return None


class PathSet:
    """Ordered set of paths, unique under a path comparer."""

    def __init__(self, comparer: PathComparer, paths: Iterable[Path] = ()) -> None:
        self._comparer = comparer
        self._items: dict[str, Path] = {}
        self.update(paths)

    def add(self, path: Path) -> None:
        self._items.setdefault(self._comparer.key(str(path)), path)

    def update(self, paths: Iterable[Path]) -> None:
        for path in paths:
            self.add(path)

    def discard(self, path: Path) -> None:
        self._items.pop(self._comparer.key(str(path)), None)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return self._comparer.key(str(path)) in self._items

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


@dataclass(frozen=True)
class AnalysisFiles:
    """Represent files analyzed at root level.

    Attributes:
        sources: Root-level source files.
        tests: Root-level test files.
    """

    sources: list[Path] = field(default_factory=list)
    tests: list[Path] = field(default_factory=list)


class ProjectData:
    """Aggregate all build variants sharing one project GUID.

    The representative descriptor is the first variant ordered by
    ``configuration_platform_targetFramework``. ``status`` marks the phase
    outcome: it is set by classification and may later be demoted to
    ``NoFilesToAnalyze`` once files are assigned to modules.
    """

    def __init__(self, variants: list[ProjectInfo], comparer: PathComparer) -> None:
        """Classify a GUID group and collect its referenced files.

        Args:
            variants: All descriptors sharing one GUID, in load order.
            comparer: Path comparer for the current platform.

        Raises:
            ValueError: If ``variants`` is empty.
        """
        if not variants:
            raise ValueError("variants must not be empty")
        ordered = sorted(variants, key=lambda item: item.variant_key)
        self.project: ProjectInfo = ordered[0]
        self.variants: tuple[ProjectInfo, ...] = tuple(ordered)
        self.referenced_files = PathSet(comparer)
        self.module_files = PathSet(comparer)
        self.roslyn_report_file_paths = PathSet(comparer)
        self.analyzer_out_paths = PathSet(comparer)
        self.telemetry_paths = PathSet(comparer)
        self.status = self._classify(ordered, comparer)

    @property
    def guid(self) -> str:
        return self.project.guid_as_string()

    def _classify(
        self, ordered: list[ProjectInfo], comparer: PathComparer
    ) -> ProjectInfoValidity:
        distinct_paths: dict[str, Path] = {}
        for variant in ordered:
            distinct_paths.setdefault(comparer.key(str(variant.full_path)), variant.full_path)
        if len(distinct_paths) > 1:
            for path in distinct_paths.values():
                logger.warning(
                    f"Duplicate project GUID, the project will not be analyzed (guid={self.project.project_guid} path={path})"
                )
            return ProjectInfoValidity.DUPLICATE_GUID
        if self.project.parsed_guid is None:
            logger.warning(
                f"Project has an empty or invalid GUID (name={self.project.project_name} path={self.project.full_path})"
            )
            return ProjectInfoValidity.INVALID_GUID
        if not Path(self.project.full_path).is_file():
            logger.debug(f"Project file no longer exists (path={self.project.full_path})")
            return ProjectInfoValidity.PROJECT_NOT_FOUND

        first_status: ProjectInfoValidity | None = None
        any_valid = False
        for variant in ordered:
            variant_status = variant.classify()
            if first_status is None:
                first_status = variant_status
            if variant_status != ProjectInfoValidity.VALID:
                continue
            any_valid = True
            self.referenced_files.update(variant.all_analysis_files())
            self._collect_output_paths(variant)
        if not any_valid:
            return first_status or ProjectInfoValidity.EXCLUDE_FLAG_SET
        if not self.referenced_files:
            return ProjectInfoValidity.NO_FILES_TO_ANALYZE
        return ProjectInfoValidity.VALID

    def _collect_output_paths(self, variant: ProjectInfo) -> None:
        for setting in variant.analysis_settings:
            kind = setting_kind(setting.key)
            if kind == SettingKind.REPORT_PATHS:
                values = setting.value.split(REPORT_PATHS_DELIMITER)
                target = self.roslyn_report_file_paths
            elif kind == SettingKind.ANALYZER_OUT_PATHS:
                values = setting.value.split(ANALYZER_OUT_PATHS_DELIMITER)
                target = self.analyzer_out_paths
            elif kind == SettingKind.TELEMETRY_PATHS:
                values = [setting.value]
                target = self.telemetry_paths
            else:
                continue
            target.update(Path(value.strip()) for value in values if value.strip())

    def pass_through_settings(self) -> list[tuple[str, str]]:
        """Return the representative's non-structural settings in order."""
        return [
            (setting.key, setting.value)
            for setting in self.project.analysis_settings
            if setting_kind(setting.key) == SettingKind.PASS_THROUGH
        ]

    def output_paths(self) -> list[tuple[SettingKind, PathSet]]:
        return [
            (SettingKind.ANALYZER_OUT_PATHS, self.analyzer_out_paths),
            (SettingKind.REPORT_PATHS, self.roslyn_report_file_paths),
            (SettingKind.TELEMETRY_PATHS, self.telemetry_paths),
        ]


def group_projects(
    projects: Iterable[ProjectInfo], comparer: PathComparer
) -> list[ProjectData]:
    """Group descriptors by GUID in first-seen order.

    Args:
        projects: Loaded descriptors.
        comparer: Path comparer for the current platform.

    Returns:
        One ``ProjectData`` per distinct GUID.
    """
    groups: dict[str, list[ProjectInfo]] = {}
    for project in projects:
        groups.setdefault(project.guid_as_string(), []).append(project)
    return [ProjectData(variants, comparer) for variants in groups.values()]
