# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Per-project descriptors produced by the build and their on-disk loader."""

import logging
import os
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from scanshim.properties import Property
from scanshim.xml_schema import (
    NAMESPACE,
    add_property_list,
    add_text,
    child_text,
    namespace_prefix,
    parse_bool,
    read_property_list,
)

logger = logging.getLogger(__name__)

PROJECT_INFO_FILE_NAME = "ProjectInfo.xml"
FILES_TO_ANALYZE = "FilesToAnalyze"


class ProjectType(str, Enum):
    """Represent the role of a project in the analysis."""

    PRODUCT = "Product"
    TEST = "Test"


class ProjectInfoValidity(str, Enum):
    """Represent the classification status of a project group."""

    VALID = "Valid"
    EXCLUDE_FLAG_SET = "ExcludeFlagSet"
    INVALID_GUID = "InvalidGuid"
    DUPLICATE_GUID = "DuplicateGuid"
    PROJECT_NOT_FOUND = "ProjectNotFound"
    NO_FILES_TO_ANALYZE = "NoFilesToAnalyze"


@dataclass(frozen=True)
class AnalyzerResult:
    """Represent one analyzer output registered by the build.

    Attributes:
        id: Result identifier, e.g. ``FilesToAnalyze``.
        location: Path of the produced artifact.
    """

    id: str
    location: str


@dataclass(frozen=True)
class ProjectInfo:
    """Represent one build invocation of one project.

    Attributes:
        project_name: Display name.
        project_guid: Raw project GUID text; may be empty or malformed.
        full_path: Absolute path of the project file.
        project_type: Product or test project.
        project_language: Free-form language tag, e.g. ``C#``.
        is_excluded: Whether the build asked to skip this project.
        encoding: Optional source encoding name.
        configuration: Build configuration, used for ordering only.
        platform: Build platform, used for ordering only.
        target_framework: Target framework, used for ordering only.
        analysis_results: Registered analyzer outputs.
        analysis_settings: Project-level analysis settings.
    """

    project_name: str
    project_guid: str
    full_path: Path
    project_type: ProjectType = ProjectType.PRODUCT
    project_language: str | None = None
    is_excluded: bool = False
    encoding: str | None = None
    configuration: str | None = None
    platform: str | None = None
    target_framework: str | None = None
    analysis_results: tuple[AnalyzerResult, ...] = field(default_factory=tuple)
    analysis_settings: tuple[Property, ...] = field(default_factory=tuple)

    @property
    def directory(self) -> Path:
        return Path(os.path.dirname(os.path.abspath(self.full_path)))

    @property
    def variant_key(self) -> str:
        return f"{self.configuration or ''}_{self.platform or ''}_{self.target_framework or ''}"

    @property
    def parsed_guid(self) -> uuid.UUID | None:
        """Return the GUID when it parses and is not the all-zero value."""
        try:
            parsed = uuid.UUID(self.project_guid.strip())
        except (ValueError, AttributeError):
            return None
        return None if parsed.int == 0 else parsed

    def guid_as_string(self) -> str:
        """Return the upper-case hyphenated GUID, or the raw text if unparsable."""
        parsed = self.parsed_guid
        return str(parsed).upper() if parsed is not None else self.project_guid

    def try_get_analysis_result(self, result_id: str) -> AnalyzerResult | None:
        for result in self.analysis_results:
            if result.id.lower() == result_id.lower():
                return result
        return None

    def all_analysis_files(self) -> list[Path]:
        """Read the files the build listed for analysis.

        Returns:
            Absolute paths from the ``FilesToAnalyze`` list file, or an empty
            list when the project registered none.
        """
        result = self.try_get_analysis_result(FILES_TO_ANALYZE)
        if result is None:
            return []
        list_file = Path(result.location)
        if not list_file.is_file():
            return []
        try:
            lines = list_file.read_text(encoding="utf-8-sig").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Unable to read the files to analyze, none will be analyzed (path={list_file} error={exc})"
            )
            return []
        return [Path(line.strip()) for line in lines if line.strip()]

    def classify(self) -> ProjectInfoValidity:
        """Classify this variant on its own.

        Returns:
            ``ExcludeFlagSet``, ``InvalidGuid`` or ``Valid``.
        """
        if self.is_excluded:
            logger.info(
                f"Project excluded by the build (name={self.project_name} path={self.full_path})"
            )
            return ProjectInfoValidity.EXCLUDE_FLAG_SET
        if self.parsed_guid is None:
            logger.warning(
                f"Project has an invalid GUID and will not be analyzed (name={self.project_name} guid={self.project_guid!r} path={self.full_path})"
            )
            return ProjectInfoValidity.INVALID_GUID
        return ProjectInfoValidity.VALID

    def find_setting(self, key: str) -> Property | None:
        for item in self.analysis_settings:
            if item.key == key:
                return item
        return None

    def save(self, path: Path) -> None:
        """Write this descriptor as a ``ProjectInfo.xml`` document."""
        root = ET.Element("ProjectInfo", xmlns=NAMESPACE)
        add_text(root, "ProjectName", self.project_name)
        add_text(root, "ProjectLanguage", self.project_language)
        add_text(root, "ProjectType", self.project_type.value)
        add_text(root, "ProjectGuid", self.project_guid)
        add_text(root, "FullPath", str(self.full_path))
        add_text(root, "IsExcluded", "true" if self.is_excluded else "false")
        add_text(root, "Encoding", self.encoding)
        add_text(root, "Configuration", self.configuration)
        add_text(root, "Platform", self.platform)
        add_text(root, "TargetFramework", self.target_framework)
        results = ET.SubElement(root, "AnalysisResults")
        for result in self.analysis_results:
            ET.SubElement(results, "AnalysisResult", Id=result.id, Location=result.location)
        add_property_list(root, "AnalysisSettings", list(self.analysis_settings))
        path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)

    @classmethod
    def load(cls, path: Path) -> "ProjectInfo":
        """Load a ``ProjectInfo.xml`` document.

        Args:
            path: Descriptor file path.

        Returns:
            Parsed descriptor.

        Raises:
            ET.ParseError: If the document is not well-formed.
            OSError: If the file cannot be read.
        """
        root = ET.parse(path).getroot()
        ns = namespace_prefix(root)
        project_type = (child_text(root, "ProjectType", ns) or "").lower()
        results: list[AnalyzerResult] = []
        container = root.find(f"{ns}AnalysisResults")
        if container is not None:
            for item in container.findall(f"{ns}AnalysisResult"):
                result_id = item.get("Id")
                location = item.get("Location")
                if result_id and location:
                    results.append(AnalyzerResult(id=result_id, location=location))
        return cls(
            project_name=child_text(root, "ProjectName", ns) or "",
            project_guid=child_text(root, "ProjectGuid", ns) or "",
            full_path=Path(child_text(root, "FullPath", ns) or ""),
            project_type=ProjectType.TEST if project_type == "test" else ProjectType.PRODUCT,
            project_language=child_text(root, "ProjectLanguage", ns),
            is_excluded=parse_bool(child_text(root, "IsExcluded", ns)),
            encoding=child_text(root, "Encoding", ns),
            configuration=child_text(root, "Configuration", ns),
            platform=child_text(root, "Platform", ns),
            target_framework=child_text(root, "TargetFramework", ns),
            analysis_results=tuple(results),
            analysis_settings=tuple(read_property_list(root, "AnalysisSettings", ns)),
        )


class ProjectLoader:
    """Load project descriptors from the build output folder."""

    def load_from(self, output_dir: Path) -> list[ProjectInfo]:
        """Load descriptors from the immediate subfolders of ``output_dir``.

        Subfolders without a descriptor are skipped silently and unreadable
        descriptors are skipped with a warning. The walk is not recursive.

        Args:
            output_dir: Build output folder.

        Returns:
            Descriptors in subfolder name order.
        """
        if not output_dir.is_dir():
            logger.warning(f"Output folder does not exist (path={output_dir})")
            return []
        projects: list[ProjectInfo] = []
        for folder in sorted(entry for entry in output_dir.iterdir() if entry.is_dir()):
            descriptor = folder / PROJECT_INFO_FILE_NAME
            if not descriptor.is_file():
                continue
            try:
                projects.append(ProjectInfo.load(descriptor))
            except (ET.ParseError, OSError) as exc:
                logger.warning(f"Skipping unreadable project descriptor (path={descriptor} error={exc})")
                continue
            logger.debug(f"Loaded project descriptor (path={descriptor})")
        return projects
