# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Aggregate project descriptors into the scanner property files."""

import codecs
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from scanshim.additional_files import AdditionalFilesService
from scanshim.analysis_config import (
    AnalysisConfig,
    get_setting_or_default,
    to_analysis_properties,
)
from scanshim.path_helper import (
    PathComparer,
    best_common_root,
    for_platform,
    is_in_directory,
    is_same_or_sub_directory,
    with_trailing_directory_separator,
)
from scanshim.project_data import (
    REPORT_PATHS_DELIMITER,
    AnalysisFiles,
    PathSet,
    ProjectData,
    group_projects,
    is_csharp,
    is_vbnet,
)
from scanshim.project_info import ProjectInfo, ProjectInfoValidity, ProjectLoader
from scanshim.properties import Property, SonarProperties, find_property
from scanshim.sarif_fixer import CSHARP_LANGUAGE, VBNET_LANGUAGE, RoslynV1SarifFixer
from scanshim.writers import PropertiesWriter, ScannerEngineInput

logger = logging.getLogger(__name__)

PROJECT_PROPERTIES_FILE_NAME = "sonar-project.properties"
ENGINE_INPUT_FILE_NAME = "scanner-engine-input.json"
DEFAULT_SOURCE_ENCODING = "utf-8"
_BINARY_SUFFIXES: tuple[str, ...] = (".exe", ".dll")
_NUGET_PACKAGES = os.path.join(".nuget", "packages")
_STAGING_SUFFIX = ".tmp"

_SARIF_REPORT_KEYS: tuple[tuple[str, str], ...] = (
    (CSHARP_LANGUAGE, SonarProperties.CS_REPORT_PATHS),
    (VBNET_LANGUAGE, SonarProperties.VB_REPORT_PATHS),
)


@dataclass(frozen=True)
class AnalysisResult:
    """Represent the outcome of one generation run.

    Attributes:
        projects: Every project group with its final status.
        full_properties_file_path: Written properties file; ``None`` on failure.
        engine_input: Engine input document; ``None`` on failure.
        engine_input_file_path: Written engine input file; ``None`` on failure.
    """

    projects: list[ProjectData] = field(default_factory=list)
    full_properties_file_path: Path | None = None
    engine_input: ScannerEngineInput | None = None
    engine_input_file_path: Path | None = None

    @property
    def ran_to_completion(self) -> bool:
        return self.full_properties_file_path is not None


class ScannerEngineInputGenerator:
    """Build the analysis properties from the descriptors of one build."""

    def __init__(
        self,
        config: AnalysisConfig,
        comparer: PathComparer | None = None,
        additional_files_service: AdditionalFilesService | None = None,
        sarif_fixer: RoslynV1SarifFixer | None = None,
        loader: ProjectLoader | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize generator.

        Args:
            config: Analysis configuration.
            comparer: Path comparer; follows the host platform when omitted.
            additional_files_service: Discovery of non-project files.
            sarif_fixer: Repair of legacy SARIF reports.
            loader: Descriptor loader.
            environ: Environment mapping for setting lookups.

        Raises:
            ValueError: If ``config`` is missing.
        """
        if config is None:
            raise ValueError("config is required")
        self._config = config
        self._comparer = comparer or for_platform()
        self._environ = environ
        self._additional_files = additional_files_service or AdditionalFilesService(environ)
        self._sarif_fixer = sarif_fixer or RoslynV1SarifFixer()
        self._loader = loader or ProjectLoader()

    def generate_result(self) -> AnalysisResult:
        """Load descriptors, validate them and write both property files.

        Files are written only after every validation step succeeded.

        Returns:
            Result with the project groups and, on success, the written paths.
        """
        output_dir = Path(self._config.sonar_output_dir)
        properties_path = output_dir / PROJECT_PROPERTIES_FILE_NAME
        logger.debug(f"Generating analysis properties (path={properties_path})")
        descriptors = self._loader.load_from(output_dir)
        if not descriptors:
            logger.error(
                f"No ProjectInfo.xml files were found. Check that the analysis targets ran during the build (output_dir={output_dir})"
            )
            logger.info("Generation of the analysis properties failed")
            return AnalysisResult()
        analysis_properties = to_analysis_properties(self._config, self._environ)
        descriptors = self.fix_sarif_and_encoding(descriptors, analysis_properties)
        projects = group_projects(descriptors, self._comparer)

        legacy_writer = PropertiesWriter(self._config)
        engine_input = ScannerEngineInput(self._config)
        if not self.generate_properties(
            analysis_properties, projects, legacy_writer, engine_input
        ):
            logger.info("Generation of the analysis properties failed")
            return AnalysisResult(projects=projects)

        engine_input_path = output_dir / ENGINE_INPUT_FILE_NAME
        try:
            _write_all(
                [
                    (properties_path, legacy_writer.flush(), "ascii"),
                    (engine_input_path, engine_input.to_json(), "utf-8"),
                ]
            )
        except OSError as exc:
            logger.error(
                f"Unable to write the analysis properties (output_dir={output_dir} error={exc})"
            )
            logger.info("Generation of the analysis properties failed")
            return AnalysisResult(projects=projects)
        logger.debug(f"Analysis properties written (path={properties_path})")
        return AnalysisResult(
            projects=projects,
            full_properties_file_path=properties_path,
            engine_input=engine_input,
            engine_input_file_path=engine_input_path,
        )

    def generate_properties(
        self,
        analysis_properties: list[Property],
        projects: list[ProjectData],
        legacy_writer: PropertiesWriter,
        engine_input: ScannerEngineInput,
    ) -> bool:
        """Validate the project groups and feed both writers.

        Args:
            analysis_properties: Merged global properties.
            projects: Classified project groups.
            legacy_writer: Properties file writer.
            engine_input: Engine input writer.

        Returns:
            False when a fatal condition was logged; nothing is written then.
        """
        valid_projects = [
            project for project in projects if project.status == ProjectInfoValidity.VALID
        ]
        if not valid_projects:
            logger.error(
                "No analysable projects were found. Check that the build produced valid project descriptors."
            )
            return False

        base_dir = self.compute_project_base_dir(
            [project.project.directory for project in valid_projects]
        )
        if base_dir is None:
            logger.error(
                'The project base directory cannot be automatically detected. Please specify the "/d:sonar.projectBaseDir" on the begin step.'
            )
            return False
        if not base_dir.is_dir():
            logger.error(f"The project base directory doesn't exist (path={base_dir})")
            return False

        analysis_files = self.put_files_to_right_module_or_root(valid_projects, base_dir)
        for project in valid_projects:
            if not project.module_files:
                project.status = ProjectInfoValidity.NO_FILES_TO_ANALYZE
        if (
            not analysis_files.sources
            and not analysis_files.tests
            and all(
                project.status == ProjectInfoValidity.NO_FILES_TO_ANALYZE
                for project in valid_projects
            )
        ):
            logger.error(
                "No analysable projects were found. Check that the build produced valid project descriptors."
            )
            return False

        legacy_writer.write_sonar_project_info(base_dir)
        engine_input.write_sonar_project_info(base_dir)
        for project in valid_projects:
            if project.status != ProjectInfoValidity.VALID:
                continue
            legacy_writer.write_settings_for_project(project)
            engine_input.write_settings_for_project(project)
        legacy_writer.write_shared_files(analysis_files)
        engine_input.write_shared_files(analysis_files)
        legacy_writer.write_global_settings(analysis_properties)
        engine_input.write_global_settings(analysis_properties)
        return True

    def compute_project_base_dir(self, project_dirs: list[Path]) -> Path | None:
        """Resolve the analysis base directory.

        Precedence: user-supplied ``sonar.projectBaseDir``, the CI sources
        directory, the scanner working directory when it contains every
        project, then the best common root of the project directories.

        Args:
            project_dirs: Directories of the valid projects.

        Returns:
            Base directory, or ``None`` when it cannot be detected.
        """
        user_base_dir = get_setting_or_default(
            self._config,
            SonarProperties.PROJECT_BASE_DIR,
            include_server_settings=True,
            default=None,
            environ=self._environ,
        )
        if user_base_dir and user_base_dir.strip():
            base_dir = Path(os.path.abspath(user_base_dir))
            logger.debug(f"Using user supplied project base directory (path={base_dir})")
            return base_dir
        if self._config.sources_directory:
            base_dir = Path(os.path.abspath(self._config.sources_directory))
            logger.debug(f"Using CI sources directory as project base directory (path={base_dir})")
            return base_dir
        logger.info("Base directory was not supplied, detecting it from the project locations")

        working_dir = self._config.sonar_scanner_working_directory
        if working_dir and all(
            is_same_or_sub_directory(directory, working_dir, self._comparer)
            for directory in project_dirs
        ):
            base_dir = Path(os.path.abspath(working_dir))
            logger.debug(f"Using scanner working directory as project base directory (path={base_dir})")
            return base_dir

        common_root = best_common_root(project_dirs, self._comparer)
        if common_root is None:
            return None
        logger.debug(
            f"Using longest common project path as base directory (path={common_root} projects={len(project_dirs)})"
        )
        if common_root.parent == common_root:
            # Temporary projects outside the user's control can collapse the
            # common root to the file system root.
            return None
        for directory in project_dirs:
            if not is_same_or_sub_directory(directory, common_root, self._comparer):
                logger.warning(
                    f"Directory '{directory}' is not located under the base directory '{common_root}' and will not be analyzed."
                )
        return common_root

    def put_files_to_right_module_or_root(
        self, projects: list[ProjectData], base_dir: Path
    ) -> AnalysisFiles:
        """Assign each analyzable file to its closest project or the root.

        Args:
            projects: Valid project groups; their ``module_files`` are filled.
            base_dir: Analysis base directory.

        Returns:
            Root-level sources and the discovered root-level tests.
        """
        additional = self._additional_files.additional_files(self._config, base_dir)
        excluded_tests = PathSet(self._comparer, additional.tests)

        projects_per_file: dict[str, tuple[Path, list[ProjectData]]] = {}
        for project in projects:
            candidates = list(project.referenced_files) + list(additional.sources)
            for file in candidates:
                if file in excluded_tests or _is_binary(file):
                    continue
                key = self._comparer.key(str(file))
                _, owners = projects_per_file.setdefault(key, (file, []))
                if project not in owners:
                    owners.append(project)

        root_sources = PathSet(self._comparer)
        for file, owners in projects_per_file.values():
            if not file.is_file():
                logger.warning(f"File '{file}' does not exist.")
                logger.debug(
                    f"File referenced by projects (file={file} projects={[str(owner.project.full_path) for owner in owners]})"
                )
                continue
            if not is_in_directory(file, base_dir, self._comparer):
                if _NUGET_PACKAGES not in str(file):
                    logger.warning(
                        f"File '{file}' is not located under the base directory '{base_dir}' and will not be analyzed."
                    )
                logger.debug(
                    f"File referenced by projects (file={file} projects={[str(owner.project.full_path) for owner in owners]})"
                )
                continue
            closest = single_closest_project(file, owners, self._comparer)
            if closest is None:
                root_sources.add(file)
            else:
                closest.module_files.add(file)
        return AnalysisFiles(sources=list(root_sources), tests=list(additional.tests))

    def fix_sarif_and_encoding(
        self, projects: list[ProjectInfo], analysis_properties: list[Property]
    ) -> list[ProjectInfo]:
        """Return descriptors with repaired report paths and source encodings."""
        global_encoding = _global_source_encoding(analysis_properties)
        return [
            self._fix_encoding(self._fix_sarif_reports(project), global_encoding)
            for project in projects
        ]

    def _fix_sarif_reports(self, project: ProjectInfo) -> ProjectInfo:
        settings = list(project.analysis_settings)
        for language, key in _SARIF_REPORT_KEYS:
            setting = project.find_setting(key)
            if setting is None:
                continue
            settings.remove(setting)
            fixed = [
                path
                for path in (
                    self._sarif_fixer.load_and_fix_file(item, language)
                    for item in setting.value.split(REPORT_PATHS_DELIMITER)
                )
                if path is not None
            ]
            if fixed:
                settings.append(Property(key=key, value=REPORT_PATHS_DELIMITER.join(fixed)))
        return replace(project, analysis_settings=tuple(settings))

    @staticmethod
    def _fix_encoding(project: ProjectInfo, global_encoding: str | None) -> ProjectInfo:
        if project.encoding is not None:
            if global_encoding is not None:
                logger.info(
                    f"The property is ignored because the project defines its own encoding (property={SonarProperties.SOURCE_ENCODING} project={project.project_name})"
                )
            return project
        if global_encoding is not None:
            return replace(project, encoding=global_encoding)
        if is_csharp(project.project_language) or is_vbnet(project.project_language):
            return replace(project, encoding=DEFAULT_SOURCE_ENCODING)
        return project


def single_closest_project(
    file: Path, projects: list[ProjectData], comparer: PathComparer
) -> ProjectData | None:
    """Pick the single project whose directory most closely contains a file.

    Args:
        file: Analyzed file.
        projects: Candidate owners.
        comparer: Path comparer for the current platform.

    Returns:
        The closest project, or ``None`` when no project contains the file or
        several projects share the closest directory.
    """
    length = 0
    closest: list[ProjectData] = []
    for project in projects:
        directory = project.project.directory
        if not is_in_directory(file, directory, comparer):
            continue
        directory_length = len(with_trailing_directory_separator(directory))
        if directory_length > length:
            length = directory_length
            closest = [project]
        elif directory_length == length:
            closest.append(project)
    return closest[0] if len(closest) == 1 else None


def _global_source_encoding(properties: list[Property]) -> str | None:
    encoding = find_property(properties, SonarProperties.SOURCE_ENCODING)
    if encoding is None:
        return None
    name = encoding.value.strip()
    try:
        codecs.lookup(name)
    except LookupError:
        logger.debug(f"Unknown global source encoding ignored (encoding={encoding.value})")
        return None
    return name.lower()


def _is_binary(file: Path) -> bool:
    return file.suffix.lower() in _BINARY_SUFFIXES


def _write_all(files: list[tuple[Path, str, str]]) -> None:
    """Stage every output next to its target, then move them into place.

    Nothing is moved unless every staged file was written; staged files are
    removed when a write fails.

    Args:
        files: ``(path, content, encoding)`` triples.

    Raises:
        OSError: If a file cannot be written or moved.
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for path, content, encoding in files:
            temporary = path.with_name(f"{path.name}{_STAGING_SUFFIX}")
            staged.append((temporary, path))
            temporary.write_text(content, encoding=encoding, newline="\n")
        for temporary, path in staged:
            os.replace(temporary, path)
    except OSError:
        for temporary, _ in staged:
            if temporary.is_file():
                temporary.unlink()
        raise
