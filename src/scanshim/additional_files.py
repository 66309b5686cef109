# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Discover analyzable files that do not belong to any build project."""

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

import pathspec

from scanshim.analysis_config import AnalysisConfig, get_analysis_settings
from scanshim.project_data import AnalysisFiles
from scanshim.properties import Property, SonarProperties

logger = logging.getLogger(__name__)

SUFFIX_SETTINGS: tuple[str, ...] = (
    "sonar.tsql.file.suffixes",
    "sonar.plsql.file.suffixes",
    "sonar.yaml.file.suffixes",
    "sonar.xml.file.suffixes",
    "sonar.json.file.suffixes",
    "sonar.css.file.suffixes",
    "sonar.html.file.suffixes",
    "sonar.javascript.file.suffixes",
    "sonar.typescript.file.suffixes",
)
TEST_SUFFIX_SETTINGS: tuple[str, ...] = (
    "sonar.javascript.file.suffixes",
    "sonar.typescript.file.suffixes",
)
TEST_INFIXES: tuple[str, ...] = ("test", "spec")

# Matched against lower-cased paths relative to the base directory.
EXCLUDED_PATTERNS: tuple[str, ...] = (
    ".sonarqube/",
    ".sonar/",
    "build-wrapper-dump.json",
    "compile_commands.json",
)


class AdditionalFilesService:
    """Walk the base directory for files of non-project languages."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """Initialize service.

        Args:
            environ: Environment mapping used for setting lookups.
        """
        self._environ = environ
        self._excluded = pathspec.GitIgnoreSpec.from_lines(EXCLUDED_PATTERNS)

    def additional_files(self, config: AnalysisConfig, base_dir: Path) -> AnalysisFiles:
        """Collect free-standing sources and tests below ``base_dir``.

        Args:
            config: Analysis configuration.
            base_dir: Analysis base directory.

        Returns:
            Disjoint source and test lists; empty when multi-file analysis is
            disabled or no suffix is configured.
        """
        if not config.multi_file_analysis:
            return AnalysisFiles()
        settings = get_analysis_settings(config, True, self._environ)
        extensions = _extensions(
            settings.try_get_property(key) for key in SUFFIX_SETTINGS
        )
        if not extensions:
            return AnalysisFiles()
        all_files = self._find_files(base_dir, extensions)
        # A user-defined sonar.tests is respected and not re-populated.
        if any(item.key == SonarProperties.TESTS for item in config.local_settings):
            return AnalysisFiles(sources=all_files, tests=[])
        test_extensions = [
            f".{infix}{extension}"
            for extension in _extensions(
                settings.try_get_property(key) for key in TEST_SUFFIX_SETTINGS
            )
            for infix in TEST_INFIXES
        ]
        if not test_extensions:
            return AnalysisFiles(sources=all_files, tests=[])
        sources: list[Path] = []
        tests: list[Path] = []
        for file in all_files:
            if _has_extension(file.name, test_extensions):
                tests.append(file)
            else:
                sources.append(file)
        logger.debug(
            f"Additional files discovered (base_dir={base_dir} sources={len(sources)} tests={len(tests)})"
        )
        return AnalysisFiles(sources=sources, tests=tests)

    def _find_files(self, base_dir: Path, extensions: list[str]) -> list[Path]:
        found: list[Path] = []
        for current, dirnames, filenames in os.walk(base_dir, onerror=_log_walk_error):
            current_path = Path(current)
            relative = current_path.relative_to(base_dir).as_posix()
            prefix = "" if relative == "." else f"{relative}/"
            dirnames[:] = sorted(
                name
                for name in dirnames
                if not self._is_excluded(f"{prefix}{name}/")
            )
            for name in sorted(filenames):
                if self._is_excluded(f"{prefix}{name}"):
                    continue
                if _has_extension(name, extensions):
                    found.append(current_path / name)
        return found

    def _is_excluded(self, relative_path: str) -> bool:
        return self._excluded.match_file(relative_path.lower())


def _log_walk_error(error: OSError) -> None:
    logger.warning(
        f"Failed to enumerate directory, skipping it (path={error.filename} error={error.strerror})"
    )


def _extensions(properties: Iterable[Property | None]) -> list[str]:
    extensions: list[str] = []
    for item in properties:
        if item is None or not item.value:
            continue
        for raw in item.value.split(","):
            suffix = raw.strip()
            if not suffix:
                continue
            suffix = suffix if suffix.startswith(".") else f".{suffix}"
            if suffix not in extensions:
                extensions.append(suffix)
    return extensions


def _has_extension(name: str, extensions: list[str]) -> bool:
    folded = name.lower()
    return any(
        folded.endswith(extension.lower()) and folded != extension.lower()
        for extension in extensions
    )
