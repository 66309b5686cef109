# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis configuration and layered property resolution."""

import json
import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from scanshim.properties import Property, SonarProperties, is_valid_key
from scanshim.xml_schema import (
    NAMESPACE,
    add_property_list,
    add_text,
    child_text,
    namespace_prefix,
    parse_bool,
    read_properties,
    read_property_list,
)

logger = logging.getLogger(__name__)

SETTINGS_FILE_KEY = "settings.file.path"
SCANNER_PARAMS_ENV = "SONARQUBE_SCANNER_PARAMS"

# Keys with dedicated begin-step arguments; they cannot be passed as -d values.
_NAMED_ARGUMENT_KEYS: tuple[str, ...] = (
    SonarProperties.PROJECT_KEY,
    SonarProperties.PROJECT_NAME,
    SonarProperties.PROJECT_VERSION,
    SonarProperties.ORGANIZATION,
    SonarProperties.WORKING_DIRECTORY,
)


class ConfigError(RuntimeError):
    """Represent an unreadable or malformed configuration document."""


@dataclass(frozen=True)
class AnalysisConfig:
    """Represent the configuration written by the begin step.

    Attributes:
        sonar_output_dir: Folder holding one subfolder per project descriptor.
        sonar_config_dir: Folder holding the generated configuration files.
        sonar_scanner_working_directory: Folder the scanner was started from.
        sources_directory: Source root supplied by the CI environment.
        sonar_qube_host_url: Analysis server URL.
        sonar_qube_version: Analysis server version string.
        sonar_project_key: Project key.
        sonar_project_name: Optional project display name.
        sonar_project_version: Optional project version.
        multi_file_analysis: Whether non-project files are discovered too.
        additional_config: Internal ``Id``/``Value`` settings.
        local_settings: Settings given on the command line.
        server_settings: Settings downloaded from the server.
    """

    sonar_output_dir: Path
    sonar_project_key: str
    sonar_config_dir: Path | None = None
    sonar_scanner_working_directory: Path | None = None
    sources_directory: Path | None = None
    sonar_qube_host_url: str | None = None
    sonar_qube_version: str | None = None
    sonar_project_name: str | None = None
    sonar_project_version: str | None = None
    multi_file_analysis: bool = False
    additional_config: tuple[Property, ...] = field(default_factory=tuple)
    local_settings: tuple[Property, ...] = field(default_factory=tuple)
    server_settings: tuple[Property, ...] = field(default_factory=tuple)

    def get_config_value(self, setting_id: str, default: str | None = None) -> str | None:
        for item in self.additional_config:
            if item.key == setting_id:
                return item.value
        return default

    @property
    def settings_file_path(self) -> Path | None:
        value = self.get_config_value(SETTINGS_FILE_KEY)
        return Path(value) if value else None

    @classmethod
    def load(cls, path: Path) -> "AnalysisConfig":
        """Load a configuration document.

        Args:
            path: ``SonarQubeAnalysisConfig.xml`` path.

        Returns:
            Parsed configuration.

        Raises:
            ConfigError: If the file cannot be read or lacks required values.
        """
        try:
            root = ET.parse(path).getroot()
        except (ET.ParseError, OSError) as exc:
            raise ConfigError(f"Cannot read analysis config (path={path} error={exc})") from exc
        ns = namespace_prefix(root)
        output_dir = child_text(root, "SonarOutputDir", ns)
        project_key = child_text(root, "SonarProjectKey", ns)
        if output_dir is None or project_key is None:
            raise ConfigError(
                f"Analysis config lacks SonarOutputDir or SonarProjectKey (path={path})"
            )
        additional: list[Property] = []
        container = root.find(f"{ns}AdditionalConfig")
        if container is not None:
            for item in container.findall(f"{ns}ConfigSetting"):
                setting_id = item.get("Id")
                if setting_id:
                    additional.append(Property(key=setting_id, value=item.get("Value", "")))
        return cls(
            sonar_output_dir=Path(output_dir),
            sonar_project_key=project_key,
            sonar_config_dir=_optional_path(child_text(root, "SonarConfigDir", ns)),
            sonar_scanner_working_directory=_optional_path(
                child_text(root, "SonarScannerWorkingDirectory", ns)
            ),
            sources_directory=_optional_path(child_text(root, "SourcesDirectory", ns)),
            sonar_qube_host_url=child_text(root, "SonarQubeHostUrl", ns),
            sonar_qube_version=child_text(root, "SonarQubeVersion", ns),
            sonar_project_name=child_text(root, "SonarProjectName", ns),
            sonar_project_version=child_text(root, "SonarProjectVersion", ns),
            multi_file_analysis=parse_bool(child_text(root, "MultiFileAnalysis", ns)),
            additional_config=tuple(additional),
            local_settings=tuple(read_property_list(root, "LocalSettings", ns)),
            server_settings=tuple(read_property_list(root, "ServerSettings", ns)),
        )

    def save(self, path: Path) -> None:
        """Write the configuration document, creating parent folders."""
        root = ET.Element("AnalysisConfig", xmlns=NAMESPACE)
        add_text(root, "SonarConfigDir", _optional_str(self.sonar_config_dir))
        add_text(root, "SonarOutputDir", str(self.sonar_output_dir))
        add_text(
            root,
            "SonarScannerWorkingDirectory",
            _optional_str(self.sonar_scanner_working_directory),
        )
        add_text(root, "SourcesDirectory", _optional_str(self.sources_directory))
        add_text(root, "SonarQubeHostUrl", self.sonar_qube_host_url)
        add_text(root, "SonarQubeVersion", self.sonar_qube_version)
        add_text(root, "SonarProjectKey", self.sonar_project_key)
        add_text(root, "SonarProjectName", self.sonar_project_name)
        add_text(root, "SonarProjectVersion", self.sonar_project_version)
        add_text(root, "MultiFileAnalysis", "true" if self.multi_file_analysis else "false")
        container = ET.SubElement(root, "AdditionalConfig")
        for item in self.additional_config:
            ET.SubElement(container, "ConfigSetting", Id=item.key, Value=item.value)
        add_property_list(root, "LocalSettings", list(self.local_settings))
        add_property_list(root, "ServerSettings", list(self.server_settings))
        path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(root).write(path, encoding="utf-8", xml_declaration=True)


class PropertyProvider(Protocol):
    """Define a source of analysis properties."""

    def try_get_property(self, key: str) -> Property | None:
        """Return the property for ``key`` or ``None``."""

    def get_all_properties(self) -> list[Property]:
        """Return every property this source holds."""


class ListPropertyProvider:
    """Serve properties from an ordered list; the first entry for a key wins."""

    def __init__(self, properties: Sequence[Property]) -> None:
        self._properties = list(properties)

    def try_get_property(self, key: str) -> Property | None:
        for item in self._properties:
            if item.key == key:
                return item
        return None

    def get_all_properties(self) -> list[Property]:
        return list(self._properties)


class AggregatePropertyProvider:
    """Combine providers; earlier providers take precedence for a key."""

    def __init__(self, providers: Sequence[PropertyProvider]) -> None:
        self._providers = list(providers)

    def try_get_property(self, key: str) -> Property | None:
        for provider in self._providers:
            found = provider.try_get_property(key)
            if found is not None:
                return found
        return None

    def get_all_properties(self) -> list[Property]:
        merged: dict[str, Property] = {}
        for provider in self._providers:
            for item in provider.get_all_properties():
                merged.setdefault(item.key, item)
        return list(merged.values())


def load_settings_file(path: Path) -> ListPropertyProvider:
    """Load a ``SonarQube.Analysis.xml`` settings file.

    Args:
        path: Settings file path.

    Returns:
        Provider over the file's properties.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as exc:
        raise ConfigError(f"Cannot read settings file (path={path} error={exc})") from exc
    return ListPropertyProvider(read_properties(root, namespace_prefix(root)))


def environment_provider(
    environ: Mapping[str, str] | None = None,
) -> ListPropertyProvider | None:
    """Build a provider from the scanner parameters environment variable.

    Args:
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Provider, or ``None`` when the variable is unset or not a JSON object.
    """
    source = os.environ if environ is None else environ
    raw = source.get(SCANNER_PARAMS_ENV)
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error(
            f"Failed to parse scanner parameters environment variable (name={SCANNER_PARAMS_ENV} error={exc})"
        )
        return None
    if not isinstance(payload, dict):
        logger.error(
            f"Scanner parameters environment variable is not a JSON object (name={SCANNER_PARAMS_ENV})"
        )
        return None
    return ListPropertyProvider(
        [Property(key=str(key), value=str(value)) for key, value in payload.items()]
    )


def get_analysis_settings(
    config: AnalysisConfig,
    include_server_settings: bool,
    environ: Mapping[str, str] | None = None,
) -> AggregatePropertyProvider:
    """Build the precedence chain: local, settings file, environment, server.

    Args:
        config: Analysis configuration.
        include_server_settings: Whether server settings close the chain.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Aggregated provider.

    Raises:
        ConfigError: If the configured settings file cannot be read.
    """
    providers: list[PropertyProvider] = [ListPropertyProvider(config.local_settings)]
    settings_file = config.settings_file_path
    if settings_file is not None:
        providers.append(load_settings_file(settings_file))
    env = environment_provider(environ)
    if env is not None:
        providers.append(env)
    if include_server_settings:
        providers.append(ListPropertyProvider(config.server_settings))
    return AggregatePropertyProvider(providers)


def get_setting_or_default(
    config: AnalysisConfig,
    key: str,
    include_server_settings: bool,
    default: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Resolve one setting through the precedence chain.

    Args:
        config: Analysis configuration.
        key: Property key.
        include_server_settings: Whether server settings are consulted last.
        default: Value returned when no layer defines the key.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Winning value or ``default``.
    """
    found = get_analysis_settings(
        config, include_server_settings, environ
    ).try_get_property(key)
    return default if found is None else found.value


def to_analysis_properties(
    config: AnalysisConfig, environ: Mapping[str, str] | None = None
) -> list[Property]:
    """Merge local, file and environment settings without sensitive entries.

    Server settings are left out since the engine downloads them itself.

    Args:
        config: Analysis configuration.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Ordered, key-unique properties safe to persist.
    """
    merged = get_analysis_settings(config, False, environ).get_all_properties()
    kept = [item for item in merged if not item.contains_sensitive_data]
    dropped = len(merged) - len(kept)
    if dropped:
        logger.debug(f"Sensitive properties excluded from output (count={dropped})")
    return kept


def parse_command_line_properties(arguments: Sequence[str]) -> list[Property]:
    """Parse ``key=value`` command-line properties.

    Args:
        arguments: Raw ``key=value`` strings.

    Returns:
        Parsed properties in argument order.

    Raises:
        ValueError: If an argument is malformed, repeats a key, or sets a key
            that has a dedicated argument.
    """
    properties: list[Property] = []
    seen: set[str] = set()
    for argument in arguments:
        parsed = Property.parse(argument)
        if parsed is None or not is_valid_key(parsed.key):
            raise ValueError(f"Invalid property argument: {argument}")
        if parsed.key in seen:
            raise ValueError(f"Duplicate property key: {parsed.key}")
        if parsed.key in _NAMED_ARGUMENT_KEYS:
            raise ValueError(f"Property must be set with its named argument: {parsed.key}")
        seen.add(parsed.key)
        properties.append(parsed)
    return properties


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def _optional_str(value: Path | None) -> str | None:
    return None if value is None else str(value)
