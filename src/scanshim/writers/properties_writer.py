# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Legacy ``sonar-project.properties`` writer and reader."""

import logging
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
from scanshim.writers.multi_value import MultiValueEncoding, select_encoding

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"
_UNESCAPES: dict[str, str] = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


class WriterClosedError(RuntimeError):
    """Represent a write attempted after the writer was flushed."""


def escape(value: str) -> str:
    """Escape a value for the properties format.

    Backslashes are doubled, printable ASCII is kept, every other character
    is written as ``\\uXXXX`` UTF-16 code units.

    Args:
        value: Raw value.

    Returns:
        ASCII-only escaped value.
    """
    chunks: list[str] = []
    for char in value:
        code = ord(char)
        if char == "\\":
            chunks.append("\\\\")
        elif 0x20 <= code < 0x7F:
            chunks.append(char)
        elif code > 0xFFFF:
            code -= 0x10000
            chunks.append(f"\\u{0xD800 + (code >> 10):04X}\\u{0xDC00 + (code & 0x3FF):04X}")
        else:
            chunks.append(f"\\u{code:04X}")
    return "".join(chunks)


class PropertiesWriter:
    """Accumulate analysis properties in the flat legacy file format."""

    def __init__(
        self, config: AnalysisConfig, encoding: MultiValueEncoding | None = None
    ) -> None:
        """Initialize writer.

        Args:
            config: Analysis configuration.
            encoding: Multi-value encoding; chosen from the server version
                when omitted.

        Raises:
            ValueError: If ``config`` is missing.
        """
        if config is None:
            raise ValueError("config is required")
        self._config = config
        self._encoding = encoding or select_encoding(config.sonar_qube_version)
        self._lines: list[str] = []
        self._module_keys: list[str] = []
        self.finished_writing = False

    def write_sonar_project_info(self, base_dir: Path) -> None:
        self._append(identity_entries(self._config, base_dir))
        self._lines.append("")

    def write_settings_for_project(self, project: ProjectData) -> None:
        """Write one module's settings and register its GUID.

        Args:
            project: Valid project with assigned module files.

        Raises:
            ValueError: If ``project`` is missing.
            WriterClosedError: If the writer was already flushed.
        """
        if project is None:
            raise ValueError("project is required")
        self._ensure_open()
        self._module_keys.append(project.guid)
        self._append(project_entries(self._config, project, len(self._module_keys) - 1))
        self._lines.append("")

    def write_shared_files(self, files: AnalysisFiles) -> None:
        self._append(shared_entries(files))
        self._lines.append("")

    def write_global_settings(self, properties: Iterable[Property]) -> None:
        self._append(global_entries(properties))
        self._lines.append("")

    def flush(self) -> str:
        """Append ``sonar.modules`` and return the whole content.

        Returns:
            File content, ASCII only.

        Raises:
            WriterClosedError: If called more than once.
        """
        self._ensure_open()
        self.finished_writing = True
        self._lines.append(
            f"{SonarProperties.MODULES}={escape(','.join(self._module_keys))}"
        )
        self._lines.append("")
        return LINE_SEPARATOR.join(self._lines) + LINE_SEPARATOR

    def _ensure_open(self) -> None:
        if self.finished_writing:
            raise WriterClosedError("Properties writer was already flushed")

    def _append(self, entries: list[Entry]) -> None:
        self._ensure_open()
        for entry in entries:
            if not entry.is_multi_value:
                self._lines.append(f"{entry.key}={escape(entry.value)}")
                continue
            items = self._encoding.encode([escape(value) for value in entry.values])
            self._lines.append(f"{entry.key}=\\")
            self._lines.append(f",\\{LINE_SEPARATOR}".join(items))


def read_properties(content: str) -> list[tuple[str, str]]:
    """Parse properties content into ordered ``(key, value)`` pairs.

    Supports comments, ``\\`` line continuations and the escapes written by
    :func:`escape`. Multi-value entries come back as one joined logical value.

    Args:
        content: Properties file content.

    Returns:
        Pairs in file order.
    """
    pairs: list[tuple[str, str]] = []
    for line in _logical_lines(content):
        key, separator, value = line.partition("=")
        if not separator:
            continue
        pairs.append((_unescape(key.strip()), _unescape(value)))
    return pairs


def _logical_lines(content: str) -> list[str]:
    logical: list[str] = []
    pending: str | None = None
    for raw in content.splitlines():
        line = raw if pending is None else raw.lstrip()
        if pending is None and (not line.strip() or line.lstrip()[:1] in ("#", "!")):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        logical.append((pending or "") + line)
        pending = None
    if pending is not None:
        logical.append(pending)
    return logical


def _unescape(text: str) -> str:
    chars: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\" or index + 1 >= len(text):
            chars.append(char)
            index += 1
            continue
        marker = text[index + 1]
        if marker == "u" and index + 6 <= len(text):
            chars.append(chr(int(text[index + 2 : index + 6], 16)))
            index += 6
            continue
        chars.append(_UNESCAPES.get(marker, marker))
        index += 2
    joined = "".join(chars)
    return joined.encode("utf-16-le", "surrogatepass").decode("utf-16-le")
