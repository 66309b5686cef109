# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Repair improperly escaped SARIF reports written by Roslyn 1.0 compilers."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CSHARP_LANGUAGE = "cs"
VBNET_LANGUAGE = "vbnet"
FIXED_FILE_SUFFIX = "_fixed"

_TOOL_NAMES: dict[str, str] = {
    CSHARP_LANGUAGE: '"toolName": "Microsoft (R) Visual C# Compiler"',
    VBNET_LANGUAGE: '"toolName": "Microsoft (R) Visual Basic Compiler"',
}
_PRODUCT_VERSION = '"productVersion": "1.0.0"'
_FIXABLE_FIELDS: tuple[str, ...] = (
    '"uri": ',
    '"shortMessage": ',
    '"fullMessage": ',
    '"title": ',
)


class RoslynV1SarifFixer:
    """Load SARIF reports and fix the escaping bug of the first Roslyn release."""

    def load_and_fix_file(self, sarif_path: str, language: str) -> str | None:
        """Return a usable report path for ``sarif_path``.

        Args:
            sarif_path: Report file path.
            language: ``cs`` or ``vbnet``.

        Returns:
            The original path when the report is valid JSON, the path of a
            repaired ``<name>_fixed<ext>`` copy, or ``None`` when the report
            is missing or cannot be repaired.

        Raises:
            ValueError: If ``language`` is not supported.
        """
        if language not in _TOOL_NAMES:
            raise ValueError(f"Unknown language: {language}")
        path = Path(sarif_path)
        if not path.is_file():
            logger.info(f"SARIF report not found (path={sarif_path})")
            return None
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Unable to read SARIF report, it will be ignored (path={sarif_path} error={exc})"
            )
            return None
        if _is_valid_json(content):
            logger.debug(f"SARIF report is valid (path={sarif_path})")
            return sarif_path
        logger.debug(f"SARIF report is not valid JSON (path={sarif_path})")
        if not _is_from_roslyn_v1(content, language):
            logger.warning(f"Unable to fix SARIF report, it will be ignored (path={sarif_path})")
            return None
        fixed = _apply_fix(content)
        if not _is_valid_json(fixed):
            logger.warning(f"Unable to fix SARIF report, it will be ignored (path={sarif_path})")
            return None
        fixed_path = path.with_name(f"{path.stem}{FIXED_FILE_SUFFIX}{path.suffix}")
        fixed_path.write_text(fixed, encoding="utf-8")
        logger.info(f"Fixed SARIF report written (path={fixed_path})")
        return str(fixed_path)


def _is_valid_json(content: str) -> bool:
    try:
        return isinstance(json.loads(content), dict)
    except json.JSONDecodeError:
        return False


def _is_from_roslyn_v1(content: str, language: str) -> bool:
    return _TOOL_NAMES[language] in content and _PRODUCT_VERSION in content


def _apply_fix(content: str) -> str:
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if not any(field in line for field in _FIXABLE_FIELDS):
            continue
        line = line.replace("\\", "\\\\")
        pieces = line.split('"')
        # Four quotes are syntactically required: two around the name and
        # two around the value. Anything in between belongs to the value.
        if len(pieces) > 5:
            value = '\\"'.join(pieces[3:-1])
            line = '"'.join([pieces[0], pieces[1], pieces[2], value, pieces[-1]])
        lines[index] = line
    return "\n".join(lines)
