# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Multi-value encodings for list-typed properties."""

import csv
import logging
from typing import Protocol

logger = logging.getLogger(__name__)

QUOTED_VALUES_SINCE: tuple[int, int] = (6, 5)
_RFC4180_SPECIALS: tuple[str, ...] = (",", '"', "\r", "\n")


class MultiValueEncoding(Protocol):
    """Define how list values are joined in the legacy properties file."""

    def encode(self, values: list[str]) -> list[str]:
        """Return the per-line items to join with ``,\\`` continuations."""

    def decode(self, value: str) -> list[str]:
        """Split a joined logical value back into items."""


class QuotedMultiValueEncoding:
    """Quote every value and double embedded quotes."""

    def encode(self, values: list[str]) -> list[str]:
        return [_quote(value) for value in values]

    def decode(self, value: str) -> list[str]:
        return split_csv(value)


class LegacyMultiValueEncoding:
    """Write bare values and drop any value that contains a comma.

    Servers older than 6.5 cannot read quoted values; this encoding only
    exists for them.
    """

    def encode(self, values: list[str]) -> list[str]:
        invalid = [value for value in values if "," in value]
        if invalid:
            logger.warning(
                f"Values containing a comma are not supported by this server version and will be skipped (values={', '.join(invalid)})"
            )
        return [value for value in values if "," not in value]

    def decode(self, value: str) -> list[str]:
        return value.split(",") if value else []


def parse_version(text: str | None) -> tuple[int, ...] | None:
    """Parse a ``major.minor[.build[.revision]]`` version string.

    Args:
        text: Version text.

    Returns:
        Numeric components, or ``None`` when the text is not a version.
    """
    if not text:
        return None
    parts = text.strip().split(".")
    if not 2 <= len(parts) <= 4 or not all(part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def select_encoding(server_version: str | None) -> MultiValueEncoding:
    """Pick the multi-value encoding for a server version.

    Args:
        server_version: Server version string, possibly missing.

    Returns:
        Quoted encoding for 6.5 and later, legacy encoding otherwise.
    """
    version = parse_version(server_version)
    if version is not None and version >= QUOTED_VALUES_SINCE:
        return QuotedMultiValueEncoding()
    logger.debug(f"Using legacy multi-value encoding (server_version={server_version})")
    return LegacyMultiValueEncoding()


def join_csv(values: list[str]) -> str:
    """Join values RFC4180-style, quoting only values that need it."""
    return ",".join(
        _quote(value) if any(char in value for char in _RFC4180_SPECIALS) else value
        for value in values
    )


def split_csv(value: str) -> list[str]:
    """Split an RFC4180 joined value."""
    if not value:
        return []
    return next(csv.reader([value], strict=True), [])


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'
