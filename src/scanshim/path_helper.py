# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Directory path utilities used to resolve the analysis base directory."""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePath

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


@dataclass(frozen=True)
class PathComparer:
    """Compare file system paths with OS-dependent case sensitivity.

    Attributes:
        ignore_case: Whether comparisons fold case (Windows convention).
    """

    ignore_case: bool

    def key(self, path: PathLike) -> str:
        """Return the comparison key of a path.

        Args:
            path: Path to normalize for comparison.

        Returns:
            String usable as a dictionary key under this comparer.
        """
        text = os.fspath(path)
        return text.lower() if self.ignore_case else text

    def equals(self, left: PathLike, right: PathLike) -> bool:
        return self.key(left) == self.key(right)

    def starts_with(self, text: PathLike, prefix: PathLike) -> bool:
        return self.key(text).startswith(self.key(prefix))


ORDINAL = PathComparer(ignore_case=False)
ORDINAL_IGNORE_CASE = PathComparer(ignore_case=True)


def for_platform(is_windows: bool | None = None) -> PathComparer:
    """Pick the comparer matching the host file system convention.

    Args:
        is_windows: Override for the detected platform.

    Returns:
        Case-insensitive comparer on Windows, case-sensitive otherwise.
    """
    if is_windows is None:
        is_windows = os.name == "nt"
    return ORDINAL_IGNORE_CASE if is_windows else ORDINAL


def with_trailing_directory_separator(directory: PathLike) -> str:
    """Return the full directory path ending with exactly one separator.

    Args:
        directory: Directory path, relative or absolute.

    Returns:
        Absolute path string terminated by a directory separator.

    Raises:
        ValueError: If the directory is empty.
    """
    raw = os.fspath(directory)
    if not raw:
        raise ValueError("directory must not be empty")
    full = os.path.abspath(raw)
    separators = tuple(sep for sep in (os.sep, os.altsep) if sep)
    if full.endswith(separators):
        return full
    if os.altsep and raw.endswith(os.altsep):
        return full + os.altsep
    return full + os.sep


def is_in_directory(
    file: PathLike, directory: PathLike, comparer: PathComparer
) -> bool:
    """Check whether a file is located below a directory.

    Args:
        file: File path; ``..`` segments are resolved first.
        directory: Candidate ancestor directory.
        comparer: Path comparer for the current platform.

    Returns:
        True when the normalized file path starts with the directory path.
    """
    normalized_directory = with_trailing_directory_separator(directory)
    return comparer.starts_with(os.path.abspath(os.fspath(file)), normalized_directory)


def get_parts(directory: PathLike) -> list[str]:
    """Split an absolute directory into comparable segments.

    The first segment identifies the root group: the drive anchor for
    drive-based paths (``C:\\``) and the anchor joined with the first
    component for POSIX paths (``/home``), so that paths on one volume can
    still be told apart.

    Args:
        directory: Directory path.

    Returns:
        Ordered path segments, never empty for a non-empty input.
    """
    pure = PurePath(os.path.abspath(os.fspath(directory)))
    parts = list(pure.parts)
    if not pure.drive and len(parts) > 1:
        parts[0:2] = [parts[0] + parts[1]]
    return parts


def best_common_root(
    paths: Iterable[PathLike], comparer: PathComparer
) -> Path | None:
    """Find the most specific directory shared by most of the paths.

    Paths are grouped by their first segment; the largest group must be
    unique. Within it the longest segment prefix of the shortest member
    that all members share is returned.

    Args:
        paths: Candidate directories.
        comparer: Path comparer for the current platform.

    Returns:
        Common root, or ``None`` for empty input or tied root groups.
    """
    groups: dict[str, list[list[str]]] = {}
    for path in paths:
        parts = get_parts(path)
        groups.setdefault(comparer.key(parts[0]), []).append(parts)
    if not groups:
        return None
    ranked = sorted(groups.values(), key=len, reverse=True)
    if len(ranked) > 1 and len(ranked[0]) == len(ranked[1]):
        logger.debug(
            f"No unique majority root (groups={len(ranked)} size={len(ranked[0])})"
        )
        return None
    members = ranked[0]
    shortest = min(members, key=len)
    common: list[str] = []
    for index, segment in enumerate(shortest):
        if all(comparer.equals(parts[index], segment) for parts in members):
            common.append(segment)
        else:
            break
    return Path(*common)


def is_same_or_sub_directory(
    directory: PathLike, ancestor: PathLike, comparer: PathComparer
) -> bool:
    """Check whether ``directory`` equals ``ancestor`` or lies below it."""
    return comparer.starts_with(
        with_trailing_directory_separator(directory),
        with_trailing_directory_separator(ancestor),
    )
