import os
from pathlib import Path

import pytest

from scanshim.path_helper import (
    ORDINAL,
    ORDINAL_IGNORE_CASE,
    best_common_root,
    for_platform,
    get_parts,
    is_in_directory,
    is_same_or_sub_directory,
    with_trailing_directory_separator,
)

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX path layout")


@posix_only
def test_ph1_path_001_trailing_separator_is_added_once() -> None:
    assert with_trailing_directory_separator("/a/b") == "/a/b/"
    assert with_trailing_directory_separator("/a/b/") == "/a/b/"


def test_ph1_path_002_trailing_separator_rejects_empty_directory() -> None:
    with pytest.raises(ValueError):
        with_trailing_directory_separator("")


@posix_only
def test_ph1_path_003_is_in_directory_does_not_match_sibling_prefix() -> None:
    assert is_in_directory("/a/b/c.txt", "/a/b", ORDINAL)
    assert is_in_directory("/a/b/d/e.txt", "/a/b/", ORDINAL)
    assert not is_in_directory("/a/bc/d.txt", "/a/b", ORDINAL)
    assert not is_in_directory("/a/b/../x.txt", "/a/b", ORDINAL)


@posix_only
def test_ph1_path_004_comparer_case_sensitivity_follows_platform() -> None:
    assert not is_in_directory("/A/B/c.txt", "/a/b", ORDINAL)
    assert is_in_directory("/A/B/c.txt", "/a/b", ORDINAL_IGNORE_CASE)
    assert for_platform(is_windows=True) is ORDINAL_IGNORE_CASE
    assert for_platform(is_windows=False) is ORDINAL


@posix_only
def test_ph1_path_005_get_parts_keeps_first_component_with_root() -> None:
    assert get_parts("/a/b/c") == ["/a", "b", "c"]
    assert get_parts("/") == ["/"]


@posix_only
def test_ph1_path_006_best_common_root_uses_longest_shared_prefix() -> None:
    assert best_common_root(["/a/b/c", "/a/b/d/e"], ORDINAL) == Path("/a/b")
    assert best_common_root(["/a/b/c", "/a/b"], ORDINAL) == Path("/a/b")


@posix_only
def test_ph1_path_007_best_common_root_follows_largest_root_group() -> None:
    assert best_common_root(["/a/b", "/a/c", "/z/q"], ORDINAL) == Path("/a")


@posix_only
def test_ph1_path_008_best_common_root_returns_none_for_tie_or_empty() -> None:
    assert best_common_root(["/a/b", "/z/q"], ORDINAL) is None
    assert best_common_root([], ORDINAL) is None


@posix_only
def test_ph1_path_009_best_common_root_folds_case_when_requested() -> None:
    root = best_common_root(["/Repo/Src/a", "/repo/src/b"], ORDINAL_IGNORE_CASE)

    assert root is not None
    assert str(root).lower() == "/repo/src"


@posix_only
def test_ph1_path_010_same_or_sub_directory_accepts_equal_paths() -> None:
    assert is_same_or_sub_directory("/a/b", "/a/b", ORDINAL)
    assert is_same_or_sub_directory("/a/b/c", "/a/b/", ORDINAL)
    assert not is_same_or_sub_directory("/a/bc", "/a/b", ORDINAL)
