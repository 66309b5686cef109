from pathlib import Path

from scanshim.path_helper import ORDINAL
from scanshim.project_data import (
    PathSet,
    ProjectData,
    SettingKind,
    group_projects,
    setting_kind,
    structural_key,
)
from scanshim.project_info import (
    AnalyzerResult,
    ProjectInfo,
    ProjectInfoValidity,
)
from scanshim.properties import Property, SonarProperties

GUID = "6B2D1F4E-8A3C-4F0E-9D2B-1C5A7E9F0B3D"
OTHER_GUID = "0F1E2D3C-4B5A-4968-8776-655443322110"


def _project(
    tmp_path: Path,
    *,
    name: str = "App",
    guid: str = GUID,
    project_file: str = "App/App.csproj",
    files: tuple[str, ...] = (),
    configuration: str | None = None,
    is_excluded: bool = False,
    settings: tuple[Property, ...] = (),
    create: bool = True,
) -> ProjectInfo:
    full_path = tmp_path / project_file
    if create:
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text("<Project />", encoding="utf-8")
    results: tuple[AnalyzerResult, ...] = ()
    if files:
        list_file = tmp_path / f"files-{name}-{configuration}.txt"
        list_file.write_text(
            "\n".join(str(tmp_path / file) for file in files), encoding="utf-8"
        )
        results = (AnalyzerResult(id="FilesToAnalyze", location=str(list_file)),)
    return ProjectInfo(
        project_name=name,
        project_guid=guid,
        full_path=full_path,
        project_language="C#",
        is_excluded=is_excluded,
        configuration=configuration,
        analysis_results=results,
        analysis_settings=settings,
    )


def test_ph2_data_001_group_projects_keeps_first_seen_guid_order(tmp_path: Path) -> None:
    projects = [
        _project(tmp_path, name="B", guid=OTHER_GUID, project_file="B/B.csproj", files=("B/b.cs",)),
        _project(tmp_path, name="A", files=("App/a.cs",)),
        _project(tmp_path, name="B", guid=OTHER_GUID.lower(), project_file="B/B.csproj", files=("B/b.cs",)),
    ]

    groups = group_projects(projects, ORDINAL)

    assert [group.guid for group in groups] == [OTHER_GUID, GUID]
    assert len(groups[0].variants) == 2
    assert all(group.status == ProjectInfoValidity.VALID for group in groups)


def test_ph2_data_002_variants_union_files_and_output_paths(tmp_path: Path) -> None:
    release = _project(
        tmp_path,
        configuration="Release",
        files=("App/a.cs", "App/b.cs"),
        settings=(
            Property(key=SonarProperties.CS_ANALYZER_OUT_PATHS, value="/o/release"),
            Property(key="sonar.custom", value="release"),
        ),
    )
    debug = _project(
        tmp_path,
        configuration="Debug",
        files=("App/b.cs", "App/c.cs"),
        settings=(
            Property(key=SonarProperties.CS_ANALYZER_OUT_PATHS, value="/o/debug,/o/shared"),
            Property(key=SonarProperties.CS_REPORT_PATHS, value="/r/1.json|/r/2.json"),
            Property(key="sonar.custom", value="debug"),
        ),
    )

    data = ProjectData([release, debug], ORDINAL)

    assert data.status == ProjectInfoValidity.VALID
    assert data.project.configuration == "Debug"
    assert list(data.referenced_files) == [
        tmp_path / "App/b.cs",
        tmp_path / "App/c.cs",
        tmp_path / "App/a.cs",
    ]
    assert list(data.analyzer_out_paths) == [
        Path("/o/debug"),
        Path("/o/shared"),
        Path("/o/release"),
    ]
    assert list(data.roslyn_report_file_paths) == [Path("/r/1.json"), Path("/r/2.json")]
    assert data.pass_through_settings() == [("sonar.custom", "debug")]


def test_ph2_data_003_same_guid_on_different_paths_is_duplicate(tmp_path: Path) -> None:
    first = _project(tmp_path, files=("App/a.cs",))
    second = _project(tmp_path, project_file="Other/Other.csproj", files=("Other/a.cs",))

    data = ProjectData([first, second], ORDINAL)

    assert data.status == ProjectInfoValidity.DUPLICATE_GUID
    assert not data.referenced_files


def test_ph2_data_004_invalid_guid_and_missing_project_file(tmp_path: Path) -> None:
    invalid = ProjectData([_project(tmp_path, guid="", files=("App/a.cs",))], ORDINAL)
    missing = ProjectData(
        [_project(tmp_path, project_file="Gone/Gone.csproj", files=("a.cs",), create=False)],
        ORDINAL,
    )

    assert invalid.status == ProjectInfoValidity.INVALID_GUID
    assert missing.status == ProjectInfoValidity.PROJECT_NOT_FOUND


def test_ph2_data_005_excluded_variants_and_empty_file_lists(tmp_path: Path) -> None:
    excluded = ProjectData(
        [
            _project(tmp_path, configuration="Debug", is_excluded=True, files=("App/a.cs",)),
            _project(tmp_path, configuration="Release", is_excluded=True),
        ],
        ORDINAL,
    )
    partly_excluded = ProjectData(
        [
            _project(tmp_path, configuration="Debug", is_excluded=True, files=("App/a.cs",)),
            _project(tmp_path, configuration="Release", files=("App/b.cs",)),
        ],
        ORDINAL,
    )
    no_files = ProjectData([_project(tmp_path)], ORDINAL)

    assert excluded.status == ProjectInfoValidity.EXCLUDE_FLAG_SET
    assert partly_excluded.status == ProjectInfoValidity.VALID
    assert list(partly_excluded.referenced_files) == [tmp_path / "App/b.cs"]
    assert no_files.status == ProjectInfoValidity.NO_FILES_TO_ANALYZE


def test_ph2_data_006_setting_kinds_map_to_language_keys() -> None:
    assert setting_kind(SonarProperties.VB_REPORT_PATHS) == SettingKind.REPORT_PATHS
    assert setting_kind(SonarProperties.CS_TELEMETRY_PATHS) == SettingKind.TELEMETRY_PATHS
    assert setting_kind("sonar.exclusions") == SettingKind.PASS_THROUGH
    assert structural_key(SettingKind.REPORT_PATHS, "vb") == SonarProperties.VB_REPORT_PATHS
    assert structural_key(SettingKind.ANALYZER_OUT_PATHS, "c#") == (
        SonarProperties.CS_ANALYZER_OUT_PATHS
    )
    assert structural_key(SettingKind.REPORT_PATHS, "F#") is None
    assert structural_key(SettingKind.PASS_THROUGH, "C#") is None


def test_ph2_data_007_path_set_is_ordered_and_comparer_aware() -> None:
    paths = PathSet(ORDINAL, [Path("/b"), Path("/a"), Path("/b")])
    paths.discard(Path("/missing"))

    assert list(paths) == [Path("/b"), Path("/a")]
    assert Path("/a") in paths
    assert "/b" in paths
    assert 3 not in paths
