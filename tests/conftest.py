import sys
from collections.abc import Sequence
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()

from scanshim.analysis_config import AnalysisConfig  # noqa: E402
from scanshim.project_info import (  # noqa: E402
    AnalyzerResult,
    ProjectInfo,
    ProjectType,
)
from scanshim.properties import Property  # noqa: E402


class BuildTree:
    """Lay out sources and project descriptors the way a build leaves them."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.output_dir = root / ".sonarqube" / "out"
        self._descriptor_count = 0

    def source(self, relative: str, content: str = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def add_project(
        self,
        name: str,
        guid: str,
        project_dir: str,
        files: Sequence[Path] = (),
        *,
        language: str | None = "C#",
        project_type: ProjectType = ProjectType.PRODUCT,
        is_excluded: bool = False,
        encoding: str | None = None,
        settings: Sequence[Property] = (),
        configuration: str | None = None,
        platform: str | None = None,
        target_framework: str | None = None,
        create_project_file: bool = True,
        project_file: Path | None = None,
    ) -> ProjectInfo:
        full_path = project_file or self.root / project_dir / f"{name}.csproj"
        if create_project_file:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text("<Project />", encoding="utf-8")
        folder = self.output_dir / str(self._descriptor_count)
        self._descriptor_count += 1
        folder.mkdir(parents=True, exist_ok=True)
        results: tuple[AnalyzerResult, ...] = ()
        if files:
            list_file = folder / "FilesToAnalyze.txt"
            list_file.write_text("\n".join(str(path) for path in files), encoding="utf-8")
            results = (AnalyzerResult(id="FilesToAnalyze", location=str(list_file)),)
        info = ProjectInfo(
            project_name=name,
            project_guid=guid,
            full_path=full_path,
            project_type=project_type,
            project_language=language,
            is_excluded=is_excluded,
            encoding=encoding,
            configuration=configuration,
            platform=platform,
            target_framework=target_framework,
            analysis_results=results,
            analysis_settings=tuple(settings),
        )
        info.save(folder / "ProjectInfo.xml")
        return info

    def config(self, **overrides: object) -> AnalysisConfig:
        values: dict[str, object] = {
            "sonar_output_dir": self.output_dir,
            "sonar_project_key": "key",
            "sonar_qube_version": "10.6.0.92116",
            "sonar_qube_host_url": "https://sonar.example.org",
        }
        values.update(overrides)
        return AnalysisConfig(**values)  # type: ignore[arg-type]


@pytest.fixture
def build_tree(tmp_path: Path) -> BuildTree:
    return BuildTree(tmp_path / "repo")
