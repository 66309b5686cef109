import io
import json
import re
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from cli.scanner_harness import run, with_local_settings
from scanshim.analysis_config import SCANNER_PARAMS_ENV, AnalysisConfig
from scanshim.properties import Property

if TYPE_CHECKING:
    from conftest import BuildTree

APP_GUID = "6b2d1f4e-8a3c-4f0e-9d2b-1c5a7e9f0b3d"


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


@pytest.fixture(autouse=True)
def _no_scanner_params(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(SCANNER_PARAMS_ENV, raising=False)


def _config_file(build_tree: "BuildTree", **overrides: object) -> Path:
    path = build_tree.root / ".sonarqube" / "conf" / "SonarQubeAnalysisConfig.xml"
    build_tree.config(**overrides).save(path)
    return path


def _single_project(build_tree: "BuildTree") -> None:
    program = build_tree.source("src/App/Program.cs")
    build_tree.add_project("App", APP_GUID, "src/App", [program])


def test_ph5_cli_001_generate_writes_files_and_json_summary(
    build_tree: "BuildTree",
) -> None:
    _single_project(build_tree)
    config_path = _config_file(build_tree)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["generate", "--config", str(config_path), "-d", "sonar.exclusions=**/gen/**", "--format", "json"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    assert stderr.getvalue() == ""
    payload = json.loads(stdout.getvalue())
    assert payload["succeeded"] is True
    assert payload["properties_file"] == str(build_tree.output_dir / "sonar-project.properties")
    assert payload["projects"][0]["guid"] == APP_GUID.upper()
    assert payload["projects"][0]["status"] == "Valid"
    assert payload["projects"][0]["files"] == 1
    assert payload["summary"]["product_projects"] == 1
    assert (build_tree.output_dir / "summary.md").is_file()
    content = (build_tree.output_dir / "sonar-project.properties").read_text(encoding="ascii")
    assert "sonar.exclusions=**/gen/**" in content


def test_ph5_cli_002_generate_prints_table_by_default(build_tree: "BuildTree") -> None:
    _single_project(build_tree)
    config_path = _config_file(build_tree)
    stdout = io.StringIO()

    exit_code = run(["generate", "--config", str(config_path)], stdout=stdout, stderr=io.StringIO())

    output = _strip_ansi(stdout.getvalue())
    assert exit_code == 0
    assert "Project summary" in output
    assert "properties:" in output
    assert "dashboard: https://sonar.example.org/dashboard/index/key" in output


def test_ph5_cli_003_failed_generation_exits_with_one(build_tree: "BuildTree") -> None:
    config_path = _config_file(build_tree)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["generate", "--config", str(config_path), "--format", "json"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 1
    assert "Generation of the analysis properties failed" in stderr.getvalue()
    assert json.loads(stdout.getvalue())["succeeded"] is False
    assert not (build_tree.output_dir / "sonar-project.properties").exists()


def test_ph5_cli_004_input_errors_exit_with_two(
    build_tree: "BuildTree", tmp_path: Path
) -> None:
    config_path = _config_file(build_tree)
    broken = tmp_path / "broken.xml"
    broken.write_text("<AnalysisConfig>", encoding="utf-8")

    def exit_code(argv: list[str]) -> tuple[int, str]:
        stderr = io.StringIO()
        return run(argv, stdout=io.StringIO(), stderr=stderr), stderr.getvalue()

    assert exit_code(["generate", "--config", str(tmp_path / "missing.xml")]) == (
        2,
        f"Config path does not exist: {tmp_path / 'missing.xml'}\n",
    )
    code, message = exit_code(["generate", "--config", str(config_path), "-d", "novalue"])
    assert code == 2
    assert "Invalid property argument: novalue" in message
    code, message = exit_code(
        ["generate", "--config", str(config_path), "-d", "sonar.projectKey=other"]
    )
    assert code == 2
    assert "named argument" in message
    code, _ = exit_code(["generate", "--config", str(broken)])
    assert code == 2
    code, _ = exit_code(["unknown"])
    assert code == 2


def test_ph5_cli_005_command_line_properties_take_precedence(tmp_path: Path) -> None:
    config = AnalysisConfig(
        sonar_output_dir=tmp_path,
        sonar_project_key="key",
        local_settings=(
            Property(key="sonar.exclusions", value="old"),
            Property(key="sonar.kept", value="kept"),
        ),
    )

    updated = with_local_settings(config, [Property(key="sonar.exclusions", value="new")])

    assert updated.local_settings == (
        Property(key="sonar.exclusions", value="new"),
        Property(key="sonar.kept", value="kept"),
    )
    assert with_local_settings(config, []) is config
