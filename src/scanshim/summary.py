# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Human-readable summary of a generation run."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rich.table import Table

from scanshim.analysis_config import AnalysisConfig, get_setting_or_default
from scanshim.generator import AnalysisResult
from scanshim.project_info import ProjectInfoValidity, ProjectType
from scanshim.properties import SonarProperties

logger = logging.getLogger(__name__)

SUMMARY_FILE_NAME = "summary.md"

_INVALID: frozenset[ProjectInfoValidity] = frozenset(
    {ProjectInfoValidity.INVALID_GUID, ProjectInfoValidity.DUPLICATE_GUID}
)
_SKIPPED: frozenset[ProjectInfoValidity] = frozenset(
    {ProjectInfoValidity.NO_FILES_TO_ANALYZE, ProjectInfoValidity.PROJECT_NOT_FOUND}
)


@dataclass(frozen=True)
class SummaryReportData:
    """Represent project counts by final status.

    Attributes:
        product_projects: Valid product projects.
        test_projects: Valid test projects.
        invalid_projects: Projects with an invalid or duplicate GUID.
        skipped_projects: Projects without files or whose file vanished.
        excluded_projects: Projects excluded by the build.
        succeeded: Whether the property files were written.
        dashboard_url: Server dashboard link, when the host is known.
        project_description: Name, key and version of the analyzed project.
    """

    product_projects: int
    test_projects: int
    invalid_projects: int
    skipped_projects: int
    excluded_projects: int
    succeeded: bool
    dashboard_url: str | None
    project_description: str


class SummaryReportBuilder:
    """Build the run summary and its ``summary.md`` report."""

    def __init__(
        self, config: AnalysisConfig, environ: Mapping[str, str] | None = None
    ) -> None:
        self._config = config
        self._environ = environ

    def create_summary_data(self, result: AnalysisResult) -> SummaryReportData:
        """Count project groups by status.

        Args:
            result: Generation outcome.

        Returns:
            Summary counters.
        """
        valid = [
            project
            for project in result.projects
            if project.status == ProjectInfoValidity.VALID
        ]
        statuses = [project.status for project in result.projects]
        return SummaryReportData(
            product_projects=sum(
                1 for project in valid if project.project.project_type == ProjectType.PRODUCT
            ),
            test_projects=sum(
                1 for project in valid if project.project.project_type == ProjectType.TEST
            ),
            invalid_projects=sum(1 for status in statuses if status in _INVALID),
            skipped_projects=sum(1 for status in statuses if status in _SKIPPED),
            excluded_projects=statuses.count(ProjectInfoValidity.EXCLUDE_FLAG_SET),
            succeeded=result.ran_to_completion,
            dashboard_url=self.dashboard_url(),
            project_description=(
                f'"{self._config.sonar_project_name or ""}", '
                f'key "{self._config.sonar_project_key}", '
                f'version "{self._config.sonar_project_version or ""}"'
            ),
        )

    def dashboard_url(self) -> str | None:
        """Return the dashboard link, including the branch when one is set."""
        host = self._config.sonar_qube_host_url
        if not host:
            return None
        host = host.rstrip("/")
        branch = get_setting_or_default(
            self._config, SonarProperties.BRANCH, False, None, self._environ
        )
        if branch and branch.strip():
            return f"{host}/dashboard/index/{self._config.sonar_project_key}:{branch}"
        return f"{host}/dashboard/index/{self._config.sonar_project_key}"

    def write_summary_md(self, data: SummaryReportData) -> Path:
        """Write ``summary.md`` into the output folder.

        Args:
            data: Summary counters.

        Returns:
            Written file path.
        """
        path = Path(self._config.sonar_output_dir) / SUMMARY_FILE_NAME
        logger.info(f"Writing summary report (path={path})")
        if data.succeeded:
            link = f" [Analysis results]({data.dashboard_url})" if data.dashboard_url else ""
            headline = f"# Analysis succeeded for project {data.project_description}{link}"
        else:
            headline = f"# Analysis failed for project {data.project_description}"
        lines = [
            headline,
            "",
            f"* Product projects: {data.product_projects}, test projects: {data.test_projects}",
            f"* Invalid projects: {data.invalid_projects}, skipped projects: {data.skipped_projects}, excluded projects: {data.excluded_projects}",
            "",
        ]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines), encoding="utf-8")
        return path


def build_summary_table(data: SummaryReportData) -> Table:
    """Render summary counters as a rich table."""
    table = Table(show_header=True, title="Project summary")
    table.add_column("status")
    table.add_column("projects", justify="right")
    table.add_row("product", str(data.product_projects))
    table.add_row("test", str(data.test_projects))
    table.add_row("invalid", str(data.invalid_projects))
    table.add_row("skipped", str(data.skipped_projects))
    table.add_row("excluded", str(data.excluded_projects))
    return table
