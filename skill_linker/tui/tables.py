from collections import Counter
from typing import Optional

from rich.panel import Panel
from rich.table import Column, Table

from skill_linker.models import (
    CascadeResult,
    LinkRecord,
    LinkResult,
    Profile,
    ProfileSkillReport,
    ProjectConfig,
    ProjectStatusRow,
    RemoteServer,
    Skill,
)
from skill_linker.stats import UsageStats
from skill_linker.tui.enums import (
    ACTION_STATUS_STYLE,
    LINK_STATUS_STYLE,
    PROJECT_STATUS_STYLE,
    UIStyle,
    styled,
)
from skill_linker.utils import compact_home_path, compact_home_paths_in_text


class SkillTable:
    @staticmethod
    def skills_table(skills: list[Skill]) -> Table:
        table = Table(
            Column(header="Skill", width=28),
            Column(header="Status", width=10),
            Column(header="Repo", width=18, overflow="ellipsis"),
            Column(header="Category", width=10),
            Column(header="Extras", width=8),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for skill in skills:
            style = LINK_STATUS_STYLE.get(skill.link_status_user, UIStyle.WHITE.value)
            extras = "".join(
                [
                    "S" if skill.has_scripts else "",
                    "R" if skill.has_references else "",
                ]
            )
            table.add_row(
                skill.name,
                styled(skill.link_status_user.value, style),
                skill.source_repo,
                skill.category or "",
                extras,
                skill.description,
            )
        return table


class LinkTable:
    @staticmethod
    def summary_block(result: LinkResult, mode: str):
        counts = Counter(outcome.action.status.value for outcome in result.outcomes)
        chips = [f"{key}={value}" for key, value in sorted(counts.items()) if value > 0]
        if not chips:
            chips = ["none"]

        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Mode", mode)
        table.add_row("Target", compact_home_path(result.target_dir))
        table.add_row("Actions", str(len(result.outcomes)))
        table.add_row("Statuses", "  ".join(chips))
        table.add_row("Failed", str(len(result.failures)))
        return table

    @staticmethod
    def outcomes_table(result: LinkResult) -> Table:
        table = Table(
            Column(header="Type", width=8),
            Column(header="Status", width=10),
            Column(header="Skill", width=28),
            Column(header="Now", width=10),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for outcome in result.outcomes:
            action = outcome.action
            status_style = ACTION_STATUS_STYLE.get(action.status, UIStyle.WHITE.value)
            observed = ""
            if outcome.link_status is not None:
                observed = styled(
                    outcome.link_status.value,
                    LINK_STATUS_STYLE.get(outcome.link_status, UIStyle.WHITE.value),
                )
            detail = outcome.error or action.detail
            table.add_row(
                action.kind.value,
                styled(action.status.value, status_style),
                action.name,
                observed,
                compact_home_paths_in_text(detail),
            )
        return table

    @staticmethod
    def records_table(records: list[LinkRecord]) -> Table:
        table = Table(
            Column(header="Name", width=28),
            Column(header="Status", width=10),
            Column(header="Target", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for record in records:
            style = LINK_STATUS_STYLE.get(record.status, UIStyle.WHITE.value)
            table.add_row(
                record.name,
                styled(record.status.value, style),
                compact_home_path(record.target),
            )
        return table


class ProfileTable:
    @staticmethod
    def profiles_table(items: list[tuple[Profile, ProfileSkillReport]]) -> Table:
        table = Table(
            Column(header="Profile", width=20),
            Column(header="Name", width=24),
            Column(header="Skills", width=10, justify="right"),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for profile, report in items:
            total = len(profile.skill_ids)
            found = len(report.found)
            count = f"{found}/{total}"
            if found < total:
                count = styled(count, UIStyle.YELLOW.value)
            name = profile.name
            if profile.is_preset:
                name = f"{name} [dim](preset)[/dim]"
            table.add_row(profile.id, name, count, profile.description)
        return table

    @staticmethod
    def detail_table(report: ProfileSkillReport) -> Table:
        table = Table(
            Column(header="Skill", width=28),
            Column(header="Status", width=10),
            Column(header="Source", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for skill in report.found:
            style = LINK_STATUS_STYLE.get(skill.link_status_user, UIStyle.WHITE.value)
            table.add_row(
                skill.name,
                styled(skill.link_status_user.value, style),
                compact_home_path(skill.source_path),
            )
        for ref in report.missing:
            table.add_row(ref, styled("missing", UIStyle.RED.value), "")
        return table


class ProjectTable:
    @staticmethod
    def projects_table(projects: list[ProjectConfig]) -> Table:
        table = Table(
            Column(header="Project", width=16),
            Column(header="Name", width=20),
            Column(header="Path", overflow="ellipsis"),
            Column(header="Profiles", overflow="fold"),
            Column(header="Extras", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for project in projects:
            table.add_row(
                project.id,
                project.name,
                compact_home_path(project.path) if project.path else styled("(none)", UIStyle.DIM.value),
                ", ".join(project.profile_ids),
                ", ".join(project.extra_skill_ids),
            )
        return table

    @staticmethod
    def cascade_table(cascade: CascadeResult) -> Table:
        table = Table(
            Column(header="Project", width=20),
            Column(header="Status", width=10),
            Column(header="Linked", width=8, justify="right"),
            Column(header="Removed", width=8, justify="right"),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in cascade.projects:
            if item.result is None and item.error is None:
                table.add_row(item.project_name, styled("skipped", UIStyle.DIM.value), "", "", "no path")
                continue
            linked = str(len(item.result.linked)) if item.result is not None else ""
            removed = str(len(item.result.removed)) if item.result is not None else ""
            if item.ok:
                status = styled("ok", UIStyle.GREEN.value)
                detail = ""
            else:
                status = styled("failed", UIStyle.RED.value)
                detail = item.error or f"{len(item.result.failures)} link errors"
            table.add_row(item.project_name, status, linked, removed, detail)
        return table


class StatusTable:
    @staticmethod
    def projects_table(items: list[ProjectStatusRow]) -> Table:
        table = Table(
            Column(header="Project", width=20),
            Column(header="Status", width=10),
            Column(header="Path", overflow="ellipsis", max_width=40),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            style = PROJECT_STATUS_STYLE.get(item.status, UIStyle.WHITE.value)
            table.add_row(
                item.name,
                styled(item.status.value, style),
                compact_home_path(item.path),
                item.detail,
            )
        return table


class RemoteTable:
    @staticmethod
    def servers_table(servers: list[RemoteServer], active_id: Optional[str]) -> Table:
        table = Table(
            Column(header="", width=1),
            Column(header="Server", width=16),
            Column(header="Name", width=20),
            Column(header="Host", overflow="ellipsis"),
            Column(header="Auth", width=6),
            Column(header="Repo", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for server in servers:
            marker = styled("*", UIStyle.GREEN.value) if server.id == active_id else ""
            table.add_row(
                marker,
                server.id,
                server.name,
                f"{server.username}@{server.host}:{server.port}",
                server.auth.value,
                server.remote_repo_path,
            )
        return table


class StatsTable:
    @staticmethod
    def stats_panel(stats: UsageStats) -> Panel:
        table = Table(show_header=False, box=None)
        totals = {
            "scans": stats.total_scans,
            "links created": stats.total_links_created,
            "links removed": stats.total_links_removed,
            "broken cleaned": stats.total_broken_cleaned,
        }
        for key, value in totals.items():
            table.add_row(f"[bold]{key}[/bold]", str(value))
        return Panel(table, title="totals", border_style=UIStyle.BLUE.value)

    @staticmethod
    def counts_table(title: str, counts: dict[str, int], limit: int = 10) -> Table:
        table = Table(
            Column(header=title, width=28),
            Column(header="Count", width=8, justify="right"),
            expand=True,
            header_style="bold",
        )
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        for key, value in ranked[:limit]:
            table.add_row(key, str(value))
        return table
