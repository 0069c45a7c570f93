from typing import Optional

from rich.console import Console

from skill_linker.models import (
    CascadeResult,
    ConnectionStatus,
    LinkRecord,
    LinkResult,
    LinkStatus,
    Profile,
    ProfileSkillReport,
    ProjectConfig,
    ProjectStatusRow,
    ProjectSyncResult,
    ProjectSyncStatus,
    RemoteServer,
    Skill,
)
from skill_linker.stats import UsageStats
from skill_linker.tui.enums import CONNECTION_STATUS_STYLE, LINK_STATUS_STYLE, UIStyle, styled
from skill_linker.tui.sections import UISection
from skill_linker.tui.tables import (
    LinkTable,
    ProfileTable,
    ProjectTable,
    RemoteTable,
    SkillTable,
    StatsTable,
    StatusTable,
)
from skill_linker.utils import compact_home_path


class LinkerConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_environment(self, label: str, status: ConnectionStatus) -> None:
        style = CONNECTION_STATUS_STYLE.get(status, UIStyle.WHITE.value)
        self.console.print(
            UISection.note(
                "environment",
                f"[bold]{label}[/bold] {styled(status.value, style)}",
                style=style,
            )
        )

    def render_skills(self, skills: list[Skill], title: str = "skills") -> None:
        if not skills:
            self.console.print(
                UISection.note(title, "No skills found.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                title,
                SkillTable.skills_table(skills),
                style=UIStyle.BLUE.value,
                subtitle=f"{len(skills)} skills",
            )
        )

    def render_link_result(self, result: LinkResult, mode: str) -> None:
        style = UIStyle.GREEN.value if result.is_ok() else UIStyle.RED.value
        self.console.print(
            UISection.wrap(mode, LinkTable.summary_block(result, mode=mode), style=style)
        )
        changed = [outcome for outcome in result.outcomes if outcome.changed or outcome.failed]
        if changed:
            self.console.print(
                UISection.wrap(
                    "changes",
                    LinkTable.outcomes_table(
                        LinkResult(target_dir=result.target_dir, outcomes=changed)
                    ),
                    style=UIStyle.CYAN.value,
                )
            )
        else:
            self.console.print(
                UISection.note("changes", "No changes required.", style=UIStyle.DIM.value)
            )
        if result.failures:
            self.console.print(
                UISection.bullets("failures", [outcome.error or "" for outcome in result.failures])
            )

    def render_toggle(self, skill_name: str, status: LinkStatus, target_dir: str) -> None:
        style = LINK_STATUS_STYLE.get(status, UIStyle.WHITE.value)
        self.console.print(
            UISection.note(
                "toggle",
                f"[bold]{skill_name}[/bold] is now {styled(status.value, style)}\n"
                f"{compact_home_path(target_dir)}",
                style=style,
            )
        )

    def render_links(self, records: list[LinkRecord], target_dir: str) -> None:
        title = compact_home_path(target_dir)
        if not records:
            self.console.print(
                UISection.note(title, "No links.", style=UIStyle.DIM.value)
            )
            return
        self.console.print(
            UISection.wrap(title, LinkTable.records_table(records), style=UIStyle.BLUE.value)
        )

    def render_cleaned(self, cleaned: list[str], target_dir: str) -> None:
        if not cleaned:
            self.console.print(
                UISection.note(
                    "clean",
                    f"No broken links in {compact_home_path(target_dir)}.",
                    style=UIStyle.GREEN.value,
                )
            )
            return
        self.console.print(
            UISection.bullets(
                f"removed {len(cleaned)} broken links", cleaned, style=UIStyle.MAGENTA.value
            )
        )

    def render_profiles(self, items: list[tuple[Profile, ProfileSkillReport]]) -> None:
        if not items:
            self.console.print(
                UISection.note("profiles", "No profiles configured.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap("profiles", ProfileTable.profiles_table(items), style=UIStyle.BLUE.value)
        )

    def render_profile(self, profile: Profile, report: ProfileSkillReport) -> None:
        subtitle = f"found {len(report.found)} of {len(profile.skill_ids)}"
        self.console.print(
            UISection.wrap(
                f"{profile.name} ({profile.id})",
                ProfileTable.detail_table(report),
                style=UIStyle.MAGENTA.value if report.missing else UIStyle.BLUE.value,
                subtitle=subtitle,
            )
        )

    def render_cascade(self, cascade: CascadeResult) -> None:
        if not cascade.projects:
            self.console.print(
                UISection.note(
                    "cascade",
                    f"No projects use profile {cascade.profile_id}.",
                    style=UIStyle.DIM.value,
                )
            )
            return
        style = UIStyle.RED.value if cascade.failed else UIStyle.GREEN.value
        self.console.print(
            UISection.wrap("cascade", ProjectTable.cascade_table(cascade), style=style)
        )

    def render_projects(self, projects: list[ProjectConfig]) -> None:
        if not projects:
            self.console.print(
                UISection.note("projects", "No projects configured.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap("projects", ProjectTable.projects_table(projects), style=UIStyle.BLUE.value)
        )

    def render_project_sync(self, item: ProjectSyncResult) -> None:
        if item.error is not None:
            self.console.print(UISection.bullets(item.project_name, [item.error]))
            return
        if item.result is None:
            self.console.print(
                UISection.note(
                    item.project_name,
                    "Project has no path, nothing to sync.",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        self.render_link_result(item.result, mode=f"sync {item.project_name}")

    def render_project_saved(self, project: ProjectConfig, removed: bool = False) -> None:
        verb = "removed" if removed else "saved"
        border_style = UIStyle.YELLOW.value if removed else UIStyle.GREEN.value
        body = f"Project {verb}: [bold]{project.name}[/bold]"
        if project.path:
            body += f"\n{compact_home_path(project.path)}"
        if removed:
            body += "\nLinks already in the project were left in place."
        self.console.print(UISection.note("project", body, style=border_style))

    def render_status(self, rows: list[ProjectStatusRow]) -> None:
        if not rows:
            self.console.print(
                UISection.note("project sync", "No projects configured.", style=UIStyle.YELLOW.value)
            )
            return
        style = UIStyle.GREEN.value
        if any(row.status == ProjectSyncStatus.DRIFT for row in rows):
            style = UIStyle.YELLOW.value
        if any(row.status == ProjectSyncStatus.ERROR for row in rows):
            style = UIStyle.RED.value
        self.console.print(
            UISection.wrap("project sync", StatusTable.projects_table(rows), style=style)
        )
        for row in rows:
            issues = [f"missing: {name}" for name in row.missing]
            issues += [f"stale: {name}" for name in row.stale]
            issues += [f"broken: {name}" for name in row.broken]
            issues += [f"conflict: {name}" for name in row.conflicts]
            if issues:
                self.console.print(UISection.bullets(row.name, issues, style=UIStyle.YELLOW.value))

    def render_remotes(self, servers: list[RemoteServer], active_id: Optional[str]) -> None:
        if not servers:
            self.console.print(
                UISection.note("remotes", "No remote servers configured.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "remotes",
                RemoteTable.servers_table(servers, active_id),
                style=UIStyle.BLUE.value,
            )
        )

    def render_stats(self, stats: UsageStats) -> None:
        self.console.print(StatsTable.stats_panel(stats))
        if stats.toggle_counts:
            self.console.print(
                UISection.wrap(
                    "most toggled",
                    StatsTable.counts_table("Skill", stats.toggle_counts),
                    style=UIStyle.CYAN.value,
                )
            )
        if stats.profile_apply_counts:
            self.console.print(
                UISection.wrap(
                    "most applied",
                    StatsTable.counts_table("Profile", stats.profile_apply_counts),
                    style=UIStyle.MAGENTA.value,
                )
            )

    def render_repo_path(self, repo_path: str) -> None:
        self.console.print(
            UISection.note(
                "repository",
                f"Skill repository set: [bold]{compact_home_path(repo_path)}[/bold]\n"
                "Run `skill-linker scan` to list its skills.",
                style=UIStyle.GREEN.value,
            )
        )
