from rich.console import Console

from skill_linker.models import (
    ActionKind,
    ActionStatus,
    CascadeResult,
    LinkAction,
    LinkOutcome,
    LinkResult,
    LinkStatus,
    ProjectStatusRow,
    ProjectSyncResult,
    ProjectSyncStatus,
    Skill,
)
from skill_linker.stats import UsageStats
from skill_linker.tui import LinkerConsoleUI


def _ui() -> tuple[LinkerConsoleUI, Console]:
    console = Console(record=True, width=160)
    return LinkerConsoleUI(console), console


def _outcome(name: str, status: ActionStatus, error: str | None = None) -> LinkOutcome:
    action = LinkAction(ActionKind.LINK, name, f"/w/.claude/skills/{name}", status, "detail", "/src")
    return LinkOutcome(
        action=action,
        changed=status in (ActionStatus.CREATE, ActionStatus.FIX) and error is None,
        link_status=LinkStatus.ACTIVE,
        error=error,
    )


def test_render_skills_lists_names_and_status() -> None:
    ui, console = _ui()

    ui.render_skills(
        [
            Skill(id="core/alpha", name="alpha", source_path="/r/core/alpha", source_repo="core",
                  description="First skill", has_scripts=True),
            Skill(id="tools/beta", name="beta", source_path="/r/tools/beta",
                  link_status_user=LinkStatus.BROKEN),
        ]
    )

    text = console.export_text()
    assert "alpha" in text
    assert "First skill" in text
    assert "broken" in text
    assert "2 skills" in text


def test_render_link_result_shows_failures() -> None:
    ui, console = _ui()
    result = LinkResult(
        target_dir="/w/.claude/skills",
        outcomes=[
            _outcome("alpha", ActionStatus.CREATE),
            _outcome("beta", ActionStatus.NOOP),
            _outcome("gamma", ActionStatus.CONFLICT, error="Conflict (not overwritten): gamma"),
        ],
    )

    ui.render_link_result(result, mode="sync shop")

    text = console.export_text()
    assert "sync shop" in text
    assert "create=1" in text
    assert "Conflict (not overwritten): gamma" in text


def test_render_cascade_marks_failed_projects() -> None:
    ui, console = _ui()
    cascade = CascadeResult(
        "web",
        projects=[
            ProjectSyncResult("a", "api", result=LinkResult("/a", [_outcome("alpha", ActionStatus.CREATE)])),
            ProjectSyncResult("b", "blog", error="SSH connection to box failed (timeout)"),
            ProjectSyncResult("c", "draft"),
        ],
    )

    ui.render_cascade(cascade)

    text = console.export_text()
    assert "api" in text
    assert "failed" in text
    assert "SSH connection to box failed" in text
    assert "skipped" in text


def test_render_status_lists_issues() -> None:
    ui, console = _ui()

    ui.render_status(
        [
            ProjectStatusRow("api", "/w/api", ProjectSyncStatus.SYNCED, "2 skills linked"),
            ProjectStatusRow(
                "blog",
                "/w/blog",
                ProjectSyncStatus.DRIFT,
                "1 missing, 1 broken, 1 conflict",
                missing=("alpha",),
                broken=("ghost",),
                conflicts=("beta",),
            ),
        ]
    )

    text = console.export_text()
    assert "synced" in text
    assert "drift" in text
    assert "missing: alpha" in text
    assert "broken: ghost" in text
    assert "conflict: beta" in text


def test_render_stats_ranks_counts() -> None:
    ui, console = _ui()

    ui.render_stats(UsageStats(toggle_counts={"alpha": 1, "beta": 4}, total_scans=3))

    text = console.export_text()
    assert "most toggled" in text
    assert text.index("beta") < text.index("alpha")
    assert "most applied" not in text
