from pathlib import Path

import pytest

from skill_linker.errors import ToggleNotAllowedError
from skill_linker.links import LocalLinkBackend
from skill_linker.models import ActionKind, LinkStatus
from skill_linker.stats import StatsRepository
from skill_linker.synchronizer import LinkSynchronizer
from skill_linker.toggle import ToggleEngine, next_action


class ExplodingStats(StatsRepository):
    def record_toggle(self, skill_name: str, was_created: bool) -> None:
        raise OSError("disk full")


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "repo" / "alpha"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def stats(app_root: Path) -> StatsRepository:
    return StatsRepository(app_root)


@pytest.fixture
def engine(user_skills_dir: Path, stats: StatsRepository) -> ToggleEngine:
    return ToggleEngine(LinkSynchronizer(LocalLinkBackend(user_skills_dir)), stats)


@pytest.mark.parametrize(
    ("current", "expected"),
    [
        (LinkStatus.INACTIVE, ActionKind.LINK),
        (LinkStatus.ACTIVE, ActionKind.UNLINK),
        (LinkStatus.BROKEN, ActionKind.UNLINK),
    ],
)
def test_next_action(current: LinkStatus, expected: ActionKind) -> None:
    assert next_action(current, "alpha") == expected


def test_next_action_rejects_direct_entries() -> None:
    with pytest.raises(ToggleNotAllowedError) as exc:
        next_action(LinkStatus.DIRECT, "alpha")
    assert "alpha" in str(exc.value)


def test_toggle_links_then_unlinks_and_counts(
    engine: ToggleEngine, source: Path, user_skills_dir: Path, stats: StatsRepository
) -> None:
    assert engine.toggle("alpha", str(source)) == LinkStatus.ACTIVE
    assert (user_skills_dir / "alpha").is_symlink()

    assert engine.toggle("alpha", str(source)) == LinkStatus.INACTIVE
    assert not (user_skills_dir / "alpha").exists()

    counters = stats.load()
    assert counters.toggle_counts == {"alpha": 2}
    assert counters.total_links_created == 1
    assert counters.total_links_removed == 1


def test_toggle_with_missing_source_yields_broken(
    engine: ToggleEngine, tmp_path: Path, user_skills_dir: Path
) -> None:
    assert engine.toggle("ghost", str(tmp_path / "gone")) == LinkStatus.BROKEN
    assert (user_skills_dir / "ghost").is_symlink()


def test_toggle_broken_link_removes_it(
    engine: ToggleEngine, tmp_path: Path, user_skills_dir: Path, source: Path
) -> None:
    user_skills_dir.mkdir(parents=True)
    (user_skills_dir / "alpha").symlink_to(tmp_path / "moved-away")

    assert engine.toggle("alpha", str(source)) == LinkStatus.INACTIVE
    assert not (user_skills_dir / "alpha").is_symlink()


def test_toggle_direct_entry_raises_and_leaves_it(
    engine: ToggleEngine, user_skills_dir: Path, source: Path
) -> None:
    (user_skills_dir / "alpha").mkdir(parents=True)

    with pytest.raises(ToggleNotAllowedError):
        engine.toggle("alpha", str(source))

    assert (user_skills_dir / "alpha").is_dir()


def test_toggle_in_project_directory(
    engine: ToggleEngine, project_dir: Path, source: Path
) -> None:
    assert engine.toggle("alpha", str(source), str(project_dir)) == LinkStatus.ACTIVE
    assert (project_dir / ".claude" / "skills" / "alpha").is_symlink()


def test_stats_failure_does_not_fail_toggle(
    user_skills_dir: Path, app_root: Path, source: Path
) -> None:
    engine = ToggleEngine(
        LinkSynchronizer(LocalLinkBackend(user_skills_dir)), ExplodingStats(app_root)
    )

    assert engine.toggle("alpha", str(source)) == LinkStatus.ACTIVE
