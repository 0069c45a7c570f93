from pathlib import Path

from skill_linker.stats import StatsRepository, UsageStats, record_best_effort


def test_counters_accumulate_across_loads(app_root: Path) -> None:
    repo = StatsRepository(app_root)

    repo.record_scan()
    repo.record_scan()
    repo.record_profile_apply("backend")
    repo.record_toggle("alpha", True)
    repo.record_clean(3)

    stats = StatsRepository(app_root).load()
    assert stats.total_scans == 2
    assert stats.profile_apply_counts == {"backend": 1}
    assert stats.toggle_counts == {"alpha": 1}
    assert stats.total_links_created == 1
    assert stats.total_broken_cleaned == 3


def test_missing_or_corrupt_file_loads_empty(app_root: Path) -> None:
    repo = StatsRepository(app_root)
    assert repo.load() == UsageStats()

    app_root.mkdir(parents=True)
    repo.stats_path.write_text("{not json", encoding="utf-8")
    assert repo.load() == UsageStats()


def test_from_dict_ignores_malformed_values() -> None:
    stats = UsageStats.from_dict(
        {"toggle_counts": {"alpha": 2, "beta": "x"}, "total_scans": "many"}
    )

    assert stats.toggle_counts == {"alpha": 2}
    assert stats.total_scans == 0


def test_record_best_effort_swallows_failures(caplog) -> None:
    def explode() -> None:
        raise RuntimeError("boom")

    with caplog.at_level("DEBUG", logger="skill_linker"):
        record_best_effort(explode)

    assert "boom" in caplog.text
