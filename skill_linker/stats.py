"""Usage counters kept beside the local configuration.

Counters are observability only. Callers go through ``record_best_effort``
so a broken stats file never fails the operation being counted.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from skill_linker.constants import STATS_FILENAME
from skill_linker.utils import app_home, read_json_safe, write_json

logger = logging.getLogger(__name__)


@dataclass
class UsageStats:
    toggle_counts: dict[str, int] = field(default_factory=dict)
    profile_apply_counts: dict[str, int] = field(default_factory=dict)
    total_scans: int = 0
    total_links_created: int = 0
    total_links_removed: int = 0
    total_broken_cleaned: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "toggle_counts": dict(self.toggle_counts),
            "profile_apply_counts": dict(self.profile_apply_counts),
            "total_scans": self.total_scans,
            "total_links_created": self.total_links_created,
            "total_links_removed": self.total_links_removed,
            "total_broken_cleaned": self.total_broken_cleaned,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UsageStats":
        def _counts(key: str) -> dict[str, int]:
            raw = payload.get(key, {})
            if not isinstance(raw, dict):
                return {}
            return {str(k): int(v) for k, v in raw.items() if isinstance(v, int)}

        def _total(key: str) -> int:
            value = payload.get(key, 0)
            return value if isinstance(value, int) else 0

        return cls(
            toggle_counts=_counts("toggle_counts"),
            profile_apply_counts=_counts("profile_apply_counts"),
            total_scans=_total("total_scans"),
            total_links_created=_total("total_links_created"),
            total_links_removed=_total("total_links_removed"),
            total_broken_cleaned=_total("total_broken_cleaned"),
        )


class StatsRepository:
    def __init__(self, root: Path | None = None) -> None:
        self.root = root or app_home()

    @property
    def stats_path(self) -> Path:
        return self.root / STATS_FILENAME

    def load(self) -> UsageStats:
        payload, error = read_json_safe(self.stats_path)
        if error is not None or not isinstance(payload, dict):
            return UsageStats()
        return UsageStats.from_dict(payload)

    def save(self, stats: UsageStats) -> None:
        write_json(self.stats_path, stats.as_dict())

    def record_toggle(self, skill_name: str, was_created: bool) -> None:
        stats = self.load()
        stats.toggle_counts[skill_name] = stats.toggle_counts.get(skill_name, 0) + 1
        if was_created:
            stats.total_links_created += 1
        else:
            stats.total_links_removed += 1
        self.save(stats)

    def record_profile_apply(self, profile_id: str) -> None:
        stats = self.load()
        stats.profile_apply_counts[profile_id] = (
            stats.profile_apply_counts.get(profile_id, 0) + 1
        )
        self.save(stats)

    def record_scan(self) -> None:
        stats = self.load()
        stats.total_scans += 1
        self.save(stats)

    def record_clean(self, count: int) -> None:
        stats = self.load()
        stats.total_broken_cleaned += count
        self.save(stats)


def record_best_effort(record: Callable[..., None], *args: Any) -> None:
    try:
        record(*args)
    except Exception as exc:
        logger.debug("Usage counter %s failed: %s", getattr(record, "__name__", record), exc)
