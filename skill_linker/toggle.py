import logging
from typing import Optional

from skill_linker.errors import ToggleNotAllowedError
from skill_linker.models import ActionKind, LinkStatus
from skill_linker.stats import StatsRepository, record_best_effort
from skill_linker.synchronizer import LinkSynchronizer

logger = logging.getLogger(__name__)


def next_action(current: LinkStatus, skill_name: str) -> ActionKind:
    """Which transition a toggle takes from ``current``.

    Broken links only ever go back to inactive. Direct entries are not
    toggleable.
    """
    if current in (LinkStatus.ACTIVE, LinkStatus.BROKEN):
        return ActionKind.UNLINK
    if current == LinkStatus.INACTIVE:
        return ActionKind.LINK
    raise ToggleNotAllowedError(skill_name, current.value)


class ToggleEngine:
    def __init__(
        self, synchronizer: LinkSynchronizer, stats: Optional[StatsRepository] = None
    ) -> None:
        self.synchronizer = synchronizer
        self.stats = stats

    def current_status(self, skill_name: str, project_path: Optional[str] = None) -> LinkStatus:
        target_dir = self.synchronizer.target_dir(project_path)
        return self.synchronizer.backend.probe_link_status(target_dir, skill_name)

    def toggle(
        self, skill_name: str, source_path: str, project_path: Optional[str] = None
    ) -> LinkStatus:
        current = self.current_status(skill_name, project_path)
        action = next_action(current, skill_name)
        status = self.synchronizer.toggle_one(
            skill_name,
            source_path,
            project_path,
            currently_active=action == ActionKind.UNLINK,
        )
        logger.info("Toggled %s: %s -> %s", skill_name, current.value, status.value)
        if self.stats is not None:
            record_best_effort(
                self.stats.record_toggle, skill_name, action == ActionKind.LINK
            )
        return status
