import logging
from typing import Optional, Protocol, Sequence

from skill_linker.errors import SkillLinkerError
from skill_linker.links.base import ILinkBackend
from skill_linker.models import (
    ActionKind,
    ActionStatus,
    LinkAction,
    LinkOutcome,
    LinkRecord,
    LinkResult,
    LinkStatus,
    SkillEntry,
)

logger = logging.getLogger(__name__)


class ActionHandler(Protocol):
    def handle(
        self, action: LinkAction, target_dir: str, backend: ILinkBackend
    ) -> tuple[bool, Optional[str]]: ...


class LinkHandler:
    def handle(
        self, action: LinkAction, target_dir: str, backend: ILinkBackend
    ) -> tuple[bool, Optional[str]]:
        if action.status == ActionStatus.NOOP:
            return False, None
        if action.status == ActionStatus.CONFLICT:
            return False, f"Conflict (not overwritten): {action.path}"
        if action.source is None:
            return False, f"Missing source for link action: {action.path}"
        backend.create_link(target_dir, action.name, action.source)
        return True, None


class UnlinkHandler:
    def handle(
        self, action: LinkAction, target_dir: str, backend: ILinkBackend
    ) -> tuple[bool, Optional[str]]:
        if action.status != ActionStatus.REMOVE:
            return False, None
        backend.remove_link(target_dir, action.name)
        return True, None


def plan_link(entry: SkillEntry, path: str, existing: Optional[LinkRecord]) -> LinkAction:
    if existing is None or existing.status == LinkStatus.INACTIVE:
        return LinkAction(
            ActionKind.LINK,
            entry.name,
            path,
            ActionStatus.CREATE,
            "create symlink",
            source=entry.source_path,
        )
    if existing.status == LinkStatus.DIRECT:
        return LinkAction(
            ActionKind.LINK,
            entry.name,
            path,
            ActionStatus.CONFLICT,
            "non-symlink path exists",
            source=entry.source_path,
        )
    if existing.target == entry.source_path:
        return LinkAction(
            ActionKind.LINK,
            entry.name,
            path,
            ActionStatus.NOOP,
            "already linked",
            source=entry.source_path,
        )
    return LinkAction(
        ActionKind.LINK,
        entry.name,
        path,
        ActionStatus.FIX,
        "symlink points elsewhere",
        source=entry.source_path,
    )


def plan_stale(
    records: Sequence[LinkRecord], desired_names: set[str], target_dir: str, backend: ILinkBackend
) -> list[LinkAction]:
    actions: list[LinkAction] = []
    for record in records:
        if record.name in desired_names or not record.status.is_managed:
            continue
        actions.append(
            LinkAction(
                ActionKind.UNLINK,
                record.name,
                backend.join(target_dir, record.name),
                ActionStatus.REMOVE,
                "remove stale managed symlink",
            )
        )
    return actions


class LinkSynchronizer:
    """Reconcile a desired entry set against one skills directory.

    ``project_path=None`` targets the user-level skills directory. Each entry
    is handled on its own: a failure is recorded in its outcome and the rest
    of the batch still runs. Statuses in the result come from listing the
    directory again after all actions ran.
    """

    def __init__(self, backend: ILinkBackend) -> None:
        self.backend = backend
        self.handlers: dict[ActionKind, ActionHandler] = {
            ActionKind.LINK: LinkHandler(),
            ActionKind.UNLINK: UnlinkHandler(),
        }

    def target_dir(self, project_path: Optional[str] = None) -> str:
        return self.backend.skills_dir_for(project_path)

    def plan(
        self, entries: Sequence[SkillEntry], target_dir: str, remove_stale: bool
    ) -> list[LinkAction]:
        records = self.backend.list_links(target_dir)
        existing = {record.name: record for record in records}

        actions: list[LinkAction] = []
        if remove_stale:
            desired_names = {entry.name for entry in entries}
            actions.extend(plan_stale(records, desired_names, target_dir, self.backend))
        for entry in entries:
            path = self.backend.join(target_dir, entry.name)
            actions.append(plan_link(entry, path, existing.get(entry.name)))
        return actions

    def execute(self, actions: Sequence[LinkAction], target_dir: str) -> LinkResult:
        results: list[tuple[LinkAction, bool, Optional[str]]] = []
        for action in actions:
            try:
                changed, failure = self.handlers[action.kind].handle(
                    action, target_dir, self.backend
                )
            except Exception as exc:
                changed, failure = False, f"{action.kind.value} failed for {action.path}: {exc}"
            if failure is not None:
                logger.warning(failure)
            results.append((action, changed, failure))

        observed = self._observe(target_dir)
        outcomes = [
            LinkOutcome(
                action=action,
                changed=changed,
                link_status=(
                    observed.get(action.name, LinkStatus.INACTIVE)
                    if observed is not None
                    else None
                ),
                error=failure,
            )
            for action, changed, failure in results
        ]
        return LinkResult(target_dir=target_dir, outcomes=outcomes)

    def apply(
        self, entries: Sequence[SkillEntry], project_path: Optional[str] = None
    ) -> LinkResult:
        target_dir = self.target_dir(project_path)
        actions = self.plan(entries, target_dir, remove_stale=False)
        return self.execute(actions, target_dir)

    def sync(self, entries: Sequence[SkillEntry], project_path: str) -> LinkResult:
        target_dir = self.target_dir(project_path)
        actions = self.plan(entries, target_dir, remove_stale=True)
        result = self.execute(actions, target_dir)
        logger.info(
            "Synced %s: %s linked, %s removed, %s failed",
            target_dir,
            len(result.linked),
            len(result.removed),
            len(result.failures),
        )
        return result

    def toggle_one(
        self,
        skill_name: str,
        source_path: str,
        project_path: Optional[str],
        currently_active: bool,
    ) -> LinkStatus:
        target_dir = self.target_dir(project_path)
        if currently_active:
            self.backend.remove_link(target_dir, skill_name)
        else:
            if not self.backend.path_exists(source_path):
                logger.warning(
                    "Source for %s is missing, link will be broken: %s",
                    skill_name,
                    source_path,
                )
            self.backend.create_link(target_dir, skill_name, source_path)
        return self.backend.probe_link_status(target_dir, skill_name)

    def clean_broken(self, project_path: Optional[str] = None) -> list[str]:
        target_dir = self.target_dir(project_path)
        cleaned: list[str] = []
        for record in self.backend.list_links(target_dir):
            if record.status != LinkStatus.BROKEN:
                continue
            try:
                self.backend.remove_link(target_dir, record.name)
            except SkillLinkerError as exc:
                logger.warning("Could not remove broken link %s: %s", record.name, exc)
                continue
            cleaned.append(record.name)
        return cleaned

    def _observe(self, target_dir: str) -> Optional[dict[str, LinkStatus]]:
        try:
            records = self.backend.list_links(target_dir)
        except (SkillLinkerError, OSError) as exc:
            logger.warning("Could not re-read %s after sync: %s", target_dir, exc)
            return None
        return {record.name: record.status for record in records}

