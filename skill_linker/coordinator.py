import logging
from dataclasses import dataclass, field
from typing import Optional

from skill_linker.environment import Environment
from skill_linker.errors import EntityNotFoundError, SkillLinkerError
from skill_linker.models import (
    CascadeResult,
    LinkRecord,
    LinkResult,
    LinkStatus,
    Profile,
    ProjectConfig,
    ProjectSyncResult,
    Skill,
    SkillEntry,
)
from skill_linker.resolver import resolve_profile, resolve_project
from skill_linker.stats import StatsRepository, record_best_effort
from skill_linker.store import EntityStore
from skill_linker.synchronizer import LinkSynchronizer
from skill_linker.toggle import ToggleEngine

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    environment: Environment
    store: EntityStore = field(default_factory=EntityStore)


class LinkCoordinator:
    """Keeps persisted entities, the in-memory store and the links on disk
    in step.

    Every mutation of a profile or project is written to persistence first,
    then mirrored in the store, then pushed to the affected skills
    directories. Projects are synced one after another. A failing project is
    logged and reported; it never stops the projects after it.
    """

    def __init__(self, state: AppState, stats: Optional[StatsRepository] = None) -> None:
        self.state = state
        self.stats = stats
        self.synchronizer = LinkSynchronizer(state.environment.links)
        self.toggles = ToggleEngine(self.synchronizer, stats)

    @property
    def environment(self) -> Environment:
        return self.state.environment

    @property
    def store(self) -> EntityStore:
        return self.state.store

    def load(self) -> None:
        self.store.profiles = self.environment.entities.list_profiles()
        self.store.projects = self.environment.entities.list_projects()

    def scan(self) -> list[Skill]:
        repo_path = self.environment.repo_path
        if not repo_path:
            raise SkillLinkerError(
                "No skill repository configured. Run `skill-linker env repo PATH` first."
            )
        skills = self.environment.scanner.scan(repo_path)
        self.store.replace_skills(skills)
        logger.info("Scanned %s skills from %s", len(skills), repo_path)
        if self.stats is not None:
            record_best_effort(self.stats.record_scan)
        return skills

    def resolve_project_entries(self, project: ProjectConfig) -> list[SkillEntry]:
        return resolve_project(
            project.profile_ids,
            project.extra_skill_ids,
            self.store.profiles,
            self.store.catalog(),
        )

    def sync_project(self, project: ProjectConfig) -> ProjectSyncResult:
        if not project.path:
            logger.debug("Project %s has no path, skipping sync", project.name)
            return ProjectSyncResult(project.id, project.name)
        try:
            entries = self.resolve_project_entries(project)
            result = self.synchronizer.sync(entries, project.path)
        except Exception as exc:
            logger.error("Sync failed for project %s (%s): %s", project.name, project.path, exc)
            return ProjectSyncResult(project.id, project.name, error=str(exc))
        if not result.is_ok():
            for outcome in result.failures:
                logger.error("Project %s: %s", project.name, outcome.error)
        return ProjectSyncResult(project.id, project.name, result=result)

    def _sync_projects(self, profile_id: str, projects: list[ProjectConfig]) -> CascadeResult:
        cascade = CascadeResult(profile_id)
        for project in projects:
            cascade.projects.append(self.sync_project(project))
        return cascade

    def on_profile_changed(self, profile_id: str) -> CascadeResult:
        return self._sync_projects(profile_id, self.store.projects_using_profile(profile_id))

    def save_profile(self, profile: Profile) -> CascadeResult:
        self.environment.entities.save_profile(profile)
        self.store.upsert_profile(profile)
        return self.on_profile_changed(profile.id)

    def delete_profile(self, profile_id: str) -> CascadeResult:
        affected = self.store.projects_using_profile(profile_id)
        self.environment.entities.delete_profile(profile_id)
        self.store.remove_profile(profile_id)
        return self._sync_projects(profile_id, affected)

    def save_project(self, project: ProjectConfig) -> ProjectSyncResult:
        self.environment.entities.save_project(project)
        self.store.upsert_project(project)
        return self.sync_project(project)

    def delete_project(self, project_id: str) -> None:
        self.environment.entities.delete_project(project_id)
        self.store.remove_project(project_id)

    def apply_profile(self, profile_id: str, project_path: Optional[str] = None) -> LinkResult:
        profile = self.store.get_profile(profile_id)
        entries = resolve_profile(profile, self.store.catalog())
        result = self.synchronizer.apply(entries, project_path)
        if project_path is None:
            for name, status in result.statuses().items():
                self.store.update_skill_link_status(name, status)
        if self.stats is not None:
            record_best_effort(self.stats.record_profile_apply, profile_id)
        return result

    def toggle_skill(self, ref: str, project_path: Optional[str] = None) -> LinkStatus:
        skill = self.store.find_skill(ref)
        if skill is None:
            raise EntityNotFoundError("Skill", ref)
        status = self.toggles.toggle(skill.name, skill.source_path, project_path)
        if project_path is None:
            self.store.update_skill_link_status(skill.name, status)
        return status

    def clean_broken_links(self, project_path: Optional[str] = None) -> list[str]:
        cleaned = self.synchronizer.clean_broken(project_path)
        if project_path is None:
            for name in cleaned:
                self.store.update_skill_link_status(name, LinkStatus.INACTIVE)
        if cleaned and self.stats is not None:
            record_best_effort(self.stats.record_clean, len(cleaned))
        return cleaned

    def links_for(self, project_path: Optional[str] = None) -> list[LinkRecord]:
        return self.environment.links.list_links(self.synchronizer.target_dir(project_path))

