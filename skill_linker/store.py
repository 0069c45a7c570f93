"""In-memory working set of skills, profiles and projects."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from skill_linker.errors import EntityNotFoundError
from skill_linker.models import LinkStatus, Profile, ProjectConfig, Skill
from skill_linker.resolver import SkillCatalog


def _matches_search(skill: Skill, query: str) -> bool:
    needle = query.lower()
    if needle in skill.name.lower() or needle in skill.description.lower():
        return True
    return any(needle in tag.lower() for tag in skill.tags)


@dataclass
class EntityStore:
    skills: list[Skill] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)
    projects: list[ProjectConfig] = field(default_factory=list)

    def catalog(self) -> SkillCatalog:
        return SkillCatalog(self.skills)

    def replace_skills(self, skills: Iterable[Skill]) -> None:
        self.skills = list(skills)

    def find_skill(self, ref: str) -> Optional[Skill]:
        return self.catalog().find(ref)

    def update_skill_link_status(self, skill_name: str, status: LinkStatus) -> None:
        self.skills = [
            replace(skill, link_status_user=status) if skill.name == skill_name else skill
            for skill in self.skills
        ]

    def filter_skills(
        self,
        search: Optional[str] = None,
        repo: Optional[str] = None,
        status: Optional[LinkStatus] = None,
    ) -> list[Skill]:
        selected: list[Skill] = []
        for skill in self.skills:
            if search and not _matches_search(skill, search):
                continue
            if repo and skill.source_repo != repo:
                continue
            if status is not None and skill.link_status_user != status:
                continue
            selected.append(skill)
        return selected

    def source_repos(self) -> list[str]:
        return sorted({skill.source_repo for skill in self.skills}, key=str.lower)

    def get_profile(self, profile_id: str) -> Profile:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        raise EntityNotFoundError("Profile", profile_id)

    def upsert_profile(self, profile: Profile) -> None:
        for index, existing in enumerate(self.profiles):
            if existing.id == profile.id:
                self.profiles[index] = profile
                return
        self.profiles.append(profile)

    def remove_profile(self, profile_id: str) -> None:
        self.profiles = [profile for profile in self.profiles if profile.id != profile_id]

    def get_project(self, project_id: str) -> ProjectConfig:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise EntityNotFoundError("Project", project_id)

    def upsert_project(self, project: ProjectConfig) -> None:
        for index, existing in enumerate(self.projects):
            if existing.id == project.id:
                self.projects[index] = project
                return
        self.projects.append(project)

    def remove_project(self, project_id: str) -> None:
        self.projects = [project for project in self.projects if project.id != project_id]

    def projects_using_profile(self, profile_id: str) -> list[ProjectConfig]:
        return [project for project in self.projects if profile_id in project.profile_ids]
