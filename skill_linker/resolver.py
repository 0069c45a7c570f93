"""Turn profile and project membership into concrete link entries."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from skill_linker.models import Profile, ProfileSkillReport, Skill, SkillEntry


class SkillCatalog:
    """Read-only lookup over the scanned skills.

    A reference matches a skill by id or by name. When several skills match,
    the one that comes first in catalog order wins, whichever key it matched.
    """

    def __init__(self, skills: Iterable[Skill]) -> None:
        self._skills: tuple[Skill, ...] = tuple(skills)
        self._by_id: dict[str, int] = {}
        self._by_name: dict[str, int] = {}
        for index, skill in enumerate(self._skills):
            self._by_id.setdefault(skill.id, index)
            self._by_name.setdefault(skill.name, index)

    @classmethod
    def of(cls, skills: Iterable[Skill] | "SkillCatalog") -> "SkillCatalog":
        if isinstance(skills, SkillCatalog):
            return skills
        return cls(skills)

    @property
    def skills(self) -> tuple[Skill, ...]:
        return self._skills

    def __len__(self) -> int:
        return len(self._skills)

    def find(self, ref: str) -> Optional[Skill]:
        candidates = [
            index
            for index in (self._by_id.get(ref), self._by_name.get(ref))
            if index is not None
        ]
        if not candidates:
            return None
        return self._skills[min(candidates)]


def resolve_profile(
    profile: Profile, skills: Iterable[Skill] | SkillCatalog
) -> list[SkillEntry]:
    catalog = SkillCatalog.of(skills)
    entries: list[SkillEntry] = []
    for ref in profile.skill_ids:
        found = catalog.find(ref)
        if found is not None:
            entries.append(found.entry())
    return entries


def resolve_project(
    profile_ids: Sequence[str],
    extra_skill_ids: Sequence[str],
    profiles: Iterable[Profile],
    skills: Iterable[Skill] | SkillCatalog,
) -> list[SkillEntry]:
    """Resolve a project's full link set.

    Profiles are walked in listed order, then the extra skills. The first
    entry seen for a skill name wins, so a later profile or an extra skill
    never overrides an earlier source path.
    """
    catalog = SkillCatalog.of(skills)
    profiles_by_id: dict[str, Profile] = {}
    for profile in profiles:
        profiles_by_id.setdefault(profile.id, profile)

    refs: list[str] = []
    for profile_id in profile_ids:
        profile = profiles_by_id.get(profile_id)
        if profile is None:
            continue
        refs.extend(profile.skill_ids)
    refs.extend(extra_skill_ids)

    seen: set[str] = set()
    entries: list[SkillEntry] = []
    for ref in refs:
        found = catalog.find(ref)
        if found is None or found.name in seen:
            continue
        seen.add(found.name)
        entries.append(found.entry())
    return entries


def profile_skill_report(
    profile: Profile, skills: Iterable[Skill] | SkillCatalog
) -> ProfileSkillReport:
    catalog = SkillCatalog.of(skills)
    found: list[Skill] = []
    missing: list[str] = []
    for ref in profile.skill_ids:
        skill = catalog.find(ref)
        if skill is None:
            missing.append(ref)
        else:
            found.append(skill)
    return ProfileSkillReport(found=found, missing=missing)
