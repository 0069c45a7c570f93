"""Discover skills in a repository and parse their SKILL.md manifests."""

from __future__ import annotations

import logging
import os
import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from skill_linker.constants import (
    CATEGORY_SEGMENTS,
    GITMODULES_FILENAME,
    REFERENCES_DIRNAME,
    SCAN_EXCLUDED_DIRS,
    SCRIPTS_DIRNAME,
    SKILL_MANIFEST,
)
from skill_linker.errors import RemoteCommandError, RepositoryNotFoundError
from skill_linker.links.base import ILinkBackend
from skill_linker.models import LinkStatus, Skill
from skill_linker.ssh import SshSession, remote_path

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(\n|$)", re.DOTALL)
_DEPENDENCY_RE = re.compile(
    r"""(?:skill|invoke|use|require|depend)s?\s*[:\-]?\s*["'`]([a-zA-Z0-9_-]+)["'`]"""
)
_SUBMODULE_RE = re.compile(r'^\[submodule\s+"(.+)"\]$')
_RECORD_SEPARATOR = "\x1e"


def parse_frontmatter(content: str) -> dict[str, Any]:
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}
    try:
        raw = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}
    return raw if isinstance(raw, dict) else {}


def first_content_line(content: str) -> str:
    body = content
    match = _FRONTMATTER_RE.match(content)
    if match:
        body = content[match.end() :]
    for line in body.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("---"):
            return stripped.lstrip("#").strip()
    return ""


def extract_dependencies(content: str) -> tuple[str, ...]:
    return tuple(sorted(set(_DEPENDENCY_RE.findall(content))))


def parse_gitmodules(content: str, repo_root: str) -> dict[str, str]:
    """Map submodule names to absolute submodule directories."""
    modules: dict[str, str] = {}
    name: Optional[str] = None
    for line in content.splitlines():
        stripped = line.strip()
        header = _SUBMODULE_RE.match(stripped)
        if header:
            name = header.group(1)
            continue
        if stripped.startswith("path") and "=" in stripped and name is not None:
            path = stripped.split("=", 1)[1].strip()
            absolute = posixpath.join(repo_root, path)
            modules[name] = posixpath.normpath(absolute)
            name = None
    return modules


def _relative_parts(skill_dir: str, repo_root: str) -> list[str]:
    relative = posixpath.relpath(skill_dir, repo_root)
    if relative == "." or relative.startswith(".."):
        return []
    return relative.split("/")


def infer_source_repo(skill_dir: str, repo_root: str, submodules: dict[str, str]) -> str:
    for name, sub_path in submodules.items():
        if skill_dir == sub_path or skill_dir.startswith(sub_path.rstrip("/") + "/"):
            return name
    parts = _relative_parts(skill_dir, repo_root)
    return parts[0] if parts else "unknown"


def infer_category(skill_dir: str, repo_root: str) -> Optional[str]:
    for segment in _relative_parts(skill_dir, repo_root):
        if segment in CATEGORY_SEGMENTS:
            return segment
    return None


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return []


def build_skill(
    repo_root: str,
    skill_dir: str,
    content: str,
    *,
    has_scripts: bool,
    has_references: bool,
    submodules: dict[str, str],
    link_status_user: LinkStatus = LinkStatus.INACTIVE,
) -> Skill:
    frontmatter = parse_frontmatter(content)
    dir_name = posixpath.basename(skill_dir.rstrip("/")) or "unknown"
    name = str(frontmatter.get("name") or dir_name)
    description = frontmatter.get("description")
    relative = posixpath.relpath(skill_dir, repo_root)
    return Skill(
        id=dir_name if relative.startswith("..") else relative,
        name=name,
        description=str(description) if description else first_content_line(content),
        source_path=skill_dir,
        source_repo=infer_source_repo(skill_dir, repo_root, submodules),
        category=infer_category(skill_dir, repo_root),
        tags=frozenset(_string_list(frontmatter.get("tags"))),
        has_scripts=has_scripts,
        has_references=has_references,
        dependencies=extract_dependencies(content),
        link_status_user=link_status_user,
    )


class ISkillScanner(ABC):
    def __init__(self, link_backend: ILinkBackend) -> None:
        self.link_backend = link_backend

    @abstractmethod
    def scan(self, repo_path: str) -> list[Skill]:
        raise NotImplementedError

    def user_link_statuses(self) -> dict[str, LinkStatus]:
        records = self.link_backend.list_links(self.link_backend.user_skills_dir)
        return {record.name: record.status for record in records}

    @staticmethod
    def finalize(candidates: list[Skill], statuses: dict[str, LinkStatus]) -> list[Skill]:
        seen: set[str] = set()
        skills: list[Skill] = []
        for skill in candidates:
            if skill.name in seen:
                logger.debug("Duplicate skill name %s skipped: %s", skill.name, skill.source_path)
                continue
            seen.add(skill.name)
            status = statuses.get(skill.name, LinkStatus.INACTIVE)
            if status != skill.link_status_user:
                skill = replace(skill, link_status_user=status)
            skills.append(skill)
        skills.sort(key=lambda item: item.name.lower())
        return skills


class LocalSkillScanner(ISkillScanner):
    def scan(self, repo_path: str) -> list[Skill]:
        root = Path(repo_path).expanduser().resolve()
        if not root.is_dir():
            raise RepositoryNotFoundError(root)

        repo_root = str(root)
        gitmodules = root / GITMODULES_FILENAME
        submodules: dict[str, str] = {}
        if gitmodules.is_file():
            submodules = parse_gitmodules(gitmodules.read_text(encoding="utf-8"), repo_root)

        candidates: list[Skill] = []
        for manifest in self._walk_manifests(root):
            skill_dir = manifest.parent
            try:
                content = manifest.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable manifest %s: %s", manifest, exc)
                continue
            candidates.append(
                build_skill(
                    repo_root,
                    str(skill_dir),
                    content,
                    has_scripts=(skill_dir / SCRIPTS_DIRNAME).is_dir(),
                    has_references=(skill_dir / REFERENCES_DIRNAME).is_dir(),
                    submodules=submodules,
                )
            )
        return self.finalize(candidates, self.user_link_statuses())

    @staticmethod
    def _walk_manifests(root: Path) -> Iterator[Path]:
        visited: set[str] = set()
        for current, dir_names, file_names in os.walk(str(root), topdown=True, followlinks=True):
            real = os.path.realpath(current)
            if real in visited:
                dir_names[:] = []
                continue
            visited.add(real)
            dir_names[:] = sorted(
                name
                for name in dir_names
                if not name.startswith(".") and name not in SCAN_EXCLUDED_DIRS
            )
            if SKILL_MANIFEST in file_names:
                yield Path(current) / SKILL_MANIFEST


_REMOTE_SCAN_SCRIPT = """cd {repo} || exit 1
pwd
find . \\( -name '.*' ! -name . -o {excluded} \\) -prune -o -name {manifest} -type f -print | sort | while IFS= read -r f; do
  d=$(dirname "$f"); s=0; r=0
  [ -d "$d/{scripts}" ] && s=1
  [ -d "$d/{references}" ] && r=1
  printf '\\036%s\\t%s\\t%s\\n' "$d" "$s" "$r"
  cat "$f"
done"""


class RemoteSkillScanner(ISkillScanner):
    def __init__(self, session: SshSession, link_backend: ILinkBackend) -> None:
        super().__init__(link_backend)
        self.session = session

    def scan(self, repo_path: str) -> list[Skill]:
        excluded = " -o ".join(f"-name '{name}'" for name in SCAN_EXCLUDED_DIRS)
        script = _REMOTE_SCAN_SCRIPT.format(
            repo=remote_path(repo_path),
            excluded=excluded,
            manifest=SKILL_MANIFEST,
            scripts=SCRIPTS_DIRNAME,
            references=REFERENCES_DIRNAME,
        )
        try:
            output = self.session.run(script)
        except RemoteCommandError as exc:
            raise RepositoryNotFoundError(Path(repo_path)) from exc
        repo_root, _, body = output.partition("\n")
        repo_root = repo_root.strip()
        gitmodules = self.session.run(
            f"cat {remote_path(posixpath.join(repo_root, GITMODULES_FILENAME))} 2>/dev/null || true"
        )
        submodules = parse_gitmodules(gitmodules, repo_root)
        candidates = [
            skill
            for skill in (
                self._parse_record(record, repo_root, submodules)
                for record in body.split(_RECORD_SEPARATOR)
            )
            if skill is not None
        ]
        return self.finalize(candidates, self.user_link_statuses())

    @staticmethod
    def _parse_record(record: str, repo_root: str, submodules: dict[str, str]) -> Optional[Skill]:
        header, _, content = record.partition("\n")
        parts = header.split("\t")
        if len(parts) != 3:
            return None
        relative, has_scripts, has_references = parts
        skill_dir = posixpath.normpath(posixpath.join(repo_root, relative))
        return build_skill(
            repo_root,
            skill_dir,
            content,
            has_scripts=has_scripts == "1",
            has_references=has_references == "1",
            submodules=submodules,
        )
