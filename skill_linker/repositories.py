"""Persistence for profiles and projects.

Profiles live one file per profile under ``profiles/<id>.json``. Projects
share a single ``projects.json`` array. The remote repository keeps the same
layout under the server's config directory.
"""

import json
import logging
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from skill_linker.constants import PROFILES_DIRNAME, PROJECTS_FILENAME
from skill_linker.errors import InvalidConfigSchemaError, InvalidJsonFormatError
from skill_linker.models import Profile, ProjectConfig
from skill_linker.schema import validate_payload
from skill_linker.ssh import SshSession, remote_path
from skill_linker.utils import app_home, dump_json, read_json_safe, write_json

logger = logging.getLogger(__name__)

_PROFILE_SEPARATOR = "\x1e"


def validate_entity_id(entity_id: str) -> str:
    if not entity_id or entity_id in {".", ".."} or "/" in entity_id or "\\" in entity_id:
        raise ValueError(f"Invalid id: {entity_id!r}")
    return entity_id


class IEntityRepository(ABC):
    @abstractmethod
    def list_profiles(self) -> list[Profile]:
        raise NotImplementedError

    @abstractmethod
    def save_profile(self, profile: Profile) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_profile(self, profile_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_projects(self) -> list[ProjectConfig]:
        raise NotImplementedError

    @abstractmethod
    def write_projects(self, projects: list[ProjectConfig]) -> None:
        raise NotImplementedError

    def save_project(self, project: ProjectConfig) -> None:
        validate_entity_id(project.id)
        projects = self.list_projects()
        for index, existing in enumerate(projects):
            if existing.id == project.id:
                projects[index] = project
                break
        else:
            projects.append(project)
        self.write_projects(projects)

    def delete_project(self, project_id: str) -> None:
        projects = self.list_projects()
        remaining = [project for project in projects if project.id != project_id]
        if len(remaining) != len(projects):
            self.write_projects(remaining)

    @staticmethod
    def parse_profile(payload: Any, source: Path) -> Profile:
        validate_payload(payload, source, "profile")
        return Profile.from_dict(payload)

    @staticmethod
    def parse_projects(payload: Any, source: Path) -> list[ProjectConfig]:
        if payload is None:
            return []
        validate_payload(payload, source, "projects")
        return [ProjectConfig.from_dict(item) for item in payload]


class LocalEntityRepository(IEntityRepository):
    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or app_home()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def profiles_dir(self) -> Path:
        return self.root / PROFILES_DIRNAME

    @property
    def projects_path(self) -> Path:
        return self.root / PROJECTS_FILENAME

    def profile_path(self, profile_id: str) -> Path:
        return self.profiles_dir / f"{validate_entity_id(profile_id)}.json"

    def list_profiles(self) -> list[Profile]:
        if not self.profiles_dir.is_dir():
            return []
        profiles: list[Profile] = []
        for path in sorted(self.profiles_dir.glob("*.json")):
            payload, error = read_json_safe(path)
            if error is not None:
                logger.warning("Skipping profile %s: invalid JSON (%s)", path, error)
                continue
            if payload is None:
                continue
            try:
                profiles.append(self.parse_profile(payload, path))
            except InvalidConfigSchemaError as exc:
                logger.warning("Skipping profile: %s", exc)
        return profiles

    def save_profile(self, profile: Profile) -> None:
        write_json(self.profile_path(profile.id), profile.as_dict())

    def delete_profile(self, profile_id: str) -> None:
        path = self.profile_path(profile_id)
        if path.exists():
            path.unlink()

    def list_projects(self) -> list[ProjectConfig]:
        payload, error = read_json_safe(self.projects_path)
        if error is not None:
            raise InvalidJsonFormatError(self.projects_path, error)
        return self.parse_projects(payload, self.projects_path)

    def write_projects(self, projects: list[ProjectConfig]) -> None:
        write_json(self.projects_path, [project.as_dict() for project in projects])


class RemoteEntityRepository(IEntityRepository):
    def __init__(self, session: SshSession) -> None:
        self.session = session

    @property
    def config_dir(self) -> str:
        return self.session.server.config_dir

    @property
    def profiles_dir(self) -> str:
        return posixpath.join(self.config_dir, PROFILES_DIRNAME)

    @property
    def projects_path(self) -> str:
        return posixpath.join(self.config_dir, PROJECTS_FILENAME)

    def profile_path(self, profile_id: str) -> str:
        return posixpath.join(self.profiles_dir, f"{validate_entity_id(profile_id)}.json")

    def _source(self, path: str) -> Path:
        return Path(f"{self.session.user_host}:{path}")

    def list_profiles(self) -> list[Profile]:
        output = self.session.run(
            f"for f in {remote_path(self.profiles_dir)}/*.json; do "
            f'[ -f "$f" ] || continue; printf \'\\036%s\\n\' "$f"; cat "$f"; done'
        )
        profiles: list[Profile] = []
        for record in output.split(_PROFILE_SEPARATOR):
            path, _, body = record.partition("\n")
            if not body.strip():
                continue
            source = self._source(path)
            try:
                payload = json.loads(body)
            except ValueError as exc:
                logger.warning("Skipping profile %s: invalid JSON (%s)", source, exc)
                continue
            try:
                profiles.append(self.parse_profile(payload, source))
            except InvalidConfigSchemaError as exc:
                logger.warning("Skipping profile: %s", exc)
        return profiles

    def save_profile(self, profile: Profile) -> None:
        self._write_file(self.profile_path(profile.id), profile.as_dict())

    def delete_profile(self, profile_id: str) -> None:
        self.session.run(f"rm -f {remote_path(self.profile_path(profile_id))}")

    def list_projects(self) -> list[ProjectConfig]:
        output = self.session.run(f"cat {remote_path(self.projects_path)} 2>/dev/null || true")
        if not output.strip():
            return []
        source = self._source(self.projects_path)
        try:
            payload = json.loads(output)
        except ValueError as exc:
            raise InvalidJsonFormatError(source, str(exc)) from exc
        return self.parse_projects(payload, source)

    def write_projects(self, projects: list[ProjectConfig]) -> None:
        self._write_file(self.projects_path, [project.as_dict() for project in projects])

    def _write_file(self, path: str, payload: Any) -> None:
        directory = posixpath.dirname(path)
        self.session.run(
            f"mkdir -p {remote_path(directory)} && cat > {remote_path(path)}",
            input_text=dump_json(payload),
        )
