"""Local settings and the remote server registry.

Both always live on this machine, whichever environment is active.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from skill_linker.constants import REMOTES_FILENAME, SETTINGS_FILENAME
from skill_linker.errors import InvalidJsonFormatError, RemoteServerNotFoundError
from skill_linker.models import RemoteServer
from skill_linker.repositories import validate_entity_id
from skill_linker.schema import validate_payload
from skill_linker.utils import app_home, read_json_safe, write_json


@dataclass
class AppSettings:
    repo_path: Optional[str] = None
    user_skills_dir: Optional[str] = None
    active_server_id: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "repo_path": self.repo_path,
            "user_skills_dir": self.user_skills_dir,
            "active_server_id": self.active_server_id,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AppSettings":
        return cls(
            repo_path=payload.get("repo_path"),
            user_skills_dir=payload.get("user_skills_dir"),
            active_server_id=payload.get("active_server_id"),
        )


class SettingsRepository:
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root or app_home()

    @property
    def settings_path(self) -> Path:
        return self.root / SETTINGS_FILENAME

    def load(self) -> AppSettings:
        payload, error = read_json_safe(self.settings_path)
        if error is not None:
            raise InvalidJsonFormatError(self.settings_path, error)
        if payload is None:
            return AppSettings()
        validate_payload(payload, self.settings_path, "settings")
        return AppSettings.from_dict(payload)

    def save(self, settings: AppSettings) -> None:
        write_json(self.settings_path, settings.as_dict())


class RemoteServerRepository:
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root or app_home()

    @property
    def remotes_path(self) -> Path:
        return self.root / REMOTES_FILENAME

    def list_servers(self) -> list[RemoteServer]:
        payload, error = read_json_safe(self.remotes_path)
        if error is not None:
            raise InvalidJsonFormatError(self.remotes_path, error)
        if payload is None:
            return []
        validate_payload(payload, self.remotes_path, "remotes")
        return [RemoteServer.from_dict(item) for item in payload]

    def get(self, server_id: str) -> RemoteServer:
        for server in self.list_servers():
            if server.id == server_id:
                return server
        raise RemoteServerNotFoundError(server_id)

    def save_server(self, server: RemoteServer) -> None:
        validate_entity_id(server.id)
        servers = self.list_servers()
        for index, existing in enumerate(servers):
            if existing.id == server.id:
                servers[index] = server
                break
        else:
            servers.append(server)
        write_json(self.remotes_path, [item.as_dict() for item in servers])

    def delete_server(self, server_id: str) -> bool:
        servers = self.list_servers()
        remaining = [item for item in servers if item.id != server_id]
        if len(remaining) == len(servers):
            return False
        write_json(self.remotes_path, [item.as_dict() for item in remaining])
        return True
