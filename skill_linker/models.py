from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from skill_linker.constants import (
    DEFAULT_COMMAND_TIMEOUT_SECS,
    DEFAULT_CONNECT_TIMEOUT_SECS,
    DEFAULT_SSH_PORT,
)


class LinkStatus(str, Enum):
    ACTIVE = "active"
    BROKEN = "broken"
    INACTIVE = "inactive"
    DIRECT = "direct"

    @property
    def is_managed(self) -> bool:
        return self in (LinkStatus.ACTIVE, LinkStatus.BROKEN)


class ActionKind(str, Enum):
    LINK = "link"
    UNLINK = "unlink"


class ActionStatus(str, Enum):
    NOOP = "noop"
    CREATE = "create"
    FIX = "fix"
    CONFLICT = "conflict"
    REMOVE = "remove"


class ProjectSyncStatus(str, Enum):
    SYNCED = "synced"
    DRIFT = "drift"
    ERROR = "error"


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class AuthMethod(str, Enum):
    KEY = "key"
    AGENT = "agent"


class SkillEntry(NamedTuple):
    name: str
    source_path: str


@dataclass(frozen=True)
class Skill:
    id: str
    name: str
    source_path: str
    source_repo: str = "unknown"
    description: str = ""
    category: Optional[str] = None
    tags: frozenset[str] = frozenset()
    has_scripts: bool = False
    has_references: bool = False
    dependencies: tuple[str, ...] = ()
    link_status_user: LinkStatus = LinkStatus.INACTIVE

    def entry(self) -> SkillEntry:
        return SkillEntry(self.name, self.source_path)


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    skill_ids: tuple[str, ...] = ()
    description: str = ""
    color: str = ""
    is_preset: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "skill_ids": list(self.skill_ids),
            "is_preset": self.is_preset,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Profile":
        return cls(
            id=payload["id"],
            name=payload["name"],
            description=payload.get("description", ""),
            color=payload.get("color", ""),
            skill_ids=tuple(payload.get("skill_ids", [])),
            is_preset=bool(payload.get("is_preset", False)),
        )


@dataclass(frozen=True)
class ProjectConfig:
    id: str
    name: str
    path: str
    profile_ids: tuple[str, ...] = ()
    extra_skill_ids: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "profile_ids": list(self.profile_ids),
            "extra_skill_ids": list(self.extra_skill_ids),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProjectConfig":
        return cls(
            id=payload["id"],
            name=payload["name"],
            path=payload.get("path", ""),
            profile_ids=tuple(payload.get("profile_ids", [])),
            extra_skill_ids=tuple(payload.get("extra_skill_ids", [])),
        )


@dataclass(frozen=True)
class LinkRecord:
    """One entry observed in a skills directory."""

    name: str
    target: str
    status: LinkStatus


@dataclass
class LinkAction:
    kind: ActionKind
    name: str
    path: str
    status: ActionStatus
    detail: str
    source: Optional[str] = None


@dataclass(frozen=True)
class LinkOutcome:
    action: LinkAction
    changed: bool
    link_status: Optional[LinkStatus] = None
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.action.name

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class LinkResult:
    target_dir: str
    outcomes: list[LinkOutcome] = field(default_factory=list)

    @property
    def linked(self) -> list[str]:
        return [
            outcome.name
            for outcome in self.outcomes
            if outcome.action.kind == ActionKind.LINK and not outcome.failed
        ]

    @property
    def removed(self) -> list[str]:
        return [
            outcome.name
            for outcome in self.outcomes
            if outcome.action.kind == ActionKind.UNLINK and outcome.changed
        ]

    @property
    def failures(self) -> list[LinkOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    def is_ok(self) -> bool:
        return not self.failures

    def statuses(self) -> dict[str, LinkStatus]:
        return {
            outcome.name: outcome.link_status
            for outcome in self.outcomes
            if outcome.link_status is not None
        }

    def summary(self) -> dict[str, int]:
        counts = {status.value: 0 for status in ActionStatus}
        for outcome in self.outcomes:
            counts[outcome.action.status.value] += 1
        counts["actions"] = len(self.outcomes)
        counts["failed"] = len(self.failures)
        return counts


@dataclass(frozen=True)
class ProjectSyncResult:
    project_id: str
    project_name: str
    result: Optional[LinkResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and (self.result is None or self.result.is_ok())


@dataclass
class CascadeResult:
    profile_id: str
    projects: list[ProjectSyncResult] = field(default_factory=list)

    @property
    def failed(self) -> list[ProjectSyncResult]:
        return [item for item in self.projects if not item.ok]


@dataclass(frozen=True)
class ProfileSkillReport:
    found: list[Skill]
    missing: list[str]


@dataclass(frozen=True)
class ProjectStatusRow:
    name: str
    path: str
    status: ProjectSyncStatus
    detail: str
    missing: tuple[str, ...] = ()
    stale: tuple[str, ...] = ()
    broken: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "status": self.status.value,
            "detail": self.detail,
            "missing": list(self.missing),
            "stale": list(self.stale),
            "broken": list(self.broken),
            "conflicts": list(self.conflicts),
        }


@dataclass(frozen=True)
class RemoteServer:
    id: str
    name: str
    host: str
    username: str
    remote_repo_path: str
    port: int = DEFAULT_SSH_PORT
    auth: AuthMethod = AuthMethod.AGENT
    private_key_path: Optional[str] = None
    remote_config_dir: Optional[str] = None
    remote_skills_dir: Optional[str] = None
    connect_timeout_secs: int = DEFAULT_CONNECT_TIMEOUT_SECS
    command_timeout_secs: int = DEFAULT_COMMAND_TIMEOUT_SECS

    @property
    def config_dir(self) -> str:
        return self.remote_config_dir or "~/.skill-linker"

    @property
    def skills_dir(self) -> str:
        return self.remote_skills_dir or "~/.claude/skills"

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "auth": self.auth.value,
            "private_key_path": self.private_key_path,
            "remote_repo_path": self.remote_repo_path,
            "remote_config_dir": self.remote_config_dir,
            "remote_skills_dir": self.remote_skills_dir,
            "connect_timeout_secs": self.connect_timeout_secs,
            "command_timeout_secs": self.command_timeout_secs,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RemoteServer":
        return cls(
            id=payload["id"],
            name=payload.get("name", payload["id"]),
            host=payload["host"],
            port=int(payload.get("port", DEFAULT_SSH_PORT)),
            username=payload["username"],
            auth=AuthMethod(payload.get("auth", AuthMethod.AGENT.value)),
            private_key_path=payload.get("private_key_path"),
            remote_repo_path=payload["remote_repo_path"],
            remote_config_dir=payload.get("remote_config_dir"),
            remote_skills_dir=payload.get("remote_skills_dir"),
            connect_timeout_secs=int(
                payload.get("connect_timeout_secs", DEFAULT_CONNECT_TIMEOUT_SECS)
            ),
            command_timeout_secs=int(
                payload.get("command_timeout_secs", DEFAULT_COMMAND_TIMEOUT_SECS)
            ),
        )
