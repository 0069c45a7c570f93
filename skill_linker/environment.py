"""Build the capabilities for the active environment.

The coordinator never asks which environment it runs in: it receives an
``Environment`` whose scanner, link backend and persistence already point
at this machine or at one configured remote server.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from skill_linker.config import AppSettings, RemoteServerRepository
from skill_linker.links import ILinkBackend, LocalLinkBackend, RemoteLinkBackend
from skill_linker.models import ConnectionStatus, RemoteServer
from skill_linker.repositories import (
    IEntityRepository,
    LocalEntityRepository,
    RemoteEntityRepository,
)
from skill_linker.scanner import ISkillScanner, LocalSkillScanner, RemoteSkillScanner
from skill_linker.ssh import Runner, SshSession

LOCAL_LABEL = "local"


@dataclass
class Environment:
    label: str
    repo_path: Optional[str]
    links: ILinkBackend
    entities: IEntityRepository
    scanner: ISkillScanner
    session: Optional[SshSession] = None

    @property
    def is_remote(self) -> bool:
        return self.session is not None

    @property
    def server(self) -> Optional[RemoteServer]:
        return self.session.server if self.session is not None else None

    @property
    def connection_status(self) -> ConnectionStatus:
        if self.session is None:
            return ConnectionStatus.CONNECTED
        return self.session.status

    @property
    def user_skills_dir(self) -> str:
        return self.links.user_skills_dir


def local_environment(settings: AppSettings, home: Path) -> Environment:
    user_dir = Path(settings.user_skills_dir).expanduser() if settings.user_skills_dir else None
    links = LocalLinkBackend(user_dir)
    return Environment(
        label=LOCAL_LABEL,
        repo_path=settings.repo_path,
        links=links,
        entities=LocalEntityRepository(home),
        scanner=LocalSkillScanner(links),
    )


def remote_environment(server: RemoteServer, runner: Optional[Runner] = None) -> Environment:
    session = SshSession(server, runner=runner)
    links = RemoteLinkBackend(session)
    return Environment(
        label=server.name,
        repo_path=server.remote_repo_path,
        links=links,
        entities=RemoteEntityRepository(session),
        scanner=RemoteSkillScanner(session, links),
        session=session,
    )


def build_environment(
    settings: AppSettings,
    home: Path,
    remotes: Optional[RemoteServerRepository] = None,
    runner: Optional[Runner] = None,
) -> Environment:
    if not settings.active_server_id:
        return local_environment(settings, home)
    registry = remotes or RemoteServerRepository(home)
    return remote_environment(registry.get(settings.active_server_id), runner=runner)
