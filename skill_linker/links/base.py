import posixpath
from abc import ABC, abstractmethod
from typing import Optional

from skill_linker.constants import CLAUDE_DIRNAME, SKILLS_DIRNAME
from skill_linker.models import LinkRecord, LinkStatus


class ILinkBackend(ABC):
    """Symlink primitives for one host.

    Every skills directory holds one entry per skill, named after the skill.
    Symlinks are managed; anything else is a direct entry and is never
    created over or removed.
    """

    @property
    @abstractmethod
    def user_skills_dir(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def create_link(self, target_dir: str, skill_name: str, source_path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_link(self, target_dir: str, skill_name: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def probe_link_status(self, target_dir: str, skill_name: str) -> LinkStatus:
        raise NotImplementedError

    @abstractmethod
    def list_links(self, target_dir: str) -> list[LinkRecord]:
        raise NotImplementedError

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        raise NotImplementedError

    def join(self, *parts: str) -> str:
        return posixpath.join(*parts)

    def skills_dir_for(self, project_path: Optional[str] = None) -> str:
        if project_path is None:
            return self.user_skills_dir
        return self.join(project_path, CLAUDE_DIRNAME, SKILLS_DIRNAME)
