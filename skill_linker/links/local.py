import os
from pathlib import Path
from typing import Optional

from skill_linker.constants import CLAUDE_DIRNAME, SKILLS_DIRNAME
from skill_linker.errors import LinkCreateFailed, LinkListFailed, LinkRemoveFailed
from skill_linker.links.base import ILinkBackend
from skill_linker.models import LinkRecord, LinkStatus


def probe_path(link: Path) -> LinkStatus:
    if link.is_symlink():
        return LinkStatus.ACTIVE if link.exists() else LinkStatus.BROKEN
    if link.exists():
        return LinkStatus.DIRECT
    return LinkStatus.INACTIVE


class LocalLinkBackend(ILinkBackend):
    def __init__(self, user_skills_dir: Optional[Path] = None) -> None:
        self._user_skills_dir = user_skills_dir or (
            Path.home() / CLAUDE_DIRNAME / SKILLS_DIRNAME
        )

    @property
    def user_skills_dir(self) -> str:
        return str(self._user_skills_dir)

    def join(self, *parts: str) -> str:
        head, *rest = parts
        return str(Path(head).expanduser().joinpath(*rest))

    def create_link(self, target_dir: str, skill_name: str, source_path: str) -> None:
        link = Path(target_dir) / skill_name
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            if link.is_symlink():
                link.unlink()
            elif link.exists():
                raise LinkCreateFailed(str(link), "Cannot replace non-symlink path")
            link.symlink_to(source_path)
        except OSError as exc:
            raise LinkCreateFailed(str(link), exc.strerror or str(exc)) from exc

    def remove_link(self, target_dir: str, skill_name: str) -> None:
        link = Path(target_dir) / skill_name
        try:
            if link.is_symlink():
                link.unlink()
            elif link.exists():
                raise LinkRemoveFailed(str(link), "Not a symlink, refusing to remove")
        except OSError as exc:
            raise LinkRemoveFailed(str(link), exc.strerror or str(exc)) from exc

    def probe_link_status(self, target_dir: str, skill_name: str) -> LinkStatus:
        return probe_path(Path(target_dir) / skill_name)

    def list_links(self, target_dir: str) -> list[LinkRecord]:
        root = Path(target_dir)
        if not root.is_dir():
            return []

        records: list[LinkRecord] = []
        try:
            for child in root.iterdir():
                if child.is_symlink():
                    records.append(
                        LinkRecord(
                            name=child.name,
                            target=os.readlink(child),
                            status=probe_path(child),
                        )
                    )
                elif child.is_dir():
                    records.append(
                        LinkRecord(name=child.name, target=str(child), status=LinkStatus.DIRECT)
                    )
        except OSError as exc:
            raise LinkListFailed(str(root), exc.strerror or str(exc)) from exc
        records.sort(key=lambda record: record.name.lower())
        return records

    def path_exists(self, path: str) -> bool:
        return Path(path).expanduser().exists()
