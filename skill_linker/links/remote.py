from skill_linker.errors import LinkCreateFailed, LinkRemoveFailed, RemoteCommandError
from skill_linker.links.base import ILinkBackend
from skill_linker.models import LinkRecord, LinkStatus
from skill_linker.ssh import SshSession, remote_path


_REFUSED_EXIT = 3

_LIST_SCRIPT = """[ -d {dir} ] || exit 0
for p in {dir}/* {dir}/.[!.]*; do
  if [ -L "$p" ]; then
    if [ -e "$p" ]; then s=active; else s=broken; fi
    printf '%s\\t%s\\t%s\\n' "$(basename "$p")" "$(readlink "$p")" "$s"
  elif [ -d "$p" ]; then
    printf '%s\\t%s\\t%s\\n' "$(basename "$p")" "$p" direct
  fi
done"""


def parse_link_listing(output: str) -> list[LinkRecord]:
    records: list[LinkRecord] = []
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) != 3:
            continue
        name, target, status = parts
        try:
            records.append(LinkRecord(name=name, target=target, status=LinkStatus(status)))
        except ValueError:
            continue
    records.sort(key=lambda record: record.name.lower())
    return records


class RemoteLinkBackend(ILinkBackend):
    def __init__(self, session: SshSession) -> None:
        self.session = session

    @property
    def user_skills_dir(self) -> str:
        return self.session.server.skills_dir

    def create_link(self, target_dir: str, skill_name: str, source_path: str) -> None:
        link = self.join(target_dir, skill_name)
        quoted = remote_path(link)
        command = (
            f"mkdir -p {remote_path(target_dir)} && "
            f"if [ -e {quoted} ] && [ ! -L {quoted} ]; then "
            f"echo 'Cannot replace non-symlink path' >&2; exit {_REFUSED_EXIT}; fi && "
            f"ln -sfn {remote_path(source_path)} {quoted}"
        )
        try:
            self.session.run(command)
        except RemoteCommandError as exc:
            raise LinkCreateFailed(link, exc.stderr) from exc

    def remove_link(self, target_dir: str, skill_name: str) -> None:
        link = self.join(target_dir, skill_name)
        quoted = remote_path(link)
        command = (
            f"if [ -L {quoted} ]; then rm -f {quoted}; "
            f"elif [ -e {quoted} ]; then "
            f"echo 'Not a symlink, refusing to remove' >&2; exit {_REFUSED_EXIT}; fi"
        )
        try:
            self.session.run(command)
        except RemoteCommandError as exc:
            raise LinkRemoveFailed(link, exc.stderr) from exc

    def probe_link_status(self, target_dir: str, skill_name: str) -> LinkStatus:
        quoted = remote_path(self.join(target_dir, skill_name))
        command = (
            f"if [ -L {quoted} ]; then "
            f"if [ -e {quoted} ]; then echo active; else echo broken; fi; "
            f"elif [ -e {quoted} ]; then echo direct; else echo inactive; fi"
        )
        output = self.session.run(command).strip()
        try:
            return LinkStatus(output)
        except ValueError:
            return LinkStatus.INACTIVE

    def list_links(self, target_dir: str) -> list[LinkRecord]:
        output = self.session.run(_LIST_SCRIPT.format(dir=remote_path(target_dir)))
        return parse_link_listing(output)

    def path_exists(self, path: str) -> bool:
        output = self.session.run(
            f"test -e {remote_path(path)} && echo yes || echo no"
        )
        return output.strip() == "yes"
