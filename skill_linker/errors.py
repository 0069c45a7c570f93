from pathlib import Path
from typing import Optional


class SkillLinkerError(Exception):
    """Base user-facing application error."""


class SkillLinkerFileError(SkillLinkerError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class InvalidJsonFormatError(SkillLinkerFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid JSON format ({detail})")


class InvalidConfigSchemaError(SkillLinkerFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid config schema ({detail})")


class RepositoryNotFoundError(SkillLinkerFileError):
    def __init__(self, path: Path) -> None:
        super().__init__(path=path, message="Skill repository does not exist")


class LinkError(SkillLinkerError):
    def __init__(self, link_path: str, detail: str) -> None:
        self.link_path = link_path
        self.detail = detail
        super().__init__(f"{detail}: {link_path}")


class LinkCreateFailed(LinkError):
    pass


class LinkRemoveFailed(LinkError):
    pass


class LinkListFailed(LinkError):
    pass


class ToggleNotAllowedError(SkillLinkerError):
    def __init__(self, skill_name: str, status: str) -> None:
        self.skill_name = skill_name
        self.status = status
        super().__init__(
            f"Cannot toggle {skill_name}: entry is {status} and must be changed manually"
        )


class EntityNotFoundError(SkillLinkerError):
    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class RemoteServerNotFoundError(EntityNotFoundError):
    def __init__(self, server_id: str) -> None:
        super().__init__(kind="Remote server", entity_id=server_id)


class TransportError(SkillLinkerError):
    """The remote connection failed before the command could complete."""

    def __init__(self, host: str, detail: str, error_code: Optional[str] = None) -> None:
        self.host = host
        self.detail = detail
        self.error_code = error_code
        super().__init__(f"SSH connection to {host} failed ({detail})")


class RemoteCommandError(SkillLinkerError):
    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Remote command failed (exit {exit_code}): {stderr}")
