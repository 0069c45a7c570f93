from enum import Enum

from skill_linker.models import ActionStatus, ConnectionStatus, LinkStatus, ProjectSyncStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    MAGENTA = "magenta"
    DIM = "dim"
    WHITE = "white"


ACTION_STATUS_STYLE = {
    ActionStatus.CREATE: UIStyle.GREEN.value,
    ActionStatus.FIX: UIStyle.YELLOW.value,
    ActionStatus.REMOVE: UIStyle.MAGENTA.value,
    ActionStatus.NOOP: UIStyle.DIM.value,
    ActionStatus.CONFLICT: UIStyle.RED.value,
}

LINK_STATUS_STYLE = {
    LinkStatus.ACTIVE: UIStyle.GREEN.value,
    LinkStatus.BROKEN: UIStyle.RED.value,
    LinkStatus.INACTIVE: UIStyle.DIM.value,
    LinkStatus.DIRECT: UIStyle.CYAN.value,
}

PROJECT_STATUS_STYLE = {
    ProjectSyncStatus.SYNCED: UIStyle.GREEN.value,
    ProjectSyncStatus.DRIFT: UIStyle.YELLOW.value,
    ProjectSyncStatus.ERROR: UIStyle.RED.value,
}

CONNECTION_STATUS_STYLE = {
    ConnectionStatus.CONNECTED: UIStyle.GREEN.value,
    ConnectionStatus.CONNECTING: UIStyle.YELLOW.value,
    ConnectionStatus.DISCONNECTED: UIStyle.DIM.value,
    ConnectionStatus.ERROR: UIStyle.RED.value,
}


def styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"
