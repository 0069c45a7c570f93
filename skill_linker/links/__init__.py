from skill_linker.links.base import ILinkBackend
from skill_linker.links.local import LocalLinkBackend
from skill_linker.links.remote import RemoteLinkBackend

__all__ = [
    "ILinkBackend",
    "LocalLinkBackend",
    "RemoteLinkBackend",
]
