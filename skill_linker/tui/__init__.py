from skill_linker.tui.renderers import LinkerConsoleUI

__all__ = ["LinkerConsoleUI"]
