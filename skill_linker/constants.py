from typing import Final


APP_DIRNAME: Final[str] = ".skill-linker"
HOME_ENV_VAR: Final[str] = "SKILL_LINKER_HOME"

SKILL_MANIFEST: Final[str] = "SKILL.md"
SCRIPTS_DIRNAME: Final[str] = "scripts"
REFERENCES_DIRNAME: Final[str] = "references"
GITMODULES_FILENAME: Final[str] = ".gitmodules"

CLAUDE_DIRNAME: Final[str] = ".claude"
SKILLS_DIRNAME: Final[str] = "skills"

SETTINGS_FILENAME: Final[str] = "settings.json"
PROFILES_DIRNAME: Final[str] = "profiles"
PROJECTS_FILENAME: Final[str] = "projects.json"
REMOTES_FILENAME: Final[str] = "remotes.json"
STATS_FILENAME: Final[str] = "stats.json"

SCAN_EXCLUDED_DIRS: Final[tuple[str, ...]] = (
    ".git",
    ".cursor",
    ".gemini",
    ".codex",
    ".continue",
    "node_modules",
    ".idea",
    "target",
    ".vscode",
)

CATEGORY_SEGMENTS: Final[tuple[str, ...]] = (
    "backend",
    "frontend",
    "devops",
    "marketing",
    "content",
    "tools",
)

DEFAULT_SSH_PORT: Final[int] = 22
DEFAULT_CONNECT_TIMEOUT_SECS: Final[int] = 10
DEFAULT_COMMAND_TIMEOUT_SECS: Final[int] = 30
