import sys
import json
import subprocess
from pathlib import Path
from typing import Any, Callable, Optional

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("SKILL_LINKER_HOME", str(tmp_path / ".skill-linker"))
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    return tmp_path / ".skill-linker"


@pytest.fixture
def user_skills_dir(tmp_path: Path) -> Path:
    return tmp_path / ".claude" / "skills"


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def make_skill() -> Callable[..., Path]:
    def _make(
        repo: Path,
        relative: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[list[str]] = None,
        body: str = "Instructions.\n",
    ) -> Path:
        skill_dir = repo / relative
        skill_dir.mkdir(parents=True, exist_ok=True)
        lines: list[str] = []
        if name is not None or description is not None or tags is not None:
            lines.append("---")
            if name is not None:
                lines.append(f"name: {name}")
            if description is not None:
                lines.append(f"description: {description}")
            if tags is not None:
                lines.append(f"tags: [{', '.join(tags)}]")
            lines.append("---")
        lines.append(body)
        (skill_dir / "SKILL.md").write_text("\n".join(lines), encoding="utf-8")
        return skill_dir

    return _make


@pytest.fixture
def skill_repo(tmp_path: Path, make_skill) -> Path:
    repo = tmp_path / "skills-repo"
    make_skill(repo, "core/alpha", name="alpha", description="First skill")
    make_skill(repo, "core/beta", name="beta", description="Second skill")
    make_skill(repo, "tools/gamma", name="gamma", description="Third skill", tags=["cli"])
    make_skill(repo, "tools/delta", name="delta", description="Fourth skill")
    return repo


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "projects" / "shop-api"
    path.mkdir(parents=True)
    return path


class FakeRunner:
    """Stands in for ``subprocess.run`` and answers ssh commands from a script."""

    def __init__(self, responder: Optional[Callable[[str, Optional[str]], Any]] = None) -> None:
        self.responder = responder
        self.calls: list[dict[str, Any]] = []

    @property
    def commands(self) -> list[str]:
        return [call["command"] for call in self.calls]

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        command = args[-1]
        self.calls.append({"args": args, "command": command, "input": kwargs.get("input")})
        response = self.responder(command, kwargs.get("input")) if self.responder else ""
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, tuple):
            returncode, stdout, stderr = response
        else:
            returncode, stdout, stderr = 0, response, ""
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("SKILL_LINKER_HOME", str(tmp_path / ".skill-linker"))
            env.setdefault("COLUMNS", "200")
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()


@pytest.fixture
def fake_runner() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def linked_names() -> Callable[[Path], list[str]]:
    def _names(directory: Path) -> list[str]:
        if not directory.is_dir():
            return []
        return sorted(child.name for child in directory.iterdir() if child.is_symlink())

    return _names
