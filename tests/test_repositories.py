import logging
from pathlib import Path

import pytest

from skill_linker.config import AppSettings, RemoteServerRepository, SettingsRepository
from skill_linker.errors import (
    InvalidConfigSchemaError,
    InvalidJsonFormatError,
    RemoteServerNotFoundError,
)
from skill_linker.models import AuthMethod, Profile, ProjectConfig, RemoteServer
from skill_linker.repositories import LocalEntityRepository


@pytest.fixture
def repo(app_root: Path) -> LocalEntityRepository:
    return LocalEntityRepository(app_root)


def test_profiles_are_stored_one_file_each(repo: LocalEntityRepository, app_root: Path) -> None:
    repo.save_profile(Profile(id="web", name="Web", skill_ids=("alpha", "beta"), color="#f00"))
    repo.save_profile(Profile(id="ops", name="Ops"))

    assert (app_root / "profiles" / "web.json").is_file()
    assert [profile.id for profile in repo.list_profiles()] == ["ops", "web"]
    assert repo.list_profiles()[1].skill_ids == ("alpha", "beta")

    repo.delete_profile("web")
    repo.delete_profile("web")
    assert [profile.id for profile in repo.list_profiles()] == ["ops"]


def test_invalid_profile_files_are_skipped(
    repo: LocalEntityRepository, app_root: Path, write_json, caplog
) -> None:
    repo.save_profile(Profile(id="good", name="Good"))
    write_json(app_root / "profiles" / "bad.json", {"name": "no id"})
    (app_root / "profiles" / "broken.json").write_text("{", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="skill_linker"):
        profiles = repo.list_profiles()

    assert [profile.id for profile in profiles] == ["good"]
    assert "bad.json" in caplog.text
    assert "broken.json" in caplog.text


def test_profile_id_must_be_a_plain_name(repo: LocalEntityRepository) -> None:
    with pytest.raises(ValueError):
        repo.save_profile(Profile(id="../escape", name="x"))


def test_save_project_replaces_in_place(repo: LocalEntityRepository) -> None:
    repo.save_project(ProjectConfig(id="a", name="A", path="/p/a"))
    repo.save_project(ProjectConfig(id="b", name="B", path="/p/b"))
    repo.save_project(ProjectConfig(id="a", name="A2", path="/p/a", profile_ids=("web",)))

    projects = repo.list_projects()
    assert [project.name for project in projects] == ["A2", "B"]
    assert projects[0].profile_ids == ("web",)

    repo.delete_project("a")
    assert [project.id for project in repo.list_projects()] == ["b"]


def test_projects_file_errors_are_raised(
    repo: LocalEntityRepository, app_root: Path, write_json
) -> None:
    assert repo.list_projects() == []

    write_json(app_root / "projects.json", [{"id": "a"}])
    with pytest.raises(InvalidConfigSchemaError):
        repo.list_projects()

    (app_root / "projects.json").write_text("[", encoding="utf-8")
    with pytest.raises(InvalidJsonFormatError):
        repo.list_projects()


def test_settings_default_and_round_trip(app_root: Path, write_json) -> None:
    settings_repo = SettingsRepository(app_root)
    assert settings_repo.load() == AppSettings()

    settings_repo.save(AppSettings(repo_path="/skills", active_server_id="box"))
    assert settings_repo.load().active_server_id == "box"

    write_json(app_root / "settings.json", {"repo_path": 5})
    with pytest.raises(InvalidConfigSchemaError):
        settings_repo.load()


def test_remote_server_registry(app_root: Path) -> None:
    registry = RemoteServerRepository(app_root)
    server = RemoteServer(
        id="box",
        name="Box",
        host="box.local",
        username="dev",
        remote_repo_path="~/skills",
        auth=AuthMethod.KEY,
        private_key_path="~/.ssh/id_ed25519",
    )

    registry.save_server(server)
    assert registry.get("box") == server

    registry.save_server(RemoteServer(id="box", name="Box", host="new.local", username="dev", remote_repo_path="~/s"))
    assert [item.host for item in registry.list_servers()] == ["new.local"]

    assert registry.delete_server("box") is True
    assert registry.delete_server("box") is False
    with pytest.raises(RemoteServerNotFoundError):
        registry.get("box")
