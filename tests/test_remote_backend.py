import json

import pytest

from skill_linker.errors import LinkCreateFailed, TransportError
from skill_linker.links import RemoteLinkBackend
from skill_linker.links.remote import parse_link_listing
from skill_linker.models import LinkStatus, Profile, ProjectConfig, RemoteServer, SkillEntry
from skill_linker.repositories import RemoteEntityRepository
from skill_linker.ssh import SshSession
from skill_linker.synchronizer import LinkSynchronizer


@pytest.fixture
def server() -> RemoteServer:
    return RemoteServer(
        id="box",
        name="Box",
        host="box.local",
        username="dev",
        remote_repo_path="/srv/skills",
        remote_config_dir="/home/dev/.skill-linker",
    )


def test_parse_link_listing_sorts_and_skips_garbage() -> None:
    output = "beta\t/srv/beta\tbroken\nnoise\nAlpha\t/home/dev/.claude/skills/Alpha\tdirect\nx\ty\tweird\n"

    records = parse_link_listing(output)

    assert [(record.name, record.status) for record in records] == [
        ("Alpha", LinkStatus.DIRECT),
        ("beta", LinkStatus.BROKEN),
    ]


def test_user_skills_dir_defaults_to_home(server: RemoteServer, fake_runner) -> None:
    backend = RemoteLinkBackend(SshSession(server, runner=fake_runner()))

    assert backend.user_skills_dir == "~/.claude/skills"
    assert backend.skills_dir_for("/work/app") == "/work/app/.claude/skills"


def test_create_link_runs_ln_with_quoted_paths(server: RemoteServer, fake_runner) -> None:
    runner = fake_runner()
    backend = RemoteLinkBackend(SshSession(server, runner=runner))

    backend.create_link("~/.claude/skills", "alpha", "/srv/skills/alpha")

    command = runner.commands[0]
    assert 'mkdir -p "$HOME"/.claude/skills' in command
    assert 'ln -sfn /srv/skills/alpha "$HOME"/.claude/skills/alpha' in command


def test_create_link_refusal_maps_to_link_error(server: RemoteServer, fake_runner) -> None:
    runner = fake_runner(lambda command, _input: (3, "", "Cannot replace non-symlink path"))
    backend = RemoteLinkBackend(SshSession(server, runner=runner))

    with pytest.raises(LinkCreateFailed) as exc:
        backend.create_link("/w/.claude/skills", "alpha", "/srv/skills/alpha")

    assert "non-symlink" in str(exc.value)


def test_probe_and_path_exists_parse_output(server: RemoteServer, fake_runner) -> None:
    def respond(command: str, _input):
        if command.startswith("test -e"):
            return "yes\n"
        return "broken\n"

    backend = RemoteLinkBackend(SshSession(server, runner=fake_runner(respond)))

    assert backend.probe_link_status("/w", "alpha") == LinkStatus.BROKEN
    assert backend.path_exists("/srv/skills/alpha") is True


def test_transport_failure_is_captured_per_entry(server: RemoteServer, fake_runner) -> None:
    def respond(command: str, _input):
        if "ln -sfn" in command:
            return (255, "", "Connection reset by peer")
        return ""

    synchronizer = LinkSynchronizer(RemoteLinkBackend(SshSession(server, runner=fake_runner(respond))))

    result = synchronizer.apply(
        [SkillEntry("alpha", "/srv/skills/alpha"), SkillEntry("beta", "/srv/skills/beta")]
    )

    assert [outcome.name for outcome in result.failures] == ["alpha", "beta"]
    assert all("Connection reset" in (outcome.error or "") for outcome in result.failures)


def test_remote_profiles_are_read_in_one_command(server: RemoteServer, fake_runner) -> None:
    listing = (
        "\x1e/home/dev/.skill-linker/profiles/web.json\n"
        + json.dumps({"id": "web", "name": "Web", "skill_ids": ["alpha"]})
        + "\x1e/home/dev/.skill-linker/profiles/bad.json\n{oops"
    )
    runner = fake_runner(lambda command, _input: listing)
    repo = RemoteEntityRepository(SshSession(server, runner=runner))

    profiles = repo.list_profiles()

    assert profiles == [Profile(id="web", name="Web", skill_ids=("alpha",))]
    assert len(runner.calls) == 1


def test_remote_save_profile_streams_json_over_stdin(server: RemoteServer, fake_runner) -> None:
    runner = fake_runner()
    repo = RemoteEntityRepository(SshSession(server, runner=runner))

    repo.save_profile(Profile(id="web", name="Web"))

    call = runner.calls[0]
    assert "cat > /home/dev/.skill-linker/profiles/web.json" in call["command"]
    assert json.loads(call["input"])["id"] == "web"


def test_remote_projects_round_trip(server: RemoteServer, fake_runner) -> None:
    stored: dict[str, str] = {"projects": ""}

    def respond(command: str, payload):
        if command.startswith("cat /"):
            return stored["projects"]
        if "cat >" in command:
            stored["projects"] = payload
        return ""

    repo = RemoteEntityRepository(SshSession(server, runner=fake_runner(respond)))

    assert repo.list_projects() == []
    repo.save_project(ProjectConfig(id="a", name="A", path="/w/a"))
    repo.save_project(ProjectConfig(id="b", name="B", path="/w/b"))
    repo.delete_project("a")

    assert [project.id for project in repo.list_projects()] == ["b"]


def test_remote_unreachable_propagates(server: RemoteServer, fake_runner) -> None:
    repo = RemoteEntityRepository(
        SshSession(server, runner=fake_runner(lambda command, _input: (255, "", "No route to host")))
    )

    with pytest.raises(TransportError):
        repo.list_projects()
