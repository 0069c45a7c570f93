import functools
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from skill_linker.config import AppSettings, RemoteServerRepository, SettingsRepository
from skill_linker.coordinator import AppState, LinkCoordinator
from skill_linker.environment import LOCAL_LABEL, build_environment
from skill_linker.errors import EntityNotFoundError, SkillLinkerError
from skill_linker.models import AuthMethod, LinkStatus, Profile, ProjectConfig, RemoteServer
from skill_linker.resolver import profile_skill_report
from skill_linker.ssh import SshSession
from skill_linker.stats import StatsRepository
from skill_linker.status import StatusService
from skill_linker.tui import LinkerConsoleUI
from skill_linker.utils import app_home

STATUS_VALUES = [status.value for status in LinkStatus]


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("skill_linker")
    for existing in list(package_logger.handlers):
        if isinstance(existing, RichHandler):
            package_logger.removeHandler(existing)
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=verbose,
        show_time=verbose,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _handle_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (SkillLinkerError, ValueError) as exc:
            raise click.ClickException(str(exc))

    return wrapper


def _home(obj: Dict[str, Any]) -> Path:
    return obj.setdefault("home", app_home())


def _settings(obj: Dict[str, Any]) -> AppSettings:
    return SettingsRepository(_home(obj)).load()


def _coordinator(obj: Dict[str, Any], scan: bool = True) -> LinkCoordinator:
    home = _home(obj)
    settings = _settings(obj)
    environment = build_environment(settings, home, RemoteServerRepository(home))
    coordinator = LinkCoordinator(AppState(environment), StatsRepository(home))
    coordinator.load()
    if scan:
        coordinator.scan()
    return coordinator


def _membership(
    values: tuple[str, ...], current: tuple[str, ...], clear: bool
) -> tuple[str, ...]:
    if values:
        return tuple(values)
    return () if clear else current


def _project_path(coordinator: LinkCoordinator, path: Optional[str]) -> Optional[str]:
    if path is None or coordinator.environment.is_remote:
        return path
    return str(Path(path).expanduser().resolve())


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Link reusable skill bundles into user and project skill directories."""
    _configure_logging(verbose)
    ctx.obj = {}


@cli.command(help="Scan the skill repository and list what was found.")
@click.pass_obj
@_handle_errors
def scan(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    ui.render_skills(coordinator.store.skills)


@cli.group(help="Browse and toggle individual skills.")
def skills() -> None:
    pass


@skills.command("list", help="List skills with their user-level link status.")
@click.option("--search", "-s", default=None, help="Match name, description or tags.")
@click.option("--repo", default=None, help="Only skills from this source repo.")
@click.option(
    "--status", "status_value", type=click.Choice(STATUS_VALUES, case_sensitive=False), default=None
)
@click.pass_obj
@_handle_errors
def skills_list(
    obj: Dict[str, Any], search: Optional[str], repo: Optional[str], status_value: Optional[str]
) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    status = LinkStatus(status_value.lower()) if status_value else None
    ui.render_skills(coordinator.store.filter_skills(search=search, repo=repo, status=status))


@skills.command("toggle", help="Link or unlink one skill.")
@click.argument("ref")
@click.option("--project", "project", default=None, help="Project path instead of the user level.")
@click.pass_obj
@_handle_errors
def skills_toggle(obj: Dict[str, Any], ref: str, project: Optional[str]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    project_path = _project_path(coordinator, project)
    status = coordinator.toggle_skill(ref, project_path)
    skill = coordinator.store.find_skill(ref)
    ui.render_toggle(
        skill.name if skill is not None else ref,
        status,
        coordinator.synchronizer.target_dir(project_path),
    )


@cli.group(help="Manage skill profiles.")
def profiles() -> None:
    pass


@profiles.command("list", help="List profiles and how many of their skills resolve.")
@click.pass_obj
@_handle_errors
def profiles_list(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    catalog = coordinator.store.catalog()
    ui.render_profiles(
        [(profile, profile_skill_report(profile, catalog)) for profile in coordinator.store.profiles]
    )


@profiles.command("show", help="Show the skills of one profile.")
@click.argument("profile_id")
@click.pass_obj
@_handle_errors
def profiles_show(obj: Dict[str, Any], profile_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    profile = coordinator.store.get_profile(profile_id)
    ui.render_profile(profile, profile_skill_report(profile, coordinator.store.catalog()))


@profiles.command("save", help="Create or update a profile and resync projects using it.")
@click.argument("profile_id")
@click.option("--name", default=None)
@click.option("--description", default=None)
@click.option("--color", default=None)
@click.option("--skill", "skill_refs", multiple=True, help="Skill id or name; repeatable.")
@click.option("--clear-skills", is_flag=True, help="Empty the skill list before adding --skill values.")
@click.option("--preset/--no-preset", default=None)
@click.pass_obj
@_handle_errors
def profiles_save(
    obj: Dict[str, Any],
    profile_id: str,
    name: Optional[str],
    description: Optional[str],
    color: Optional[str],
    skill_refs: tuple[str, ...],
    clear_skills: bool,
    preset: Optional[bool],
) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    try:
        current = coordinator.store.get_profile(profile_id)
    except EntityNotFoundError:
        current = Profile(id=profile_id, name=profile_id)
    profile = Profile(
        id=profile_id,
        name=name if name is not None else current.name,
        description=description if description is not None else current.description,
        color=color if color is not None else current.color,
        skill_ids=_membership(skill_refs, current.skill_ids, clear_skills),
        is_preset=preset if preset is not None else current.is_preset,
    )
    cascade = coordinator.save_profile(profile)
    ui.render_profile(profile, profile_skill_report(profile, coordinator.store.catalog()))
    ui.render_cascade(cascade)
    if cascade.failed:
        raise click.exceptions.Exit(1)


@profiles.command("delete", help="Delete a profile and resync projects that used it.")
@click.argument("profile_id")
@click.pass_obj
@_handle_errors
def profiles_delete(obj: Dict[str, Any], profile_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    coordinator.store.get_profile(profile_id)
    cascade = coordinator.delete_profile(profile_id)
    ui.render_cascade(cascade)
    if cascade.failed:
        raise click.exceptions.Exit(1)


@profiles.command("apply", help="Link every skill of a profile without removing others.")
@click.argument("profile_id")
@click.option("--project", "project", default=None, help="Project path instead of the user level.")
@click.pass_obj
@_handle_errors
def profiles_apply(obj: Dict[str, Any], profile_id: str, project: Optional[str]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    result = coordinator.apply_profile(profile_id, _project_path(coordinator, project))
    ui.render_link_result(result, mode=f"apply {profile_id}")
    if not result.is_ok():
        raise click.exceptions.Exit(1)


@cli.group(help="Manage projects and their linked skills.")
def projects() -> None:
    pass


@projects.command("list", help="List configured projects.")
@click.pass_obj
@_handle_errors
def projects_list(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj, scan=False)
    ui.render_projects(coordinator.store.projects)


@projects.command("save", help="Create or update a project and sync its skills.")
@click.argument("project_id")
@click.option("--name", default=None)
@click.option("--path", "path", default=None)
@click.option("--profile", "profile_ids", multiple=True, help="Profile id; repeatable.")
@click.option("--extra", "extra_refs", multiple=True, help="Extra skill id or name; repeatable.")
@click.option("--clear-profiles", is_flag=True, help="Detach every profile before adding --profile values.")
@click.option("--clear-extras", is_flag=True, help="Drop every extra skill before adding --extra values.")
@click.pass_obj
@_handle_errors
def projects_save(
    obj: Dict[str, Any],
    project_id: str,
    name: Optional[str],
    path: Optional[str],
    profile_ids: tuple[str, ...],
    extra_refs: tuple[str, ...],
    clear_profiles: bool,
    clear_extras: bool,
) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    try:
        current = coordinator.store.get_project(project_id)
    except EntityNotFoundError:
        current = ProjectConfig(id=project_id, name=project_id, path="")
    project = ProjectConfig(
        id=project_id,
        name=name if name is not None else current.name,
        path=_project_path(coordinator, path) if path is not None else current.path,
        profile_ids=_membership(profile_ids, current.profile_ids, clear_profiles),
        extra_skill_ids=_membership(extra_refs, current.extra_skill_ids, clear_extras),
    )
    result = coordinator.save_project(project)
    ui.render_project_saved(project)
    ui.render_project_sync(result)
    if not result.ok:
        raise click.exceptions.Exit(1)


@projects.command("remove", help="Remove a project from config. Its links stay in place.")
@click.argument("project_id")
@click.pass_obj
@_handle_errors
def projects_remove(obj: Dict[str, Any], project_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj, scan=False)
    project = coordinator.store.get_project(project_id)
    coordinator.delete_project(project_id)
    ui.render_project_saved(project, removed=True)


@projects.command("sync", help="Sync one project, or every project when no id is given.")
@click.argument("project_id", required=False)
@click.pass_obj
@_handle_errors
def projects_sync(obj: Dict[str, Any], project_id: Optional[str]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    if project_id is not None:
        targets = [coordinator.store.get_project(project_id)]
    else:
        targets = list(coordinator.store.projects)
    if not targets:
        ui.render_projects([])
        return
    failed = 0
    for project in targets:
        result = coordinator.sync_project(project)
        ui.render_project_sync(result)
        if not result.ok:
            failed += 1
    if failed:
        raise click.exceptions.Exit(1)


@projects.command("links", help="List the links currently in a project.")
@click.argument("project_id")
@click.pass_obj
@_handle_errors
def projects_links(obj: Dict[str, Any], project_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj, scan=False)
    project = coordinator.store.get_project(project_id)
    if not project.path:
        raise click.ClickException(f"Project has no path: {project_id}")
    ui.render_links(
        coordinator.links_for(project.path), coordinator.synchronizer.target_dir(project.path)
    )


@cli.group(help="Inspect and clean skill links.")
def links() -> None:
    pass


@links.command("list", help="List the links in the user-level or a project skills directory.")
@click.option("--project", "project", default=None, help="Project path instead of the user level.")
@click.pass_obj
@_handle_errors
def links_list(obj: Dict[str, Any], project: Optional[str]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj, scan=False)
    project_path = _project_path(coordinator, project)
    ui.render_links(
        coordinator.links_for(project_path), coordinator.synchronizer.target_dir(project_path)
    )


@links.command("clean", help="Remove broken skill links.")
@click.option("--project", "project", default=None, help="Project path instead of the user level.")
@click.pass_obj
@_handle_errors
def links_clean(obj: Dict[str, Any], project: Optional[str]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj, scan=False)
    project_path = _project_path(coordinator, project)
    cleaned = coordinator.clean_broken_links(project_path)
    ui.render_cleaned(cleaned, coordinator.synchronizer.target_dir(project_path))


@cli.command(help="Show link drift for every project.")
@click.pass_obj
@_handle_errors
def status(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    coordinator = _coordinator(obj)
    environment = coordinator.environment
    ui.render_environment(environment.label, environment.connection_status)
    ui.render_status(StatusService(coordinator).build_project_status())


@cli.group(help="Manage remote servers reached over ssh.")
def remotes() -> None:
    pass


@remotes.command("list", help="List configured remote servers.")
@click.pass_obj
@_handle_errors
def remotes_list(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    registry = RemoteServerRepository(_home(obj))
    ui.render_remotes(registry.list_servers(), _settings(obj).active_server_id)


@remotes.command("add", help="Add or update a remote server.")
@click.argument("server_id")
@click.option("--host", required=True)
@click.option("--user", "username", required=True)
@click.option("--repo", "remote_repo_path", required=True, help="Skill repository on the server.")
@click.option("--name", default=None)
@click.option("--port", default=22, show_default=True, type=int)
@click.option("--key", "private_key_path", default=None, help="Private key; agent auth when omitted.")
@click.option("--config-dir", "remote_config_dir", default=None)
@click.option("--skills-dir", "remote_skills_dir", default=None)
@click.pass_obj
@_handle_errors
def remotes_add(
    obj: Dict[str, Any],
    server_id: str,
    host: str,
    username: str,
    remote_repo_path: str,
    name: Optional[str],
    port: int,
    private_key_path: Optional[str],
    remote_config_dir: Optional[str],
    remote_skills_dir: Optional[str],
) -> None:
    ui = LinkerConsoleUI(Console())
    registry = RemoteServerRepository(_home(obj))
    registry.save_server(
        RemoteServer(
            id=server_id,
            name=name or server_id,
            host=host,
            port=port,
            username=username,
            auth=AuthMethod.KEY if private_key_path else AuthMethod.AGENT,
            private_key_path=private_key_path,
            remote_repo_path=remote_repo_path,
            remote_config_dir=remote_config_dir,
            remote_skills_dir=remote_skills_dir,
        )
    )
    ui.render_remotes(registry.list_servers(), _settings(obj).active_server_id)


@remotes.command("remove", help="Remove a remote server.")
@click.argument("server_id")
@click.pass_obj
@_handle_errors
def remotes_remove(obj: Dict[str, Any], server_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    home = _home(obj)
    registry = RemoteServerRepository(home)
    if not registry.delete_server(server_id):
        raise click.ClickException(f"Remote server not found: {server_id}")
    settings_repo = SettingsRepository(home)
    settings = settings_repo.load()
    if settings.active_server_id == server_id:
        settings.active_server_id = None
        settings_repo.save(settings)
    ui.render_remotes(registry.list_servers(), settings.active_server_id)


@remotes.command("test", help="Check that a remote server accepts ssh commands.")
@click.argument("server_id")
@click.pass_obj
@_handle_errors
def remotes_test(obj: Dict[str, Any], server_id: str) -> None:
    ui = LinkerConsoleUI(Console())
    server = RemoteServerRepository(_home(obj)).get(server_id)
    session = SshSession(server)
    result = session.test_connection()
    ui.render_environment(server.name, result)
    if session.last_error:
        raise click.ClickException(session.last_error)


@cli.group(help="Choose where skills are linked.")
def env() -> None:
    pass


@env.command("show", help="Show the active environment.")
@click.pass_obj
@_handle_errors
def env_show(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    environment = build_environment(_settings(obj), _home(obj))
    ui.render_environment(environment.label, environment.connection_status)


@env.command("use", help="Switch to the local machine or a remote server id.")
@click.argument("target")
@click.pass_obj
@_handle_errors
def env_use(obj: Dict[str, Any], target: str) -> None:
    ui = LinkerConsoleUI(Console())
    home = _home(obj)
    settings_repo = SettingsRepository(home)
    settings = settings_repo.load()
    if target == LOCAL_LABEL:
        settings.active_server_id = None
    else:
        RemoteServerRepository(home).get(target)
        settings.active_server_id = target
    settings_repo.save(settings)
    environment = build_environment(settings, home)
    ui.render_environment(environment.label, environment.connection_status)


@env.command("repo", help="Set the local skill repository path.")
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_obj
@_handle_errors
def env_repo(obj: Dict[str, Any], path: Path) -> None:
    ui = LinkerConsoleUI(Console())
    settings_repo = SettingsRepository(_home(obj))
    settings = settings_repo.load()
    settings.repo_path = str(path.expanduser().resolve())
    settings_repo.save(settings)
    ui.render_repo_path(settings.repo_path)


@cli.command(help="Show usage statistics.")
@click.pass_obj
@_handle_errors
def stats(obj: Dict[str, Any]) -> None:
    ui = LinkerConsoleUI(Console())
    ui.render_stats(StatsRepository(_home(obj)).load())


def main() -> int:
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
