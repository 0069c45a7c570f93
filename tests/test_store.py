import pytest

from skill_linker.errors import EntityNotFoundError
from skill_linker.models import LinkStatus, Profile, ProjectConfig, Skill
from skill_linker.store import EntityStore


@pytest.fixture
def store() -> EntityStore:
    return EntityStore(
        skills=[
            Skill(
                id="core/alpha",
                name="alpha",
                source_path="/r/core/alpha",
                source_repo="core",
                description="Formats code",
            ),
            Skill(
                id="tools/beta",
                name="beta",
                source_path="/r/tools/beta",
                source_repo="tools",
                tags=frozenset({"Deploy"}),
                link_status_user=LinkStatus.ACTIVE,
            ),
        ],
        profiles=[Profile(id="web", name="Web", skill_ids=("alpha",))],
        projects=[
            ProjectConfig(id="a", name="A", path="/p/a", profile_ids=("web",)),
            ProjectConfig(id="b", name="B", path="/p/b", profile_ids=("ops",)),
        ],
    )


def test_filter_skills_by_search_repo_and_status(store: EntityStore) -> None:
    assert [s.name for s in store.filter_skills(search="FORMAT")] == ["alpha"]
    assert [s.name for s in store.filter_skills(search="deploy")] == ["beta"]
    assert [s.name for s in store.filter_skills(repo="core")] == ["alpha"]
    assert [s.name for s in store.filter_skills(status=LinkStatus.ACTIVE)] == ["beta"]
    assert store.filter_skills(search="alpha", status=LinkStatus.ACTIVE) == []
    assert store.source_repos() == ["core", "tools"]


def test_update_skill_link_status_replaces_record(store: EntityStore) -> None:
    before = store.skills[0]

    store.update_skill_link_status("alpha", LinkStatus.BROKEN)

    assert store.skills[0].link_status_user == LinkStatus.BROKEN
    assert before.link_status_user == LinkStatus.INACTIVE


def test_upsert_keeps_position_and_appends_new(store: EntityStore) -> None:
    store.upsert_project(ProjectConfig(id="a", name="A2", path="/p/a"))
    store.upsert_project(ProjectConfig(id="c", name="C", path="/p/c"))

    assert [project.name for project in store.projects] == ["A2", "B", "C"]


def test_projects_using_profile_in_store_order(store: EntityStore) -> None:
    store.upsert_project(ProjectConfig(id="c", name="C", path="", profile_ids=("ops", "web")))

    assert [project.id for project in store.projects_using_profile("web")] == ["a", "c"]


def test_get_unknown_entities_raise(store: EntityStore) -> None:
    with pytest.raises(EntityNotFoundError):
        store.get_profile("missing")
    store.remove_project("a")
    with pytest.raises(EntityNotFoundError):
        store.get_project("a")


def test_find_skill_by_id_or_name(store: EntityStore) -> None:
    assert store.find_skill("tools/beta").name == "beta"
    assert store.find_skill("alpha").id == "core/alpha"
    assert store.find_skill("zzz") is None
