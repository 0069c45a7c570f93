from skill_linker.models import Profile, Skill, SkillEntry
from skill_linker.resolver import (
    SkillCatalog,
    profile_skill_report,
    resolve_profile,
    resolve_project,
)


def _skill(skill_id: str, name: str, path: str = "") -> Skill:
    return Skill(id=skill_id, name=name, source_path=path or f"/repo/{skill_id}")


SKILLS = [
    _skill("core/alpha", "alpha"),
    _skill("core/beta", "beta"),
    _skill("tools/gamma", "gamma"),
]


def test_resolve_profile_keeps_order_and_drops_dangling_refs() -> None:
    profile = Profile(id="p", name="P", skill_ids=("gamma", "missing", "core/alpha"))

    entries = resolve_profile(profile, SKILLS)

    assert entries == [
        SkillEntry("gamma", "/repo/tools/gamma"),
        SkillEntry("alpha", "/repo/core/alpha"),
    ]


def test_resolve_project_walks_profiles_in_order_then_extras() -> None:
    profiles = [
        Profile(id="frontend", name="Frontend", skill_ids=("beta",)),
        Profile(id="backend", name="Backend", skill_ids=("alpha", "beta")),
    ]

    entries = resolve_project(["backend", "frontend"], ["gamma"], profiles, SKILLS)

    assert [entry.name for entry in entries] == ["alpha", "beta", "gamma"]


def test_resolve_project_first_occurrence_of_a_name_wins() -> None:
    skills = [
        _skill("vendor/lint", "lint", "/vendor/lint"),
        _skill("local/lint", "lint", "/local/lint"),
    ]
    profiles = [
        Profile(id="a", name="A", skill_ids=("local/lint",)),
        Profile(id="b", name="B", skill_ids=("vendor/lint",)),
    ]

    entries = resolve_project(["a", "b"], [], profiles, skills)

    assert entries == [SkillEntry("lint", "/local/lint")]


def test_extra_skill_never_overrides_a_profile_skill() -> None:
    skills = [
        _skill("one/fmt", "fmt", "/one/fmt"),
        _skill("two/fmt", "fmt", "/two/fmt"),
    ]
    profiles = [Profile(id="a", name="A", skill_ids=("one/fmt",))]

    entries = resolve_project(["a"], ["two/fmt"], profiles, skills)

    assert entries == [SkillEntry("fmt", "/one/fmt")]


def test_unknown_profile_ids_are_skipped() -> None:
    profiles = [Profile(id="a", name="A", skill_ids=("alpha",))]

    entries = resolve_project(["deleted", "a"], [], profiles, SKILLS)

    assert [entry.name for entry in entries] == ["alpha"]


def test_empty_membership_resolves_to_nothing() -> None:
    assert resolve_project([], [], [], SKILLS) == []


def test_catalog_find_prefers_earlier_skill_across_keys() -> None:
    by_id_first = SkillCatalog(
        [_skill("shared", "one"), _skill("other", "shared")]
    )
    by_name_first = SkillCatalog(
        [_skill("first", "shared"), _skill("shared", "two")]
    )

    assert by_id_first.find("shared").name == "one"
    assert by_name_first.find("shared").name == "shared"
    assert by_name_first.find("shared").id == "first"
    assert by_id_first.find("nothing") is None


def test_catalog_is_reused_when_passed_through() -> None:
    catalog = SkillCatalog(SKILLS)

    assert SkillCatalog.of(catalog) is catalog
    assert len(SkillCatalog.of(SKILLS)) == 3


def test_profile_skill_report_counts_found_and_missing() -> None:
    profile = Profile(id="p", name="P", skill_ids=("alpha", "gone", "tools/gamma"))

    report = profile_skill_report(profile, SKILLS)

    assert [skill.name for skill in report.found] == ["alpha", "gamma"]
    assert report.missing == ["gone"]
