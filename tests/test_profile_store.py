import json

from core.models import EducationEntry, ExperienceEntry, ParsedResume, ProfileData
from core.profile_store import InMemoryProfileStore, JsonFileProfileStore, merge_parsed_resume


def _profile(**kwargs) -> ProfileData:
    base = dict(
        headline="Old headline",
        skills=["Go"],
        target_locations=["Berlin"],
        min_salary=100000,
        remote_preference="remote",
        company_size=["startup"],
    )
    base.update(kwargs)
    return ProfileData(**base)


def test_in_memory_store_round_trip() -> None:
    store = InMemoryProfileStore()
    assert store.load() is None
    store.save(_profile())
    loaded = store.load()
    assert loaded == _profile()


def test_in_memory_store_is_last_write_wins() -> None:
    store = InMemoryProfileStore()
    store.save(_profile(headline="first"))
    store.save(_profile(headline="second"))
    assert store.load().headline == "second"


def test_json_file_store_writes_camel_case(tmp_path) -> None:
    path = tmp_path / "nested" / "profile.json"
    store = JsonFileProfileStore(path=path)
    assert store.load() is None

    store.save(_profile(target_titles=["Staff Engineer"]))
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["targetTitles"] == ["Staff Engineer"]
    assert raw["minSalary"] == 100000
    assert store.load().target_titles == ["Staff Engineer"]
    assert not path.with_suffix(".json.tmp").exists()


def test_merge_prefers_parsed_values_and_keeps_preferences() -> None:
    parsed = ParsedResume(
        headline="New headline",
        skills=["Python"],
        experience=[ExperienceEntry(title="Engineer", company="Acme")],
        education=[EducationEntry(school="State U")],
        target_titles=["Backend Engineer"],
    )
    merged = merge_parsed_resume(_profile(search_keywords=["go"]), parsed, "raw text")

    assert merged.headline == "New headline"
    assert merged.skills == ["Python"]
    assert merged.experience[0].company == "Acme"
    assert merged.target_titles == ["Backend Engineer"]
    # Empty parsed list falls back to the stored one.
    assert merged.search_keywords == ["go"]
    assert merged.target_locations == ["Berlin"]
    assert merged.min_salary == 100000
    assert merged.remote_preference == "remote"
    assert merged.company_size == ["startup"]
    assert merged.resume_text == "raw text"


def test_merge_without_existing_profile() -> None:
    merged = merge_parsed_resume(None, ParsedResume(summary="Hi"), "txt")
    assert merged.summary == "Hi"
    assert merged.headline is None
    assert merged.target_locations == []
    assert merged.resume_text == "txt"
