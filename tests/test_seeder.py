from __future__ import annotations

from dataclasses import replace

from legal_calendar.core.config import get_settings
from legal_calendar.core.security import verify_password
from legal_calendar.domain.seeds import Ref, SeedSet, default_catalogue
from legal_calendar.services.seed_service import Seeder


def test_seeding_twice_keeps_one_row(repo):
    seeds = SeedSet("categories", "key", ({"key": "tax", "name": "Thuế"},))
    seeder = Seeder(repo)

    first = seeder.ensure_seeded("categories", seeds)
    second = seeder.ensure_seeded("categories", seeds)

    assert (first.inserted, first.skipped) == (1, 0)
    assert (second.inserted, second.skipped) == (0, 1)
    assert repo.count("categories") == 1
    assert repo.find_by("categories", "key", "tax")["name"] == "Thuế"


def test_admin_edits_are_not_overwritten(repo):
    seeds = SeedSet("settings", "key", ({"key": "app_name", "value": "HTIC Legal Calendar"},))
    seeder = Seeder(repo)
    seeder.ensure_seeded("settings", seeds)
    row = repo.find_by("settings", "key", "app_name")
    repo.update("settings", row["id"], {"value": "Lịch pháp lý"})

    seeder.ensure_seeded("settings", seeds)

    assert repo.find_by("settings", "key", "app_name")["value"] == "Lịch pháp lý"


def test_refs_resolve_by_natural_key(repo):
    seeder = Seeder(repo)
    seeder.ensure_seeded("provinces", SeedSet("provinces", "code", ({"code": "hcm", "name": "TP. Hồ Chí Minh"},)))
    seeder.ensure_seeded(
        "agencies",
        SeedSet(
            "agencies",
            "code",
            (
                {"code": "HCM-TAX", "name": "Cuc Thue", "province_id": Ref("provinces", "code", "hcm")},
                {"code": "XX-TAX", "name": "Khong ro", "province_id": Ref("provinces", "code", "xx")},
            ),
        ),
    )
    hcm = repo.find_by("provinces", "code", "hcm")
    assert repo.find_by("agencies", "code", "HCM-TAX")["province_id"] == hcm["id"]
    assert repo.find_by("agencies", "code", "XX-TAX")["province_id"] is None


def test_malformed_entries_are_counted_and_skipped(repo):
    seeds = SeedSet(
        "categories",
        "key",
        (
            {"name": "no key"},
            {"key": "bad", "name": "Bad", "unexpected": 1},
            {"key": "ok", "name": "Ok"},
        ),
    )
    result = Seeder(repo).ensure_seeded("categories", seeds)
    assert (result.inserted, result.skipped, result.failed) == (1, 0, 2)
    assert len(result.errors) == 2


def test_default_catalogue_converges(repo, monkeypatch):
    monkeypatch.setenv("DEFAULT_ADMIN_PASSWORD", "secret123")
    get_settings.cache_clear()
    try:
        settings = replace(get_settings(), default_admin_username="root")
    finally:
        get_settings.cache_clear()
    catalogue = default_catalogue(settings)
    seeder = Seeder(repo)
    order = ["settings", "admin_users", "categories", "org_types", "provinces", "agencies", "events", "news", "organizations"]

    for name in order:
        result = seeder.ensure_seeded(name, catalogue[name])
        assert result.failed == 0, result.errors
    counts = {name: repo.count(name) for name in order}

    for name in order:
        assert seeder.ensure_seeded(name, catalogue[name]).inserted == 0
    assert {name: repo.count(name) for name in order} == counts

    admin = repo.find_by("admin_users", "username", "root")
    assert verify_password("secret123", admin["password_hash"])
    event = repo.find_by("events", "title", "Nop to khai thue GTGT thang")
    assert event["category_id"] == repo.find_by("categories", "key", "tax")["id"]
