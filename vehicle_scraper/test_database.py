"""
Tests for the SQLite vehicle repository.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.errors import StorageError, VehicleNotFound
from vehicle_scraper.models import Vehicle

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_vehicle(vid="v1", scraped_at=T0, **kw) -> Vehicle:
    return Vehicle(id=vid, scraped_at=scraped_at, **kw)


@pytest.fixture
def repo(tmp_path):
    with VehicleRepository(str(tmp_path / "vehicles.db")) as r:
        yield r


def test_save_and_get(repo):
    v = make_vehicle(title="2021 Toyota Camry", price=24500, source="Cars.com", url="https://www.cars.com/v/1")
    stored = repo.save(v)
    assert stored == v
    assert repo.get("v1") == v
    assert repo.get("missing") is None


def test_persists_across_connections(tmp_path):
    path = str(tmp_path / "vehicles.db")
    with VehicleRepository(path) as r:
        r.save(make_vehicle(title="Kept"))
    with VehicleRepository(path) as r:
        assert [v.title for v in r.get_all()] == ["Kept"]


def test_upsert_keeps_capture_time(repo):
    repo.save(make_vehicle(title="Old", price=1000))
    later = T0 + timedelta(days=3)
    stored = repo.save(make_vehicle(title="New", price=2000, scraped_at=later))

    assert stored.title == "New"
    assert stored.price == 2000
    assert stored.scraped_at == T0
    assert repo.count() == 1


def test_update(repo):
    repo.save(make_vehicle(title="Civic", price=9000))
    assert repo.update("v1", price=8500).price == 8500
    assert repo.get("v1").price == 8500

    with pytest.raises(VehicleNotFound):
        repo.update("nope", price=1)
    with pytest.raises(ValueError):
        repo.update("v1", scraped_at=T0 + timedelta(days=1))


def test_duplicate_by_url(repo):
    assert repo.add_if_new(make_vehicle("a", url="https://x.example/1", title="One"))
    assert not repo.add_if_new(make_vehicle("b", url="https://x.example/1", title="Two"))
    assert repo.count() == 1


def test_duplicate_by_title_and_price(repo):
    assert repo.add_if_new(make_vehicle("a", title="2019 Kia Soul", price=None))
    assert not repo.add_if_new(make_vehicle("b", title="2019 Kia Soul", price=None))
    assert repo.add_if_new(make_vehicle("c", title="2019 Kia Soul", price=12000))
    assert repo.count() == 2


def test_delete_and_clear(repo):
    for i in range(3):
        repo.save(make_vehicle(f"v{i}"))
    assert repo.delete("v0")
    assert not repo.delete("v0")
    assert repo.clear() == 2
    assert repo.get_all() == []


def test_trim_keeps_newest(repo):
    for i in range(5):
        repo.save(make_vehicle(f"v{i}", scraped_at=T0 + timedelta(days=i)))

    assert repo.trim(2) == 3
    assert sorted(v.id for v in repo.get_all()) == ["v3", "v4"]
    assert repo.trim(10) == 0


def test_search_and_filter(repo):
    repo.save(make_vehicle("a", title="2021 Toyota Camry", make="Toyota", price=24500, year=2021, source="Cars.com"))
    repo.save(make_vehicle("b", title="2018 Honda Accord", make="Honda", price=19900, year=2018, source="CarMax"))
    repo.save(make_vehicle("c", title="2015 Honda Civic", make="Honda", price=None, year=2015, source="CarMax",
                           location="Austin, TX"))

    assert [v.id for v in repo.search("CAMRY")] == ["a"]
    assert [v.id for v in repo.search("austin")] == ["c"]
    assert [v.id for v in repo.get_by_source("CarMax")] == ["b", "c"]
    assert [v.id for v in repo.filter(make="Honda", min_price=10000)] == ["b"]
    assert [v.id for v in repo.filter(sort="price_desc", max_price=30000)] == ["a", "b"]
    assert [v.id for v in repo.filter(sort="year_asc", limit=1, offset=1)] == ["b"]
    assert repo.count(make="Honda") == 2


def test_facets_and_stats(repo):
    repo.save(make_vehicle("a", make="Toyota", price=20000, year=2021, source="Cars.com"))
    repo.save(make_vehicle("b", make="Honda", price=10000, year=2018, source="CarMax",
                           scraped_at=T0 + timedelta(days=1)))
    repo.save(make_vehicle("c", make="Honda", year=2018, source="CarMax", scraped_at=T0 + timedelta(days=2)))

    assert repo.facets() == {
        "years": [2021, 2018],
        "makes": ["Honda", "Toyota"],
        "sources": ["CarMax", "Cars.com"],
    }

    stats = repo.stats()
    assert stats["total"] == 3
    assert stats["min_price"] == 10000
    assert stats["max_price"] == 20000
    assert stats["avg_price"] == 15000
    assert stats["by_source"] == {"CarMax": 2, "Cars.com": 1}
    assert stats["by_make"] == {"Honda": 2, "Toyota": 1}
    assert stats["by_year"] == {"2021": 1, "2018": 2}
    assert stats["oldest"] == T0.isoformat()


def test_replace_is_a_new_vehicle(repo):
    v = make_vehicle(title="Camry")
    repo.save(v)
    repo.save(replace(v, id="v2"))
    assert repo.count() == 2


def test_unopenable_store(tmp_path):
    with pytest.raises(StorageError):
        VehicleRepository(str(tmp_path / "missing" / "dir" / "vehicles.db"))


def test_closed_store_raises_storage_error(tmp_path):
    r = VehicleRepository(str(tmp_path / "vehicles.db"))
    r.close()
    with pytest.raises(StorageError):
        r.get_all()


def test_save_many_is_all_or_nothing(repo):
    repo.save(make_vehicle("kept", title="Already here"))
    batch = [make_vehicle("a", title="ok"), make_vehicle("b", title={"x": 1})]

    with pytest.raises(StorageError):
        repo.save_many(batch)
    assert [v.id for v in repo.get_all()] == ["kept"]

    assert repo.save_many([make_vehicle("a", title="ok"), make_vehicle("kept", title="Updated")]) == 2
    assert repo.get("kept").title == "Updated"
    assert repo.count() == 2
