import os
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from model_store.core.errors import AssetNotFound, InvalidInput
from model_store.services import AssetRegistry, derive_base_name


def store(registry, base_name, data=b"glTF"):
    return registry.commit(registry.reserve_name(base_name), data)


def test_reserve_tries_counter_suffixes(registry):
    first = registry.reserve_name("model")
    second = registry.reserve_name("model")
    third = registry.reserve_name("model")
    
    assert [p.name for p in (first, second, third)] == ["model.glb", "model_1.glb", "model_2.glb"]
    assert first.exists() and first.stat().st_size == 0


def test_reserve_skips_names_taken_out_of_band(registry):
    (registry.root / "model.glb").write_bytes(b"x")
    (registry.root / "model_1.glb").write_bytes(b"x")
    
    assert registry.reserve_name("model").name == "model_2.glb"


def test_concurrent_reservations_get_distinct_names(registry):
    with ThreadPoolExecutor(max_workers=8) as executor:
        paths = list(executor.map(lambda _: registry.reserve_name("race"), range(16)))
    
    names = {p.name for p in paths}
    assert len(names) == 16
    assert "race.glb" in names and "race_15.glb" in names


def test_commit_never_overwrites_existing_asset(registry):
    store(registry, "model", b"one")
    store(registry, "model", b"two")
    
    assert registry.get("model.glb") == b"one"
    assert registry.get("model_1.glb") == b"two"


def test_commit_leaves_no_temp_files(registry):
    info = store(registry, "model", b"payload")
    
    assert info.name == "model.glb"
    assert info.size == 7
    assert sorted(os.listdir(registry.root)) == ["model.glb"]


def test_list_newest_first(registry):
    store(registry, "old")
    store(registry, "middle")
    store(registry, "new")
    now = time.time()
    for offset, name in enumerate(["new.glb", "middle.glb", "old.glb"]):
        os.utime(registry.root / name, (now - offset * 60, now - offset * 60))
    
    assert [a.name for a in registry.list()] == ["new.glb", "middle.glb", "old.glb"]


def test_list_ignores_hidden_and_foreign_files(registry):
    store(registry, "model")
    (registry.root / ".model_1.glb.abcd1234.part").write_bytes(b"partial")
    (registry.root / "notes.txt").write_bytes(b"hello")
    (registry.root / "nested.glb").mkdir()
    
    assert [a.name for a in registry.list()] == ["model.glb"]


def test_list_missing_root(tmp_path):
    assert AssetRegistry(tmp_path / "nowhere").list() == []


def test_delete_removes_from_listing(registry):
    store(registry, "model")
    store(registry, "other")
    
    registry.delete("model.glb")
    
    assert [a.name for a in registry.list()] == ["other.glb"]
    with pytest.raises(AssetNotFound):
        registry.delete("model.glb")


def test_get_missing(registry):
    with pytest.raises(AssetNotFound):
        registry.get("ghost.glb")


@pytest.mark.parametrize(
    "name",
    ["../model.glb", "..", "a/b.glb", "a\\b.glb", "..\\model.glb", "", "   ", ".hidden.glb", "bad\x00.glb", None],
)
def test_unsafe_names_rejected(registry, name):
    for operation in (registry.get, registry.delete, registry.resolve):
        with pytest.raises(InvalidInput):
            operation(name)


def test_discard_removes_placeholder(registry):
    path = registry.reserve_name("model")
    
    registry.discard(path)
    registry.discard(path)
    
    assert not path.exists()


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("scene", "scene"),
        ("scene.glb", "scene"),
        ("scene.GLB", "scene"),
        ("scene.glb.gz", "scene"),
        ("  Robot Arm.glb ", "Robot Arm"),
        ("v1.2-draft", "v1.2-draft"),
    ],
)
def test_derive_base_name(file_name, expected):
    assert derive_base_name(file_name) == expected


@pytest.mark.parametrize("file_name", ["", ".glb", "dir/scene.glb", "..", ".glb.gz", None, 42])
def test_derive_base_name_rejects(file_name):
    with pytest.raises(InvalidInput):
        derive_base_name(file_name)
