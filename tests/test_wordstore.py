"""Tests for the word store."""

import json

import pytest

from junkfilter.errors import CorruptStoreError, IncompatibleStoreError
from junkfilter.junk import WordCounts, WordStore


@pytest.fixture
def store():
    store = WordStore()
    store.increment("free viagra", ham=False)
    store.increment("free viagra", ham=False)
    store.increment("meeting agenda", ham=True)
    store.increment("hello there", ham=True)
    store.increment("hello there", ham=False)
    store.add_message(ham=True)
    store.add_message(ham=True)
    store.add_message(ham=False)
    return store


def test_lookup(store):
    assert store.lookup("free viagra") == WordCounts(ham=0, spam=2)
    assert store.lookup("hello there") == WordCounts(ham=1, spam=1)
    assert store.lookup("never seen") == WordCounts(ham=0, spam=0)
    assert len(store) == 3
    assert "meeting agenda" in store
    assert store.hams == 2
    assert store.spams == 1


def test_lookup_returns_a_copy(store):
    counts = store.lookup("free viagra")
    counts.spam = 100
    assert store.lookup("free viagra").spam == 2


def test_items_are_sorted(store):
    assert [token for token, _ in store.items()] == ["free viagra", "hello there", "meeting agenda"]


def test_remove(store):
    assert store.remove("hello there", ham=True)
    assert store.lookup("hello there") == WordCounts(ham=0, spam=1)

    # No ham observation left to remove
    assert not store.remove("hello there", ham=True)
    assert not store.remove("never seen", ham=False)


def test_remove_prunes_empty_records(store):
    assert store.remove("meeting agenda", ham=True)
    assert "meeting agenda" not in store
    assert len(store) == 2


def test_remove_message_never_goes_negative():
    store = WordStore()
    store.remove_message(ham=True)
    store.remove_message(ham=False)
    assert store.hams == 0
    assert store.spams == 0


def test_modified_flag(store, temp_dir):
    assert store.modified
    store.save(temp_dir / "words.json")
    assert not store.modified
    store.increment("new word", ham=True)
    assert store.modified


def test_save_and_load(store, temp_dir):
    path = temp_dir / "words.json"
    store.save(path)

    loaded = WordStore.load(path)
    assert list(loaded.items()) == list(store.items())
    assert loaded.hams == store.hams
    assert loaded.spams == store.spams
    assert not loaded.modified


def test_save_leaves_no_temporary_files(store, temp_dir):
    path = temp_dir / "words.json"
    store.save(path)
    store.increment("another", ham=True)
    store.save(path)
    assert sorted(p.name for p in temp_dir.iterdir()) == ["words.json"]


def test_load_missing_file(temp_dir):
    with pytest.raises(FileNotFoundError):
        WordStore.load(temp_dir / "missing.json")


def test_truncated_store_is_corrupt(store, temp_dir):
    path = temp_dir / "words.json"
    raw = store.to_bytes()
    path.write_bytes(raw[: len(raw) // 2])

    with pytest.raises(CorruptStoreError):
        WordStore.load(path)


def test_tampered_store_is_corrupt(store):
    data = json.loads(store.to_bytes())
    data["words"]["free viagra"] = [0, 999]

    with pytest.raises(CorruptStoreError):
        WordStore.from_bytes(json.dumps(data).encode())


def test_missing_checksum_is_corrupt(store):
    data = json.loads(store.to_bytes())
    del data["checksum"]

    with pytest.raises(CorruptStoreError):
        WordStore.from_bytes(json.dumps(data).encode())


def test_unsupported_version(store):
    data = json.loads(store.to_bytes())
    data["version"] = 99

    with pytest.raises(IncompatibleStoreError):
        WordStore.from_bytes(json.dumps(data).encode())


def test_unknown_format(store):
    data = json.loads(store.to_bytes())
    data["format"] = "something-else"

    with pytest.raises(IncompatibleStoreError):
        WordStore.from_bytes(json.dumps(data).encode())


def test_not_json():
    with pytest.raises(CorruptStoreError):
        WordStore.from_bytes(b"\x00\x01 not json")
    with pytest.raises(CorruptStoreError):
        WordStore.from_bytes(b"[1, 2, 3]")


def test_non_ascii_tokens_survive(temp_dir):
    store = WordStore()
    store.increment("grüße aus", ham=True)
    store.save(temp_dir / "words.json")

    assert WordStore.load(temp_dir / "words.json").lookup("grüße aus").ham == 1
