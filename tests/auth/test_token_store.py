import json
import os

import pytest

from src.auth.token_store import TokenStore
from src.models.base_models import Token, TokenPair
from src.models.errors import ErrorCategory, StorageError


def test_load_returns_none_when_record_missing(store):
    assert store.exists() is False
    assert store.load() is None
    assert store.last_write_time() is None


def test_save_then_load_round_trips(store, token_pair):
    store.save(token_pair)

    loaded = store.load()

    assert loaded is not None
    assert loaded.tokens == token_pair
    assert loaded.persisted_at == store.last_write_time()


def test_save_creates_parent_directories(tmp_path, token_pair):
    store = TokenStore(tmp_path / "a" / "b" / "tokens.json")

    store.save(token_pair)

    assert store.path.is_file()


def test_save_writes_readable_record_without_leftovers(store, token_pair):
    store.save(token_pair)

    record = json.loads(store.path.read_text(encoding="utf-8"))
    assert record == {
        "access": {"token": "A1", "expires_in": 3600},
        "refresh": {"token": "R1", "expires_in": 864000},
    }
    assert os.listdir(store.path.parent) == [store.path.name]


def test_save_replaces_previous_record(store, token_pair):
    store.save(token_pair)
    updated = TokenPair(access=Token(value="A2", expires_in=3600), refresh=token_pair.refresh)

    store.save(updated)

    assert store.load().tokens.access.value == "A2"


@pytest.mark.parametrize(
    "content",
    [
        "",
        "not json",
        "[1, 2]",
        "{}",
        '{"access": {"expires_in": "soon"}}',
        '{"access": {"token": "A1", "expires_in": 3600}}',
        '{"access": {"token": "", "expires_in": 3600}, "refresh": {"token": "R1", "expires_in": 10}}',
        '{"Access": {"Token": "A1", "ExpiresIn": 3600}, "Refresh": {"Token": "R1", "ExpiresIn": 864000}}',
    ],
)
def test_malformed_record_is_treated_as_missing(store, content):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content, encoding="utf-8")

    assert store.load() is None


def test_last_write_time_follows_mtime(store, token_pair):
    store.save(token_pair)
    os.utime(store.path, (1_000_000, 1_000_000))

    assert store.last_write_time() == 1_000_000
    assert store.load().persisted_at == 1_000_000


def test_save_failure_raises_storage_error(tmp_path, token_pair):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    store = TokenStore(blocker / "tokens.json")

    with pytest.raises(StorageError) as exc_info:
        store.save(token_pair)

    assert exc_info.value.category is ErrorCategory.IO_FAILURE
