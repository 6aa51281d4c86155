"""
Tests for the signature store
"""
import pytest

from lesson_planner.server.errors import StorageUnavailableError
from lesson_planner.server.schemas import SignaturePair
from lesson_planner.server.signature_repo import SIGNATURES_KEY, SignatureRepo


def test_defaults_when_absent(signatures):
    assert signatures.load() == SignaturePair(teacher=None, principal=None)


def test_save_and_reload(storage, signatures):
    pair = SignaturePair(teacher="data:image/png;base64,AAA", principal=None)
    signatures.save(pair)
    assert SignatureRepo(storage).current == pair


def test_corrupt_storage_falls_back(storage):
    storage.set_item(SIGNATURES_KEY, "{not json")
    assert SignatureRepo(storage).current == SignaturePair()


def test_wrong_shape_falls_back(storage):
    storage.set_item(SIGNATURES_KEY, '{"teacher": 42}')
    assert SignatureRepo(storage).current == SignaturePair()


def test_read_failure_falls_back(storage, monkeypatch):
    def boom(key):
        raise StorageUnavailableError()

    monkeypatch.setattr(storage, "get_item", boom)
    assert SignatureRepo(storage).current == SignaturePair()


def test_write_failure_keeps_value_in_memory(storage, signatures, monkeypatch, capsys):
    def boom(key, value):
        raise StorageUnavailableError()

    monkeypatch.setattr(storage, "set_item", boom)
    pair = SignaturePair(teacher="data:image/png;base64,AAA")

    with pytest.raises(StorageUnavailableError):
        signatures.save(pair)
    assert signatures.current == pair
    assert "[signature_repo]" in capsys.readouterr().out
