import json

import pytest

from statement_recon.models import SavePayload
from statement_recon.persistence import JsonFileStore, default_store_root, validate_document_id


def _mk_payload(document_id: str = "doc-1") -> SavePayload:
    return SavePayload(
        document_id=document_id,
        selection={"Deposits::Card Sales": [2, 0, 2]},
        selected_total_from_categories=100.0,
        effective_main_totals={"Deposits": 100.0},
        difference=900.0,
    )


def test_default_store_root_uses_env(_isolate_store_dir):
    assert default_store_root() == _isolate_store_dir.resolve()


def test_save_and_load_round_trip(_isolate_store_dir):
    store = JsonFileStore()
    store.save(_mk_payload())
    path = _isolate_store_dir / "doc-1.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["selection"] == {"Deposits::Card Sales": [0, 2]}
    assert data["difference"] == 900.0
    assert store.load("doc-1") == _mk_payload()
    assert not list(_isolate_store_dir.glob("*.tmp"))


def test_load_missing_document_returns_none():
    assert JsonFileStore().load("missing") is None


@pytest.mark.parametrize("bad", ["../etc/passwd", "a/b", "", ".hidden", "x..y"])
def test_invalid_document_ids_are_rejected(bad):
    with pytest.raises(ValueError):
        validate_document_id(bad)


def test_failed_write_removes_temp_file(_isolate_store_dir, monkeypatch):
    def _boom(src, dst):
        raise OSError("rename failed")

    monkeypatch.setattr("statement_recon.persistence.os.replace", _boom)
    with pytest.raises(OSError):
        JsonFileStore().save(_mk_payload())
    assert not list(_isolate_store_dir.glob("*.tmp"))
    assert not (_isolate_store_dir / "doc-1.json").exists()
