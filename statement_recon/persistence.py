"""Persistence collaborators for save payloads.

The reconciliation core never persists anything itself; a save action hands
a :class:`~statement_recon.models.SavePayload` to any object satisfying
:class:`SaveStore`. :class:`JsonFileStore` is the file-backed store used by the
CLI.

Layout (relative to the store root, default ``./.statement_recon``)::

    <store_root>/<document_id>.json

Atomicity: writes target ``.tmp`` first and then ``os.replace`` into place.
Store failures propagate to the caller.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
from pathlib import Path
from typing import Protocol

from .logging_setup import get_logger
from .models import SavePayload

_STORE_DIR_ENV = "STATEMENT_RECON_STORE_DIR"
_DOCUMENT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]{0,127}$")

_logger = get_logger("statement_recon.persistence")


class SaveStore(Protocol):
    def save(self, payload: SavePayload) -> None: ...


def validate_document_id(document_id: str) -> str:
    """Ensure ``document_id`` is safe to use as a file name.

    Prevents path traversal when callers supply an arbitrary string.
    """

    if not _DOCUMENT_ID_RE.fullmatch(document_id) or ".." in document_id:
        raise ValueError(
            f"Invalid document_id {document_id!r}: use letters, digits, '_', '-' or '.'"
        )
    return document_id


def default_store_root() -> Path:
    """Return the store root: ``STATEMENT_RECON_STORE_DIR`` or ``./.statement_recon``."""

    root = os.getenv(_STORE_DIR_ENV)
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".statement_recon").resolve()


class JsonFileStore:
    """Store each document's latest save payload as a JSON file."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else default_store_root()

    def path_for(self, document_id: str) -> Path:
        return self.root / f"{validate_document_id(document_id)}.json"

    def save(self, payload: SavePayload) -> None:
        path = self.path_for(payload.document_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(payload.model_dump(mode="json"), f, ensure_ascii=False, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp, path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise
        _logger.info("saved reconciliation for %s to %s", payload.document_id, path)

    def load(self, document_id: str) -> SavePayload | None:
        path = self.path_for(document_id)
        if not path.exists():
            return None
        with path.open(encoding="utf-8") as f:
            return SavePayload.model_validate(json.load(f))
