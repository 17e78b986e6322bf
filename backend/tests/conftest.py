from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from db.attachments import AttachmentStore  # noqa: E402
from db.registry import InventoryRegistry  # noqa: E402
from main import create_app  # noqa: E402


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def store(cache_dir: Path) -> AttachmentStore:
    return AttachmentStore(cache_dir)


@pytest.fixture()
def registry(store: AttachmentStore) -> InventoryRegistry:
    return InventoryRegistry(store)


@pytest.fixture()
def client(cache_dir: Path):
    app = create_app(cache_dir)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def png_bytes() -> bytes:
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 120


@pytest.fixture()
def stored_files():
    def _list(directory: Path) -> list[str]:
        if not directory.exists():
            return []
        return sorted(p.name for p in directory.iterdir() if p.is_file())
    return _list
