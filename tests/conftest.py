from __future__ import annotations

import base64
import io
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from faceauth_station.storage.kv_store import InMemoryKeyValueStore
from faceauth_station.storage.ledger import KeyValueLedgerStore


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def encode_image(width: int = 64, height: int = 48, *, fmt: str = "PNG", mode: str = "RGB", color=(200, 120, 80)) -> str:
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(buf.getvalue()).decode('ascii')}"


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 8, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def ledger() -> KeyValueLedgerStore:
    return KeyValueLedgerStore(InMemoryKeyValueStore())


@pytest.fixture
def face_image() -> str:
    return encode_image()


@pytest.fixture
def make_image():
    return encode_image
