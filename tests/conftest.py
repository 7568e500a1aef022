import io
from datetime import datetime

import pytest
from PIL import Image

from clipjar.blobs import BlobStore
from clipjar.models import ClipboardEntry, ContentType, SourceApp
from clipjar.pasteboard import Pasteboard
from clipjar.settings import Settings
from clipjar.storage import HistoryStore


class FakePasteboard(Pasteboard):
    """In-memory clipboard. Every write bumps the change counter like the real one."""

    def __init__(self):
        self.count = 0
        self.text: str | None = None
        self.image: bytes | None = None
        self.file_urls: list[str] = []
        self.source: SourceApp | None = SourceApp("com.example.editor", "Editor")

    def set(self, text=None, image=None, file_urls=None, source=None):
        self.text = text
        self.image = image
        self.file_urls = list(file_urls or [])
        if source is not None:
            self.source = source
        self.count += 1

    def change_count(self) -> int:
        return self.count

    def read_text(self) -> str | None:
        return self.text

    def read_image(self) -> bytes | None:
        return self.image

    def read_file_urls(self) -> list[str]:
        return self.file_urls

    def write_text(self, text: str) -> bool:
        self.set(text=text)
        return True

    def write_image(self, image_bytes: bytes) -> bool:
        self.set(image=image_bytes)
        return True

    def write_file_url(self, path: str) -> bool:
        self.set(file_urls=[path])
        return True

    def frontmost_app(self) -> SourceApp | None:
        return self.source


class FakeTimer:
    def __init__(self, callback, interval):
        self.callback = callback
        self.interval = interval
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    def fire(self):
        self.callback(self)


@pytest.fixture
def storage():
    mgr = HistoryStore(db_path=":memory:")
    yield mgr
    mgr.close()


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(tmp_path / "images")


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def pasteboard():
    return FakePasteboard()


@pytest.fixture
def timers():
    created: list[FakeTimer] = []

    def _factory(callback, interval):
        timer = FakeTimer(callback, interval)
        created.append(timer)
        return timer

    _factory.created = created
    return _factory


@pytest.fixture
def png_bytes():
    """Factory for small encoded images."""

    def _png_bytes(size: tuple[int, int] = (100, 50), color=(255, 0, 0), fmt: str = "PNG") -> bytes:
        buf = io.BytesIO()
        Image.new("RGB", size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _png_bytes


@pytest.fixture
def make_entry():
    """Factory fixture to create ClipboardEntry instances for testing."""

    def _make_entry(
        text: str = "hello world",
        content_type: ContentType = ContentType.TEXT,
        timestamp: datetime | None = None,
        image_file_name: str = "test.png",
        file_path: str = "/tmp/report.pdf",
        source_app_name: str | None = None,
        byte_size: int | None = None,
    ) -> ClipboardEntry:
        extra = {"timestamp": timestamp} if timestamp is not None else {}
        if content_type == ContentType.IMAGE:
            return ClipboardEntry(
                content_type=content_type,
                image_file_name=image_file_name,
                preview="Image (100×100)",
                byte_size=1000 if byte_size is None else byte_size,
                source_app_name=source_app_name,
                **extra,
            )
        if content_type == ContentType.FILE:
            name = file_path.rsplit("/", 1)[-1]
            return ClipboardEntry(
                content_type=content_type,
                file_path=file_path,
                file_name=name,
                preview=name,
                byte_size=0 if byte_size is None else byte_size,
                source_app_name=source_app_name,
                **extra,
            )
        return ClipboardEntry(
            content_type=content_type,
            text_content=text,
            preview=text.strip()[:100],
            byte_size=len(text.encode()) if byte_size is None else byte_size,
            source_app_name=source_app_name,
            **extra,
        )

    return _make_entry
