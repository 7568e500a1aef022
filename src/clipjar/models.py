import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple


class ContentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class SourceApp(NamedTuple):
    """The application that was frontmost when the clipboard changed."""

    bundle_id: str | None
    name: str | None


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ClipboardEntry:
    content_type: ContentType
    preview: str
    byte_size: int = 0
    text_content: str | None = None
    image_file_name: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    source_app_bundle_id: str | None = None
    source_app_name: str | None = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.byte_size < 0:
            raise ValueError(f"byte_size must be >= 0, got {self.byte_size}")

        has_text = self.text_content is not None
        has_image = self.image_file_name is not None
        has_file = self.file_path is not None and self.file_name is not None
        expected = {
            ContentType.TEXT: (True, False, False),
            ContentType.IMAGE: (False, True, False),
            ContentType.FILE: (False, False, True),
        }[self.content_type]
        if (has_text, has_image, has_file) != expected:
            raise ValueError(f"payload fields do not match content type {self.content_type.value!r}")
        if not has_file and (self.file_path is not None or self.file_name is not None):
            raise ValueError("file_path and file_name must be set together")
