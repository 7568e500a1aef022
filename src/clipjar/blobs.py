import io
import logging
import os
import shutil
import tempfile
import uuid
from collections import OrderedDict
from pathlib import Path

from PIL import Image, ImageOps

from clipjar.config import IMAGE_DIR, THUMBNAIL_CACHE_SIZE, THUMBNAIL_SIZE

logger = logging.getLogger(__name__)

BLOB_SUFFIX = ".png"
_PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}
_IMAGE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


class BlobNotFoundError(FileNotFoundError):
    """Raised when a blob needed for an export does not exist."""


class ThumbnailCache:
    """Least-recently-used cache of thumbnails keyed by (file name, max dimension)."""

    def __init__(self, maxsize: int = THUMBNAIL_CACHE_SIZE):
        self._maxsize = maxsize
        self._items: OrderedDict[tuple[str, int], Image.Image] = OrderedDict()

    def get(self, key: tuple[str, int]) -> Image.Image | None:
        image = self._items.get(key)
        if image is not None:
            self._items.move_to_end(key)
        return image

    def put(self, key: tuple[str, int], image: Image.Image) -> None:
        self._items[key] = image
        self._items.move_to_end(key)
        while len(self._items) > self._maxsize:
            self._items.popitem(last=False)

    def evict(self, file_name: str) -> None:
        for key in [k for k in self._items if k[0] == file_name]:
            del self._items[key]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: tuple[str, int]) -> bool:
        return key in self._items


class BlobStore:
    """Image payloads stored as uniquely named PNG files in one directory."""

    def __init__(self, directory: str | Path | None = None, thumbnail_cache_size: int = THUMBNAIL_CACHE_SIZE):
        self._dir = Path(directory) if directory else IMAGE_DIR
        self._dir.mkdir(parents=True, exist_ok=True)
        self._thumbnails = ThumbnailCache(thumbnail_cache_size)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, file_name: str) -> Path:
        if not file_name or Path(file_name).name != file_name:
            raise ValueError(f"Invalid blob name: {file_name!r}")
        return self._dir / file_name

    def save(self, image_bytes: bytes) -> tuple[str, int] | None:
        """Re-encode ``image_bytes`` as PNG and persist it under a fresh name.

        Returns (file_name, byte_size) of the written file, or None if the
        bytes could not be decoded or the file could not be written. The file
        only appears under its final name once it is completely written.
        """
        try:
            png_bytes = self._encode_png(image_bytes)
        except _IMAGE_ERRORS:
            logger.warning("Failed to encode clipboard image", exc_info=True)
            return None

        file_name = f"{uuid.uuid4()}{BLOB_SUFFIX}"
        path = self._dir / file_name
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(dir=self._dir, prefix=".", suffix=".tmp", delete=False) as f:
                tmp_name = f.name
                f.write(png_bytes)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError:
            logger.exception("Failed to save image %s", file_name)
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            return None
        return file_name, len(png_bytes)

    @staticmethod
    def _encode_png(image_bytes: bytes) -> bytes:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            if img.mode not in _PNG_MODES:
                img = img.convert("RGBA")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
        return buf.getvalue()

    def load(self, file_name: str) -> Image.Image | None:
        try:
            with Image.open(self.path_for(file_name)) as img:
                img.load()
                return img.copy()
        except FileNotFoundError:
            logger.debug("Image %s not found", file_name)
            return None
        except _IMAGE_ERRORS:
            logger.warning("Failed to load image %s", file_name, exc_info=True)
            return None

    def load_bytes(self, file_name: str) -> bytes | None:
        try:
            return self.path_for(file_name).read_bytes()
        except (OSError, ValueError):
            return None

    def load_thumbnail(self, file_name: str, max_dimension: int = THUMBNAIL_SIZE) -> Image.Image | None:
        key = (file_name, max_dimension)
        cached = self._thumbnails.get(key)
        if cached is not None:
            return cached

        try:
            with Image.open(self.path_for(file_name)) as img:
                thumb = ImageOps.exif_transpose(img)
                thumb.thumbnail((max_dimension, max_dimension))
        except FileNotFoundError:
            return None
        except _IMAGE_ERRORS:
            logger.warning("Failed to create thumbnail for %s", file_name, exc_info=True)
            return None

        self._thumbnails.put(key, thumb)
        return thumb

    def delete(self, file_name: str) -> None:
        self._thumbnails.evict(file_name)
        try:
            self.path_for(file_name).unlink(missing_ok=True)
        except (OSError, ValueError):
            logger.warning("Failed to delete image %s", file_name, exc_info=True)

    def copy(self, file_name: str, destination: str | Path) -> Path:
        try:
            source = self.path_for(file_name)
        except ValueError:
            raise BlobNotFoundError(file_name) from None
        if not source.is_file():
            raise BlobNotFoundError(file_name)
        dest = Path(destination)
        shutil.copyfile(source, dest)
        return dest

    def total_storage_size(self) -> int:
        total = 0
        for path in self._dir.glob(f"*{BLOB_SUFFIX}"):
            try:
                total += path.stat().st_size
            except OSError:
                continue
        return total
