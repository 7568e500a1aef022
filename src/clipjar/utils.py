import io

from PIL import Image

from clipjar.config import DATA_DIR, IMAGE_DIR


def truncate_text(text: str, max_len: int) -> str:
    """Return the first ``max_len`` characters of ``text`` with surrounding whitespace removed."""
    return text.strip()[:max_len]


def menu_title(text: str, max_len: int) -> str:
    single_line = " ".join(text.split())
    if len(single_line) <= max_len:
        return single_line
    return single_line[: max_len - 3] + "..."


def ensure_dirs() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    IMAGE_DIR.mkdir(parents=True, exist_ok=True)


def get_image_dimensions(image_bytes: bytes) -> tuple[int, int]:
    """Read width and height from encoded image bytes without decoding pixels.

    Returns (0, 0) when the bytes are not a recognizable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return img.size
    except (OSError, ValueError, Image.DecompressionBombError):
        return (0, 0)


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
