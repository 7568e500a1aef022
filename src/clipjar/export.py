"""Markdown export of clipboard entries, with images copied alongside."""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from clipjar.blobs import BlobStore
from clipjar.models import ClipboardEntry, ContentType

logger = logging.getLogger(__name__)


def images_dir_for(destination: Path) -> Path:
    return destination.with_name(destination.stem + "-images")


def render_markdown(entries: list[ClipboardEntry], label: str, images_dir_name: str) -> str:
    lines = [f"# Clipboard History - {label}", ""]
    for entry in entries:
        time = entry.timestamp.strftime("%H:%M")
        source = f" - {entry.source_app_name}" if entry.source_app_name else ""

        if entry.content_type == ContentType.TEXT:
            text = entry.text_content or entry.preview
            if "\n" in text:
                lines += [f"### {time}{source}", "", "```", text, "```", ""]
            else:
                lines.append(f"- **{time}**{source}: {text}")
        elif entry.content_type == ContentType.IMAGE:
            lines.append(f"- **{time}**{source}: ![image]({images_dir_name}/{entry.image_file_name})")
        else:
            lines.append(f"- **{time}**{source}: {entry.file_name or entry.file_path}")
            lines.append(f"  - Path: `{entry.file_path}`")
    return "\n".join(lines) + "\n"


def export_entries(entries: list[ClipboardEntry], label: str, destination: str | Path, blobs: BlobStore) -> Path:
    """Write ``entries`` as markdown to ``destination``.

    Images are copied into a ``<name>-images`` directory next to the markdown
    file. Raises BlobNotFoundError if an image is missing, in which case
    neither the markdown file nor the images directory is written.
    """
    dest = Path(destination)
    images_dir = images_dir_for(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    image_names = [e.image_file_name for e in entries if e.content_type == ContentType.IMAGE]
    if image_names:
        staging = Path(tempfile.mkdtemp(prefix=f".{images_dir.name}.", dir=dest.parent))
        try:
            for file_name in image_names:
                blobs.copy(file_name, staging / file_name)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        if images_dir.exists():
            shutil.rmtree(images_dir)
        os.replace(staging, images_dir)

    dest.write_text(render_markdown(entries, label, images_dir.name), encoding="utf-8")
    logger.info("Exported %d entries to %s", len(entries), dest)
    return dest
