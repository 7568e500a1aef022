"""Capability interface over the system clipboard.

The monitor only talks to :class:`Pasteboard`; :class:`MacPasteboard` is the
PyObjC-backed implementation used by the app.
"""

from abc import ABC, abstractmethod

from clipjar.models import SourceApp


class Pasteboard(ABC):
    @abstractmethod
    def change_count(self) -> int:
        """Return the clipboard's change counter; it grows on every write."""

    @abstractmethod
    def read_text(self) -> str | None:
        pass

    @abstractmethod
    def read_image(self) -> bytes | None:
        """Return encoded image bytes (PNG or TIFF) if the clipboard holds an image."""

    @abstractmethod
    def read_file_urls(self) -> list[str]:
        """Return filesystem paths of file URLs on the clipboard, possibly empty."""

    @abstractmethod
    def write_text(self, text: str) -> bool:
        pass

    @abstractmethod
    def write_image(self, image_bytes: bytes) -> bool:
        pass

    @abstractmethod
    def write_file_url(self, path: str) -> bool:
        pass

    def frontmost_app(self) -> SourceApp | None:
        return None


class MacPasteboard(Pasteboard):
    def __init__(self):
        from AppKit import NSPasteboard

        self._pasteboard = NSPasteboard.generalPasteboard()

    def change_count(self) -> int:
        return int(self._pasteboard.changeCount())

    def read_text(self) -> str | None:
        from AppKit import NSPasteboardTypeString

        text = self._pasteboard.stringForType_(NSPasteboardTypeString)
        return str(text) if text is not None else None

    def read_image(self) -> bytes | None:
        from AppKit import NSPasteboardTypePNG, NSPasteboardTypeTIFF

        types = self._pasteboard.types() or []
        for img_type in (NSPasteboardTypePNG, NSPasteboardTypeTIFF):
            if img_type in types:
                data = self._pasteboard.dataForType_(img_type)
                if data is not None:
                    return bytes(data)
        return None

    def read_file_urls(self) -> list[str]:
        from AppKit import NSPasteboardURLReadingFileURLsOnlyKey
        from Foundation import NSURL

        urls = self._pasteboard.readObjectsForClasses_options_(
            [NSURL], {NSPasteboardURLReadingFileURLsOnlyKey: True}
        )
        if not urls:
            return []
        return [str(url.path()) for url in urls if url.isFileURL()]

    def write_text(self, text: str) -> bool:
        from AppKit import NSPasteboardTypeString

        self._pasteboard.clearContents()
        return bool(self._pasteboard.setString_forType_(text, NSPasteboardTypeString))

    def write_image(self, image_bytes: bytes) -> bool:
        from AppKit import NSPasteboardTypePNG
        from Foundation import NSData

        data = NSData.dataWithBytes_length_(image_bytes, len(image_bytes))
        if not data:
            return False
        self._pasteboard.clearContents()
        return bool(self._pasteboard.setData_forType_(data, NSPasteboardTypePNG))

    def write_file_url(self, path: str) -> bool:
        from Foundation import NSURL

        self._pasteboard.clearContents()
        return bool(self._pasteboard.writeObjects_([NSURL.fileURLWithPath_(path)]))

    def frontmost_app(self) -> SourceApp | None:
        from AppKit import NSWorkspace

        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        bundle_id = app.bundleIdentifier()
        name = app.localizedName()
        return SourceApp(
            bundle_id=str(bundle_id) if bundle_id else None,
            name=str(name) if name else None,
        )
