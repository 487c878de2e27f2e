"""Content-type detection for uploaded files."""

import logging
from pathlib import Path

import filetype
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Plain-text formats recognised by extension only
TEXT_MIME_TYPES: dict[str, str] = {
    "txt": "text/plain",
    "xml": "text/xml",
    "csv": "text/csv",
    "md": "text/markdown",
}


def _image_mime_type(file_path: Path) -> str | None:
    try:
        with Image.open(file_path) as img:
            if img.format:
                return Image.MIME.get(img.format.upper())
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        pass
    return None


def sniff_mime_type(file_path: Path) -> str | None:
    """Detect a MIME type from the file's signature bytes.

    Pillow handles images; archives, documents and media go through the
    ``filetype`` signature table.
    """
    mime = _image_mime_type(file_path)
    if mime:
        return mime
    try:
        kind = filetype.guess(str(file_path))
    except OSError as e:
        logger.debug("Could not sniff %s: %s", file_path, e)
        return None
    return kind.mime if kind else None


def infer_content_type(file_path: Path) -> str:
    """Infer a file's content type.

    Content is inspected first; files with no recognised signature fall back
    to the plain-text extension table. Returns an empty string when neither
    resolves.
    """
    file_path = Path(file_path)
    sniffed = sniff_mime_type(file_path)
    if sniffed:
        return sniffed
    return TEXT_MIME_TYPES.get(file_path.suffix.lower().lstrip("."), "")
