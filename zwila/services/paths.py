"""Blob naming: slugs, member filenames, and folder keys."""

import re
import secrets
import string

# URL-safe alphabet used for generated slugs
SLUG_ALPHABET = string.ascii_letters + string.digits + "_-"
SLUG_LENGTH = 21

DELIMITER = "/"

# Characters that would break the one-level folder layout or the blob URL
INVALID_NAME_CHARS = re.compile(r'[/\\?#\x00-\x1f\x7f]')


def generate_slug(length: int = SLUG_LENGTH) -> str:
    """Generate a random folder slug, e.g. ``'2uT_9rJpk5T8-UCUBLFtJ'``."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def validate_slug(slug: str) -> str:
    """Check that ``slug`` names a single top-level folder.

    Raises ValueError for empty names, path separators, control characters,
    and the ``.``/``..`` path segments.
    """
    if not slug or not slug.strip():
        raise ValueError("Folder slug must not be empty")
    if slug in (".", ".."):
        raise ValueError(f"Invalid folder slug {slug!r}")
    if INVALID_NAME_CHARS.search(slug):
        raise ValueError(f"Invalid characters in folder slug {slug!r}")
    return slug


def validate_filename(filename: str) -> str:
    """Check a member filename.

    Folders are one level deep, so a filename is a single path segment:
    ``docs/a.pdf`` would be invisible to member listings and is rejected.
    """
    if not filename or not filename.strip():
        raise ValueError("Filename must not be empty")
    if filename in (".", ".."):
        raise ValueError(f"Invalid filename {filename!r}")
    if INVALID_NAME_CHARS.search(filename):
        raise ValueError(f"Invalid characters in filename {filename!r}")
    return filename


def folder_prefix(slug: str) -> str:
    return f"{slug}{DELIMITER}"


def blob_key(slug: str, filename: str) -> str:
    """Full blob name of a file within a folder."""
    return f"{slug}{DELIMITER}{filename}"


def slug_from_prefix(prefix: str) -> str:
    """Folder slug of a first-level listing prefix (``'abc/'`` -> ``'abc'``)."""
    return prefix[:-len(DELIMITER)] if prefix.endswith(DELIMITER) else prefix
