"""Storage-safe filename generation for uploaded attachments."""

import re
import threading
import time

FALLBACK_BASENAME = "file"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_stamp_lock = threading.Lock()
_last_stamp = 0


def _next_stamp() -> int:
    """Millisecond timestamp, strictly increasing within this process."""
    global _last_stamp
    with _stamp_lock:
        stamp = max(time.time_ns() // 1_000_000, _last_stamp + 1)
        _last_stamp = stamp
        return stamp


def _slug(value: str) -> str:
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def sanitize_filename(name: str) -> str:
    """Build a collision-resistant, storage-safe filename.

    The result has the form ``<base>-<timestamp>.<ext>``: the base name is
    lowercased with every run of non-alphanumeric characters collapsed to a
    single hyphen, and the extension is lowercased. Directory components are
    discarded. An empty base becomes ``file``; a missing extension is omitted.

    Args:
        name: Filename as supplied by the client (may be empty)

    Returns:
        Sanitized filename, never empty
    """
    # Keep only the last path component, whichever separator the client used
    leaf = name.replace("\\", "/").rsplit("/", 1)[-1]

    dot = leaf.rfind(".")
    if dot >= 0:
        base, ext = leaf[:dot], leaf[dot + 1 :]
    else:
        base, ext = leaf, ""

    base = _slug(base) or FALLBACK_BASENAME
    ext = _NON_ALNUM.sub("", ext.lower())

    stamped = f"{base}-{_next_stamp()}"
    return f"{stamped}.{ext}" if ext else stamped


def build_storage_path(root: str, project_scope: str, kind: str, filename: str) -> str:
    """Join blob path segments as ``<root>/<project-scope>/<kind>/<filename>``."""
    return "/".join(segment.strip("/") for segment in (root, project_scope, kind, filename))


def basename(path: str | None) -> str:
    """Last segment of a blob path."""
    if not path:
        return ""
    return path.rsplit("/", 1)[-1]
