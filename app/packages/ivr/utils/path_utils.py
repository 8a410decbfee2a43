"""Path utilities for the IVR directory tree.

Paths are ``/``-joined, non-empty segments with no leading or trailing slash;
the root is the empty string ``""``. Comparison is exact and case-sensitive.
Every helper here is pure and total over such strings.
"""

from __future__ import annotations

from urllib.parse import quote

ROOT = ""


def normalize(path: str | None) -> str:
    """Collapse slashes and whitespace: ``"/1//2/"`` -> ``"1/2"``, ``None`` -> ``""``."""
    return "/".join(split(path))


def split(path: str | None) -> list[str]:
    return [segment for segment in (path or "").strip().split("/") if segment]


def join(*parts: str | None) -> str:
    segments: list[str] = []
    for part in parts:
        segments.extend(split(part))
    return "/".join(segments)


def parent(path: str) -> str:
    segments = split(path)
    return "/".join(segments[:-1])


def basename(path: str) -> str:
    segments = split(path)
    return segments[-1] if segments else ""


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    """True when ``path == ancestor`` or ``path`` lies somewhere below it."""
    if ancestor == ROOT:
        return True
    return path == ancestor or path.startswith(ancestor + "/")


def is_direct_child(parent_path: str, candidate: str) -> bool:
    if parent_path == ROOT:
        return candidate != ROOT and "/" not in candidate
    prefix = parent_path + "/"
    if not candidate.startswith(prefix):
        return False
    remaining = candidate[len(prefix):]
    return bool(remaining) and "/" not in remaining


def encode_path(path: str) -> str:
    """Absolute form with every segment percent-encoded: ``"1/ניגון"`` -> ``"/1/%D7%A0..."``."""
    return "/" + "/".join(quote(segment, safe="") for segment in split(path))


def breadcrumbs(path: str) -> list[dict[str, str]]:
    """Navigation trail from the root down to ``path`` (root excluded)."""
    trail: list[dict[str, str]] = []
    segments = split(path)
    for index, segment in enumerate(segments):
        trail.append({"name": segment, "path": "/".join(segments[: index + 1])})
    return trail
