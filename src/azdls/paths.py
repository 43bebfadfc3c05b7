"""Path helpers shared by the core, the backend and the lister.

    Paths handed to the backend are relative to the configured root. Directory
    paths end with a slash; the root itself is "/".
"""
from urllib.parse import quote


def normalize_root(root: str) -> str:
    """Collapse repeated slashes and make sure the root starts with one and does not end with one."""
    parts = [x for x in (root or "").split("/") if x]
    return "/" + "/".join(parts)


def is_root(path: str) -> bool:
    return path in ("", "/")


def build_abs_path(root: str, path: str) -> str:
    """Join the root and a relative path into an absolute remote path (without a leading slash)."""
    prefix = root.strip("/")
    path = path.lstrip("/")
    if not prefix:
        return path
    if not path:
        return prefix + "/"
    return f"{prefix}/{path}"


def build_rel_path(root: str, abs_path: str) -> str:
    """Turn an absolute remote path into a path relative to the root."""
    prefix = root.strip("/")
    abs_path = abs_path.lstrip("/")
    if not prefix:
        return abs_path
    if abs_path == prefix:
        return ""
    if abs_path.startswith(prefix + "/"):
        return abs_path[len(prefix) + 1:]
    return abs_path


def percent_encode_path(path: str) -> str:
    return quote(path, safe="/~")


def parent_path(abs_path: str) -> str:
    """Return the parent directory of a path, or an empty string for a top-level entry."""
    parts = [x for x in abs_path.rstrip("/").split("/") if x]
    return "/".join(parts[:-1])
