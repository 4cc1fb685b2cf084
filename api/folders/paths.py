"""
Path normalization and virtual path reconstruction.

A record carries two path representations that may disagree: the explicit
`para_folder` set when the file was organized, and the `original_relative_path`
observed on disk. `build_virtual_path` reconciles both into one normalized
key sequence that every folder view groups by.
"""

import re
from typing import List, NamedTuple, Tuple


def split_segments(path: str | None, bucket: str | None = None) -> List[Tuple[str, str]]:
    """
    Split a raw path into (key, display) pairs.

    The key is the trimmed, lowercased segment; the display keeps the original
    casing. Backslashes count as separators, blank segments are dropped, and
    leading segments equal to the bucket name are removed.
    """
    if path is None or not path.strip():
        return []

    pairs = []
    for raw in path.strip().replace("\\", "/").split("/"):
        segment = raw.strip()
        if segment:
            pairs.append((segment.lower(), segment))

    if bucket is not None and bucket.strip():
        # Drop every leading bucket segment, not just the first
        bucket_key = bucket.strip().lower()
        while pairs and pairs[0][0] == bucket_key:
            pairs.pop(0)

    return pairs


def normalize_segments(path: str | None, bucket: str | None = None) -> List[str]:
    """
    Canonicalize a raw path into lowercase segments.

    >>> normalize_segments(" Projects/Nebula//Docs ", "Projects")
    ['nebula', 'docs']
    """
    return [key for key, _ in split_segments(path, bucket)]


def normalize_folder_path(path: str | None, bucket: str | None = None) -> str:
    """Normalized segments joined with '/' ('' for the bucket root)."""
    return "/".join(normalize_segments(path, bucket))


def title_case(key: str) -> str:
    """Upper-case the first character of a folder key."""
    return key[:1].upper() + key[1:]


class VirtualPath(NamedTuple):
    """Normalized folder keys with a parallel list of display segments."""
    keys: Tuple[str, ...]
    display: Tuple[str, ...]

    def starts_with(self, prefix) -> bool:
        prefix = tuple(prefix)
        return self.keys[:len(prefix)] == prefix


def build_virtual_path(
    para_folder: str | None,
    original_relative_path: str | None,
    is_directory: bool = False,
    bucket: str | None = None,
) -> VirtualPath:
    """
    Reconcile a record's explicit folder and original path into one
    virtual path.

    - A non-blank `para_folder` leads the path (display title-cased).
    - Otherwise the first segment of the original path leads (display keeps
      its original casing).
    - The remaining original path segments follow, skipping any segment that
      repeats a leading key.
    - The last original segment of a file is its name, not a folder, and is
      left out. Directories keep their own name as the final segment.
    """
    path_pairs = split_segments(original_relative_path, bucket)
    if not is_directory and path_pairs:
        path_pairs = path_pairs[:-1]

    folder_keys = normalize_segments(para_folder, bucket)
    if folder_keys:
        lead = [(key, title_case(key)) for key in folder_keys]
        rest = path_pairs
    elif path_pairs:
        lead = [path_pairs[0]]
        rest = path_pairs[1:]
    else:
        return VirtualPath(keys=(), display=())

    lead_keys = {key for key, _ in lead}
    pairs = lead + [(key, display) for key, display in rest if key not in lead_keys]

    return VirtualPath(
        keys=tuple(key for key, _ in pairs),
        display=tuple(display for _, display in pairs),
    )


def build_folder_pattern(normalized_folder: str, bucket: str | None = None) -> str:
    """
    Regex accepting `normalized_folder` (bare or bucket-prefixed) and any
    descendant of it. The bucket root matches everything.
    """
    if not normalized_folder:
        return ".*"

    escaped = re.escape(normalized_folder)
    if bucket is None or not bucket.strip():
        return f"^{escaped}(?:$|/.*)"

    escaped_prefixed = re.escape(f"{bucket.strip().lower()}/{normalized_folder}")
    return f"^(?:{escaped}|{escaped_prefixed})(?:$|/.*)"
