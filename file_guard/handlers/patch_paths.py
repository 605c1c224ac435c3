"""Extract target paths from patch text.

Handles unified diff headers (--- / +++ pairs) and the "*** Begin Patch"
envelope used by agent apply_patch tools.
"""
import re

ENVELOPE_HEADER = re.compile(r"^\*\*\* (?:Add File|Update File|Delete File|Move to): (.+?)\s*$")
NULL_DEVICE = "/dev/null"


def _diff_header_path(line: str) -> str | None:
    """Path from a "--- a/x" or "+++ b/x" line (timestamp and prefix removed)."""
    path = line[4:].split("\t", 1)[0].strip()
    if not path or path == NULL_DEVICE:
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path or None


def extract_patch_paths(patch: str) -> list[str]:
    """
    Collect every file path a patch touches.

    A "--- " line only counts as a header when the next line starts with
    "+++ ", so removed lines that happen to begin with "-- " are ignored.

    Returns:
        Unique paths in first-seen order
    """
    lines = patch.splitlines()
    paths: list[str] = []

    for i, line in enumerate(lines):
        if line.startswith("--- ") and i + 1 < len(lines) and lines[i + 1].startswith("+++ "):
            paths.append(_diff_header_path(line))
            paths.append(_diff_header_path(lines[i + 1]))
            continue
        match = ENVELOPE_HEADER.match(line)
        if match:
            paths.append(match.group(1))

    return list(dict.fromkeys(p for p in paths if p))
