from __future__ import annotations

import re

TRUNCATION_MARKER = "\n... [diff truncated]"

_BINARY_RE = re.compile(r"^(?:Binary files .* differ|GIT binary patch)$", re.MULTILINE)


def parse_diff_stats(patch_text: str) -> tuple[int, int]:
    """Return (additions, deletions) counted from a unified diff."""
    additions = deletions = 0
    for line in patch_text.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1
    return additions, deletions


def is_binary_diff(patch_text: str) -> bool:
    return bool(_BINARY_RE.search(patch_text))


def truncate_patch(patch_text: str, max_chars: int) -> tuple[str, bool]:
    """Cut ``patch_text`` to at most ``max_chars`` characters plus a marker.

    The cut falls on a line boundary; a partial last line is dropped so the
    redactor only ever sees whole lines.
    """
    if len(patch_text) <= max_chars:
        return patch_text, False
    cut = patch_text.rfind("\n", 0, max_chars + 1)
    return patch_text[: max(cut, 0)] + TRUNCATION_MARKER, True


def get_diff_positions(patch_text: str) -> dict[int, int]:
    """
    Maps new-file line numbers to their cumulative GitHub diff positions.

    GitHub's review comment API requires positions that are cumulative across
    the entire patch, not reset per hunk. The @@ header line is NOT counted;
    position 1 is the first content line immediately below the @@ header.
    Lines before the first hunk (``diff --git``, ``index``, ``---``/``+++``)
    are ignored, so a full ``git diff`` output can be passed as-is.
    """
    positions: dict[int, int] = {}
    diff_position = 0
    file_line: int | None = None
    in_hunk = False

    for line in patch_text.splitlines():
        if line.startswith("@@"):
            in_hunk = True
            try:
                new_file_range = line.split("+")[1].split(" ")[0]
                file_line = int(new_file_range.split(",")[0])
            except (IndexError, ValueError):
                file_line = None
            continue
        if not in_hunk:
            continue

        diff_position += 1

        if line.startswith("+"):
            if file_line is not None:
                positions[file_line] = diff_position
                file_line += 1
        elif line.startswith("-"):
            pass  # Removed line, does not advance the new-file line counter
        elif line.startswith("\\"):
            pass  # "\ No newline at end of file"
        elif file_line is not None:
            file_line += 1

    return positions
