"""
Idle-time audit of edited files for leftover debug statements.

The audit is advisory: it reads files, never modifies them, and never blocks
anything. Unreadable files count as zero occurrences.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from utils.constants import FileConstants


@dataclass(frozen=True)
class MarkerHit:
    """A single occurrence of the debug marker."""

    line: int
    content: str


@dataclass
class AuditReport:
    """Aggregated result of one audit pass."""

    marker: str
    total: int = 0
    files: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.total == 0

    @property
    def offending_files(self) -> List[str]:
        return [path for path, _ in self.files]


def has_extension(path: str, extensions: Sequence[str]) -> bool:
    return path.lower().endswith(tuple(extensions))


def find_markers(file_path: str, marker: str) -> List[MarkerHit]:
    """
    Find lines containing the marker in a file.

    Returns an empty list if the file cannot be read.
    """
    try:
        content = Path(file_path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []

    return [
        MarkerHit(line=number, content=line.strip())
        for number, line in enumerate(content.split("\n"), start=1)
        if marker in line
    ]


def count_markers(file_path: str, marker: str) -> int:
    """Count every occurrence of the marker in a file, including repeats on one line."""
    return sum(hit.content.count(marker) for hit in find_markers(file_path, marker))


class AuditEngine:
    """Scans tracked files for a disallowed debug-statement marker."""

    def __init__(
        self,
        marker: str = FileConstants.DEBUG_MARKER,
        extensions: Sequence[str] = FileConstants.SOURCE_EXTENSIONS,
    ):
        self.marker = marker
        self.extensions = tuple(extensions)

    def is_auditable(self, path: str) -> bool:
        return has_extension(path, self.extensions)

    def run(self, paths: Iterable[str]) -> AuditReport:
        """Audit every auditable path and aggregate the counts."""
        report = AuditReport(marker=self.marker)
        for path in sorted(set(paths)):
            if not self.is_auditable(path):
                continue
            count = count_markers(path, self.marker)
            if count > 0:
                report.total += count
                report.files.append((path, count))
        return report
