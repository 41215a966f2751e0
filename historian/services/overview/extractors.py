"""Pattern extraction over archive lines for the static overview."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Set, Tuple

_DIRECTORY_PATTERN = re.compile(r'(?:cd |Working directory: |pwd: )([^";\n]+)')
_FILE_PATTERN = re.compile(r'(?:vim |nano |cat |less |edit |read |write )(.?[^";\n|>]+)')

COMMAND_CATEGORIES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("git", re.compile(r"git", re.IGNORECASE)),
    ("package managers", re.compile(r"npm|yarn|pnpm|pip|cargo|apt|brew", re.IGNORECASE)),
    ("containers", re.compile(r"docker|podman|kubectl", re.IGNORECASE)),
    ("remote", re.compile(r"ssh|scp|rsync", re.IGNORECASE)),
    ("services", re.compile(r"systemctl|service", re.IGNORECASE)),
    ("editors", re.compile(r"vim|nvim|nano|code", re.IGNORECASE)),
)

MAX_FILES = 100
RECENT_WINDOW = 100


@dataclass
class ArchiveDigest:
    line_count: int = 0
    directories: Set[str] = field(default_factory=set)
    files: Set[str] = field(default_factory=set)
    command_counts: Dict[str, int] = field(default_factory=dict)
    recent: Deque[str] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))

    def sorted_directories(self) -> List[str]:
        return sorted(self.directories)

    def sorted_files(self) -> List[str]:
        return sorted(self.files)[:MAX_FILES]

    def recent_entries(self, count: int = 50) -> List[str]:
        non_empty = [line for line in self.recent if line.strip()]
        return non_empty[-count:]


def digest_lines(lines: Iterable[str]) -> ArchiveDigest:
    """Single pass over *lines* collecting everything the overview reports."""

    digest = ArchiveDigest(command_counts={name: 0 for name, _ in COMMAND_CATEGORIES})
    for raw in lines:
        line = raw.rstrip("\n")
        digest.line_count += 1
        digest.recent.append(line)

        for match in _DIRECTORY_PATTERN.finditer(line):
            directory = match.group(1).strip()
            if directory:
                digest.directories.add(directory)

        for match in _FILE_PATTERN.finditer(line):
            candidate = re.sub(r"^[a-z]* ", "", match.group(1)).strip()
            if candidate.startswith(("/", "~")):
                digest.files.add(candidate)

        for name, pattern in COMMAND_CATEGORIES:
            if pattern.search(line):
                digest.command_counts[name] += 1
    return digest


__all__ = ["ArchiveDigest", "COMMAND_CATEGORIES", "digest_lines"]
