"""Pick the file the client asked for out of a multi-file torrent.

Episode matching uses guessit on each file path; without a season/episode
hint (or without a match) the largest video file wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

import structlog
from guessit import guessit

from trawlarr.domain.entities.debrid import FileHint

log = structlog.get_logger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {".mkv", ".mp4", ".avi", ".m4v", ".mov", ".wmv", ".ts", ".m2ts", ".webm", ".mpg"}
)


@dataclass(frozen=True)
class DebridFile:
    """A file inside a torrent as reported by a provider."""

    path: str
    size_bytes: int = 0

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def is_video(self) -> bool:
        return PurePosixPath(self.path).suffix.lower() in VIDEO_EXTENSIONS


def _as_set(value: Any) -> set[int]:
    if value is None:
        return set()
    if isinstance(value, list):
        return {v for v in value if isinstance(v, int)}
    return {value} if isinstance(value, int) else set()


def _matches_episode(file: DebridFile, season: int | None, episode: int) -> bool:
    guess = guessit(file.name)
    if episode not in _as_set(guess.get("episode")):
        return False
    seasons = _as_set(guess.get("season"))
    return season is None or not seasons or season in seasons


def select_file(files: Sequence[DebridFile], hint: FileHint) -> int | None:
    """Index into ``files`` of the best match for ``hint``; None if empty."""
    if not files:
        return None
    candidates = [i for i, f in enumerate(files) if f.is_video] or list(range(len(files)))

    if hint.episode is not None:
        for i in candidates:
            if _matches_episode(files[i], hint.season, hint.episode):
                return i
        log.debug(
            "file_selection_no_episode_match",
            season=hint.season,
            episode=hint.episode,
            files=len(files),
        )

    if hint.name:
        wanted = PurePosixPath(hint.name).name.lower()
        for i in candidates:
            if files[i].name.lower() == wanted:
                return i

    return max(candidates, key=lambda i: files[i].size_bytes)
