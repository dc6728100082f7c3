"""Records passed between pipeline stages.

Every record carries `index`, the clip's position in the selection order.
Stages sort and group by it, never by completion order or directory listing.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class SourceClip:
    """A remote video asset and, once fetched, its local copy."""

    index: int
    remote_id: str
    path: Path | None = None


@dataclass
class NormalizedClip:
    """One source clip rewritten to the common intermediate encoding."""

    index: int
    path: Path


@dataclass
class Chunk:
    """Consecutive normalized clips merged into one segment."""

    index: int
    members: list[NormalizedClip]
    path: Path

    @property
    def clip_indices(self) -> list[int]:
        return [clip.index for clip in self.members]


@dataclass
class CompilationResult:
    """Outcome of one pipeline run.

    Attributes:
        clip_indices: Selection indices present in the output, in order.
        dropped: (index, reason) for every clip that did not make it.
        chunks: Number of chunks merged into the output.
        published: Publisher name -> None on success, error text on failure.
    """

    clip_indices: list[int] = field(default_factory=list)
    dropped: list[tuple[int, str]] = field(default_factory=list)
    chunks: int = 0
    published: dict[str, str | None] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.clip_indices)
