"""Face matching types."""

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import numpy as np

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class BoundingBox:
    """Face bounding box in frame pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """Return bounding box as (x, y, w, h) tuple."""
        return (self.x, self.y, self.width, self.height)

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(eq=False)
class IdentityRecord:
    """One registered face.

    `location` and `color` are annotation hints only; matching looks at
    `embedding` alone.
    """

    id: str
    label: str
    embedding: np.ndarray
    location: Optional[BoundingBox] = None
    color: Optional[str] = None
    extra: Any = None

    def __post_init__(self):
        # Stored embeddings are read-only so a record owns its vector
        self.embedding = np.array(self.embedding, dtype=np.float32).reshape(-1)
        self.embedding.setflags(write=False)

    @property
    def dim(self) -> int:
        return int(self.embedding.shape[0])


@dataclass(frozen=True)
class MatchResult:
    """Result of matching one face crop against the gallery."""

    label: str = UNKNOWN_LABEL
    distance: float = math.inf
    is_known: bool = False
    embedding: Optional[np.ndarray] = field(default=None, compare=False, repr=False)
    registered: bool = False


@dataclass(frozen=True)
class AnnotationHint:
    """Overlay text and colour for the rendering collaborator."""

    text: str
    color: str


@dataclass
class EnrollmentSession:
    """Explicit enrollment state passed into `FaceMatcher.identify`.

    While `pending` is True the first unmatched face seen with a non-empty
    extra payload is registered under `label`, after which `pending` is
    cleared and `record` holds the new entry. With `extra` left as None the
    query embedding itself is stored as the payload.
    """

    label: str
    pending: bool = True
    extra: Any = None
    record_id: Optional[str] = None
    record: Optional[IdentityRecord] = None

    @property
    def completed(self) -> bool:
        return not self.pending and self.record is not None
