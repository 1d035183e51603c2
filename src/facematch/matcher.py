"""Nearest-neighbour face matcher with progressive enrollment."""

import logging
import math
import threading
import uuid
from typing import Any, Optional, Tuple

import numpy as np

from .constants import MatchingConfig, get_matching_config
from .embeddings import BaseEmbeddingBackend
from .exceptions import InvalidEmbeddingError
from .gallery import IdentityGallery
from .types import AnnotationHint, BoundingBox, EnrollmentSession, IdentityRecord, MatchResult
from .utils import euclidean_distance

logger = logging.getLogger(__name__)


def _has_payload(extra: Any) -> bool:
    if extra is None:
        return False
    if isinstance(extra, np.ndarray):
        return extra.size > 0
    try:
        return len(extra) > 0
    except TypeError:
        return True


class FaceMatcher:
    """Turns a detected face crop into a labeled, distance-scored identity.

    Distances are Euclidean between raw embeddings. A face is known when the
    nearest gallery entry is strictly closer than `match_threshold`; ties go
    to the entry registered first.

    `identify` blocks for the duration of inference and must not be called
    from a rendering thread.
    """

    def __init__(
        self,
        embedder: BaseEmbeddingBackend,
        gallery: Optional[IdentityGallery] = None,
        match_threshold: Optional[float] = None,
        config: Optional[MatchingConfig] = None,
        strict: bool = True,
    ):
        """Initialize matcher.

        Args:
            embedder: Embedding backend producing fixed-size vectors
            gallery: Gallery to search and enroll into (new empty one if None)
            match_threshold: Overrides the configured threshold
            config: Matching constants (uses global config if None)
            strict: Raise InvalidEmbeddingError on a bad registration; when
                False the registration is rejected and logged instead

        Raises:
            InvalidEmbeddingError: If a record of a supplied gallery has the
                wrong dimensionality
        """
        self.config = config or get_matching_config()
        if match_threshold is None:
            match_threshold = self.config.match_threshold
        if match_threshold <= 0:
            raise ValueError(f"match_threshold must be positive, got {match_threshold}")

        self.match_threshold = float(match_threshold)
        self.strict = strict
        self.gallery = gallery if gallery is not None else IdentityGallery()
        self._embedder = embedder
        # Serializes the pending check, registration and flag clear
        self._enroll_lock = threading.Lock()

        for record in self.gallery.all_records():
            self._validate(record)

    @property
    def embedding_dim(self) -> int:
        return self._embedder.embedding_dim

    @property
    def unknown_label(self) -> str:
        return self.config.unknown_label

    def identify(
        self,
        face_image: np.ndarray,
        session: Optional[EnrollmentSession] = None,
        location: Optional[BoundingBox] = None,
    ) -> MatchResult:
        """Identify a cropped face, enrolling it if the session is pending.

        Args:
            face_image: Face crop from the upstream detector
            session: Enrollment session; while pending, the first unmatched
                face is registered under `session.label`
            location: Bounding box of the face in its frame, stored on a
                newly registered record

        Returns:
            MatchResult for this face

        Raises:
            InferenceError: If the embedding could not be extracted. This is
                not an "unknown" result and the session is left untouched.
            InvalidEmbeddingError: If enrollment would register a vector of
                the wrong size and the matcher is strict
        """
        query = self._embedder.extract(face_image)

        nearest, distance = self.nearest(query)
        if nearest is not None and distance < self.match_threshold:
            logger.debug(f"Matched {nearest.label} at distance {distance:.4f}")
            return MatchResult(
                label=nearest.label,
                distance=distance,
                is_known=True,
                embedding=query,
            )

        if nearest is None:
            logger.debug("Gallery empty, face is unknown")
        else:
            logger.debug(
                f"Nearest is {nearest.label} at {distance:.4f}, "
                f"not below threshold {self.match_threshold}"
            )

        registered = False
        if session is not None:
            registered = self._enroll(session, query, location)

        return MatchResult(
            label=self.unknown_label,
            distance=distance,
            is_known=False,
            embedding=query,
            registered=registered,
        )

    def nearest(self, embedding: np.ndarray) -> Tuple[Optional[IdentityRecord], float]:
        """Find the gallery record closest to `embedding`.

        Returns:
            (record, distance), or (None, inf) for an empty gallery
        """
        records = self.gallery.all_records()
        if not records:
            return None, math.inf

        query = np.asarray(embedding, dtype=np.float32).reshape(-1)
        best_record = None
        best_distance = math.inf
        for record in records:
            if record.dim != query.shape[0]:
                logger.warning(
                    f"Skipping '{record.label}': {record.dim} dimensions, "
                    f"query has {query.shape[0]}"
                )
                continue
            distance = euclidean_distance(query, record.embedding)
            # Strict comparison keeps the first-registered record on ties
            if distance < best_distance:
                best_record = record
                best_distance = distance
        return best_record, best_distance

    def register(
        self,
        label: str,
        embedding: np.ndarray,
        location: Optional[BoundingBox] = None,
        color: Optional[str] = None,
        extra: Any = None,
        record_id: Optional[str] = None,
    ) -> IdentityRecord:
        """Register an identity through the dimensionality check.

        Raises:
            InvalidEmbeddingError: If `embedding` has the wrong size
        """
        record = IdentityRecord(
            id=record_id or uuid.uuid4().hex,
            label=label,
            embedding=embedding,
            location=location,
            color=color,
            extra=extra,
        )
        self._validate(record)
        self.gallery.register(label, record)
        return record

    def reset(self) -> None:
        """Forget every registered identity."""
        self.gallery.clear()

    def _validate(self, record: IdentityRecord) -> None:
        if record.dim != self.embedding_dim:
            raise InvalidEmbeddingError(self.embedding_dim, record.dim, record.label)

    def _enroll(
        self,
        session: EnrollmentSession,
        query: np.ndarray,
        location: Optional[BoundingBox],
    ) -> bool:
        with self._enroll_lock:
            # Another frame of the same session may have enrolled meanwhile
            if not session.pending:
                return False
            return self._enroll_locked(session, query, location)

    def _enroll_locked(
        self,
        session: EnrollmentSession,
        query: np.ndarray,
        location: Optional[BoundingBox],
    ) -> bool:
        # Without explicit metadata the embedding itself is kept as extra
        extra = session.extra if session.extra is not None else query.copy()
        if not _has_payload(extra):
            logger.debug(f"No extra payload for '{session.label}', enrollment still pending")
            return False

        try:
            record = self.register(
                session.label,
                query,
                location=location,
                color=self.config.unknown_color,
                extra=extra,
                record_id=session.record_id,
            )
        except InvalidEmbeddingError as e:
            if self.strict:
                raise
            logger.error(f"Rejected registration: {e}")
            return False

        session.pending = False
        session.record = record
        logger.info(f"Enrolled new face as '{session.label}'")
        return True


def annotation_for(result: MatchResult, config: Optional[MatchingConfig] = None) -> AnnotationHint:
    """Overlay label and colour for a match result."""
    config = config or get_matching_config()
    color = config.known_color if result.is_known else config.unknown_color
    return AnnotationHint(text=f"{result.label} {result.distance:.2f}", color=color)
