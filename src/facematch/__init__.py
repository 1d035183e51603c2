"""On-device face recognition matching core.

Turns a cropped face into an embedding with a TFLite model, matches it
against an in-memory gallery of registered identities, and enrolls new
faces on their first clear sighting.

Quick Start:
    from facematch import FaceMatcher, EnrollmentSession, TFLiteEmbeddingBackend

    matcher = FaceMatcher(TFLiteEmbeddingBackend("mobile_face_net.tflite"))
    session = EnrollmentSession(label="User")
    result = matcher.identify(face_crop, session=session)
"""

__version__ = "0.1.0"

from .embeddings import (
    BaseEmbeddingBackend,
    TFLiteEmbeddingBackend,
    EMBEDDING_BACKENDS,
    create_embedding_backend,
)
from .exceptions import FaceMatchError, InferenceError, InvalidEmbeddingError, ModelNotFoundError
from .gallery import IdentityGallery
from .matcher import FaceMatcher, annotation_for
from .types import (
    UNKNOWN_LABEL,
    AnnotationHint,
    BoundingBox,
    EnrollmentSession,
    IdentityRecord,
    MatchResult,
)

__all__ = [
    # Types
    "UNKNOWN_LABEL", "AnnotationHint", "BoundingBox", "EnrollmentSession",
    "IdentityRecord", "MatchResult",
    # Errors
    "FaceMatchError", "InferenceError", "InvalidEmbeddingError", "ModelNotFoundError",
    # Embeddings
    "BaseEmbeddingBackend", "TFLiteEmbeddingBackend", "EMBEDDING_BACKENDS",
    "create_embedding_backend",
    # Matching
    "IdentityGallery", "FaceMatcher", "annotation_for",
]
