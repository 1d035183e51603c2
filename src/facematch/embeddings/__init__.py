"""Face embedding backends.

Embedding backends extract numerical representations (embeddings) from face images
for comparison and recognition.
"""

import logging

from .base import BaseEmbeddingBackend
from .tflite import TFLiteEmbeddingBackend

logger = logging.getLogger(__name__)

EMBEDDING_BACKENDS = {
    "tflite": TFLiteEmbeddingBackend,
}


def create_embedding_backend(backend: str = "tflite", **kwargs) -> BaseEmbeddingBackend:
    """Create embedding backend by name.

    Raises:
        ValueError: If the backend name is unknown
    """
    key = backend.lower()
    if key not in EMBEDDING_BACKENDS:
        raise ValueError(
            f"Unknown embedding backend '{backend}'. "
            f"Available: {', '.join(sorted(EMBEDDING_BACKENDS))}"
        )
    logger.debug(f"Creating {key} embedding backend")
    return EMBEDDING_BACKENDS[key](**kwargs)


__all__ = [
    "BaseEmbeddingBackend",
    "TFLiteEmbeddingBackend",
    "EMBEDDING_BACKENDS",
    "create_embedding_backend",
]
