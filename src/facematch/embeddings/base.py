"""Base class for face embedding backends."""

from abc import ABC, abstractmethod

import numpy as np

from ..utils import euclidean_distance


class BaseEmbeddingBackend(ABC):
    """Abstract base class for face embedding extraction."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the embedding backend."""
        pass

    @property
    @abstractmethod
    def embedding_dim(self) -> int:
        """Return the dimensionality of the embedding vector."""
        pass

    @abstractmethod
    def extract(self, face_image: np.ndarray) -> np.ndarray:
        """Extract embedding from a face image.

        Args:
            face_image: BGR face image (cropped by the upstream detector)

        Returns:
            Embedding vector of length `embedding_dim`

        Raises:
            InferenceError: If extraction failed
        """
        pass

    def distance(self, embedding1: np.ndarray, embedding2: np.ndarray) -> float:
        """Calculate Euclidean distance between two embeddings.

        Args:
            embedding1: First embedding vector
            embedding2: Second embedding vector

        Returns:
            Euclidean distance (lower means more similar)
        """
        return euclidean_distance(embedding1, embedding2)
