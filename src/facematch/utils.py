"""Face image processing and vector utilities."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from .constants import get_embedding_config, get_face_processing_config
from .exceptions import InferenceError

logger = logging.getLogger(__name__)


def crop_face(
    image: np.ndarray,
    bbox: Tuple[int, int, int, int],
    margin: Optional[float] = None,
) -> np.ndarray:
    """Crop face from image with margin.

    The box is clipped to the frame; a box entirely outside the frame yields
    an empty array.

    Args:
        image: Full image
        bbox: Bounding box (x, y, w, h)
        margin: Margin around face as fraction of size (uses config default if None)

    Returns:
        Cropped face image
    """
    if margin is None:
        margin = get_face_processing_config().crop_margin_ratio
    x, y, w, h = bbox
    margin_w = int(w * margin)
    margin_h = int(h * margin)
    x1 = max(0, x - margin_w)
    y1 = max(0, y - margin_h)
    x2 = min(image.shape[1], x + w + margin_w)
    y2 = min(image.shape[0], y + h + margin_h)
    if x2 <= x1 or y2 <= y1:
        return image[0:0, 0:0]
    return image[y1:y2, x1:x2]


def preprocess_face(
    face_image: np.ndarray,
    target_size: Optional[Tuple[int, int]] = None,
    mean: Optional[float] = None,
    std: Optional[float] = None,
) -> np.ndarray:
    """Resize and normalize a face crop into a model input batch.

    Args:
        face_image: BGR (or grayscale) face crop
        target_size: (width, height) of the model input (uses config default if None)
        mean: Value subtracted from every pixel (uses config default if None)
        std: Divisor applied after subtracting the mean (uses config default if None)

    Returns:
        float32 array of shape (1, height, width, 3) in RGB order

    Raises:
        InferenceError: If the image is empty or cannot be resized
    """
    config = get_embedding_config()
    if target_size is None:
        target_size = config.input_size
    if mean is None:
        mean = config.image_mean
    if std is None:
        std = config.image_std

    if face_image is None:
        raise InferenceError("No face image given")
    face_image = np.asarray(face_image)
    if face_image.size == 0 or face_image.ndim not in (2, 3):
        raise InferenceError(f"Cannot preprocess face image of shape {face_image.shape}")

    try:
        if face_image.dtype != np.uint8:
            face_image = np.clip(face_image, 0, 255).astype(np.uint8)
        face = cv2.resize(face_image, tuple(int(v) for v in target_size))
        if face.ndim == 2:
            face = cv2.cvtColor(face, cv2.COLOR_GRAY2RGB)
        elif face.shape[2] == 4:
            face = cv2.cvtColor(face, cv2.COLOR_BGRA2RGB)
        elif face.shape[2] == 3:
            face = cv2.cvtColor(face, cv2.COLOR_BGR2RGB)
        else:
            raise InferenceError(f"Unsupported channel count: {face.shape[2]}")
    except cv2.error as e:
        raise InferenceError(f"Failed to resize face image: {e}") from e

    face = (face.astype(np.float32) - float(mean)) / float(std)
    return np.expand_dims(face, axis=0)


def l2_normalize(vector: np.ndarray, eps: float = 1e-10) -> np.ndarray:
    """Scale a vector to unit length (zero vectors are returned unchanged)."""
    vector = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(vector))
    if norm < eps:
        return vector
    return vector / norm


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Calculate Euclidean distance between two embeddings."""
    a = np.asarray(a, dtype=np.float32).reshape(-1)
    b = np.asarray(b, dtype=np.float32).reshape(-1)
    return float(np.linalg.norm(a - b))


def load_labels(labels_path: Union[str, Path]) -> List[str]:
    """Read a label list file, one label per line.

    Raises:
        InferenceError: If the file cannot be read
    """
    try:
        with open(labels_path, "r", encoding="utf-8") as f:
            labels = [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise InferenceError(f"Failed to read labels from {labels_path}: {e}") from e
    logger.debug(f"Loaded {len(labels)} labels from {labels_path}")
    return labels
