"""TFLite face embedding backend."""

import logging
import threading
from pathlib import Path
from typing import Any, List, Optional, Tuple

import numpy as np

from ..constants import EmbeddingConfig, get_embedding_config
from ..exceptions import InferenceError, ModelNotFoundError
from ..utils import l2_normalize, load_labels, preprocess_face
from .base import BaseEmbeddingBackend

logger = logging.getLogger(__name__)


def _load_interpreter(model_file: str) -> Any:
    """Create a TFLite interpreter for `model_file`."""
    try:
        import tflite_runtime.interpreter as tflite
    except ImportError:
        try:
            import tensorflow.lite as tflite
        except ImportError as e:
            raise InferenceError(
                "TFLite not installed. Install with: "
                "pip install tflite-runtime or pip install tensorflow"
            ) from e
    return tflite.Interpreter(model_path=model_file)


_FLOAT_TYPES = (np.float32, np.float16)
_QUANTIZED_TYPES = (np.uint8, np.int8)


def _quantization(detail: dict) -> Tuple[float, int]:
    """Return (scale, zero_point) of a tensor, (0.0, 0) when unquantized."""
    scale, zero_point = detail.get("quantization", (0.0, 0))
    return float(scale), int(zero_point)


def _check_dtype(detail: dict, role: str) -> None:
    dtype = np.dtype(detail["dtype"])
    if dtype in [np.dtype(t) for t in _FLOAT_TYPES]:
        return
    if dtype not in [np.dtype(t) for t in _QUANTIZED_TYPES]:
        raise InferenceError(f"Unsupported model {role} type {dtype}")
    scale, _ = _quantization(detail)
    if scale <= 0:
        raise InferenceError(f"Quantized model {role} ({dtype}) has no quantization scale")


def _is_quantized(detail: dict) -> bool:
    return np.dtype(detail["dtype"]) in [np.dtype(t) for t in _QUANTIZED_TYPES]


class TFLiteEmbeddingBackend(BaseEmbeddingBackend):
    """Face embedding using a TFLite model (MobileFaceNet, 192D by default).

    The interpreter is created once, on first use, and shared by every call.
    TFLite interpreters are not re-entrant, so invocations are serialized
    through a single lock.
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        labels_path: Optional[str] = None,
        config: Optional[EmbeddingConfig] = None,
        interpreter: Any = None,
    ):
        """Initialize TFLite embedding backend.

        Args:
            model_path: Path to the TFLite face embedding model
                       (uses config default if None)
            labels_path: Optional label list file loaded with the model
            config: Embedding constants (uses global config if None)
            interpreter: Pre-built interpreter, skips loading from disk
        """
        self._config = config or get_embedding_config()
        self._model_path = model_path or self._config.model_path
        self._labels_path = labels_path or self._config.labels_path
        self._interpreter = interpreter
        self._input_details = None
        self._output_details = None
        self._labels: List[str] = []
        self._load_error: Optional[InferenceError] = None
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "tflite"

    @property
    def embedding_dim(self) -> int:
        return self._config.embedding_dim

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def model_path(self) -> str:
        return str(self._model_path)

    def _initialize(self) -> None:
        """Lazy initialization of TFLite interpreter. Caller holds the lock."""
        if self._initialized:
            if self._load_error is not None:
                raise self._load_error
            return

        self._initialized = True
        try:
            self._load()
        except InferenceError as e:
            logger.error(f"Failed to load TFLite model: {e}")
            self._load_error = e
            raise

    def _load(self) -> None:
        if self._interpreter is None:
            model_file = Path(str(self._model_path))
            if not model_file.exists():
                raise ModelNotFoundError(f"TFLite face embedding model not found: {model_file}")
            try:
                self._interpreter = _load_interpreter(str(model_file))
            except InferenceError:
                raise
            except Exception as e:
                raise InferenceError(f"Could not create interpreter for {model_file}: {e}") from e

        try:
            self._interpreter.allocate_tensors()
            self._input_details = self._interpreter.get_input_details()
            self._output_details = self._interpreter.get_output_details()
        except Exception as e:
            raise InferenceError(f"Could not allocate tensors: {e}") from e

        self._check_shapes()

        if self._labels_path:
            self._labels = load_labels(self._labels_path)

        logger.info(
            f"Loaded TFLite model from {self._model_path} "
            f"(input {self._input_details[0]['shape']}, {self.embedding_dim}D output)"
        )

    def _check_shapes(self) -> None:
        """Reject a model whose tensors don't match the configured shapes."""
        if not self._input_details or not self._output_details:
            raise InferenceError("Model has no input or output tensors")

        input_shape = list(self._input_details[0]["shape"])
        if len(input_shape) != 4 or input_shape[3] != 3:
            raise InferenceError(f"Expected NHWC RGB model input, got shape {input_shape}")

        output_shape = list(self._output_details[0]["shape"])
        if not output_shape or output_shape[-1] != self.embedding_dim:
            raise InferenceError(
                f"Model output shape {output_shape} does not match "
                f"embedding dimension {self.embedding_dim}"
            )

        _check_dtype(self._input_details[0], "input")
        _check_dtype(self._output_details[0], "output")

    def extract(self, face_image: np.ndarray) -> np.ndarray:
        """Extract an embedding using TFLite.

        Args:
            face_image: BGR face image

        Returns:
            Embedding vector of length `embedding_dim`

        Raises:
            InferenceError: If the model can't be loaded, the image can't be
                preprocessed, or inference fails
        """
        with self._lock:
            self._initialize()

            input_detail = self._input_details[0]
            height, width = int(input_detail["shape"][1]), int(input_detail["shape"][2])

            input_data = preprocess_face(
                face_image,
                (width, height),
                mean=self._config.image_mean,
                std=self._config.image_std,
            )
            if _is_quantized(input_detail):
                dtype = np.dtype(input_detail["dtype"])
                scale, zero_point = _quantization(input_detail)
                info = np.iinfo(dtype)
                input_data = np.clip(np.round(input_data / scale + zero_point), info.min, info.max)
            input_data = input_data.astype(input_detail["dtype"])

            try:
                self._interpreter.set_tensor(input_detail["index"], input_data)
                self._interpreter.invoke()
                output = self._interpreter.get_tensor(self._output_details[0]["index"])
            except Exception as e:
                logger.error(f"TFLite embedding extraction failed: {e}")
                raise InferenceError(f"TFLite inference failed: {e}") from e

        output_detail = self._output_details[0]
        if _is_quantized(output_detail):
            scale, zero_point = _quantization(output_detail)
            output = (np.asarray(output, dtype=np.float32) - zero_point) * scale

        embedding = np.array(output, dtype=np.float32).flatten()
        if embedding.shape[0] != self.embedding_dim:
            raise InferenceError(
                f"Model produced {embedding.shape[0]} values, expected {self.embedding_dim}"
            )
        if not np.all(np.isfinite(embedding)):
            raise InferenceError("Model produced non-finite embedding values")

        if self._config.normalize_output:
            embedding = l2_normalize(embedding)
        return embedding
