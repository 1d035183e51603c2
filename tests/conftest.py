"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from facematch.embeddings import BaseEmbeddingBackend  # noqa: E402
from facematch.exceptions import InferenceError  # noqa: E402


class FakeEmbeddingBackend(BaseEmbeddingBackend):
    """Treats the "image" as its own embedding.

    Lets tests drive the matcher with exact vectors instead of pixels.
    """

    def __init__(self, dim: int = 4):
        self.dim = dim
        self.calls = 0

    @property
    def name(self) -> str:
        return "fake"

    @property
    def embedding_dim(self) -> int:
        return self.dim

    def extract(self, face_image):
        self.calls += 1
        vector = np.asarray(face_image, dtype=np.float32).reshape(-1)
        if vector.size == 0:
            raise InferenceError("empty image")
        return vector


class FailingEmbeddingBackend(FakeEmbeddingBackend):
    """Backend whose every inference call fails."""

    def extract(self, face_image):
        self.calls += 1
        raise InferenceError("backend failure")


class FakeInterpreter:
    """Minimal stand-in for a TFLite interpreter.

    Output is a fixed linear projection of the mean-pooled input, so equal
    inputs give equal embeddings.
    """

    def __init__(self, input_shape=(1, 8, 8, 3), output_dim=16, input_dtype=np.float32,
                 output_shape=None, fail_on_invoke=False, input_quantization=(0.0, 0),
                 output_dtype=np.float32, output_quantization=(0.0, 0)):
        self.input_shape = np.array(input_shape)
        self.output_shape = np.array(output_shape or (1, output_dim))
        self.input_dtype = input_dtype
        self.input_quantization = input_quantization
        self.output_dtype = output_dtype
        self.output_quantization = output_quantization
        self.fail_on_invoke = fail_on_invoke
        self.allocated = False
        self.invocations = 0
        self.last_input = None
        rng = np.random.default_rng(0)
        self._weights = rng.standard_normal((3, int(self.output_shape[-1]))).astype(np.float32)
        self._output = None

    def allocate_tensors(self):
        self.allocated = True

    def get_input_details(self):
        return [{
            "index": 0,
            "shape": self.input_shape,
            "dtype": self.input_dtype,
            "quantization": self.input_quantization,
        }]

    def get_output_details(self):
        return [{
            "index": 1,
            "shape": self.output_shape,
            "dtype": self.output_dtype,
            "quantization": self.output_quantization,
        }]

    def set_tensor(self, index, value):
        if tuple(value.shape) != tuple(self.input_shape):
            raise ValueError(f"Cannot set tensor: got shape {value.shape}")
        self.last_input = value

    def invoke(self):
        if self.fail_on_invoke:
            raise RuntimeError("invoke failed")
        self.invocations += 1
        values = self.last_input.astype(np.float32)
        scale, zero_point = self.input_quantization
        if scale:
            values = (values - zero_point) * scale
        output = (values.mean(axis=(0, 1, 2)) @ self._weights).reshape(1, -1)
        scale, zero_point = self.output_quantization
        if scale:
            info = np.iinfo(self.output_dtype)
            output = np.clip(np.round(output / scale + zero_point), info.min, info.max)
        self._output = output.astype(self.output_dtype)

    def get_tensor(self, index):
        return self._output


@pytest.fixture
def fake_backend():
    """A 4-dimensional pass-through embedding backend."""
    return FakeEmbeddingBackend(dim=4)


@pytest.fixture
def failing_backend():
    return FailingEmbeddingBackend(dim=4)


@pytest.fixture
def fake_interpreter():
    return FakeInterpreter()


@pytest.fixture
def sample_face():
    """Create a sample BGR face crop."""
    rng = np.random.default_rng(42)
    return rng.integers(0, 255, (120, 100, 3), dtype=np.uint8)


@pytest.fixture
def sample_image():
    """Create a sample test frame."""
    return np.random.randint(0, 255, (480, 640, 3), dtype=np.uint8)
