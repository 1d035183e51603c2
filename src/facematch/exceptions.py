"""Exceptions raised by the face matching core."""


class FaceMatchError(Exception):
    """Base class for all facematch errors."""


class InferenceError(FaceMatchError):
    """Embedding extraction failed.

    Raised when the model cannot be loaded, when the input crop cannot be
    resized/normalized, or when the interpreter call itself fails. This means
    "extraction failed", never "no face present".
    """


class ModelNotFoundError(InferenceError):
    """The embedding model file does not exist."""


class InvalidEmbeddingError(FaceMatchError):
    """A record's embedding does not have the extractor's dimensionality."""

    def __init__(self, expected: int, actual: int, label: str = ""):
        self.expected = expected
        self.actual = actual
        self.label = label
        who = f" for '{label}'" if label else ""
        super().__init__(
            f"Embedding{who} has {actual} dimensions, expected {expected}"
        )
