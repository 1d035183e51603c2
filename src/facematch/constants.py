"""Centralized constants and configuration loader.

This module provides access to configuration values and sensible defaults
for the embedding model and the matching policy. Values are loaded from
config/config.yaml when available, otherwise defaults are used.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    try:
        if path.exists():
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")

    return {}


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Embedding Model Constants
# ============================================================

@dataclass
class EmbeddingConfig:
    """Embedding model constants (MobileFaceNet defaults)."""
    # Pre-trained model artifact
    model_path: str = "models/mobile_face_net.tflite"
    # Optional label list shipped next to the model
    labels_path: Optional[str] = None
    # Model input (width, height)
    input_size: Tuple[int, int] = (112, 112)
    # Output vector length
    embedding_dim: int = 192
    # Pixel scaling: (value - mean) / std
    image_mean: float = 128.0
    image_std: float = 128.0
    # The 1.0 threshold is calibrated on raw output, keep off by default
    normalize_output: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "EmbeddingConfig":
        """Create from config dictionary."""
        emb = _get_nested(config, "embedding") or {}
        input_size = emb.get("input_size", [112, 112])

        return cls(
            model_path=emb.get("model_path", "models/mobile_face_net.tflite"),
            labels_path=emb.get("labels_path"),
            input_size=tuple(input_size),
            embedding_dim=int(emb.get("embedding_dim", 192)),
            image_mean=float(emb.get("image_mean", 128.0)),
            image_std=float(emb.get("image_std", 128.0)),
            normalize_output=bool(emb.get("normalize_output", False)),
        )


# ============================================================
# Matching Constants
# ============================================================

@dataclass
class MatchingConfig:
    """Nearest-neighbour decision constants."""
    # Euclidean distance strictly below this is a known identity
    match_threshold: float = 1.0
    unknown_label: str = "Unknown"
    # Overlay colour hints
    known_color: str = "green"
    unknown_color: str = "red"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MatchingConfig":
        """Create from config dictionary."""
        m = _get_nested(config, "matching") or {}

        return cls(
            match_threshold=float(m.get("match_threshold", 1.0)),
            unknown_label=m.get("unknown_label", "Unknown"),
            known_color=m.get("known_color", "green"),
            unknown_color=m.get("unknown_color", "red"),
        )


# ============================================================
# Face Processing Constants
# ============================================================

@dataclass
class FaceProcessingConfig:
    """Face crop constants."""
    # Margin around detected face as fraction of size
    crop_margin_ratio: float = 0.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FaceProcessingConfig":
        """Create from config dictionary."""
        fp = _get_nested(config, "face_processing") or {}
        return cls(crop_margin_ratio=float(fp.get("crop_margin_ratio", 0.0)))


# ============================================================
# Global Config Instance (lazy loaded)
# ============================================================

class Config:
    """Global configuration singleton."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load configuration from file."""
        self._config = load_config()
        self._embedding: Optional[EmbeddingConfig] = None
        self._matching: Optional[MatchingConfig] = None
        self._face_processing: Optional[FaceProcessingConfig] = None

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Reload configuration from file."""
        self._config = load_config(config_path)
        # Reset cached configs
        self._embedding = None
        self._matching = None
        self._face_processing = None

    @property
    def embedding(self) -> EmbeddingConfig:
        """Get embedding model config."""
        if self._embedding is None:
            self._embedding = EmbeddingConfig.from_config(self._config)
        return self._embedding

    @property
    def matching(self) -> MatchingConfig:
        """Get matching config."""
        if self._matching is None:
            self._matching = MatchingConfig.from_config(self._config)
        return self._matching

    @property
    def face_processing(self) -> FaceProcessingConfig:
        """Get face processing config."""
        if self._face_processing is None:
            self._face_processing = FaceProcessingConfig.from_config(self._config)
        return self._face_processing

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a config value by key path."""
        return _get_nested(self._config, *keys, default=default)


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


# Convenience accessors
def get_embedding_config() -> EmbeddingConfig:
    """Get embedding model configuration."""
    return get_config().embedding


def get_matching_config() -> MatchingConfig:
    """Get matching configuration."""
    return get_config().matching


def get_face_processing_config() -> FaceProcessingConfig:
    """Get face processing configuration."""
    return get_config().face_processing
