"""
Configuration management for the chat organizer
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml

from .errors import ConfigError


@dataclass
class ThresholdConfig:
    """Cosine similarity thresholds used by the classification pipeline"""
    high: float = 0.8  # confident match at rank 1 / rank 2
    low: float = 0.5   # escalation cutoff for the full-text scan

    def validate(self) -> None:
        """Raise ConfigError unless 0 <= low < high <= 1."""
        for name in ("high", "low"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"thresholds.{name} must be a number, got {value!r}")
        if not 0.0 <= self.low < self.high <= 1.0:
            raise ConfigError(
                f"Thresholds must satisfy 0 <= low < high <= 1 "
                f"(got low={self.low}, high={self.high})"
            )


@dataclass
class ProviderConfig:
    """Embedding and label generation provider configuration"""
    provider: str = "litellm"
    label_model: str = "gemini/gemini-2.0-flash"
    embedding_model: str = "gemini/text-embedding-004"
    api_key_env: str = "GEMINI_API_KEY"
    timeout: Optional[float] = 30.0

    def validate(self) -> None:
        if self.timeout is None:
            return
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError(f"providers.timeout must be a number or null, got {self.timeout!r}")
        if self.timeout <= 0:
            raise ConfigError(f"providers.timeout must be positive or null, got {self.timeout}")


@dataclass
class StorageConfig:
    """Snapshot storage configuration"""
    data_dir: str = "conversations"


@dataclass
class LoggingConfig:
    """Log file settings (console level comes from the command line)"""
    file: Optional[str] = "chat_organizer.log"  # null disables the file handler


@dataclass
class Config:
    """Main configuration class for the chat organizer"""
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    providers: ProviderConfig = field(default_factory=ProviderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    _instance: Optional["Config"] = field(default=None, init=False, repr=False)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file or use defaults.

        Args:
            config_path: Path to config file. Defaults to config.yaml in the working directory.

        Returns:
            Config instance with loaded or default settings.

        Raises:
            ConfigError: if a loaded value is out of range.
        """
        if config_path is None:
            config_path = Path("config.yaml")

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "thresholds" in data:
            threshold_data = data["thresholds"] or {}
            for key in ["high", "low"]:
                if key in threshold_data:
                    setattr(config.thresholds, key, threshold_data[key])

        if "providers" in data:
            provider_data = data["providers"] or {}
            for key in ["provider", "label_model", "embedding_model", "api_key_env", "timeout"]:
                if key in provider_data:
                    setattr(config.providers, key, provider_data[key])

        if "storage" in data:
            storage_data = data["storage"] or {}
            if "data_dir" in storage_data:
                config.storage.data_dir = storage_data["data_dir"]

        if "logging" in data:
            logging_data = data["logging"] or {}
            if "file" in logging_data:
                config.logging.file = logging_data["file"]

        config.thresholds.validate()
        config.providers.validate()
        return config

    @classmethod
    def get_instance(cls, config_path: Optional[Path] = None) -> "Config":
        """Get singleton instance of Config.

        Args:
            config_path: Path to config file (only used on first call).
        """
        if cls._instance is None:
            cls._instance = cls.load(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        cls._instance = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """Convenience function to get config singleton."""
    return Config.get_instance(config_path)
