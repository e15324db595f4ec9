"""Application settings."""

import os
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field


class MemoryConfig(BaseModel):
    """Configuration for the conversation memory engine."""

    # Turn-count window kept in the session
    max_context_turns: int = Field(3, ge=1)
    # Soft token budget before summarization kicks in
    max_context_tokens: int = Field(8000, ge=0)
    enable_diff_compression: bool = True
    enable_summarization: bool = True
    session_storage_path: Path = Path(".assistant/sessions")
    # Declared for archival tooling, not enforced by the memory manager
    session_max_age_days: int = Field(30, ge=0)
    # Sessions kept in the in-process cache
    session_cache_size: int = Field(32, ge=1)


class Settings(BaseModel):
    """Application configuration settings."""

    memory: MemoryConfig = Field(default_factory=MemoryConfig)

    # Generation defaults handed to the LLM collaborator
    default_provider: str = "openai"
    default_model: Optional[str] = None
    max_tokens: int = Field(4096, ge=1)
    temperature: float = Field(0.7, ge=0.0, le=2.0)

    # Logging
    verbose: bool = False
    log_level: str = "INFO"

    def __init__(self, **data):
        # Environment overrides win over file values
        session_dir = os.environ.get("ASSISTANT_SESSION_DIR")
        if session_dir:
            memory = data.get("memory") or {}
            if isinstance(memory, MemoryConfig):
                memory = memory.model_dump()
            data["memory"] = {**memory, "session_storage_path": session_dir}

        if data.get("default_model") is None:
            data["default_model"] = os.environ.get("ASSISTANT_MODEL")

        if "ASSISTANT_PROVIDER" in os.environ:
            data["default_provider"] = os.environ["ASSISTANT_PROVIDER"]

        super().__init__(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a YAML file.

        A missing file yields the defaults. Sections not present in the
        file keep their default values.

        Args:
            path: Path to the YAML settings file

        Returns:
            Validated Settings

        Raises:
            ValueError: If the document is not a mapping
        """
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")

        return cls(**data)


def configure_logging(settings: Settings) -> None:
    """Configure root logging for an application embedding the engine."""
    level = logging.DEBUG if settings.verbose else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
