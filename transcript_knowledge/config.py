from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    log_level: str = "INFO"

    # Reconstruction
    silence_threshold_ms: int = 2000
    max_sentences_per_paragraph: int = 1

    # Cleaning
    fix_errors: bool = True
    normalize_chars: bool = True
    remove_non_verbal: bool = True
    remove_fillers: bool = False

    # Extraction
    importance_long_content_chars: int = 100
    importance_min_quotes: int = 2
    importance_min_concepts: int = 2
    rules_path: str = ""  # Empty -> packaged default rule set

    # Chunking
    max_chunk_chars: int = 1000
    min_chunk_chars: int = 200
    chunk_separator: str = "\n"

    # Output
    output_dir: str = "./output"
    save_intermediate_results: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


