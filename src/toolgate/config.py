"""Centralized configuration for toolgate."""

import os
from pathlib import Path


class Config:
    """
    toolgate configuration with environment variable overrides.

    All configuration values are centralized here with sensible defaults.
    Values can be overridden via environment variables.
    """

    @staticmethod
    def _parse_int(name: str, raw: str) -> int:
        """Parse an integer setting from its string form."""
        try:
            value = int(raw)
        except ValueError as e:
            raise ValueError(f"Invalid {name} environment variable: {e}")
        return value

    # ========================================================================
    # Hook Configuration
    # ========================================================================
    TOOLGATE_HOME: Path = Path(
        os.getenv("TOOLGATE_HOME", str(Path.home() / ".toolgate"))
    ).expanduser()
    HOOKS_YAML_PATH: str = os.getenv(
        "TOOLGATE_HOOKS_PATH", str(TOOLGATE_HOME / "hooks.yaml")
    )
    DEFAULT_HOOK_TIMEOUT_SEC: int = _parse_int.__func__(
        "TOOLGATE_HOOK_TIMEOUT", os.getenv("TOOLGATE_HOOK_TIMEOUT", "60")
    )
    HOOK_OUTPUT_PREVIEW_CHARS: int = 200  # Parse errors quote this much stdout
    TRANSCRIPT_FILENAME: str = "history.jsonl"

    # ========================================================================
    # Audit Configuration
    # ========================================================================
    AUDIT_LOG_PATH: str = os.getenv("AUDIT_LOG_PATH", "./audit.jsonl")
    AUDIT_RETENTION_DAYS: int = int(os.getenv("AUDIT_RETENTION_DAYS", "30"))
    AUDIT_ROTATION_BYTES: int = int(
        os.getenv("AUDIT_ROTATION_BYTES", str(10 * 1024 * 1024))
    )

    # ========================================================================
    # Logging
    # ========================================================================
    LOG_LEVEL: str = os.getenv("TOOLGATE_LOG_LEVEL", "INFO")

    @classmethod
    def transcript_path(cls, home: Path | None = None) -> Path:
        """Location of the session transcript handed to hooks."""
        return (home or cls.TOOLGATE_HOME) / cls.TRANSCRIPT_FILENAME

    @classmethod
    def validate(cls) -> bool:
        """
        Validate configuration consistency.

        Checks:
        - Hook timeout is > 0
        - Audit rotation size is > 0
        - Log level is a known loguru level

        Returns:
            True if validation passes

        Raises:
            ValueError: If validation fails
        """
        errors = []

        if cls.DEFAULT_HOOK_TIMEOUT_SEC <= 0:
            errors.append(
                f"DEFAULT_HOOK_TIMEOUT_SEC must be > 0, got {cls.DEFAULT_HOOK_TIMEOUT_SEC}"
            )

        if cls.HOOK_OUTPUT_PREVIEW_CHARS <= 0:
            errors.append(
                f"HOOK_OUTPUT_PREVIEW_CHARS must be > 0, got {cls.HOOK_OUTPUT_PREVIEW_CHARS}"
            )

        if cls.AUDIT_ROTATION_BYTES <= 0:
            errors.append(
                f"AUDIT_ROTATION_BYTES must be > 0, got {cls.AUDIT_ROTATION_BYTES}"
            )

        if cls.LOG_LEVEL.upper() not in {
            "TRACE",
            "DEBUG",
            "INFO",
            "SUCCESS",
            "WARNING",
            "ERROR",
            "CRITICAL",
        }:
            errors.append(f"LOG_LEVEL is not a known level: {cls.LOG_LEVEL}")

        if errors:
            raise ValueError(f"Config validation failed: {'; '.join(errors)}")

        return True
