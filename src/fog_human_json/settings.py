"""Runtime settings with typed configuration and fail-fast validation.

Settings are plain values handed to :class:`~fog_human_json.assembler.ObjectAssembler`;
nothing here is held as process-wide state.

Examples
--------
>>> from fog_human_json.settings import load_settings
>>> settings = load_settings()
>>> settings.assembler.default_compression
3
"""

from __future__ import annotations

from enum import StrEnum
from typing import IO, TYPE_CHECKING

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from fog_human_json.errors import SettingsError
from fog_human_json.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import logging

__all__ = [
    "AssemblerConfig",
    "ObservabilityConfig",
    "RuntimeSettings",
    "SignerResolution",
    "load_settings",
]

logger = get_logger(__name__)


class SignerResolution(StrEnum):
    """How a ``signer`` field is turned into a signature."""

    PENDANT = "pendant"
    VAULT = "vault"


class AssemblerConfig(BaseSettings):
    """Object assembly defaults (``FOG_JSON_ASSEMBLER_*``)."""

    model_config = SettingsConfigDict(env_prefix="FOG_JSON_ASSEMBLER_", extra="forbid")

    default_compression: int | None = Field(
        default=3,
        ge=0,
        le=255,
        description="Compression level used when an object omits 'compression' (null disables)",
    )
    signer_resolution: SignerResolution = Field(
        default=SignerResolution.PENDANT,
        description="'pendant' returns a signing request, 'vault' signs in-line from a key vault",
    )


class ObservabilityConfig(BaseSettings):
    """Logging toggles (``FOG_JSON_*`` namespace)."""

    model_config = SettingsConfigDict(env_prefix="FOG_JSON_", extra="forbid")

    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    json_logs: bool = Field(default=True, description="Emit one JSON object per log line")

    def install(self, stream: IO[str] | None = None) -> logging.Handler:
        """Install the root handler these toggles describe; see :func:`setup_logging`."""
        return setup_logging(self.log_level, json_logs=self.json_logs, stream=stream)


class RuntimeSettings(BaseSettings):
    """Aggregate runtime configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FOG_JSON_",
        env_nested_delimiter="__",
        extra="forbid",
        case_sensitive=False,
    )

    assembler: AssemblerConfig = Field(
        default_factory=AssemblerConfig, description="Object assembly configuration"
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Observability configuration"
    )

    def __init__(self, **overrides: object) -> None:
        """Initialise settings with fail-fast validation."""
        try:
            super().__init__(**overrides)  # type: ignore[arg-type]  # BaseSettings.__init__ accepts Any kwargs
        except ValidationError as exc:
            msg = f"Configuration validation failed: {exc}"
            logger.exception(
                "Settings validation failed",
                extra={"operation": "load_settings", "error_type": type(exc).__name__},
            )
            errors: list[dict[str, object]] = [
                {"field": ".".join(str(part) for part in error["loc"]), "issue": error["msg"]}
                for error in exc.errors()
            ]
            raise SettingsError(
                msg,
                errors=errors,
                cause=exc,
                context={"validation_error": str(exc)},
            ) from exc


def load_settings(**overrides: object) -> RuntimeSettings:
    """Load :class:`RuntimeSettings` with optional overrides.

    Parameters
    ----------
    **overrides : object
        Field values taking precedence over the environment, e.g.
        ``assembler={"signer_resolution": "vault"}``.

    Returns
    -------
    RuntimeSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If any value fails validation.
    """
    return RuntimeSettings(**overrides)
