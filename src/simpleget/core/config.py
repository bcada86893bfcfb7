# src/simpleget/core/config.py
"""
Client settings and loading.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_MAX_REDIRECTS = 10


class ClientSettings(BaseModel):
    """Defaults applied to every request made with these settings.

    Per-request options (RequestOptions.timeout, max_redirects) take
    precedence over the values here.

    Example YAML:
        max_redirects: 5
        timeout: 30
        verify_tls: true
        strip_sensitive_headers_cross_origin: true
    """

    model_config = {"frozen": True, "extra": "forbid"}

    max_redirects: int = Field(
        default=DEFAULT_MAX_REDIRECTS,
        ge=0,
        description="Redirect hops followed before giving up with TooManyRedirectsError",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-attempt timeout in seconds (None = unbounded)",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify server certificates on https hops",
    )
    advertise_encodings: bool = Field(
        default=True,
        description="Send 'Accept-Encoding: gzip, deflate' unless the caller set the header",
    )
    strip_sensitive_headers_cross_origin: bool = Field(
        default=False,
        description="Drop Authorization/Proxy-Authorization/Cookie when a redirect changes origin",
    )


def load_settings(config_path: Path | None = None) -> ClientSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SIMPLEGET_*) - highest priority
    2. Config file (if given)
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file, or None for env only

    Returns:
        Validated ClientSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given and doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SIMPLEGET",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    # and drop Dynaconf's own bookkeeping keys.
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return ClientSettings(**raw_config)
