"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global tunables loaded from environment variables.

    These are the simulation-wide multipliers a host reads but never
    writes.  Override per-process with ``HOSTSEC_*`` variables or a
    ``.env`` file, or pass a custom instance to ``Server(settings=...)``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOSTSEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Security
    weaken_rate_multiplier: float = 1.0
    base_weaken_amount: float = 0.05    # security removed per weaken thread
    starting_security_multiplier: float = 1.0

    # Money
    starting_money_multiplier: float = 1.0
    max_money_multiplier: float = 1.0

    # Suppression clock period in seconds (5 Hz)
    suppression_tick_interval: float = 0.2

    log_level: str = "INFO"


settings = Settings()
