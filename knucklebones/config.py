from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = "local"
    debug: bool = True
    log_level: str = "INFO"

    # True-random provider (RANDOM.ORG plain-text integers endpoint).
    # When disabled, every roll uses the local pseudo-random generator.
    true_random_enabled: bool = True
    random_org_url: str = "https://www.random.org/integers/"
    # Per-attempt timeout. A slow provider must never stall a reply.
    random_org_timeout_seconds: float = 3.0
    # Retries after the first failed attempt. Capped at 1.
    random_org_retries: int = 1

    # Seed for the fallback generator; None seeds from the OS.
    pseudo_random_seed: int | None = None

    # Roll limits. The bonus limit is count * sides * max_bonus_factor.
    max_dice: int = 50
    max_sides: int = 1000
    max_bonus_factor: int = 10

    # Longest reply the chat platform accepts in a single message.
    max_reply_length: int = 2000

    source_code_url: str = "https://codeberg.org/bolu/denede"


settings = Settings()
