"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "wallet-gateway"
    log_level: str = "INFO"

    # Celcoin cards API (sandbox by default)
    celcoin_api_base: str = "https://sandbox-apicorp.celcoin.com.br/cards/v1"
    celcoin_api_key: str = "REPLACE_WITH_REAL_KEY"
    celcoin_account_id: int = 1
    celcoin_customer_id: int = 12345
    use_simulated_provider: bool = True
    simulated_provider_delay_seconds: float = 1.5

    # Provider call is fire-once; a timeout is reported as PROVIDER_ERROR
    provider_timeout_seconds: float = 5.0

    # Card acceptance
    supported_bins: List[str] = [
        "453210",  # Visa
        "453910",  # Visa
        "555544",  # Mastercard
        "378234",  # Amex
        "601100",  # Discover
        "506699",  # Elo
    ]
    supported_country: str = "BR"

    # Device capabilities reported when no real probe is wired in
    device_has_nfc: bool = True
    device_has_host_card_emulation: bool = True
    device_has_lock_screen: bool = True

    # Compliance log sink
    log_sink_capacity: int = 1000
    compliance_min_success_rate: float = 90.0


settings = Settings()
