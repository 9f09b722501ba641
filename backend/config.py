import logging
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from core import PriceProvider


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PRICE_ALERTS_",
        extra="ignore",
    )

    # Price provider: "binance" or "coindcx"
    price_provider: PriceProvider = PriceProvider.BINANCE
    binance_base_url: str = "https://api.binance.com/api/v3"
    coindcx_base_url: str = "https://api.coindcx.com"
    request_timeout_seconds: float = 10.0

    # Alerts
    quote_currency: str = "USDT"

    # Monitor
    check_interval_seconds: float = 30.0
    monitor_autostart: bool = True

    # Web
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]

    log_level: str = "INFO"


settings = Settings()


def setup_logging(level: str = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
