from booking_engine.application.ports.config_store import ConfigStorePort
from booking_engine.core.config import settings
from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig


class StaticConfigStore(ConfigStorePort):
    def __init__(self, fee_config: FeeConfig | None = None, coin_config: CoinConfig | None = None) -> None:
        self._fee_config = fee_config or FeeConfig(is_active=False)
        self._coin_config = coin_config or CoinConfig(
            coin_to_rupee_rate=settings.DEFAULT_COIN_TO_RUPEE_RATE,
            max_usage_percentage=settings.DEFAULT_MAX_COIN_USAGE_PERCENTAGE,
        )

    def fee_config(self) -> FeeConfig:
        return self._fee_config

    def coin_config(self) -> CoinConfig:
        return self._coin_config
