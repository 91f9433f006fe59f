from abc import ABC, abstractmethod

from booking_engine.domain.entities.pricing import CoinConfig, FeeConfig


class ConfigStorePort(ABC):
    @abstractmethod
    def fee_config(self) -> FeeConfig:
        raise NotImplementedError

    @abstractmethod
    def coin_config(self) -> CoinConfig:
        raise NotImplementedError
