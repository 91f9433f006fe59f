from dataclasses import dataclass


@dataclass(frozen=True)
class FeeConfig:
    is_active: bool = False
    platform_fee: float = 0.0
    travel_charge_per_km: float = 0.0


@dataclass(frozen=True)
class CoinConfig:
    coin_to_rupee_rate: float = 1.0
    max_usage_percentage: float = 50.0


@dataclass(frozen=True)
class WalletState:
    balance: float = 0.0
    coin_balance: int = 0


@dataclass(frozen=True)
class CheckoutSnapshot:
    """Configuration and balances read once when a checkout session opens."""

    fee_config: FeeConfig
    coin_config: CoinConfig
    wallet: WalletState
