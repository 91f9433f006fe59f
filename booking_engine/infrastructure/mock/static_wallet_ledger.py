from booking_engine.application.ports.wallet_ledger import WalletLedgerPort
from booking_engine.domain.entities.pricing import WalletState


class StaticWalletLedger(WalletLedgerPort):
    def __init__(self, wallet: WalletState | None = None) -> None:
        self._wallet = wallet or WalletState()

    def balance(self) -> WalletState:
        return self._wallet
