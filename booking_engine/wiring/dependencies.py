from functools import lru_cache
import logging

from booking_engine.application.ports.checkout_presenter import CheckoutPresenterPort
from booking_engine.application.ports.config_store import ConfigStorePort
from booking_engine.application.ports.coupon_service import CouponServicePort
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.application.ports.wallet_ledger import WalletLedgerPort
from booking_engine.application.use_cases.apply_coupon import ApplyCouponUseCase
from booking_engine.application.use_cases.booking_lifecycle import BookingLifecycle
from booking_engine.application.use_cases.otp_gate import OtpGate
from booking_engine.application.use_cases.place_order import PlaceOrderUseCase
from booking_engine.core.config import settings
from booking_engine.domain.entities.pricing import CheckoutSnapshot
from booking_engine.infrastructure.backend.api_client import BackendApiClient
from booking_engine.infrastructure.backend.http_config_store import HttpConfigStore
from booking_engine.infrastructure.backend.http_coupon_service import HttpCouponService
from booking_engine.infrastructure.backend.http_payment_gateway import HttpPaymentGateway
from booking_engine.infrastructure.backend.http_wallet_ledger import HttpWalletLedger
from booking_engine.infrastructure.mock.mock_checkout_presenter import MockCheckoutPresenter
from booking_engine.infrastructure.mock.mock_coupon_service import MockCouponService
from booking_engine.infrastructure.mock.mock_otp_delivery import MockOtpDelivery
from booking_engine.infrastructure.mock.mock_payment_gateway import MockPaymentGateway
from booking_engine.infrastructure.mock.static_config_store import StaticConfigStore
from booking_engine.infrastructure.mock.static_wallet_ledger import StaticWalletLedger
from booking_engine.infrastructure.store.memory_booking_repository import MemoryBookingRepository
from booking_engine.infrastructure.store.memory_otp_store import MemoryOtpStore


def _use_mocks() -> bool:
    return settings.ENV.lower() in {"dev", "local"} or not settings.BACKEND_API_TOKEN


@lru_cache
def get_backend_client() -> BackendApiClient:
    return BackendApiClient()


@lru_cache
def get_coupon_service() -> CouponServicePort:
    if _use_mocks():
        return MockCouponService()
    return HttpCouponService(client=get_backend_client())


@lru_cache
def get_wallet_ledger() -> WalletLedgerPort:
    if _use_mocks():
        return StaticWalletLedger()
    return HttpWalletLedger(client=get_backend_client())


@lru_cache
def get_config_store() -> ConfigStorePort:
    if _use_mocks():
        return StaticConfigStore()
    return HttpConfigStore(client=get_backend_client())


@lru_cache
def get_payment_gateway() -> PaymentGatewayPort:
    if _use_mocks():
        return MockPaymentGateway()
    return HttpPaymentGateway(client=get_backend_client())


def get_checkout_presenter(presenter: CheckoutPresenterPort | None = None) -> CheckoutPresenterPort:
    logger = logging.getLogger(__name__)
    if presenter is not None:
        return presenter

    gateway = get_payment_gateway()
    if isinstance(gateway, MockPaymentGateway):
        logger.info("Using MockCheckoutPresenter (ENV=dev/local or backend token missing)")
        return MockCheckoutPresenter(gateway=gateway)
    raise ValueError("A checkout presenter bound to the gateway UI is required outside dev/local.")


@lru_cache
def get_otp_gate() -> OtpGate:
    return OtpGate(store=MemoryOtpStore(), delivery=MockOtpDelivery())


@lru_cache
def get_booking_lifecycle() -> BookingLifecycle:
    return BookingLifecycle(repository=MemoryBookingRepository(), otp_gate=get_otp_gate())


def get_apply_coupon_use_case() -> ApplyCouponUseCase:
    return ApplyCouponUseCase(coupon_service=get_coupon_service())


@lru_cache
def get_place_order_use_case(presenter: CheckoutPresenterPort | None = None) -> PlaceOrderUseCase:
    return PlaceOrderUseCase(
        gateway=get_payment_gateway(),
        presenter=get_checkout_presenter(presenter),
        lifecycle=get_booking_lifecycle(),
    )


def load_checkout_snapshot(
    config_store: ConfigStorePort | None = None,
    wallet_ledger: WalletLedgerPort | None = None,
) -> CheckoutSnapshot:
    config_store = config_store or get_config_store()
    wallet_ledger = wallet_ledger or get_wallet_ledger()
    return CheckoutSnapshot(
        fee_config=config_store.fee_config(),
        coin_config=config_store.coin_config(),
        wallet=wallet_ledger.balance(),
    )
