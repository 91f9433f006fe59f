from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    CURRENCY: str = "INR"

    BACKEND_BASE_URL: str = "http://localhost:5000/api"
    BACKEND_API_TOKEN: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Only the local mock gateway signs with this; real verification happens server-side.
    RAZORPAY_KEY_SECRET: str = "dev_secret"
    GATEWAY_CONFIRMATION_TIMEOUT_SECONDS: float = 300.0

    OTP_LENGTH: int = 4
    OTP_EXPIRY_MINUTES: int = 15
    OTP_MAX_ATTEMPTS: int = 5

    HALF_DAY_PRICE_FACTOR: float = 0.6
    DEFAULT_COIN_TO_RUPEE_RATE: float = 1.0
    DEFAULT_MAX_COIN_USAGE_PERCENTAGE: float = 50.0


settings = Settings()
