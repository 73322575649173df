from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./framing.db"

    # Company details shown on a profile until the shop fills in its own
    COMPANY_NAME: str = "Artyx Inramning"
    COMPANY_EMAIL: str = "info@artyx.se"
    COMPANY_PHONE: str = ""

    # Pricing defaults, only used when a tenant has not set its own values.
    # The engine never reads these directly; routers pass them as arguments.
    VAT_PERCENTAGE: float = 25.0
    CURRENCY: str = "SEK"
    DEFAULT_SIMPLE_PRICE_PER_METER: float = 250.0
    DEFAULT_PASSEPARTOUT_WIDTH_MM: float = 50.0
    PRICE_ROUNDING: str = "legacy"  # 'legacy' | 'once'

    # Auth
    JWT_SECRET: str = ""  # required in production, auth fails with 500 when empty
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
