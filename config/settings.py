from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # JWT: no default, MUST be set in .env. Tokens are issued by the upstream
    # auth service sharing this secret; this service only verifies them.
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 30

    # App
    APP_NAME: str = "Range Bet Engine"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev
    LOG_LEVEL: str = "INFO"

    # Account (JWT "sub") allowed to create, close, (de)activate markets and move custody funds
    OPERATOR_ACCOUNT_ID: str = "operator"

    # Pricing
    INVERSE_COST_MAX_ITERATIONS: int = 256

    # Largest number of bins one range query may return
    MAX_BIN_RANGE_QUERY: int = 10_000

    # Mock collateral faucet cap per mint call (wad units, 10_000 tokens)
    FAUCET_MAX_AMOUNT: int = 10_000 * 10**18


settings = Settings()
