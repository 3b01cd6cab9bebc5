from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # DB
    DATABASE_URL: str = "sqlite:///./pricing.db"

    # Security / JWT (tokens are issued by the external auth service)
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    BUSINESS_ROLES: list[str] = ["business", "admin"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Promotions
    UNKNOWN_OFFER_LABEL: str = "Unknown offer"
    REJECT_OVERLAPPING_PROMOTIONS: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
