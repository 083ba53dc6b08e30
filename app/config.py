from pydantic_settings import BaseSettings
from typing import List
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "marketplace"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    secret_key: str
    algorithm: str = "HS256"

    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""

    # legacy checkout
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""

    CURRENCY: str = "INR"
    FLAT_SHIPPING: float = 50
    MEMBER_PLAN: str = "plus"
    APP_ID: str = "cartoo"
    FRONTEND_URL: str = "http://localhost:3000"

    # comma separated
    MASTER_VENDOR_EMAILS: str = ""

    GATEWAY_TIMEOUT_SECONDS: float = 10
    DB_STATEMENT_TIMEOUT_MS: int = 15000

    @property
    def database_url(self):
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def master_vendor_emails(self) -> List[str]:
        return [
            e.strip().lower()
            for e in self.MASTER_VENDOR_EMAILS.split(",")
            if e.strip()
        ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
