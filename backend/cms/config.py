"""
Configuration Settings
Environment variables and application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "cms"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Verification codes & sessions
    VERIFICATION_CODE_LENGTH: int = 8
    VERIFICATION_EXPIRE_SECONDS: int = 300  # 5 minutes
    SESSION_EXPIRE_SECONDS: int = 259200  # 3 days
    SESSION_COOKIE_NAME: str = "session"
    SESSION_BIND_CLIENT: bool = False

    # Listing
    DEFAULT_LIST_LIMIT: int = 20
    MAX_LIST_LIMIT: int = 1000

    # Cloudflare R2 Settings
    R2_ENABLED: bool = False
    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY: Optional[str] = None
    R2_SECRET_KEY: Optional[str] = None
    R2_BUCKET_NAME: str = "cms-files"
    R2_ENDPOINT_URL: Optional[str] = None

    # Outbound email (Resend)
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "develop@resend.dev"
    EMAIL_SUBJECT: str = "CMS Verification Code"

    # BigCommerce products controller
    BIGCOMMERCE_STORE_HASH: Optional[str] = None
    BIGCOMMERCE_TOKEN: Optional[str] = None
    BIGCOMMERCE_MODEL: str = "products"

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def r2_endpoint_url(self) -> Optional[str]:
        """Explicit endpoint wins, otherwise the account's R2 endpoint"""
        if self.R2_ENDPOINT_URL:
            return self.R2_ENDPOINT_URL
        if self.R2_ACCOUNT_ID:
            return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
        return None

    @property
    def bigcommerce_enabled(self) -> bool:
        return bool(self.BIGCOMMERCE_STORE_HASH and self.BIGCOMMERCE_TOKEN)

    class Config:
        env_file = ".env"

settings = Settings()
