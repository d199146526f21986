from functools import lru_cache
from typing import List, Optional
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class BaseConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

class GlobalConfig(BaseConfig):
    DATABASE_URI: Optional[str] = None
    SECRET_KEY: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Load-modify-save attempts before a concurrent update surfaces as a store error
    SAVE_RETRY_ATTEMPTS: int = 3

    CORS_ORIGINS: List[str] = []
    LOG_FILE: str = "postfeed.log"

    #Sentry
    SENTRY_DSN: Optional[str] = None

class DevConfig(GlobalConfig):
    DATABASE_URI: Optional[str] = "sqlite:///./dev.db"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    model_config = SettingsConfigDict(env_prefix="DEV_", extra="ignore")

class ProdConfig(GlobalConfig):
    # Most platforms expose DATABASE_URL rather than DATABASE_URI
    DATABASE_URI: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    SECRET_KEY: Optional[str] = Field(default=None, validation_alias="SECRET_KEY")
    SENTRY_DSN: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    model_config = SettingsConfigDict(extra="ignore")

    def model_post_init(self, __context):
        # Fallback to prefixed env vars if standard ones aren't set
        if not self.DATABASE_URI:
            self.DATABASE_URI = os.getenv("PROD_DATABASE_URI")
        if not self.SECRET_KEY:
            self.SECRET_KEY = os.getenv("PROD_SECRET_KEY")
        if not self.SENTRY_DSN:
            self.SENTRY_DSN = os.getenv("PROD_SENTRY_DSN")

class TestConfig(GlobalConfig):
    DATABASE_URI: str = "sqlite:///./test.db"
    SECRET_KEY: str = "test-secret-key-change-in-production"
    LOG_FILE: str = "test.log"

    model_config = SettingsConfigDict(env_prefix="TEST_", extra="ignore")

@lru_cache()
def get_config(env_state: str):
    configs = {"dev": DevConfig, "test": TestConfig, "prod": ProdConfig}
    return configs[env_state]()

# Prefer test config automatically when running under pytest unless ENV is set
detected_env = os.getenv("ENV")
if not detected_env and os.getenv("PYTEST_CURRENT_TEST"):
    detected_env = "test"
env_state = detected_env or "prod"
config = get_config(env_state)
