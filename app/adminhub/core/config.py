from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "AdminHub"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    DATABASE_URL: str = "sqlite+pysqlite:///./adminhub.db"
    # Read once at startup; flipping it requires a migration and a restart.
    MULTI_TENANT_ENABLED: bool = False
    METRICS_ENABLED: bool = True
    DEFAULT_TENANT_NAME: str = "Default Tenant"
    SUPERADMIN_USERNAME: str = "superadmin"
    SUPERADMIN_EMAIL: str = "superadmin@example.com"

settings = Settings()
