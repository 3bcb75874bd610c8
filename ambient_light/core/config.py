from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="AMBIENT_", extra="ignore")

    app_name: str = "HTTP Ambient Light Sensor"

    # Accessory definitions (homebridge-style {"accessories": [...]} or a list)
    accessories_path: str = Field(default="accessories.json")

    # Storage
    sqlite_path: str = Field(default="ambient_light.db")
    record_history: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: str = "ambient_light.log"

    # Default transport timeout when getUrl does not specify one
    http_timeout_seconds: float = 10.0


settings = Settings()
