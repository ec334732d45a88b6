from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    # Application Settings
    app_name: str = Field(default="Gov Hub Helpdesk", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    ENVIRONMENT: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=True, alias="DEBUG")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=True, alias="RELOAD")

    # Database Configuration
    DB_HOST: str = Field(default="localhost", alias="DB_HOST")
    DB_PORT: int = Field(default=5432, alias="DB_PORT")
    DB_NAME: str = Field(default="helpdesk", alias="DB_NAME")
    DB_USER: str = Field(default="helpdesk", alias="DB_USER")
    DB_PASSWORD: str = Field(default="helpdesk", alias="DB_PASSWORD")
    database_url: Optional[str] = Field(default="sqlite:///./helpdesk.db", alias="DATABASE_URL")
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=300, alias="DB_POOL_RECYCLE")
    db_pool_timeout: int = Field(default=20, alias="DB_POOL_TIMEOUT")
    db_connect_timeout: int = Field(default=5, alias="DB_CONNECT_TIMEOUT")
    db_statement_timeout_ms: int = Field(default=10000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    API_CORS_ORIGINS: Optional[str] = Field(default=None, alias="API_CORS_ORIGINS")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    # Booking Policy
    timezone: str = Field(default="UTC", alias="TIMEZONE")
    slot_granularity_minutes: int = Field(default=15, alias="SLOT_GRANULARITY_MINUTES")
    last_slot_cutoff_minutes: int = Field(default=10, alias="LAST_SLOT_CUTOFF_MINUTES")
    default_open_hour: int = Field(default=8, alias="DEFAULT_OPEN_HOUR")
    default_close_hour: int = Field(default=16, alias="DEFAULT_CLOSE_HOUR")
    lunch_break_start_hour: int = Field(default=12, alias="LUNCH_BREAK_START_HOUR")
    lunch_break_end_hour: int = Field(default=13, alias="LUNCH_BREAK_END_HOUR")
    booking_horizon_months: int = Field(default=3, alias="BOOKING_HORIZON_MONTHS")

    # Email Configuration
    email_enabled: bool = Field(default=False, alias="EMAIL_ENABLED")
    smtp_server: str = Field(default="smtp.gmail.com", alias="SMTP_SERVER")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str = Field(default="", alias="SMTP_USERNAME")
    smtp_password: str = Field(default="", alias="SMTP_PASSWORD")
    email_from: str = Field(default="noreply@govhub.example", alias="EMAIL_FROM")
    smtp_timeout_seconds: float = Field(default=10.0, alias="SMTP_TIMEOUT_SECONDS")
    organization_name: str = Field(default="Gov Hub", alias="ORGANIZATION_NAME")

    # Development Settings
    seed_database: bool = Field(default=False, alias="SEED_DATABASE")

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if v.strip() == "*":
                return ["*"]
            try:
                return json.loads(v)
            except ValueError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('slot_granularity_minutes')
    @classmethod
    def check_granularity(cls, v):
        if v <= 0 or 60 % v != 0:
            raise ValueError("SLOT_GRANULARITY_MINUTES must divide an hour evenly")
        return v

    @property
    def DATABASE_URL(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def database_echo(self) -> bool:
        return self.debug and self.is_development

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True


# Global settings instance
settings = Settings()
