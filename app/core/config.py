from functools import lru_cache
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_BUSINESS_START_HOUR = 9
DEFAULT_BUSINESS_END_HOUR = 17

ALLOWED_ENV_FIELD_NAMES = frozenset(
    {
        "app_name",
        "app_env",
        "app_version",
        "api_prefix",
        "allowed_origins",
        "app_mode",
        "port",
        "appointments_store",
        "aws_region",
        "dynamodb_table_name",
        "dynamodb_endpoint_url",
        "dynamodb_follow_scan_pages",
        "mongodb_uri",
        "mongodb_db_name",
        "mongodb_appointments_collection",
        "mongodb_connect_timeout_ms",
        "booking_timezone",
        "booking_utc_offset_minutes",
        "business_start_hour",
        "business_end_hour",
        "slot_duration_minutes",
        "availability_business_days",
    },
)


class Settings(BaseSettings):
    app_name: str = "Appointment Booking API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = ["*"]
    app_mode: str = "local"
    port: int = 5000
    appointments_store: str = "dynamodb"
    aws_region: str = "us-east-1"
    dynamodb_table_name: str = "Appointments"
    dynamodb_endpoint_url: str = ""
    dynamodb_follow_scan_pages: bool = False
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "appointment_booking"
    mongodb_appointments_collection: str = "appointments"
    mongodb_connect_timeout_ms: int = 2000
    booking_timezone: str = "Asia/Kolkata"
    booking_utc_offset_minutes: int = 330
    business_start_hour: int = DEFAULT_BUSINESS_START_HOUR
    business_end_hour: int = DEFAULT_BUSINESS_END_HOUR
    slot_duration_minutes: int = 30
    availability_business_days: int = 5

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def _filter_allowed_env_fields(source):
            return {
                field_name: raw_value
                for field_name, raw_value in source().items()
                if field_name in ALLOWED_ENV_FIELD_NAMES
            }

        return (
            init_settings,
            lambda: _filter_allowed_env_fields(env_settings),
            lambda: _filter_allowed_env_fields(dotenv_settings),
            file_secret_settings,
        )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("appointments_store", "app_mode", mode="before")
    @classmethod
    def normalize_lowercase_name(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("slot_duration_minutes", mode="before")
    @classmethod
    def normalize_slot_duration(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 30
        return parsed_value

    @field_validator("availability_business_days", mode="before")
    @classmethod
    def normalize_availability_business_days(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 5
        return parsed_value

    @field_validator("business_start_hour", mode="before")
    @classmethod
    def normalize_business_start_hour(cls, value: int | str) -> int:
        parsed_value = int(value)
        if not 0 <= parsed_value <= 24:
            return DEFAULT_BUSINESS_START_HOUR
        return parsed_value

    @field_validator("business_end_hour", mode="before")
    @classmethod
    def normalize_business_end_hour(cls, value: int | str) -> int:
        parsed_value = int(value)
        if not 0 <= parsed_value <= 24:
            return DEFAULT_BUSINESS_END_HOUR
        return parsed_value

    @model_validator(mode="after")
    def normalize_business_hours_window(self) -> "Settings":
        if self.business_start_hour >= self.business_end_hour:
            self.business_start_hour = DEFAULT_BUSINESS_START_HOUR
            self.business_end_hour = DEFAULT_BUSINESS_END_HOUR
        return self

    @field_validator("mongodb_connect_timeout_ms", mode="before")
    @classmethod
    def normalize_mongodb_timeout(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 2000
        return parsed_value

    @property
    def business_start_minutes(self) -> int:
        return self.business_start_hour * 60

    @property
    def business_end_minutes(self) -> int:
        return self.business_end_hour * 60

    @property
    def business_closing_minutes(self) -> int:
        # Today counts as exhausted one slot step past the end of business hours.
        return self.business_end_minutes + self.slot_duration_minutes


@lru_cache
def get_settings() -> Settings:
    return Settings()
