from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    database_url: str = "sqlite:///./stay_intake.db"

    google_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash"

    extraction_ai_enabled: bool = True
    extraction_ai_timeout_seconds: float = 30.0
    extraction_ai_max_output_tokens: int = 2048
    extraction_ai_temperature: float = 0.1
    extraction_ai_max_attempts: int = 3
    extraction_base_text_length: int = 2000
    extraction_min_text_length: int = 500
    min_document_text_chars: int = 50
    tesseract_lang: str = "por+eng"

    # Hand-tuned matcher thresholds; re-tune against real catalogs.
    property_match_threshold: float = 60.0
    property_match_flexible_floor: float = 30.0
    property_match_word_ratio: float = 0.6
    numbered_property_bases: list[str] = ["aroeira"]

    name_denylist: list[str] = [
        "PDF",
        "Document",
        "Report",
        "Control",
        "Check",
        "Adult",
        "Guest",
        "Date",
        "Time",
        "Phone",
        "Email",
        "Property",
        "Reservation",
        "Booking",
        "Hotel",
        "Casa",
        "Apartamento",
        "Unknown",
        "Desconhecido",
        "Hóspede",
        "Cliente",
        "Client",
        "Nome",
        "Name",
        "Titular",
        "Responsável",
    ]
    known_property_tokens: list[str] = ["Almada", "Aroeira", "Nazare", "Nazaré", "Peniche"]

    platform_fee_rate: Decimal = Decimal("0.10")
    platform_fee_platforms: list[str] = ["airbnb", "booking"]


settings = Settings()
