from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "dev"
    # ID card parsing thresholds
    id_card_min_text_length: int = 20  # Transcripts shorter than this are treated as unreadable
    id_card_min_confidence: float = 70.0  # OCR confidence percentage (0-100)
    id_card_graduation_window_years: int = 6  # Batches older than this are treated as graduated
    # OCR settings
    id_card_ocr_enabled: bool = True
    id_card_ocr_lang: str = "eng"
    id_card_tesseract_config: str = "--psm 6"
    # Upload settings
    id_card_upload_max_size: int = 10 * 1024 * 1024  # 10MB
    id_card_allowed_mime_types: list[str] = ["image/jpeg", "image/png", "image/webp"]


class LoggingSettings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"
    ENV: str = "dev"  # dev | staging | prod

    class Config:
        env_prefix = "APP_"


logging_settings = LoggingSettings()

settings = Settings()  # type: ignore
