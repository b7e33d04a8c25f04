"""Configuration settings for Podnav."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    # App
    app_name: str = "Podnav"
    debug: bool = False
    log_level: str = "INFO"
    
    # LLM segmentation
    openai_api_key: Optional[str] = None
    segmentation_model: str = "gpt-4o"
    segmentation_temperature: float = 0.3
    segmentation_timeout_sec: float = 60.0
    max_transcript_chars: int = 60000
    
    # Episodes longer than this (or shown with an hour component) skip extraction
    max_extraction_minutes: int = 60
    
    # Listen Notes
    listen_notes_api_key: Optional[str] = None
    listen_notes_base_url: str = "https://listen-api.listennotes.com/api/v2"
    listen_notes_timeout_sec: float = 15.0
    
    class Config:
        env_file = ".env"


settings = Settings()
