"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    output_dir: Path = Field(default=Path("output"), alias="OUTPUT_DIR")
    assets_dir: Path = Field(default=Path("assets"), alias="ASSETS_DIR")
    media_dir: Path = Field(default=Path("media"), alias="MEDIA_DIR")
    state_dir: Path = Field(default=Path("state"), alias="STATE_DIR")
    fields_config_path: Optional[Path] = Field(default=None, alias="FIELDS_CONFIG_PATH")
    catalogues_config_path: Optional[Path] = Field(default=None, alias="CATALOGUES_CONFIG_PATH")

    # Card geometry (logical px)
    classic_width: int = Field(default=330, alias="CLASSIC_WIDTH")
    glass_width: int = Field(default=360, alias="GLASS_WIDTH")
    render_scale: int = Field(default=3, alias="RENDER_SCALE")

    # Colors
    default_bg_color: str = Field(default="#add8e6", alias="DEFAULT_BG_COLOR")
    default_image_bg_color: str = Field(default="white", alias="DEFAULT_IMAGE_BG_COLOR")
    default_font_color: str = Field(default="white", alias="DEFAULT_FONT_COLOR")
    canvas_background_color: str = Field(default="#ffffff", alias="CANVAS_BACKGROUND_COLOR")

    # Pricing
    currency_symbol: str = Field(default="₹", alias="CURRENCY_SYMBOL")
    default_price_unit: str = Field(default="/ piece", alias="DEFAULT_PRICE_UNIT")
    out_of_stock_badge: str = Field(default="Out of Stock", alias="OUT_OF_STOCK_BADGE")

    # Watermark
    watermark_enabled: bool = Field(default=False, alias="WATERMARK_ENABLED")
    watermark_text: str = Field(default="Created using CatShare", alias="WATERMARK_TEXT")
    watermark_position: str = Field(default="bottom-center", alias="WATERMARK_POSITION")

    # Batch rendering
    inter_product_delay_s: float = Field(default=0.05, alias="INTER_PRODUCT_DELAY_S")
    resume_max_age_hours: float = Field(default=24, alias="RESUME_MAX_AGE_HOURS")
    rendering_state_key: str = Field(default="renderingState", alias="RENDERING_STATE_KEY")
    image_load_timeout_s: float = Field(default=30, alias="IMAGE_LOAD_TIMEOUT_S")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")
    gcp_project_id: Optional[str] = Field(default=None, alias="GCP_PROJECT_ID")

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    @property
    def fonts_dir(self) -> Path:
        """Path to the fonts directory."""
        return self.assets_dir / "fonts"

    @property
    def font_path(self) -> Path:
        """Path to the regular card font."""
        return self.fonts_dir / "Arial.ttf"

    @property
    def bold_font_path(self) -> Path:
        """Path to the bold card font (glass titles, price)."""
        return self.fonts_dir / "Arial-Bold.ttf"

    @property
    def italic_font_path(self) -> Path:
        """Path to the italic card font (subtitles)."""
        return self.fonts_dir / "Arial-Italic.ttf"


# Global settings instance
settings = Settings()
