from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Database
    database_url: str = "sqlite:///data/sitegen.db"

    # Providers
    manual_model: str = ""  # tried before the default chain when set
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 15000
    generation_temperature: float = 1.0
    min_artifact_length: int = 100  # chars
    provider_timeout_seconds: float = 180.0
    max_retries: int = 2
    dry_run: bool = False

    # Image assets
    generate_images: bool = True
    image_model: str = "dall-e-3"
    image_size: str = "1792x1024"
    image_delay_seconds: float = 3.0
    assets_dir: str = "data/assets"
    assets_base_url: str = "/assets"
    placeholder_image_url: str = (
        "https://via.placeholder.com/1024x1024?text=Image+Placeholder"
    )

    # Preview
    blocked_hosts: list[str] = ["localhost:3001"]
    watermark_text: str = "PREVIEW PROTEGIDO"

    # Logs
    logs_dir: str = "data/logs"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_anthropic(self) -> bool:
        return bool(self.anthropic_api_key)


def get_settings() -> Settings:
    return Settings()
