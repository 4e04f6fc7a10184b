from typing import Literal

from dotenv import load_dotenv
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Load .env file automatically
load_dotenv()

# Placeholder shipped with the service; must be overridden via API_SECRET
DEFAULT_API_SECRET = "change-me-insecure-placeholder"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Shared secret expected in the x-api-secret header
    API_SECRET: str = DEFAULT_API_SECRET

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # App settings
    APP_NAME: str = "Token Sport Sender Service"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "test", "production"] = "development"

    # Chain interaction
    CONFIRMATION_TIMEOUT_SECONDS: float = 120.0
    CONFIRMATION_POLL_SECONDS: float = 2.0
    RPC_REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Observability (Optional)
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4317"
    OTEL_SERVICE_NAME: str = "token-sender-service"

    # Metrics (Optional)
    METRICS_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def api_secret_is_default(self) -> bool:
        return self.API_SECRET == DEFAULT_API_SECRET
