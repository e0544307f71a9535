"""Central environment-driven settings for the checkout service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "checkout"
    log_level: str = "INFO"
    port: int = 8080
    stripe_secret_key: str = ""
    client_url: str = "http://localhost:3000"
    success_path: str = "/profile?session_id={CHECKOUT_SESSION_ID}"
    cancel_path: str = "/souscription"
    currency: str = "eur"
    mirror_enabled: bool = False
    database_service_url: str = "http://localhost:5000"
    mirror_timeout_seconds: float = 10.0
    cors_origins: str = "*"
    otel_exporter_otlp_endpoint: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def success_url(self) -> str:
        return f"{self.client_url.rstrip('/')}{self.success_path}"

    @property
    def cancel_url(self) -> str:
        return f"{self.client_url.rstrip('/')}{self.cancel_path}"

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = CommonSettings()
