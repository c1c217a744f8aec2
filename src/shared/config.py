from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    APP_NAME: str = "Root CA Generator"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Telemetry - console exporters are noisy on a terminal, keep them opt-in
    OTEL_CONSOLE_EXPORT: bool = False

    # Root CA defaults
    CA_VALIDITY_DAYS: int = 365 * 10
    CA_KEY_BITS: int = 4096
    CA_OUTPUT_DIR: str = "."
    CA_CERT_NAME: str = "ca.crt"
    CA_KEY_NAME: str = "ca.key"

    # Leaf issuance (openssl)
    OPENSSL_BIN: str = "openssl"
    LEAF_KEY_BITS: int = 2048
    LEAF_VALIDITY_DAYS: int = 365
    LEAF_ORG: str = "Test Script Org"

    # Chain check
    CHAIN_CHECK_DIR: str = "./pki_test"


settings = Settings()
