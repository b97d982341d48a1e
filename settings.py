from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    mongodb_uri: str
    mongo_db: str = "arsenal"
    mongo_collection_users: str = "usuarios"
    allowed_origins: str = "*"
    port: int = 3000
    audit_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in (self.allowed_origins or "").split(",") if o.strip()]
        return origins or ["*"]

settings = Settings()
