from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://sadhana:sadhana@db:5432/sadhana"
    APP_ENV: str = "development"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"
    # JSON lines in production; human-readable console output otherwise.
    LOG_JSON: bool = False

    # Scoring / ranking knobs handed to the computation core by the routers.
    LEADERBOARD_DEFAULT_LIMIT: int = 10
    SIGNIFICANT_IMPROVEMENT_PCT: float = 20.0
    SIGNIFICANT_IMPROVEMENT_MIN_HISTORY: int = 3
    ATTENTION_THRESHOLD: int = 50
    SCORE_TREND_LENGTH: int = 7

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


settings = Settings()
