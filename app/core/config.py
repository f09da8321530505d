from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./docgen.db"

    # dispatch: queue wins when both are set, neither means manual processing
    automation_queue_autorun: bool = False
    automation_run_immediate: bool = False

    draft_generator: str = "template"  # template | openai
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    generation_timeout_s: float = 60.0
    generation_max_output_tokens: int = 1200

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
