from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".studydeck" / "data"
    sqlite_filename: str = "studydeck.db"

    # OpenAI-compatible chat completions endpoint (Groq by default)
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_api_key: str = ""
    llm_model: str = "llama-3.1-8b-instant"
    llm_timeout: float = 60.0
    content_char_limit: int = 6000
    chat_char_limit: int = 8000

    default_user_id: str = "local"

    goal_documents_per_week: int = 3
    goal_quizzes_per_week: int = 5
    goal_flashcards_per_week: int = 20

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"

    model_config = {"env_prefix": "STUDYDECK_"}


settings = Settings()
