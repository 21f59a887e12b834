from typing import Optional
from pydantic_settings import BaseSettings

from dotenv import load_dotenv

load_dotenv()  # load .env file

class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    SUPABASE_SERVICE_KEY: str

    # OpenAI-compatible chat completion gateway used for AI grading
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    AI_GRADING_MODEL: str = "google/gemini-2.5-flash"
    AI_GATEWAY_TIMEOUT: int = 60

    SESSION_TTL: int = 3600
    # Dev only: accept ?user_id= in place of a session token
    ALLOW_USER_ID_QUERY: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "*"

    class Config:
        env_file = ".env"

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

settings = Settings()
