from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Gemini exposes an OpenAI-compatible endpoint; any compatible server works
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    llm_api_key: str = ""
    llm_model: str = "gemini-3-flash-preview"
    llm_temperature: float = 0.7

    history_limit: int = 10            # messages of context sent to the LLM
    daily_question_limit: int = 30     # free tier questions per calendar day

    max_sessions: int = 1000           # in-memory chat sessions and guest note lists kept per process
    session_idle_minutes: int = 60     # sessions unused for this long are dropped

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    langchain_tracing_v2: bool = True
    langchain_api_key: str = ""
    langchain_project: str = "deenly"

    model_config = {"env_file": ".env"}


settings = Settings()
