from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()

# --- Context budgets ---
# Tokens are not counted locally. One token is roughly 3-4 characters of
# Portuguese/English prose; the lower bound of 3 keeps the estimate on the
# safe side of the provider's limit.
CHARS_PER_TOKEN = 3
TOKENS_PER_FILE = 5000
# Ceiling for the whole context block, independent of the per-file budget.
GLOBAL_CHAR_LIMIT = 15000
CSV_PREVIEW_ROWS = 50

DEFAULT_MODEL = "gpt-4o"
MAX_RESPONSE_TOKENS = 2000


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./gpts.db"
    upload_dir: str = "./uploads/documents"
    log_level: str = "INFO"

    # LLM provider: "openai" or "ollama"
    llm_provider: str = "openai"
    openai_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"
    default_model: str = DEFAULT_MODEL
    max_response_tokens: int = MAX_RESPONSE_TOKENS

    tokens_per_file: int = TOKENS_PER_FILE
    chars_per_token: int = CHARS_PER_TOKEN
    global_char_limit: int = GLOBAL_CHAR_LIMIT

    max_upload_size_mb: int = 20
    max_upload_files: int = 10

    @property
    def max_chars_per_file(self) -> int:
        return self.tokens_per_file * self.chars_per_token


settings = Settings()
