from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Partnership Agent"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    # SQLite database URL for chat history and query logs
    database_url: str = "sqlite:///./partnership_agent.db"
    pool_size: int = 5
    max_overflow: int = 10
    pool_pre_ping: bool = True
    pool_recycle: int = 3600  # Recycle connections after 1 hour
    pool_timeout: int = 30
    sqlite_timeout: int = 20  # SQLite connection timeout in seconds
    sqlite_check_same_thread: bool = False

    # OpenAI settings (entity extraction + answer generation)
    openai_api_key: str | None = None
    openai_chat_model: str = "gpt-4o-mini"
    openai_entity_model: str = "gpt-4o-mini"
    answer_max_tokens: int = 1500
    answer_temperature: float = 0.2
    answer_context_token_budget: int = 6000  # Max document tokens sent to the answer model
    chat_history_turns: int = 6  # Prior turns passed to the answer model

    # ChromaDB settings
    chromadb_persist_directory: str | None = None  # Auto-detected if None
    chromadb_collection: str = "partnership_documents"
    search_top_k: int = 5
    allowed_categories: list[str] = ["templates", "guidelines", "policies", "contracts"]
    seed_sample_documents: bool = True  # Index sample documents when the collection is empty

    # Citation engine tuning
    citation_query_weight: float = 0.6
    citation_answer_weight: float = 0.4
    citation_min_score: float = 0.1
    citation_excerpt_length: int = 200
    citation_context_length: int = 50
    citation_max_per_document: int = 3

    # Pipeline
    pipeline_max_steps: int = 10
    collaborator_timeout_seconds: float = 60.0
    chat_history_backend: str = "memory"  # memory | sqlite
    memory_history_max_turns: int = 50  # Per thread; older turns are dropped

    # Background evaluation
    evaluation_enabled: bool = True
    evaluation_queue_size: int = 100
    evaluation_failure_history: int = 50
    ground_truth_path: str | None = None  # Defaults to the bundled CSV

    # Request defaults (no authentication layer)
    default_tenant_id: str = "tenant-123"
    default_user_id: str = "mock-user-123"

    # Console client
    api_base_url: str = "http://localhost:8000"

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra environment variables that aren't in the Settings class


settings = Settings()
