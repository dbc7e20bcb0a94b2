from dotenv import load_dotenv
from pydantic import BaseModel, Field
import os

load_dotenv()


class ConfigError(RuntimeError):
    """Raised when the environment can't produce a runnable configuration."""


def _to_int(v: str | None, default: int) -> int:
    if v is None or not v.strip():
        return default
    return int(v.strip())

def _to_float(v: str | None, default: float) -> float:
    if v is None or not v.strip():
        return default
    return float(v.strip())

def _to_str(v: str | None, default: str = "") -> str:
    if v is None or not v.strip():
        return default
    return v.strip()


MODES = {"once", "cron"}

# env var name for every field that has no usable default
REQUIRED_ENV = {
    "feed_url": "FEED_URL",
    "openai_api_key": "OPENAI_API_KEY",
    "blogger_client_id": "CLIENT_ID",
    "blogger_client_secret": "CLIENT_SECRET",
    "blogger_refresh_token": "REFRESH_TOKEN",
    "blog_id": "BLOG_ID",
}


class Settings(BaseModel):
    feed_url: str = Field(default="")
    max_queue_fill: int = Field(default=100, ge=1)

    openai_api_key: str = Field(default="")
    openai_model: str = Field(default="gpt-4o-mini")
    openai_max_tokens: int = Field(default=1500)
    content_char_limit: int = Field(default=12000)

    blogger_client_id: str = Field(default="")
    blogger_client_secret: str = Field(default="")
    blogger_refresh_token: str = Field(default="")
    blog_id: str = Field(default="")

    schedule: str = Field(default="0 */3 * * *")
    mode: str = Field(default="cron")

    db_path: str = Field(default="data/posts.db")
    user_agent: str = Field(default="feed2blog/1.0")
    page_timeout_seconds: float = Field(default=15.0)
    post_delay_seconds: float = Field(default=2.0)

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/run.log")

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    def missing_required(self) -> list[str]:
        return [env for field, env in REQUIRED_ENV.items() if not getattr(self, field)]

    def require_complete(self) -> None:
        """
        Fail fast before anything starts: credentials, blog id and feed url
        have no defaults.
        """
        missing = self.missing_required()
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
        if self.mode not in MODES:
            raise ConfigError(f"MODE must be one of {sorted(MODES)}, got {self.mode!r}")

        from feed2blog.workflows.scheduler import validate_expression

        validate_expression(self.schedule)


def load_settings() -> Settings:
    try:
        return _from_env()
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        raise ConfigError(f"Invalid configuration: {e}") from e


def _from_env() -> Settings:
    mode = _to_str(os.getenv("MODE"), "cron").lower()
    return Settings(
        feed_url=_to_str(os.getenv("FEED_URL")) or _to_str(os.getenv("GSMARENA_RSS")),
        max_queue_fill=_to_int(os.getenv("MAX_QUEUE_FILL"), 100),
        openai_api_key=_to_str(os.getenv("OPENAI_API_KEY")),
        openai_model=_to_str(os.getenv("OPENAI_MODEL"), "gpt-4o-mini"),
        openai_max_tokens=_to_int(os.getenv("OPENAI_MAX_TOKENS"), 1500),
        content_char_limit=_to_int(os.getenv("CONTENT_CHAR_LIMIT"), 12000),
        blogger_client_id=_to_str(os.getenv("CLIENT_ID")),
        blogger_client_secret=_to_str(os.getenv("CLIENT_SECRET")),
        blogger_refresh_token=_to_str(os.getenv("REFRESH_TOKEN")),
        blog_id=_to_str(os.getenv("BLOG_ID")),
        schedule=_to_str(os.getenv("POST_INTERVAL_CRON"), "0 */3 * * *"),
        mode=mode,
        db_path=_to_str(os.getenv("DB_PATH"), "data/posts.db"),
        user_agent=_to_str(os.getenv("USER_AGENT"), "feed2blog/1.0"),
        page_timeout_seconds=_to_float(os.getenv("PAGE_TIMEOUT_SECONDS"), 15.0),
        post_delay_seconds=_to_float(os.getenv("POST_DELAY_SECONDS"), 2.0),
        log_level=_to_str(os.getenv("LOG_LEVEL"), "INFO"),
        log_file=_to_str(os.getenv("LOG_FILE"), "logs/run.log"),
    )
