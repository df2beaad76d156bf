# config.py
# Runtime settings, read from the environment (and a .env file if present).
#
#   DYNAMIC_FORM_BACKENDS         comma-separated module paths to register
#   DYNAMIC_FORM_LOG_LEVEL        CLI log level (default WARNING)
#   DYNAMIC_FORM_WEBHOOK_TIMEOUT  webhook backend timeout in seconds (default 10)
#   DYNAMIC_FORM_OUTBOX           default path for the jsonl_file backend

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    """Operator configuration. Trusted, unlike decoded form payloads."""

    backend_modules: list[str] = Field(
        default_factory=list, description="Modules imported and registered at startup."
    )
    log_level: str = Field(default="WARNING")
    webhook_timeout: float = Field(default=10.0, gt=0)
    outbox: str = Field(default="submissions.jsonl")

    @classmethod
    def from_env(cls) -> "Settings":
        modules = os.getenv("DYNAMIC_FORM_BACKENDS", "")
        return cls(
            backend_modules=[m.strip() for m in modules.split(",") if m.strip()],
            log_level=os.getenv("DYNAMIC_FORM_LOG_LEVEL", "WARNING").upper(),
            webhook_timeout=os.getenv("DYNAMIC_FORM_WEBHOOK_TIMEOUT", "10"),
            outbox=os.getenv("DYNAMIC_FORM_OUTBOX", "submissions.jsonl"),
        )
