"""Application settings loaded from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


@dataclass
class Settings:
    env: str = "development"
    supabase_disabled: bool = False
    supabase_url: str | None = None
    supabase_key: str | None = None
    use_local_db: bool = False
    upload_dir: Path = field(default_factory=lambda: Path("public") / "uploads")
    upload_public_prefix: str = "/uploads"
    processing_delay_seconds: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            env=os.getenv("ENV", "development"),
            supabase_disabled=_flag("SUPABASE_DISABLED"),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_ANON_KEY"),
            use_local_db=_flag("USE_LOCAL_DB"),
            upload_dir=Path(os.getenv("UPLOAD_DIR", os.path.join("public", "uploads"))),
            upload_public_prefix=os.getenv("UPLOAD_PUBLIC_PREFIX", "/uploads").rstrip("/"),
            processing_delay_seconds=float(os.getenv("PROCESSING_DELAY_SECONDS", "2.0")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def in_memory(self) -> bool:
        """True when neither Postgres nor Supabase is configured."""
        if self.use_local_db:
            return False
        return self.supabase_disabled or not (self.supabase_url and self.supabase_key)
