import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


class Settings:
    # Defaults for the -h/-p/-c command line options
    host: Optional[str] = os.getenv("INVENTORY_HOST") or None
    port: Optional[int] = _optional_int(os.getenv("INVENTORY_PORT"))
    cache_dir: Optional[str] = os.getenv("INVENTORY_CACHE_DIR") or None

    log_level: str = os.getenv("INVENTORY_LOG_LEVEL", "INFO").upper()

    # 0 disables the limit
    max_upload_bytes: int = int(os.getenv("INVENTORY_MAX_UPLOAD_BYTES", "0") or "0")

    cors_origins: List[str] = [
        o.strip() for o in os.getenv("INVENTORY_CORS_ORIGINS", "*").split(",") if o.strip()
    ]


settings = Settings()
