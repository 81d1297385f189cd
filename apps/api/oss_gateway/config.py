import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(_ENV_PATH, override=False)

DEFAULT_OSS_REGION = "oss-cn-shanghai"
DEFAULT_OSS_ENDPOINT_DOMAIN = "aliyuncs.com"


def _get_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def get_oss_access_key_id() -> str | None:
    return _get_env("ALIYUN_ACCESS_KEY_ID")


def get_oss_access_key_secret() -> str | None:
    return _get_env("ALIYUN_ACCESS_KEY_SECRET")


def get_oss_bucket() -> str | None:
    return _get_env("ALIYUN_BUCKET")


def get_oss_region() -> str:
    return _get_env("ALIYUN_OSS_REGION") or DEFAULT_OSS_REGION


def get_oss_endpoint_domain() -> str:
    return _get_env("ALIYUN_OSS_ENDPOINT_DOMAIN") or DEFAULT_OSS_ENDPOINT_DOMAIN


def get_oss_timeout() -> float:
    """Seconds to wait on each OSS call. Falls back to 60 on unparsable input."""
    raw = _get_env("ALIYUN_OSS_TIMEOUT")
    if raw is None:
        return 60.0
    try:
        value = float(raw)
    except ValueError:
        return 60.0
    return value if value > 0 else 60.0


def get_port() -> int:
    raw = _get_env("PORT")
    if raw is None or not raw.isdigit():
        return 3000
    return int(raw)


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or "INFO").upper()


def get_cors_allow_origins() -> list[str]:
    raw = _get_env("CORS_ALLOW_ORIGINS")
    if raw is None:
        return ["*"]
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


@dataclass(frozen=True)
class OssSettings:
    access_key_id: str | None
    access_key_secret: str | None
    bucket: str | None
    region: str = DEFAULT_OSS_REGION
    endpoint_domain: str = DEFAULT_OSS_ENDPOINT_DOMAIN
    timeout: float = 60.0

    def missing_credentials(self) -> list[str]:
        required = {
            "ALIYUN_ACCESS_KEY_ID": self.access_key_id,
            "ALIYUN_ACCESS_KEY_SECRET": self.access_key_secret,
            "ALIYUN_BUCKET": self.bucket,
        }
        return [name for name, value in required.items() if not value]


def load_oss_settings() -> OssSettings:
    return OssSettings(
        access_key_id=get_oss_access_key_id(),
        access_key_secret=get_oss_access_key_secret(),
        bucket=get_oss_bucket(),
        region=get_oss_region(),
        endpoint_domain=get_oss_endpoint_domain(),
        timeout=get_oss_timeout(),
    )


@lru_cache(maxsize=1)
def get_oss_settings() -> OssSettings:
    """Process-wide OSS settings, read from the environment on first use only."""
    return load_oss_settings()
