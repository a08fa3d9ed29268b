"""Configuration management for larksheets."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class AppCredentials(BaseModel):
    """App id and secret issued by the Lark developer console."""

    app_id: str
    app_secret: str


class Settings(BaseModel):
    """Library settings."""

    # App credentials used to obtain the tenant access token
    app_id: Optional[str] = os.getenv("LARK_APP_ID")
    app_secret: Optional[str] = os.getenv("LARK_APP_SECRET")

    # Open platform host, e.g. open.feishu.cn or open.larksuite.com
    host: str = os.getenv("LARK_HOST", "open.feishu.cn")

    # HTTP transport settings
    timeout_seconds: float = float(os.getenv("LARK_TIMEOUT_SECONDS", "5.0"))
    max_connections: int = int(os.getenv("LARK_MAX_CONNECTIONS", "100"))
    keepalive_expiry_seconds: float = float(os.getenv("LARK_KEEPALIVE_EXPIRY_SECONDS", "60.0"))

    # Tenant access token refresh period
    token_refresh_interval_seconds: float = float(
        os.getenv("LARK_TOKEN_REFRESH_INTERVAL_SECONDS", "300")
    )  # 5 minutes

    log_level: str = os.getenv("LARK_LOG_LEVEL", "INFO").upper()

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    def credentials(self) -> AppCredentials:
        """Return the app credentials, failing if either half is missing."""
        if not self.app_id or not self.app_secret:
            raise ValueError(
                "Lark app credentials are not configured. "
                "Set LARK_APP_ID and LARK_APP_SECRET."
            )
        return AppCredentials(app_id=self.app_id, app_secret=self.app_secret)


settings = Settings()
