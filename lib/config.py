"""Bot and retention configuration"""

import logging
import os
from pathlib import Path
from typing import Optional

import dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_PERIOD_IN_DAYS = 30
RETENTION_PERIOD_KEY = "NEW_HIRE_RETENTION_PERIOD_IN_DAYS"
REVOKE_BEFORE_DELETE_KEY = "NEW_HIRE_REVOKE_BEFORE_DELETE"


class ConfigError(Exception):
    """Required configuration is missing"""


class BotOptions(BaseModel):
    """Credentials the bot uses to talk to Microsoft Graph"""

    tenant_id: str
    microsoft_app_id: str
    microsoft_app_password: str
    manifest_id: str


def load_bot_options() -> BotOptions:
    """Read bot credentials from the environment

    Raises:
        ConfigError: One or more of the variables is unset.
    """
    values = {
        "tenant_id": os.getenv("TENANT_ID", "").strip(),
        "microsoft_app_id": os.getenv("MICROSOFT_APP_ID", "").strip(),
        "microsoft_app_password": os.getenv("MICROSOFT_APP_PASSWORD", "").strip(),
        "manifest_id": os.getenv("MANIFEST_ID", "").strip(),
    }
    missing = [k.upper() for k, v in values.items() if not v]
    if missing:
        raise ConfigError(f"Missing bot configuration: {', '.join(missing)}")
    return BotOptions(**values)


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class RetentionSettings:
    """Live view of the new hire retention settings.

    Every read goes back to the ``.env`` file so that an edited value is
    picked up by the next sweep without a restart. A value present in the
    file is authoritative: a key removed from it falls back to the default,
    not to the process environment. Without a file the environment is used.
    Unparseable or negative values are ignored and the last good value is
    kept.
    """

    def __init__(self, env_file: Optional[str | Path] = None):
        self.env_file = Path(env_file) if env_file else Path(".env")
        self._last_good = DEFAULT_RETENTION_PERIOD_IN_DAYS

    def _read(self, key: str) -> Optional[str]:
        # load_dotenv copies the file into os.environ at startup, so once the
        # file exists only its current contents count
        if self.env_file.is_file():
            return dotenv.dotenv_values(self.env_file).get(key)
        return os.getenv(key)

    @property
    def retention_period_days(self) -> int:
        """Current NEW_HIRE_RETENTION_PERIOD_IN_DAYS"""
        raw = self._read(RETENTION_PERIOD_KEY)
        if raw is None or raw.strip() == "":
            return DEFAULT_RETENTION_PERIOD_IN_DAYS

        try:
            days = int(raw)
        except ValueError:
            logger.warning(
                "Invalid %s=%r, keeping %d", RETENTION_PERIOD_KEY, raw, self._last_good
            )
            return self._last_good

        if days < 0:
            logger.warning(
                "Negative %s=%d, keeping %d", RETENTION_PERIOD_KEY, days, self._last_good
            )
            return self._last_good

        self._last_good = days
        return days

    @property
    def revoke_before_delete(self) -> bool:
        """Whether the sweep revokes app access before deleting store rows"""
        return _is_truthy(self._read(REVOKE_BEFORE_DELETE_KEY))

    def __call__(self) -> int:
        return self.retention_period_days
