"""
Configuration management for Presetarr.
"""
from functools import lru_cache
from pathlib import Path
import base64
import logging
import os
import tempfile

from cryptography.fernet import Fernet
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from presetarr.constants import DEFAULT_SENSITIVE_SETTINGS, LOCK_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = "Presetarr"
    app_version: str = Field(default_factory=lambda: __import__("presetarr").__version__)
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 9595

    # Database (SQLite for single-container deployment)
    database_url: str = Field(
        "sqlite+aiosqlite:///./data/presetarr.db",
        description="Database connection URL (SQLite embedded)"
    )
    data_dir: Path = Field(Path("./data"), description="Directory for keys and logs")

    # Identity of this site, stamped on every preset created here
    site_url: str = Field("http://localhost", description="Public URL of this site")
    release: str = Field("4.0", description="Release string of the configured system")

    # Preset behaviour
    sensitive_settings: str = Field(
        DEFAULT_SENSITIVE_SETTINGS,
        description="Comma separated name@@scope tokens never exported or applied"
    )
    lock_timeout_seconds: float = Field(
        LOCK_TIMEOUT_SECONDS,
        ge=0,
        description="How long apply/rollback wait for the configuration lock"
    )
    seed_default_presets: bool = Field(True, description="Create the Lite/Full presets on first start")
    default_preset: str = Field(
        "",
        description="Core preset applied right after the first seeding, e.g. \"lite\"; none when empty"
    )


settings = Settings()


def _atomic_write_file(file_path: Path, content: bytes) -> bool:
    """
    Atomically write content to a file using a temporary file and rename.

    Returns:
        True if successful, False otherwise
    """
    temp_file = None
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=file_path.parent)
        temp_file = Path(temp_path)
        os.write(fd, content)
        os.close(fd)

        temp_file.chmod(0o600)
        temp_file.rename(file_path)
        return True
    except OSError as e:
        logger.warning(f"Failed to atomically write {file_path}: {e}")
        if temp_file and temp_file.exists():
            temp_file.unlink(missing_ok=True)
        return False


# Encryption for sensitive configuration values
def _is_valid_fernet_key(key: bytes) -> bool:
    """Validate that a key is a valid Fernet key (32 url-safe base64-encoded bytes)."""
    try:
        return len(base64.urlsafe_b64decode(key)) == 32
    except (ValueError, TypeError):
        return False


def get_encryption_key() -> bytes:
    """
    Get or create encryption key for sensitive config values.

    Priority order:
    1. CONFIG_ENCRYPTION_KEY environment variable (validated)
    2. Stored key in <data_dir>/.encryption_key file (validated)
    3. Generate new key and save to file (atomic write)
    """
    key_env = os.getenv("CONFIG_ENCRYPTION_KEY")
    if key_env:
        key_bytes = key_env.encode()
        if _is_valid_fernet_key(key_bytes):
            return key_bytes
        logger.warning("CONFIG_ENCRYPTION_KEY from environment is invalid, trying file")

    key_file = settings.data_dir / ".encryption_key"
    if key_file.exists():
        try:
            stored_key = key_file.read_bytes()
            if _is_valid_fernet_key(stored_key):
                return stored_key
            logger.warning("Stored encryption key is invalid, regenerating")
        except OSError as e:
            logger.warning(f"Failed to read encryption key file: {e}")

    new_key = Fernet.generate_key()
    if _atomic_write_file(key_file, new_key):
        logger.info(f"Generated new encryption key and saved to {key_file}")
    else:
        logger.warning("Could not persist encryption key - will regenerate on restart")

    return new_key


@lru_cache
def _fernet() -> Fernet:
    return Fernet(get_encryption_key())


def encrypt_value(value: str) -> str:
    """Encrypt a sensitive configuration value."""
    return _fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted: str) -> str:
    """Decrypt a sensitive configuration value."""
    return _fernet().decrypt(encrypted.encode()).decode()


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key holds secret data that must be encrypted at rest."""
    sensitive_keywords = ["password", "pass", "secret", "privatekey", "token"]
    return any(keyword in key.lower() for keyword in sensitive_keywords)
