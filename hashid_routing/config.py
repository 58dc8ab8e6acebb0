from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_HASHER = "default"
DEFAULT_SALT = ""
DEFAULT_MIN_LENGTH = 10
DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890"
URL_SAFE_EXTENDED_ALPHABET = DEFAULT_ALPHABET + "-_.~"

# Hash length bounds
MAX_LENGTH = 255

# Alphabet bounds
MIN_ALPHABET_LENGTH = 4
MAX_ALPHABET_LENGTH = 256

# Hasher names
MAX_HASHER_NAME_LENGTH = 50
HASHER_NAME_PATTERN = r"^[a-zA-Z0-9_\-.]+$"

# Parameter declarations
MAX_PARAMETERS = 20
MAX_PARAMETER_NAME_LENGTH = 100
PARAMETER_NAME_PATTERN = r"^[a-zA-Z0-9_]+$"

# Legacy docstring directive guards
MAX_DOCSTRING_LENGTH = 10_000
MAX_DIRECTIVE_LENGTH = 500

# Per-converter memoization
DEFAULT_ENCODE_CACHE_SIZE = 1000
DEFAULT_DECODE_CACHE_SIZE = 1000

# Named presets for HasherConfiguration.from_template()
HASHER_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "default": {
        "salt": "%env(HASHID_SALT)%",
        "min_hash_length": 10,
        "alphabet": DEFAULT_ALPHABET,
    },
    "secure": {
        "salt": "%env(HASHID_SECURE_SALT)%",
        "min_hash_length": 20,
        "alphabet": URL_SAFE_EXTENDED_ALPHABET,
    },
    "public": {
        "salt": "%env(HASHID_PUBLIC_SALT)%",
        "min_hash_length": 5,
        "alphabet": "abcdefghijklmnopqrstuvwxyz1234567890",
    },
    "api": {
        "salt": "%env(HASHID_API_SALT)%",
        "min_hash_length": 12,
        "alphabet": "ABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890",
    },
}

# Keys of the pre-registry single-hasher configuration
LEGACY_KEYS = ("salt", "min_hash_length", "alphabet")


# ============================================================================
# SETTINGS
# ============================================================================

class Settings(BaseSettings):
    """Runtime settings, read from HASHID_* environment variables."""
    model_config = SettingsConfigDict(env_prefix="HASHID_", extra="ignore")

    salt: str = DEFAULT_SALT
    min_hash_length: int = Field(DEFAULT_MIN_LENGTH, ge=0, le=MAX_LENGTH)
    alphabet: str = DEFAULT_ALPHABET

    # Extra named hashers, e.g. HASHID_HASHERS='{"secure": {"min_hash_length": 25}}'
    hashers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    suppress_deprecations: bool = False

    encode_cache_size: int = Field(DEFAULT_ENCODE_CACHE_SIZE, ge=0)
    decode_cache_size: int = Field(DEFAULT_DECODE_CACHE_SIZE, ge=0)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    def default_hasher_config(self) -> Dict[str, Any]:
        return {
            "salt": self.salt,
            "min_hash_length": self.min_hash_length,
            "alphabet": self.alphabet,
        }


@lru_cache()
def get_settings() -> Settings:
    """Returns the cached settings instance."""
    return Settings()
