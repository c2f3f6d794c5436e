"""Project configuration settings.

Constants shared by the crypto, auth and storage layers. Values that tests
or operators need to change are read from the environment at call time
rather than at import time.
"""

from dataclasses import dataclass
from pathlib import Path
import os


@dataclass(frozen=True)
class KdfParams:
	"""Argon2id cost parameters (memory_cost is in KiB)."""
	time_cost: int
	memory_cost: int
	parallelism: int = 1


# Envelope layout: salt || nonce || ciphertext || tag
SALT_LENGTH = 16
NONCE_LENGTH = 24  # XChaCha20-Poly1305
TAG_LENGTH = 16
KEY_LENGTH = 32
MIN_ENVELOPE_LENGTH = SALT_LENGTH + NONCE_LENGTH + TAG_LENGTH

# libsodium OPSLIMIT/MEMLIMIT presets
KDF_MODERATE = KdfParams(time_cost=3, memory_cost=256 * 1024)
HASH_SENSITIVE = KdfParams(time_cost=4, memory_cost=1024 * 1024)

# Field bounds
MAX_USERNAME_LENGTH = 50
MAX_CODEBOOK_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 253
MAX_PUBLIC_KEY_LENGTH = 4096
MAX_ENVELOPE_LENGTH = 512
MAX_NOTES_LENGTH = 1024

# Password policy
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 32

# Listing / generator defaults
DEFAULT_PAGE_SIZE = 50
DEFAULT_PASSWORD_LENGTH = 12

# Database
DEFAULT_DB_PATH = Path("vault_data/codevault.db")
MEMORY_DB = ":memory:"

# Logging
LOG_LEVEL = os.environ.get("VAULT_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_int(name: str, default: int) -> int:
	raw = os.environ.get(name)
	return int(raw) if raw else default


def kdf_params() -> KdfParams:
	"""Cost used to derive data-encryption keys."""
	return KdfParams(
		time_cost=_env_int("VAULT_KDF_TIME_COST", KDF_MODERATE.time_cost),
		memory_cost=_env_int("VAULT_KDF_MEMORY_COST", KDF_MODERATE.memory_cost),
	)


def hash_params() -> KdfParams:
	"""Cost used to hash login passwords (higher than kdf_params)."""
	return KdfParams(
		time_cost=_env_int("VAULT_HASH_TIME_COST", HASH_SENSITIVE.time_cost),
		memory_cost=_env_int("VAULT_HASH_MEMORY_COST", HASH_SENSITIVE.memory_cost),
	)


def resolve_db_path(path=None):
	"""Explicit path, else VAULT_DB_PATH, else DEFAULT_DB_PATH."""
	if path is not None:
		return path if str(path) == MEMORY_DB else Path(path)
	env_path = os.environ.get("VAULT_DB_PATH")
	if env_path:
		return env_path if env_path == MEMORY_DB else Path(env_path)
	return DEFAULT_DB_PATH


__all__ = [
	'KdfParams', 'SALT_LENGTH', 'NONCE_LENGTH', 'TAG_LENGTH', 'KEY_LENGTH', 'MIN_ENVELOPE_LENGTH',
	'KDF_MODERATE', 'HASH_SENSITIVE', 'MAX_USERNAME_LENGTH', 'MAX_CODEBOOK_NAME_LENGTH',
	'MAX_ADDRESS_LENGTH', 'MAX_PUBLIC_KEY_LENGTH', 'MAX_ENVELOPE_LENGTH', 'MAX_NOTES_LENGTH',
	'MIN_PASSWORD_LENGTH', 'MAX_PASSWORD_LENGTH', 'DEFAULT_PAGE_SIZE', 'DEFAULT_PASSWORD_LENGTH',
	'DEFAULT_DB_PATH', 'MEMORY_DB', 'LOG_LEVEL', 'LOG_FORMAT',
	'kdf_params', 'hash_params', 'resolve_db_path'
]
