"""Random password generation."""
from __future__ import annotations
import secrets, string
from codevault.config import DEFAULT_PASSWORD_LENGTH

BASIC_CHARSET = string.ascii_uppercase + string.ascii_lowercase + string.digits  # 62
EXTENDED_CHARSET = BASIC_CHARSET + string.punctuation  # 94

class PasswordGenerator:
	"""Draws each character independently and uniformly via `secrets.choice`."""

	def __init__(self, length: int = DEFAULT_PASSWORD_LENGTH):
		self.length = self._check_length(length)

	@staticmethod
	def _check_length(length: int) -> int:
		if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
			raise ValueError(f'Password length must be a positive integer, got {length!r}')
		return length

	def generate(self, length: int | None = None, use_extended_charset: bool = False) -> str:
		n = self.length if length is None else self._check_length(length)
		charset = EXTENDED_CHARSET if use_extended_charset else BASIC_CHARSET
		return ''.join(secrets.choice(charset) for _ in range(n))

	def generate_basic(self) -> str:
		return self.generate()

	def generate_extended(self) -> str:
		return self.generate(use_extended_charset=True)
