"""Input validation policies shared by the auth and vault layers."""
from __future__ import annotations
import re
from codevault.config import (
	MAX_USERNAME_LENGTH, MAX_CODEBOOK_NAME_LENGTH, MAX_ADDRESS_LENGTH, MAX_PUBLIC_KEY_LENGTH,
	MAX_ENVELOPE_LENGTH, MAX_NOTES_LENGTH, MIN_PASSWORD_LENGTH, MAX_PASSWORD_LENGTH
)

class ValidationError(ValueError):
	pass

# ASCII word chars, '-', a few common symbols, and CJK ideographs (Ext A + Unified)
_CODEBOOK_NAME_RE = re.compile(r'[A-Za-z0-9_\-@$!%*#?&\u3400-\u4dbf\u4e00-\u9fff]+')
_PASSWORD_RE = re.compile(r'(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z]).{%d,%d}' % (MIN_PASSWORD_LENGTH, MAX_PASSWORD_LENGTH))

def is_valid_codebook_name(name: str) -> bool:
	if not name or len(name) > MAX_CODEBOOK_NAME_LENGTH: return False
	return _CODEBOOK_NAME_RE.fullmatch(name) is not None

def is_valid_password(password: str) -> bool:
	return bool(password) and _PASSWORD_RE.fullmatch(password) is not None

def validate_codebook_name(name: str) -> None:
	if not is_valid_codebook_name(name):
		raise ValidationError(
			f'Invalid codebook name (1-{MAX_CODEBOOK_NAME_LENGTH} characters: letters, digits, '
			'CJK ideographs, _ - @ $ ! % * # ? &)'
		)

def validate_username(username: str) -> None:
	if not username or len(username) > MAX_USERNAME_LENGTH:
		raise ValidationError(f'Username must be 1-{MAX_USERNAME_LENGTH} characters')

def validate_password(password: str, what: str = 'Password') -> None:
	if not is_valid_password(password):
		raise ValidationError(
			f'{what} must be {MIN_PASSWORD_LENGTH}-{MAX_PASSWORD_LENGTH} characters and contain '
			'a digit, a lowercase and an uppercase letter'
		)

def _bounded(value, what: str, upper: int, lower: int = 1, as_bytes: bool = False) -> None:
	if value is None: size = 0
	elif as_bytes and isinstance(value, str): size = len(value.encode('utf-8'))
	else: size = len(value)
	if size < lower or size > upper:
		raise ValidationError(f'{what} must be {lower}-{upper} long (got {size})')

def validate_entry_fields(address: str, public_key, encrypted_password, notes: str | None) -> None:
	"""Bounds for an entry update.

	Text columns count characters; blob columns count bytes, with str values
	measured as UTF-8 the way they are stored.
	"""
	_bounded(address, 'Address', MAX_ADDRESS_LENGTH)
	_bounded(public_key, 'Public key', MAX_PUBLIC_KEY_LENGTH, as_bytes=True)
	_bounded(encrypted_password, 'Encrypted password', MAX_ENVELOPE_LENGTH, as_bytes=True)
	_bounded(notes, 'Notes', MAX_NOTES_LENGTH, lower=0)
