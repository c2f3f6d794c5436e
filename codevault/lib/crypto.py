"""Envelope encryption: Argon2id key derivation + XChaCha20-Poly1305.

Envelope layout (no length prefixes):
	salt (16) || nonce (24) || ciphertext || tag (16)
"""
from __future__ import annotations
import secrets, logging
from argon2.low_level import Type, hash_secret_raw
from Crypto.Cipher import ChaCha20_Poly1305
from codevault.config import (
	SALT_LENGTH, NONCE_LENGTH, TAG_LENGTH, KEY_LENGTH, MIN_ENVELOPE_LENGTH, KdfParams, kdf_params
)

log = logging.getLogger(__name__)

class CryptoError(Exception):
	pass

class DecryptionError(CryptoError):
	"""Wrong master password or corrupted data; the two are not told apart."""

class InvalidEnvelopeError(DecryptionError):
	"""Envelope too short to hold salt, nonce and tag."""

_DECRYPT_FAILED = 'Decryption failed: incorrect password or corrupted data'

class CryptoModule:
	"""Encrypts payloads under a key derived from a master password.

	Nothing derived from the password is kept on the instance; every call
	derives its own key from a fresh salt and drops it on return.
	"""

	def __init__(self, params: KdfParams | None = None):
		self._params = params

	@property
	def params(self) -> KdfParams:
		return self._params or kdf_params()

	def derive_key(self, master_password: str, salt: bytes) -> bytes:
		if not master_password:
			raise CryptoError('Master password empty')
		if len(salt) != SALT_LENGTH:
			raise CryptoError('Bad salt length')
		p = self.params
		return hash_secret_raw(
			secret=master_password.encode('utf-8'), salt=salt,
			time_cost=p.time_cost, memory_cost=p.memory_cost, parallelism=p.parallelism,
			hash_len=KEY_LENGTH, type=Type.ID
		)

	def encrypt(self, master_password: str, plaintext: bytes) -> bytes:
		salt = secrets.token_bytes(SALT_LENGTH)
		nonce = secrets.token_bytes(NONCE_LENGTH)
		key = self.derive_key(master_password, salt)
		try:
			cipher = ChaCha20_Poly1305.new(key=key, nonce=nonce)
			ct, tag = cipher.encrypt_and_digest(bytes(plaintext))
		finally:
			del key
		return salt + nonce + ct + tag

	def decrypt(self, master_password: str, envelope: bytes) -> bytes:
		if len(envelope) < MIN_ENVELOPE_LENGTH:
			raise InvalidEnvelopeError(f'Envelope too short ({len(envelope)} < {MIN_ENVELOPE_LENGTH} bytes)')
		salt = envelope[:SALT_LENGTH]
		nonce = envelope[SALT_LENGTH:SALT_LENGTH + NONCE_LENGTH]
		ct = envelope[SALT_LENGTH + NONCE_LENGTH:-TAG_LENGTH]; tag = envelope[-TAG_LENGTH:]
		key = self.derive_key(master_password, bytes(salt))
		try:
			cipher = ChaCha20_Poly1305.new(key=key, nonce=bytes(nonce))
			return cipher.decrypt_and_verify(bytes(ct), bytes(tag))
		except ValueError:
			log.debug('Envelope failed authentication')
			raise DecryptionError(_DECRYPT_FAILED) from None
		finally:
			del key

	def encrypt_text(self, master_password: str, text: str) -> bytes:
		return self.encrypt(master_password, text.encode('utf-8'))

	def decrypt_text(self, master_password: str, envelope: bytes) -> str:
		try:
			return self.decrypt(master_password, envelope).decode('utf-8')
		except UnicodeDecodeError:
			raise DecryptionError(_DECRYPT_FAILED) from None
