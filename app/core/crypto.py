# app/core/crypto.py
"""
민감 필드 암호화 (AES-256-GCM)

- 키 유도: Argon2id (time_cost=3, memory=64MB, parallelism=4)
- 저장 형식: base64(nonce || ciphertext || tag)
- salt는 인스턴스마다 한 번 생성되고 DB에 저장되어야 복호화 가능
"""
import base64
import binascii
import os

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4
KEY_LENGTH = 32    # AES-256
SALT_LENGTH = 16
NONCE_LENGTH = 12
TAG_LENGTH = 16
MIN_SECRET_LENGTH = 16


class DecryptionFailed(Exception):
    """복호화 실패 (원인은 구분하지 않음)"""

    def __init__(self):
        super().__init__("decryption failed")


def derive_key(secret: str, salt: bytes) -> bytes:
    """Argon2id로 256비트 키 유도"""
    return hash_secret_raw(
        secret=secret.encode("utf-8"),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=KEY_LENGTH,
        type=Type.ID,
    )


class FieldCipher:
    """생성 이후 불변 -> 여러 요청에서 동시에 사용 가능"""

    __slots__ = ("_aead", "_salt")

    def __init__(self, secret: str, salt: bytes):
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"encryption secret must have at least {MIN_SECRET_LENGTH} characters")
        if len(salt) != SALT_LENGTH:
            raise ValueError(f"salt must be {SALT_LENGTH} bytes")
        self._salt = bytes(salt)
        self._aead = AESGCM(derive_key(secret, self._salt))

    @classmethod
    def create(cls, secret: str) -> "FieldCipher":
        """새 랜덤 salt로 생성"""
        return cls(secret, os.urandom(SALT_LENGTH))

    @classmethod
    def from_salt(cls, secret: str, salt: bytes) -> "FieldCipher":
        """저장된 salt로 복원"""
        return cls(secret, salt)

    @property
    def salt(self) -> bytes:
        return self._salt

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, token: str) -> str:
        try:
            data = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError, TypeError):
            raise DecryptionFailed() from None

        if len(data) < NONCE_LENGTH + TAG_LENGTH:
            raise DecryptionFailed()

        nonce, sealed = data[:NONCE_LENGTH], data[NONCE_LENGTH:]
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError):
            raise DecryptionFailed() from None

    def encrypt_optional(self, value: str | None) -> str | None:
        """빈 값은 암호화하지 않음"""
        return self.encrypt(value) if value else value

    def decrypt_optional(self, value: str | None) -> str | None:
        return self.decrypt(value) if value else value
