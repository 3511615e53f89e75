"""
Secret hashing and symmetric encryption for credential storage.

SECURITY:
- Credential secrets are hashed with bcrypt; the salt is embedded in the hash
- Secrets are SHA-256 digested before bcrypt, which only reads the first 72 bytes
- Hash comparison is constant-time (bcrypt.checkpw / hmac.compare_digest)
- Reversible values use AES-CBC with a fresh random IV per call
- Keys and plaintexts are never logged

Usage:
    codec = SecretCodec.from_config(get_config().crypto)

    stored = codec.hash("s3cr3t")
    codec.verify("s3cr3t", stored)          # True

    token = codec.encrypt("refresh-token")  # "<iv hex>:<ciphertext hex>"
    codec.decrypt(token)                    # "refresh-token"
"""

import base64
import hashlib
import hmac
import os
from typing import Optional

import bcrypt
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import CryptoConfig
from ..exceptions import ErrorCode, InvalidArgumentError, ValidationError
from .logger import get_logger

IV_SIZE = 16  # AES block size in bytes
BLOCK_BITS = 128
CIPHERTEXT_SEPARATOR = ":"

# Key length in bytes per supported algorithm
KEY_SIZES = {
    "aes-128-cbc": 16,
    "aes-192-cbc": 24,
    "aes-256-cbc": 32,
}

logger = get_logger()


def prehash(secret: str) -> bytes:
    """Fixed-length bcrypt input for a secret of any length."""
    return base64.b64encode(hashlib.sha256(secret.encode("utf-8")).digest())


def constant_time_equals(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two strings without leaking the position of the first difference."""
    if left is None or right is None:
        return False
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


class SecretCodec:
    """
    One-way hashing for credential secrets plus a reversible cipher.

    The hashing side is adaptive (bcrypt work factor from configuration);
    the cipher side is keyed once per process.
    """

    def __init__(self, salt_rounds: int, cipher_key: str, cipher_algorithm: str = "aes-256-cbc"):
        """
        Initialize the codec.

        Args:
            salt_rounds: bcrypt work factor
            cipher_key: Raw cipher key; its byte length must match the algorithm
            cipher_algorithm: One of aes-128-cbc, aes-192-cbc, aes-256-cbc

        Raises:
            ValidationError: If the algorithm is unknown or the key length is wrong
        """
        algorithm = cipher_algorithm.lower()
        if algorithm not in KEY_SIZES:
            raise ValidationError(
                f"Unsupported cipher algorithm: {cipher_algorithm}",
                field="cipher_algorithm",
                error_code=ErrorCode.CONFIGURATION_ERROR,
            )

        key_bytes = cipher_key.encode("utf-8")
        if len(key_bytes) != KEY_SIZES[algorithm]:
            raise ValidationError(
                f"Cipher key for {algorithm} must be {KEY_SIZES[algorithm]} bytes",
                field="cipher_key",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                expected_length=KEY_SIZES[algorithm],
                actual_length=len(key_bytes),
            )

        self.salt_rounds = salt_rounds
        self.cipher_algorithm = algorithm
        self._key = key_bytes

    @classmethod
    def from_config(cls, config: CryptoConfig) -> "SecretCodec":
        """Build a codec from the crypto section of the application config."""
        return cls(
            salt_rounds=config.salt_rounds,
            cipher_key=config.cipher_key,
            cipher_algorithm=config.cipher_algorithm,
        )

    # ==================== ONE-WAY HASHING ====================

    def hash(self, secret: str) -> str:
        """
        Salt and hash a secret.

        Args:
            secret: Plain secret, must be a non-empty string

        Returns:
            Self-describing bcrypt hash (salt and work factor embedded)

        Raises:
            InvalidArgumentError: If secret is empty, None or not a string
        """
        if secret is None or not isinstance(secret, str) or secret == "":
            raise InvalidArgumentError("invalid arguments", field="secret")

        salt = bcrypt.gensalt(rounds=self.salt_rounds)
        return bcrypt.hashpw(prehash(secret), salt).decode("utf-8")

    def verify(self, secret: Optional[str], hashed: Optional[str]) -> bool:
        """
        Check a secret against a stored hash.

        Returns False without hashing when either argument is missing, and
        False for a malformed hash.
        """
        if not secret or not hashed:
            return False

        try:
            return bcrypt.checkpw(prehash(secret), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored hash is malformed; treating as mismatch")
            return False

    # ==================== REVERSIBLE CIPHER ====================

    def _cipher(self, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(iv))

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a value that must be recoverable later.

        Returns:
            "<iv hex>:<ciphertext hex>"
        """
        if plaintext is None or not isinstance(plaintext, str):
            raise InvalidArgumentError("plaintext must be a string", field="plaintext")

        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = self._cipher(iv).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return f"{iv.hex()}{CIPHERTEXT_SEPARATOR}{ciphertext.hex()}"

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a value produced by :meth:`encrypt`.

        Raises:
            InvalidArgumentError: If the value is malformed or was not produced with this key
        """
        if not ciphertext or not isinstance(ciphertext, str):
            raise InvalidArgumentError("ciphertext must be a non-empty string", field="ciphertext")

        iv_hex, separator, body_hex = ciphertext.partition(CIPHERTEXT_SEPARATOR)
        if not separator:
            raise InvalidArgumentError("ciphertext is missing its IV prefix", field="ciphertext")

        try:
            iv = bytes.fromhex(iv_hex)
            body = bytes.fromhex(body_hex)
            if len(iv) != IV_SIZE:
                raise ValueError("bad IV length")

            decryptor = self._cipher(iv).decryptor()
            padded = decryptor.update(body) + decryptor.finalize()

            unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except ValueError as e:
            raise InvalidArgumentError(
                "ciphertext could not be decrypted", field="ciphertext", cause=e
            ) from e
