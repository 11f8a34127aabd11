"""
Contract Script ABI - Keys and Hashes

secp256k1 private/public key wrappers over coincurve, plus the HASH160 digest
used to derive public key hashes for P2PKH-style contract parameters.
"""

import hashlib
import secrets
from typing import Optional, Union

from coincurve import PrivateKey as CoinCurvePrivateKey, PublicKey as CoinCurvePublicKey
from Crypto.Hash import RIPEMD160

from .exceptions import InvalidKeyError


CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def hash160(data: bytes) -> bytes:
    """
    Compute HASH160 (RIPEMD160(SHA256(data))).

    Args:
        data: Input data to hash

    Returns:
        20-byte HASH160 digest
    """
    rmd = RIPEMD160.new()
    rmd.update(hashlib.sha256(data).digest())
    return rmd.digest()


def double_sha256(data: bytes) -> bytes:
    """Compute double SHA256 hash."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class PrivateKey:
    """
    Wrapper for private key operations.
    """

    def __init__(self, key_bytes: Optional[bytes] = None):
        """
        Initialize private key.

        Args:
            key_bytes: 32-byte private key. If None, generates random key.
        """
        if key_bytes is None:
            key_int = 0
            while key_int == 0:
                key_int = secrets.randbelow(CURVE_ORDER)
            key_bytes = key_int.to_bytes(32, 'big')

        if not isinstance(key_bytes, bytes) or len(key_bytes) != 32:
            raise InvalidKeyError("Private key must be 32 bytes")

        key_int = int.from_bytes(key_bytes, 'big')
        if key_int == 0 or key_int >= CURVE_ORDER:
            raise InvalidKeyError("Private key out of valid range")

        self._key = CoinCurvePrivateKey(key_bytes)

    @classmethod
    def from_hex(cls, hex_string: str) -> 'PrivateKey':
        try:
            return cls(bytes.fromhex(hex_string))
        except ValueError as e:
            raise InvalidKeyError(f"Invalid private key hex: {e}")

    @property
    def bytes(self) -> bytes:
        """Get private key as bytes."""
        return self._key.secret

    @property
    def hex(self) -> str:
        return self._key.secret.hex()

    def public_key(self) -> 'PublicKey':
        """Get corresponding public key."""
        return PublicKey(self._key.public_key)

    def sign(self, message_hash: bytes) -> bytes:
        """
        Sign a 32-byte digest.

        The digest is signed as-is, without hashing it again.

        Args:
            message_hash: 32-byte digest to sign

        Returns:
            DER-encoded low-s signature
        """
        if len(message_hash) != 32:
            raise InvalidKeyError("Message hash must be 32 bytes")
        return self._key.sign(message_hash, hasher=None)


class PublicKey:
    """
    Wrapper for public key operations.
    """

    def __init__(self, key_data: Union[bytes, CoinCurvePublicKey]):
        """
        Initialize public key.

        Args:
            key_data: Public key bytes (33 or 65 bytes) or CoinCurvePublicKey
        """
        if isinstance(key_data, CoinCurvePublicKey):
            self._key = key_data
            return
        if not isinstance(key_data, bytes):
            raise InvalidKeyError("Public key data must be bytes")
        if len(key_data) not in (33, 65):
            raise InvalidKeyError("Public key must be 33 or 65 bytes")
        try:
            self._key = CoinCurvePublicKey(key_data)
        except ValueError as e:
            raise InvalidKeyError(f"Failed to create public key: {e}")

    @property
    def bytes(self) -> bytes:
        """Get compressed public key as bytes."""
        return self._key.format(compressed=True)

    @property
    def hex(self) -> str:
        return self.bytes.hex()

    def hash160(self) -> bytes:
        """HASH160 of the compressed key (the P2PKH public key hash)."""
        return hash160(self.bytes)

    def verify(self, signature: bytes, message_hash: bytes) -> bool:
        """
        Verify a DER signature against a 32-byte digest.

        Returns:
            True if signature is valid
        """
        if len(message_hash) != 32:
            return False
        try:
            return self._key.verify(signature, message_hash, hasher=None)
        except ValueError:
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.bytes == other.bytes

    def __hash__(self) -> int:
        return hash(self.bytes)
