"""
Contract Script ABI - Cryptographic Operations Module

Key handling and signing used when filling `PubKey`, `Ripemd160` and `Sig`
contract parameters and when spending P2PKH-style contracts.

Dependencies:
- coincurve: Fast secp256k1 operations
- pycryptodome: RIPEMD160 for HASH160
"""

from .exceptions import (
    CryptoError,
    InvalidKeyError,
    InvalidSignatureError,
)
from .keys import PrivateKey, PublicKey, hash160, double_sha256
from .signatures import (
    SigHashType,
    DEFAULT_SIGHASH,
    is_der_signature,
    sign_input_digest,
    verify_input_signature,
    build_p2pkh_unlocking_script,
)

__all__ = [
    'CryptoError',
    'InvalidKeyError',
    'InvalidSignatureError',
    'PrivateKey',
    'PublicKey',
    'hash160',
    'double_sha256',
    'SigHashType',
    'DEFAULT_SIGHASH',
    'is_der_signature',
    'sign_input_digest',
    'verify_input_signature',
    'build_p2pkh_unlocking_script',
]
