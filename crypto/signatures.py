"""
Contract Script ABI - Input Signatures

Produces the signature bytes a contract's `Sig` parameter carries (DER
signature followed by the sighash type byte) and assembles P2PKH unlocking
scripts from them. Sighash digest computation belongs to the transaction
layer; these helpers sign a digest they are given.
"""

import logging
from enum import IntFlag
from typing import Union

from scripts.script import Script, ScriptChunk

from .exceptions import InvalidSignatureError
from .keys import PrivateKey, PublicKey


logger = logging.getLogger(__name__)


class SigHashType(IntFlag):
    """Signature hash type flags."""
    ALL = 0x01
    NONE = 0x02
    SINGLE = 0x03
    FORKID = 0x40
    ANYONECANPAY = 0x80


DEFAULT_SIGHASH = SigHashType.ALL | SigHashType.FORKID


def _sighash_byte(sighash_type: int) -> bytes:
    if not 0 <= int(sighash_type) <= 0xff:
        raise InvalidSignatureError(f"Sighash type must fit in one byte: {sighash_type}")
    base = int(sighash_type) & 0x1f
    if base not in (SigHashType.ALL, SigHashType.NONE, SigHashType.SINGLE):
        raise InvalidSignatureError(f"Unknown base sighash type: {int(sighash_type):#04x}")
    return bytes([int(sighash_type)])


def is_der_signature(signature: bytes) -> bool:
    """
    Check the strict DER layout of an ECDSA signature (without sighash byte).
    """
    if len(signature) < 8 or len(signature) > 72:
        return False
    if signature[0] != 0x30 or signature[1] != len(signature) - 2:
        return False

    r_length = signature[3]
    if signature[2] != 0x02 or r_length == 0 or 5 + r_length >= len(signature):
        return False
    s_offset = 4 + r_length
    s_length = signature[s_offset + 1]
    if signature[s_offset] != 0x02 or s_length == 0:
        return False
    if s_offset + 2 + s_length != len(signature):
        return False

    for start, length in ((4, r_length), (s_offset + 2, s_length)):
        if signature[start] & 0x80:
            return False
        if length > 1 and signature[start] == 0 and not signature[start + 1] & 0x80:
            return False
    return True


def sign_input_digest(
    private_key: PrivateKey,
    digest: bytes,
    sighash_type: int = DEFAULT_SIGHASH
) -> bytes:
    """
    Sign an input's sighash digest.

    Args:
        private_key: Signing key
        digest: 32-byte sighash digest
        sighash_type: Sighash flags appended to the signature

    Returns:
        DER signature followed by the sighash type byte
    """
    if len(digest) != 32:
        raise InvalidSignatureError("Sighash digest must be 32 bytes")
    suffix = _sighash_byte(sighash_type)
    signature = private_key.sign(digest) + suffix
    logger.debug(f"Signed digest {digest.hex()} with sighash {suffix.hex()}")
    return signature


def verify_input_signature(public_key: PublicKey, signature: bytes, digest: bytes) -> bool:
    """Verify a signature produced by sign_input_digest."""
    if len(signature) < 2 or not is_der_signature(signature[:-1]):
        return False
    return public_key.verify(signature[:-1], digest)


def build_p2pkh_unlocking_script(
    signature: bytes,
    sighash_type: int,
    public_key: Union[PublicKey, bytes]
) -> Script:
    """
    Assemble ``<signature+sighash> <pubkey>``.

    Args:
        signature: DER signature, with or without the trailing sighash byte
        sighash_type: Sighash flags the signature was produced with
        public_key: Public key object or serialized key bytes

    Returns:
        Unlocking script
    """
    suffix = _sighash_byte(sighash_type)
    if is_der_signature(signature):
        signature = signature + suffix
    elif not (signature[-1:] == suffix and is_der_signature(signature[:-1])):
        raise InvalidSignatureError("Signature is not DER encoded with the given sighash type")

    key_bytes = public_key.bytes if isinstance(public_key, PublicKey) else public_key
    if len(key_bytes) not in (33, 65):
        raise InvalidSignatureError("Public key must be 33 or 65 bytes")

    return Script((ScriptChunk.push(signature), ScriptChunk.push(key_bytes)))
