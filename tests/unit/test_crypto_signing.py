"""
Tests for keys, hashes and input signatures.
"""

import pytest

from crypto import (
    DEFAULT_SIGHASH,
    InvalidKeyError,
    InvalidSignatureError,
    PrivateKey,
    PublicKey,
    SigHashType,
    build_p2pkh_unlocking_script,
    double_sha256,
    hash160,
    is_der_signature,
    sign_input_digest,
    verify_input_signature,
)


KEY_ONE = (1).to_bytes(32, "big")
KEY_ONE_PUBKEY = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
KEY_ONE_HASH160 = "751e76e8199196d454941c45d1b3a323f1433bd6"


class TestKeys:
    """Test key wrappers."""

    def test_known_public_key(self):
        key = PrivateKey(KEY_ONE)
        assert key.public_key().hex == KEY_ONE_PUBKEY
        assert key.public_key().hash160().hex() == KEY_ONE_HASH160

    def test_hash160(self):
        assert hash160(bytes.fromhex(KEY_ONE_PUBKEY)).hex() == KEY_ONE_HASH160
        assert double_sha256(b"").hex() == (
            "5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456"
        )

    def test_random_key(self):
        first, second = PrivateKey(), PrivateKey()
        assert first.bytes != second.bytes
        assert len(first.public_key().bytes) == 33

    def test_invalid_private_keys(self):
        with pytest.raises(InvalidKeyError):
            PrivateKey(b"\x00" * 32)
        with pytest.raises(InvalidKeyError):
            PrivateKey(b"\x01" * 31)
        with pytest.raises(InvalidKeyError, match="Invalid private key hex"):
            PrivateKey.from_hex("zz")

    def test_public_key_round_trip(self):
        public_key = PrivateKey(KEY_ONE).public_key()
        assert PublicKey(bytes.fromhex(KEY_ONE_PUBKEY)) == public_key
        with pytest.raises(InvalidKeyError):
            PublicKey(b"\x02" * 32)


class TestInputSignatures:
    """Test sighash-suffixed signatures."""

    def setup_method(self):
        self.key = PrivateKey(KEY_ONE)
        self.digest = double_sha256(b"spend the contract output")

    def test_sign_and_verify(self):
        signature = sign_input_digest(self.key, self.digest)
        assert signature[-1] == 0x41
        assert is_der_signature(signature[:-1])
        assert verify_input_signature(self.key.public_key(), signature, self.digest)
        assert not verify_input_signature(self.key.public_key(), signature, double_sha256(b"other"))

    def test_sighash_flags(self):
        assert int(DEFAULT_SIGHASH) == 0x41
        flags = SigHashType.SINGLE | SigHashType.ANYONECANPAY | SigHashType.FORKID
        assert sign_input_digest(self.key, self.digest, flags)[-1] == 0xc3
        with pytest.raises(InvalidSignatureError, match="Unknown base sighash type"):
            sign_input_digest(self.key, self.digest, SigHashType.FORKID)

    def test_digest_length(self):
        with pytest.raises(InvalidSignatureError, match="32 bytes"):
            sign_input_digest(self.key, b"\x00" * 31)

    def test_der_layout(self):
        assert is_der_signature(bytes.fromhex("3006020101020101"))
        assert not is_der_signature(bytes.fromhex("3007020101020101"))
        assert not is_der_signature(bytes.fromhex("3006020181020101"))

    def test_p2pkh_unlocking_script(self, p2pkh_definition):
        """Test the unlocking script matches an encoded unlock() call."""
        signature = sign_input_digest(self.key, self.digest)
        public_key = self.key.public_key()
        script = build_p2pkh_unlocking_script(signature, DEFAULT_SIGHASH, public_key)
        assert script == p2pkh_definition.encode_call("unlock", signature.hex(), public_key.hex)
        assert build_p2pkh_unlocking_script(signature[:-1], DEFAULT_SIGHASH, public_key.bytes) == script

    def test_p2pkh_unlocking_script_rejects_bad_input(self):
        signature = sign_input_digest(self.key, self.digest)
        with pytest.raises(InvalidSignatureError, match="not DER encoded"):
            build_p2pkh_unlocking_script(signature, SigHashType.ALL, self.key.public_key())
        with pytest.raises(InvalidSignatureError, match="33 or 65 bytes"):
            build_p2pkh_unlocking_script(signature, DEFAULT_SIGHASH, b"\x02" * 20)
