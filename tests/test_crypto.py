"""Tests for the AES-256-GCM cipher engine."""

import base64

import pytest

from core.crypto import NONCE_SIZE, CipherEngine, generate_key
from core.errors import DecryptionError, EngineNotReady


class TestCipherEngineLifecycle:
    def test_new_engine_is_not_ready(self):
        engine = CipherEngine()

        assert engine.ready is False
        with pytest.raises(EngineNotReady):
            engine.encrypt("secret")

    def test_initialize_accepts_32_byte_key(self):
        engine = CipherEngine()
        engine.initialize(generate_key())

        assert engine.ready is True

    @pytest.mark.parametrize(
        "bad_key",
        ["not base64 !!", base64.b64encode(b"short").decode("ascii"), ""],
    )
    def test_initialize_rejects_bad_keys(self, bad_key):
        engine = CipherEngine()

        with pytest.raises(RuntimeError):
            engine.initialize(bad_key)
        assert engine.ready is False


class TestCipherEngineOperations:
    def test_round_trip_uses_fresh_nonce(self, cipher):
        ct1, iv1 = cipher.encrypt("hunter2")
        ct2, iv2 = cipher.encrypt("hunter2")

        assert len(base64.b64decode(iv1)) == NONCE_SIZE
        assert iv1 != iv2
        assert ct1 != ct2
        assert cipher.decrypt(ct1, iv1) == "hunter2"
        assert cipher.decrypt(ct2, iv2) == "hunter2"

    def test_encrypt_with_iv_reuses_row_iv(self, cipher):
        ct, iv = cipher.encrypt("first")
        second = cipher.encrypt_with_iv("second", iv)

        assert cipher.decrypt(ct, iv) == "first"
        assert cipher.decrypt(second, iv) == "second"

    def test_wrong_key_raises_decryption_error(self, cipher, rotated_cipher):
        ct, iv = cipher.encrypt("hunter2")

        with pytest.raises(DecryptionError):
            rotated_cipher.decrypt(ct, iv)

    def test_tampered_ciphertext_raises_decryption_error(self, cipher):
        ct, iv = cipher.encrypt("hunter2")
        raw = bytearray(base64.b64decode(ct))
        raw[0] ^= 0xFF

        with pytest.raises(DecryptionError):
            cipher.decrypt(base64.b64encode(bytes(raw)).decode("ascii"), iv)

    def test_malformed_base64_raises_decryption_error(self, cipher):
        with pytest.raises(DecryptionError):
            cipher.decrypt("%%%", "%%%")

    def test_can_decrypt(self, cipher, rotated_cipher):
        ct, iv = cipher.encrypt("hunter2")

        assert cipher.can_decrypt(ct, iv) is True
        assert rotated_cipher.can_decrypt(ct, iv) is False
        assert cipher.can_decrypt(ct, None) is False
        assert cipher.can_decrypt(None, iv) is False

    def test_unicode_round_trip(self, cipher):
        ct, iv = cipher.encrypt("pässwörd – 密码")

        assert cipher.decrypt(ct, iv) == "pässwörd – 密码"
