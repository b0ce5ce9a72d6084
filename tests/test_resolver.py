"""Tests for the credential resolver (read and write direction)."""

import pytest

from core.errors import DecryptionError, NotFound
from models.ssh_session import SshSession
from sessions.changes import CLEARED, UNSET, SetTo
from sessions.resolver import CredentialResolver, SealedSecrets


@pytest.fixture
def resolver(cipher, store):
    return CredentialResolver(cipher, store)


def _row(resolver, user, **extra):
    sealed = resolver.seal_inline(SetTo(extra.pop("password", "")), SetTo(extra.pop("private_key", "")))
    return SshSession(
        id=1,
        user_id=user.id,
        name="web",
        hostname="web.example.com",
        port=22,
        username=extra.pop("username", "deploy"),
        password=sealed.password,
        private_key=sealed.private_key,
        iv=sealed.iv,
        **extra,
    )


class TestResolve:
    def test_live_credential_wins_over_inline(self, resolver, store, user):
        credential = store.create_credential(user.id, "ops", "password", "root", password="cred-pw")
        row = _row(resolver, user, password="inline-pw", credential_id=credential.id)

        effective = resolver.resolve(row, user.id)

        assert effective.username == "root"
        assert effective.password == "cred-pw"
        assert effective.private_key is None
        assert effective.credential_id == credential.id

    def test_private_key_credential_fills_only_key_slot(self, resolver, store, user):
        credential = store.create_credential(
            user.id, "key", "private_key", "git", private_key="-----KEY-----", passphrase="pp"
        )
        row = _row(resolver, user, password="inline-pw", credential_id=credential.id)

        effective = resolver.resolve(row, user.id)

        assert effective.password is None
        assert effective.private_key == "-----KEY-----"
        assert effective.key_passphrase == "pp"

    def test_dangling_reference_falls_back_to_inline(self, resolver, user):
        row = _row(resolver, user, password="inline-pw", credential_id=999)

        effective = resolver.resolve(row, user.id)

        assert effective.username == "deploy"
        assert effective.password == "inline-pw"
        assert effective.credential_id is None

    def test_other_users_credential_is_dangling(self, resolver, store, user, other_user):
        foreign = store.create_credential(other_user.id, "theirs", "password", "x", password="y")
        row = _row(resolver, user, password="mine", credential_id=foreign.id)

        assert resolver.resolve(row, user.id).password == "mine"

    def test_inline_without_iv_yields_no_secret(self, resolver, user):
        row = _row(resolver, user)

        effective = resolver.resolve(row, user.id)

        assert row.iv is None
        assert effective.password is None
        assert effective.private_key is None

    def test_rotated_key_fails_fast(self, cipher, rotated_cipher, store, user):
        row = _row(CredentialResolver(cipher, store), user, password="inline-pw")

        with pytest.raises(DecryptionError):
            CredentialResolver(rotated_cipher, store).resolve(row, user.id)


class TestSeal:
    def test_lookup_unknown_credential(self, resolver, user):
        with pytest.raises(NotFound):
            resolver.lookup(12345, user.id)

    def test_seal_credential_uses_fresh_iv_per_call(self, resolver, store, user):
        credential = resolver.lookup(
            store.create_credential(user.id, "ops", "password", "root", password="pw").id, user.id
        )

        first = resolver.seal_credential(credential)
        second = resolver.seal_credential(credential)

        assert first.iv != second.iv
        assert first.private_key is None
        assert first.username == "root"

    def test_seal_inline_both_secrets_share_one_iv(self, resolver, cipher):
        sealed = resolver.seal_inline(SetTo("pw"), SetTo("key"))

        assert cipher.decrypt(sealed.password, sealed.iv) == "pw"
        assert cipher.decrypt(sealed.private_key, sealed.iv) == "key"

    def test_seal_inline_keeps_unset_slot_and_its_iv(self, resolver, cipher):
        current = resolver.seal_inline(SetTo("pw"), UNSET)

        sealed = resolver.seal_inline(UNSET, SetTo("key"), current)

        assert sealed.iv == current.iv
        assert sealed.password == current.password
        assert cipher.decrypt(sealed.private_key, sealed.iv) == "key"

    def test_seal_inline_replacing_only_secret_gets_fresh_iv(self, resolver, cipher):
        current = resolver.seal_inline(SetTo("old"), UNSET)

        sealed = resolver.seal_inline(SetTo("new"), UNSET, current)

        assert sealed.iv != current.iv
        assert cipher.decrypt(sealed.password, sealed.iv) == "new"

    @pytest.mark.parametrize("clear", [CLEARED, SetTo("")])
    def test_clearing_last_secret_drops_iv(self, resolver, clear):
        current = resolver.seal_inline(SetTo("pw"), UNSET)

        sealed = resolver.seal_inline(clear, UNSET, current)

        assert sealed == SealedSecrets()
