"""Unit tests for the credential store and the request signers."""

import base64
import threading

import requests

from momoapi.auth.interfaces import AccessTokenCredentials, BasicAuthCredentials
from momoapi.providers.momo.auth import (
    BasicAuthSigner,
    BearerTokenSigner,
    InMemoryCredentialStore,
    default_signers,
)


def _request() -> requests.Request:
    return requests.Request("GET", "https://momo.test/x", headers={"A": "1"})


# ---------------------------------------------------------------------------
# InMemoryCredentialStore
# ---------------------------------------------------------------------------


class TestInMemoryCredentialStore:
    def test_starts_empty(self):
        store = InMemoryCredentialStore()
        assert not store.has_basic_auth()
        assert not store.has_valid_access_token()

    def test_initial_values(self):
        store = InMemoryCredentialStore(
            basic=BasicAuthCredentials("u", "k"),
            bearer=AccessTokenCredentials("t"),
        )
        assert store.has_basic_auth()
        assert store.get().bearer.access_token == "t"

    def test_basic_needs_both_parts(self):
        store = InMemoryCredentialStore()
        store.set_basic_auth("user", "")
        assert not store.has_basic_auth()
        store.set_basic_auth("user", "key")
        assert store.has_basic_auth()

    def test_clear_resets_both(self):
        store = InMemoryCredentialStore()
        store.set_basic_auth("user", "key")
        store.set_access_token("tok")
        store.clear()
        snapshot = store.get()
        assert snapshot.basic == BasicAuthCredentials("", "")
        assert snapshot.bearer == AccessTokenCredentials("")

    def test_last_writer_wins(self):
        store = InMemoryCredentialStore()
        store.set_access_token("first")
        store.set_access_token("second")
        assert store.get().bearer.access_token == "second"

    def test_concurrent_writes_never_mix_pairs(self):
        store = InMemoryCredentialStore()
        pairs = [(f"user-{i}", f"key-{i}") for i in range(50)]

        def write(pair):
            store.set_basic_auth(*pair)

        threads = [threading.Thread(target=write, args=(p,)) for p in pairs]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        basic = store.get().basic
        assert (basic.api_user_id, basic.api_key) in pairs
        assert basic.api_user_id.split("-")[1] == basic.api_key.split("-")[1]


# ---------------------------------------------------------------------------
# Signers
# ---------------------------------------------------------------------------


class TestBasicAuthSigner:
    def test_attaches_header(self):
        store = InMemoryCredentialStore()
        store.set_basic_auth("user", "key")
        signed = BasicAuthSigner(store)(_request())
        expected = base64.b64encode(b"user:key").decode("ascii")
        assert signed.headers["Authorization"] == f"Basic {expected}"
        assert signed.headers["A"] == "1"

    def test_unsigned_when_key_missing(self):
        store = InMemoryCredentialStore()
        store.set_basic_auth("user", "")
        signed = BasicAuthSigner(store)(_request())
        assert "Authorization" not in signed.headers

    def test_reads_store_at_signing_time(self):
        store = InMemoryCredentialStore()
        signer = BasicAuthSigner(store)
        assert "Authorization" not in signer(_request()).headers
        store.set_basic_auth("user", "key")
        assert "Authorization" in signer(_request()).headers


class TestBearerTokenSigner:
    def test_attaches_header(self):
        store = InMemoryCredentialStore()
        store.set_access_token("tok")
        signed = BearerTokenSigner(store)(_request())
        assert signed.headers["Authorization"] == "Bearer tok"

    def test_unsigned_after_clear(self):
        store = InMemoryCredentialStore()
        store.set_access_token("tok")
        store.clear()
        signed = BearerTokenSigner(store)(_request())
        assert "Authorization" not in signed.headers


def test_default_signers_order():
    signers = default_signers(InMemoryCredentialStore())
    assert [s.scheme for s in signers] == ["Basic", "Bearer"]
