"""Tests for PKCE generation and verifier storage."""

import base64
import hashlib
import stat
import tempfile
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

from src.credentials.exceptions import TokenStorageError
from src.credentials.pkce import (
    PKCEPair,
    PKCERecord,
    PKCEStore,
    build_authorization_url,
    code_challenge_for,
    generate_pkce_pair,
    generate_state,
)

URL_SAFE = set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


class TestGeneratePKCEPair:
    """Tests for PKCE pair generation."""

    def test_challenge_is_sha256_of_verifier(self):
        """challenge = base64url(sha256(verifier)) for generated pairs."""
        for _ in range(50):
            pair = generate_pkce_pair()
            digest = hashlib.sha256(pair.verifier.encode("ascii")).digest()
            expected = base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")

            assert pair.challenge == expected
            assert "+" not in pair.challenge
            assert "/" not in pair.challenge
            assert not pair.challenge.endswith("=")

    def test_verifier_length_and_alphabet(self):
        """Verifier is 43-128 URL-safe characters."""
        pair = generate_pkce_pair()

        assert 43 <= len(pair.verifier) <= 128
        assert set(pair.verifier) <= URL_SAFE

    def test_pairs_are_unique(self):
        """Each call draws a fresh verifier."""
        verifiers = {generate_pkce_pair().verifier for _ in range(20)}
        assert len(verifiers) == 20

    def test_rfc7636_example(self):
        """Challenge matches the RFC 7636 appendix B example."""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert code_challenge_for(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_from_verifier_derives_challenge(self):
        """PKCEPair.from_verifier pairs a verifier with its challenge."""
        pair = PKCEPair.from_verifier("a" * 43)
        assert pair.challenge == code_challenge_for("a" * 43)
        assert "a" * 43 not in repr(pair)

    def test_generate_state_is_url_safe(self):
        """State is a short URL-safe token."""
        state = generate_state()
        assert len(state) == 16
        assert set(state) <= URL_SAFE


class TestBuildAuthorizationUrl:
    """Tests for build_authorization_url."""

    def test_url_contains_all_parameters(self):
        """Authorization URL carries code flow and S256 parameters."""
        url = build_authorization_url(
            client_id="cid",
            redirect_uri="https://example.com/cb",
            scope="tweet.read offline.access",
            state="st4te",
            code_challenge="chal",
        )
        parsed = urlparse(url)
        params = parse_qs(parsed.query)

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://twitter.com/i/oauth2/authorize"
        assert params == {
            "response_type": ["code"],
            "client_id": ["cid"],
            "redirect_uri": ["https://example.com/cb"],
            "scope": ["tweet.read offline.access"],
            "state": ["st4te"],
            "code_challenge": ["chal"],
            "code_challenge_method": ["S256"],
        }

    def test_url_is_deterministic(self):
        """Same inputs give the same URL."""
        args = ("cid", "https://example.com/cb", "tweet.read", "s", "c")
        assert build_authorization_url(*args) == build_authorization_url(*args)


class TestPKCEStore:
    """Tests for PKCEStore."""

    @pytest.fixture
    def store(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield PKCEStore(str(Path(tmpdir) / ".pkce.json"))

    def _record(self, state, created_at):
        return PKCERecord(
            state=state,
            code_verifier=f"verifier-{state}",
            client_id="cid",
            redirect_uri="https://example.com/cb",
            scope="tweet.read",
            created_at=created_at,
        )

    def test_load_missing_file_returns_none(self, store):
        """load returns None before anything was saved."""
        assert store.load() is None
        assert store.load("any") is None

    def test_save_and_load_by_state(self, store):
        """Records are stored and found by state."""
        store.save(self._record("a", "2026-01-01T00:00:00+00:00"))
        store.save(self._record("b", "2026-01-02T00:00:00+00:00"))

        record = store.load("a")

        assert record.state == "a"
        assert record.code_verifier == "verifier-a"
        assert store.load("missing") is None

    def test_load_without_state_returns_latest(self, store):
        """load() without state returns the most recent record."""
        store.save(self._record("new", "2026-01-02T00:00:00+00:00"))
        store.save(self._record("old", "2026-01-01T00:00:00+00:00"))

        assert store.load().state == "new"

    def test_file_has_secure_permissions(self, store):
        """The PKCE file is user read/write only."""
        store.save(self._record("a", "2026-01-01T00:00:00+00:00"))

        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_discard_removes_record(self, store):
        """discard removes a used verifier and the file once empty."""
        store.save(self._record("a", "2026-01-01T00:00:00+00:00"))
        store.save(self._record("b", "2026-01-02T00:00:00+00:00"))

        assert store.discard("a") is True
        assert store.load("a") is None
        assert store.load("b") is not None

        assert store.discard("b") is True
        assert not store.path.exists()
        assert store.discard("b") is False

    def test_corrupt_file_raises(self, store):
        """A corrupt file raises TokenStorageError."""
        store.path.write_text("{not json")

        with pytest.raises(TokenStorageError, match="Corrupt PKCE file"):
            store.load()

    @pytest.mark.parametrize("state", [None, "a"])
    def test_non_object_record_raises(self, store, state):
        """A record that is not an object raises TokenStorageError."""
        store.path.write_text('{"a": "verifier", "b": 3}')

        with pytest.raises(TokenStorageError, match="Corrupt PKCE file"):
            store.load(state)
