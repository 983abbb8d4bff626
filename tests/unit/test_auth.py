"""Unit tests for bearer-token parsing and the auth gates."""

from types import SimpleNamespace

import pytest

from resume_analyzer.auth.supabase_auth import (
    StaticAuthGate,
    SupabaseAuthGate,
    bearer_token,
    session_key,
)


def _client(get_user):
    return SimpleNamespace(auth=SimpleNamespace(get_user=get_user))


@pytest.mark.unit
@pytest.mark.parametrize(
    "header, expected",
    [("Bearer abc", "abc"), ("Bearer  ", None), ("Basic abc", None), (None, None)],
)
def test_bearer_token(header, expected):
    assert bearer_token(header) == expected


@pytest.mark.unit
def test_session_key_is_stable_and_opaque():
    assert session_key("abc") == session_key("abc")
    assert session_key("abc") != session_key("abd")
    assert "abc" not in session_key("abc")
    assert session_key(None) == "anonymous"


@pytest.mark.unit
async def test_supabase_gate_accepts_resolved_user():
    gate = SupabaseAuthGate(_client(lambda token: SimpleNamespace(user=SimpleNamespace(id="u-1"))), "jwt")
    assert await gate.is_authenticated() is True


@pytest.mark.unit
async def test_supabase_gate_rejects_missing_user_and_errors():
    def rejecting(token):
        raise ValueError("invalid JWT")

    no_user = SupabaseAuthGate(_client(lambda token: SimpleNamespace(user=None)), "jwt")
    failing = SupabaseAuthGate(_client(rejecting), "jwt")
    no_token = SupabaseAuthGate(_client(rejecting), None)

    assert await no_user.is_authenticated() is False
    assert await failing.is_authenticated() is False
    assert await no_token.is_authenticated() is False


@pytest.mark.unit
async def test_static_gate_requires_a_token():
    assert await StaticAuthGate("token").is_authenticated() is True
    assert await StaticAuthGate(None).is_authenticated() is False
