from learnhub.core.security import (
    build_password_context,
    create_session_token,
    hash_password,
    verify_password,
    verify_session_token,
)

SECRET = "unit-secret"


def test_session_token_round_trip():
    token = create_session_token(42, SECRET)
    assert verify_session_token(token, SECRET, max_age=60) == 42


def test_session_token_rejects_wrong_secret():
    token = create_session_token(42, SECRET)
    assert verify_session_token(token, "other-secret", max_age=60) is None


def test_session_token_rejects_tampered_payload():
    token = create_session_token(42, SECRET)
    other = create_session_token(7, SECRET)
    forged = other.split(".")[0] + "." + token.split(".")[1]
    assert verify_session_token(forged, SECRET, max_age=60) is None


def test_session_token_expires():
    token = create_session_token(42, SECRET)
    assert verify_session_token(token, SECRET, max_age=-1) is None


def test_session_token_garbage():
    for token in (None, "", "no-dot", "!!!.abc", "a.b.c"):
        assert verify_session_token(token, SECRET, max_age=60) is None


def test_password_hash_is_salted_and_verifiable():
    ctx = build_password_context(rounds=4)
    first = hash_password(ctx, "Abcdef1!")
    second = hash_password(ctx, "Abcdef1!")
    assert first != second
    assert first != "Abcdef1!"
    assert verify_password(ctx, "Abcdef1!", first)
    assert not verify_password(ctx, "Abcdef1?", first)


def test_verify_password_tolerates_malformed_hash():
    ctx = build_password_context(rounds=4)
    assert verify_password(ctx, "Abcdef1!", "not-a-bcrypt-hash") is False
