# app/tests/test_share_token.py
import pytest

from app.services import share_token
from app.services.errors import TokenGenerationError
from app.services.share_token import (
    NUMERIC_ALPHABET,
    TOKEN_CONFIG,
    generate_custom_token,
    generate_numeric_token,
    generate_short_token,
    generate_token,
    is_valid_token,
    mask_token,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("abc", False),
        ("abc_DEF-123", True),
        ("abc!def", False),
        ("abcdefgh", True),
        ("a" * 50, True),
        ("a" * 51, False),
        ("abcdefg", False),
        ("abc def gh", False),
        ("", False),
    ],
)
def test_is_valid_token(value, expected):
    assert is_valid_token(value) is expected


@pytest.mark.parametrize("value", [None, 12345678, ["abcdefgh"], b"abcdefgh"])
def test_is_valid_token_rejects_non_strings(value):
    assert is_valid_token(value) is False


def test_generated_tokens_validate_across_length_range():
    for n in range(TOKEN_CONFIG["MIN_LENGTH"], TOKEN_CONFIG["MAX_LENGTH"] + 1):
        token = generate_token(n)
        assert len(token) == n
        assert is_valid_token(token)


def test_default_lengths():
    assert len(generate_token()) == 21
    assert len(generate_short_token()) == 12
    numeric = generate_numeric_token()
    assert len(numeric) == 8
    assert set(numeric) <= set(NUMERIC_ALPHABET)


def test_tokens_are_not_repeated():
    tokens = {generate_token() for _ in range(200)}
    assert len(tokens) == 200


def test_custom_token_uses_only_given_alphabet():
    token = generate_custom_token("ab", 40)
    assert len(token) == 40
    assert set(token) <= {"a", "b"}


@pytest.mark.parametrize("length", [0, -3, True])
def test_custom_token_rejects_bad_length(length):
    with pytest.raises(ValueError):
        generate_custom_token("abc", length)


def test_custom_token_rejects_empty_alphabet():
    with pytest.raises(ValueError):
        generate_custom_token("", 10)


def test_missing_random_source_is_fatal(monkeypatch):
    def broken(_alphabet):
        raise NotImplementedError("no entropy source")

    monkeypatch.setattr(share_token.secrets, "choice", broken)
    with pytest.raises(TokenGenerationError):
        generate_token()


def test_mask_token_hides_the_middle():
    masked = mask_token("abcdEFGHijklMNOP")
    assert masked.startswith("abcd")
    assert masked.endswith("MNOP")
    assert "EFGH" not in masked
