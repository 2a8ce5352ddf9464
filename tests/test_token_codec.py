import hashlib

from utils import token_codec


def test_issue_returns_token_and_its_digest():
    token, digest = token_codec.issue()

    assert len(token) >= 43
    assert digest == hashlib.sha256(token.encode("utf-8")).hexdigest()
    assert token_codec.verify(token) == digest


def test_tokens_are_url_safe_and_unique():
    tokens = {token_codec.issue()[0] for _ in range(50)}

    assert len(tokens) == 50
    for token in tokens:
        assert all(c.isalnum() or c in "-_" for c in token)


def test_digest_does_not_match_other_tokens():
    token, digest = token_codec.issue()

    assert token_codec.verify(token + "x") != digest
