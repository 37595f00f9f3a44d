import pytest

from api_client.domain.token import TokenResult


def test_from_mapping_reads_standard_fields():
    token = TokenResult.from_mapping({"access_token": "a", "refresh_token": "r", "expires_in": 3600})

    assert token == TokenResult(access_token="a", refresh_token="r", expires_in=3600.0)


@pytest.mark.parametrize("expires_in", [None, "", "soon"])
def test_from_mapping_tolerates_missing_or_bad_expiry(expires_in):
    token = TokenResult.from_mapping({"access_token": "a", "expires_in": expires_in})

    assert token.expires_in is None
    assert token.refresh_token is None
