import pytest

from pytest_httpchain_pact.preprocessor import SetCookie, parse_cookie_header, serialize_cookie_header


class TestCookieHeader:
    """Tests for Cookie header values."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("a=1; b=2", {"a": "1", "b": "2"}),
            ("a=1; b=2;; c", {"a": "1", "b": "2"}),
            ("token=a=b", {"token": "a=b"}),
            (" name = value ", {"name": "value"}),
            ("=orphan; a=", {"a": ""}),
            ("", {}),
        ],
    )
    def test_parse(self, header, expected):
        assert parse_cookie_header(header) == expected

    def test_parse_keeps_order(self):
        assert list(parse_cookie_header("z=1; a=2; m=3")) == ["z", "a", "m"]

    def test_serialize(self):
        assert serialize_cookie_header({"authorization": "****", "locale": "en"}) == "authorization=****; locale=en"


class TestSetCookie:
    """Tests for Set-Cookie header values."""

    def test_parse_with_attributes(self):
        cookie = SetCookie.parse("id=a3fWa; Expires=Wed, 21 Oct 2015 07:28:00 GMT; Secure; HttpOnly")
        assert cookie == SetCookie("id", "a3fWa", "Expires=Wed, 21 Oct 2015 07:28:00 GMT; Secure; HttpOnly")

    def test_serialize_keeps_attributes_verbatim(self):
        header = "id=a3fWa; Expires=Wed, 21 Oct 2015 07:28:00 GMT; Secure"
        assert SetCookie.parse(header).serialize() == header

    def test_without_attributes(self):
        cookie = SetCookie.parse("locale=en")
        assert cookie.attributes == ""
        assert cookie.serialize() == "locale=en"

    @pytest.mark.parametrize("header", ["novalue", "=x; Path=/", ""])
    def test_unparseable(self, header):
        assert SetCookie.parse(header) is None
