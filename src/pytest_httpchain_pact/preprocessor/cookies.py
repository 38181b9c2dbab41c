"""Parsing and serializing Cookie and Set-Cookie header values."""

from typing import NamedTuple, Self

COOKIE_HEADERS = ("cookie", "set-cookie")


def parse_cookie_header(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value (``a=1; b=2``) keeping cookie order."""
    out: dict[str, str] = {}
    for part in str(header).split(";"):
        trimmed = part.strip()
        if not trimmed or "=" not in trimmed:
            continue
        name, value = trimmed.split("=", 1)
        name = name.strip()
        if not name:
            continue
        out[name] = value.strip()
    return out


def serialize_cookie_header(cookies: dict[str, str]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


class SetCookie(NamedTuple):
    """One ``Set-Cookie`` header value; attributes are kept verbatim."""

    name: str
    value: str
    attributes: str = ""

    @classmethod
    def parse(cls, header: str) -> Self | None:
        pair, _, attributes = str(header).partition(";")
        if "=" not in pair:
            return None
        name, value = pair.split("=", 1)
        if not name.strip():
            return None
        return cls(name.strip(), value.strip(), attributes.strip())

    def serialize(self) -> str:
        cookie = f"{self.name}={self.value}"
        return f"{cookie}; {self.attributes}" if self.attributes else cookie
