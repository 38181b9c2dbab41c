from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from pytest_httpchain_pact.constants import KEY_PATH_SEPARATOR, AuthType

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


def _find_header(headers: dict[str, Any] | None, name: str) -> str | None:
    if not headers:
        return None
    return next((key for key in headers if key.lower() == name.lower()), None)


class PactRequest(BaseModel):
    model_config = _WIRE_CONFIG

    method: str | None = Field(default=None, description="HTTP method of the recorded request.", examples=["GET", "POST"])
    url: str | None = Field(default=None, description="Request URL as recorded.", examples=["/inventory/managedObjects?pageSize=10"])
    headers: dict[str, Any] | None = Field(default=None, description="Request headers.")
    body: Any = Field(default=None, description="Request body.")


class PactResponse(BaseModel):
    model_config = _WIRE_CONFIG

    status: int | None = Field(default=None, description="HTTP status code.", examples=[200, 201])
    status_text: str | None = Field(default=None, description="HTTP reason phrase.", examples=["OK"])
    headers: dict[str, Any] | None = Field(default=None, description="Response headers.")
    body: Any = Field(default=None, description="Response body.")
    duration: float | None = Field(default=None, description="Round-trip duration in milliseconds.")
    is_ok_status_code: bool | None = Field(default=None, description="Whether the status was in the 2xx range.")


class PactAuth(BaseModel):
    model_config = _WIRE_CONFIG

    user: str | None = Field(default=None, description="User the request was issued as.")
    user_alias: str | None = Field(default=None, description="Alias resolving to credentials at replay time.")
    type: str | None = Field(default=None, description="Authentication scheme.", examples=[t.value for t in AuthType])


class PactParticipant(BaseModel):
    model_config = _WIRE_CONFIG

    name: str
    version: str | None = None


class PactInfo(BaseModel):
    model_config = _WIRE_CONFIG

    id: str | None = Field(default=None, description="Identifier of the fixture document.")
    title: list[str] | str | None = Field(default=None, description="Title or title path of the recording test.")
    producer: PactParticipant | str | None = Field(default=None, description="Service that produced the responses.")
    consumer: PactParticipant | str | None = Field(default=None, description="Client that issued the requests.")
    tags: list[str] | None = Field(default=None, description="Free-form tags.")
    description: str | None = None
    version: dict[str, Any] | None = Field(default=None, description="Versions of the systems involved in the recording.")
    base_url: str | None = Field(default=None, description="Base URL the records were recorded against.")
    tenant: str | None = Field(default=None, description="Tenant the records were recorded for.")
    strict_matching: bool | None = Field(default=None, description="Strictness to use when matching these records.")


class PactRecord(BaseModel):
    """A single recorded request/response interaction."""

    model_config = _WIRE_CONFIG

    request: PactRequest = Field(default_factory=PactRequest)
    response: PactResponse = Field(default_factory=PactResponse)
    auth: PactAuth | None = None
    options: dict[str, Any] | None = None
    created_object: str | None = Field(default=None, description="Id of the object created by a POST request.")
    id: str | None = None

    @model_validator(mode="after")
    def derive_created_object(self) -> Self:
        if self.created_object is None and (self.request.method or "").upper() == "POST":
            body = self.response.body
            if isinstance(body, dict) and body.get("id") is not None:
                self.created_object = str(body["id"])
        return self

    def has_request_header(self, name: str) -> bool:
        """Check for a request header regardless of letter case."""
        return _find_header(self.request.headers, name) is not None

    def auth_type(self) -> str | None:
        """Authentication scheme the recorded request used.

        The XSRF token header wins over the Authorization header, which wins
        over the declared auth type.
        """
        headers = self.request.headers or {}
        if self.has_request_header("x-xsrf-token"):
            return AuthType.COOKIE

        key = _find_header(headers, "authorization")
        if key is not None and isinstance(headers[key], str):
            scheme = headers[key].split(" ", 1)[0].lower()
            if scheme == "basic":
                return AuthType.BASIC
            if scheme == "bearer":
                return AuthType.BEARER

        if self.auth and self.auth.type in {t.value for t in AuthType}:
            return AuthType(self.auth.type)
        return None

    def date(self) -> datetime | None:
        key = _find_header(self.response.headers, "date")
        if key is None:
            return None
        try:
            return parsedate_to_datetime(str(self.response.headers[key]))
        except (TypeError, ValueError):
            return None

    def to_response_dict(self) -> dict[str, Any]:
        """Flatten the record into the response shape a recording client produces."""
        status = self.response.status
        is_ok = self.response.is_ok_status_code
        if is_ok is None and status is not None:
            is_ok = 200 <= status < 300
        return {
            "status": status,
            "statusText": self.response.status_text,
            "headers": self.response.headers,
            "body": self.response.body,
            "duration": self.response.duration,
            "isOkStatusCode": is_ok,
            "requestHeaders": self.request.headers,
            "requestBody": self.request.body,
            "method": self.request.method,
            "url": self.request.url,
        }


class PactDocument(BaseModel):
    """A fixture document: metadata plus the records in replay order."""

    model_config = _WIRE_CONFIG

    id: str | None = None
    info: PactInfo = Field(default_factory=PactInfo)
    records: list[PactRecord] = Field(default_factory=list)


class MatchDiagnostics(BaseModel):
    """Receives the details of the last failed match."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str | None = None
    key: str | None = None
    key_path: str | None = None
    actual: Any = None
    expected: Any = None

    def record(self, message: str, key: str | None, parents: list[str], actual: Any, expected: Any) -> None:
        self.error = message
        self.key = key
        self.key_path = KEY_PATH_SEPARATOR.join(parents)
        self.actual = actual
        self.expected = expected


class MatchOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, arbitrary_types_allowed=True)

    strict_matching: bool = Field(default=False, description="Fields of the actual value drive the comparison and must all be recorded.")
    ignore_case: bool = Field(default=False, description="Look up keys and property matchers regardless of letter case.")
    match_schema_and_object: bool = Field(default=False, description="Compare a field literally even when a schema exists for it.")
    ignore_primitive_array_order: bool = Field(default=True, description="Compare arrays of primitives as unordered multisets.")
    parents: list[str] = Field(default_factory=list, description="Key path of the values being compared.")
    schema_validator: Any = Field(default=None, description="Object with a match(value, schema, strict_matching) method.")
    diagnostics: MatchDiagnostics | None = Field(default=None, description="Sink receiving details of a failed match.")


class PreprocessOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ignore: list[str] | None = Field(default=None, description="Key paths to delete.")
    obfuscate: list[str] | None = Field(default=None, description="Key paths whose values are masked.")
    pick: dict[str, list[str]] | list[str] | None = Field(default=None, description="Key paths to keep, everything else is removed.")
    regex_replace: dict[str, str | list[str]] | None = Field(default=None, description="Key path to /pattern/replacement/flags expressions.")
    obfuscation_pattern: str | None = Field(default=None, description="Mask replacing obfuscated values.")
    ignore_case: bool | None = Field(default=None, description="Resolve key paths regardless of letter case.")
