import copy

import pytest

from pytest_httpchain_pact.models import PactDocument, PactRecord
from pytest_httpchain_pact.preprocessor import DefaultPactPreprocessor

# only the operations a test names, no default ignore/obfuscate lists
NO_DEFAULTS = {"ignore": [], "obfuscate": []}


@pytest.fixture
def preprocessor():
    return DefaultPactPreprocessor()


class TestObfuscation:
    """Tests for masking values with the obfuscation pattern."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Bearer abc123", "Bearer ****"),
            ("basic xyz", "basic ****"),
            ("Basic dXNlcjpwYXNz", "Basic ****"),
            ("Bearer ", "****"),
            ("Token abc", "****"),
        ],
    )
    def test_authorization_keeps_scheme(self, preprocessor, make_record, value, expected):
        record = make_record(request_headers={"Authorization": value})
        preprocessor.apply(record)
        assert record["request"]["headers"]["Authorization"] == expected

    def test_plain_value_is_replaced(self, preprocessor, make_record):
        record = make_record(response_body={"name": "admin", "password": "secret"})
        preprocessor.apply(record)
        assert record["response"]["body"] == {"name": "admin", "password": "****"}

    def test_fan_out_over_list(self, preprocessor, make_record):
        record = make_record(response_body={"users": [{"name": "a", "password": "x"}, {"name": "b", "password": "y"}, {"name": "c"}]})
        preprocessor.apply(record)
        assert record["response"]["body"]["users"] == [{"name": "a", "password": "****"}, {"name": "b", "password": "****"}, {"name": "c"}]

    def test_xsrf_header(self, preprocessor, make_record):
        record = make_record(request_headers={"X-XSRF-TOKEN": "token"})
        preprocessor.apply(record)
        assert record["request"]["headers"]["X-XSRF-TOKEN"] == "****"

    def test_null_value_is_kept(self, preprocessor, make_record):
        record = make_record(response_body={"password": None})
        preprocessor.apply(record)
        assert record["response"]["body"]["password"] is None

    def test_recursive_descent(self, preprocessor, make_record):
        record = make_record(response_body={"password": "a", "users": [{"password": "b"}], "nested": {"deep": {"password": "c"}}})
        preprocessor.apply(record, {"obfuscate": ["response.body..password"]})
        assert record["response"]["body"] == {"password": "****", "users": [{"password": "****"}], "nested": {"deep": {"password": "****"}}}

    def test_numeric_index(self, preprocessor, make_record):
        record = make_record(response_body={"tokens": ["a", "b", "c"]})
        preprocessor.apply(record, {"obfuscate": ["response.body.tokens[1]"]})
        assert record["response"]["body"]["tokens"] == ["a", "****", "c"]

    def test_unresolved_path_is_ignored(self, preprocessor, make_record):
        record = make_record(response_body={"name": "a"})
        expected = copy.deepcopy(record)
        preprocessor.apply(record, {"obfuscate": ["response.body.missing.deep", "request.body"], "ignore": []})
        assert record == expected


class TestCookies:
    """Tests for addressing single cookies inside Cookie and Set-Cookie headers."""

    def test_cookie_obfuscation(self, preprocessor, make_record):
        record = make_record(request_headers={"Cookie": "authorization=secret; XSRF-TOKEN=token; locale=en"})
        preprocessor.apply(record)
        assert record["request"]["headers"]["Cookie"] == "authorization=****; XSRF-TOKEN=****; locale=en"

    def test_cookie_removal(self, preprocessor, make_record):
        record = make_record(request_headers={"cookie": "authorization=secret; XSRF-TOKEN=token"})
        preprocessor.apply(record, {"obfuscate": [], "ignore": ["request.headers.cookie.authorization"]})
        assert record["request"]["headers"]["cookie"] == "XSRF-TOKEN=token"

    def test_removing_last_cookie_removes_header(self, preprocessor, make_record):
        record = make_record(request_headers={"cookie": "authorization=secret; XSRF-TOKEN=token", "Accept": "*/*"})
        preprocessor.apply(record, {"obfuscate": [], "ignore": ["request.headers.cookie.authorization", "request.headers.cookie.XSRF-TOKEN"]})
        assert record["request"]["headers"] == {"Accept": "*/*"}

    def test_cookie_names_ignore_case(self, preprocessor, make_record):
        record = make_record(request_headers={"cookie": "Authorization=secret"})
        preprocessor.apply(record, {"obfuscate": ["request.headers.cookie.authorization"], "ignore": []})
        assert record["request"]["headers"]["cookie"] == "Authorization=****"

    def test_set_cookie_list_keeps_attributes(self, preprocessor, make_record):
        record = make_record(
            response_headers={
                "set-cookie": [
                    "authorization=abc; Path=/; HttpOnly",
                    "XSRF-TOKEN=def; Path=/; Expires=Wed, 21 Oct 2015 07:28:00 GMT",
                    "locale=en",
                ]
            }
        )
        preprocessor.apply(record)
        assert record["response"]["headers"]["set-cookie"] == [
            "authorization=****; Path=/; HttpOnly",
            "XSRF-TOKEN=****; Path=/; Expires=Wed, 21 Oct 2015 07:28:00 GMT",
            "locale=en",
        ]

    def test_set_cookie_string_stays_string(self, preprocessor, make_record):
        record = make_record(response_headers={"Set-Cookie": "authorization=abc; Secure"})
        preprocessor.apply(record)
        assert record["response"]["headers"]["Set-Cookie"] == "authorization=****; Secure"

    def test_set_cookie_removal_of_last_cookie_removes_header(self, preprocessor, make_record):
        record = make_record(response_headers={"set-cookie": "authorization=abc; Path=/", "Content-Type": "application/json"})
        preprocessor.apply(record, {"obfuscate": [], "ignore": ["response.headers.set-cookie.authorization"]})
        assert record["response"]["headers"] == {"Content-Type": "application/json"}

    def test_set_cookie_removal_from_list(self, preprocessor, make_record):
        record = make_record(response_headers={"set-cookie": ["authorization=abc; Path=/", "locale=en"]})
        preprocessor.apply(record, {"obfuscate": [], "ignore": ["response.headers.set-cookie.authorization"]})
        assert record["response"]["headers"]["set-cookie"] == ["locale=en"]

    def test_case_sensitive_paths_miss_header(self, preprocessor, make_record):
        record = make_record(response_headers={"Set-Cookie": "authorization=abc"})
        preprocessor.apply(record, {"ignoreCase": False})
        assert record["response"]["headers"]["Set-Cookie"] == "authorization=abc"

    def test_whole_cookie_header(self, preprocessor, make_record):
        record = make_record(request_headers={"Cookie": "a=1; b=2"})
        preprocessor.apply(record, {"obfuscate": ["request.headers.cookie"], "ignore": []})
        assert record["request"]["headers"]["Cookie"] == "a=****; b=****"


class TestIgnore:
    """Tests for deleting values."""

    def test_default_headers_are_removed(self, preprocessor, make_record):
        record = make_record(
            request_headers={"Accept-Encoding": "gzip", "Accept": "*/*"},
            response_headers={"Content-Length": "12", "Content-Type": "application/json", "transfer-encoding": "chunked"},
        )
        preprocessor.apply(record)
        assert record["request"]["headers"] == {"Accept": "*/*"}
        assert record["response"]["headers"] == {"Content-Type": "application/json"}

    def test_list_item_by_index(self, preprocessor, make_record):
        record = make_record(response_body={"items": ["a", "b", "c"]})
        preprocessor.apply(record, {"ignore": ["response.body.items.1"]})
        assert record["response"]["body"]["items"] == ["a", "c"]

    def test_fan_out_removal(self, preprocessor, make_record):
        record = make_record(response_body={"items": [{"id": "1", "self": "x"}, {"id": "2", "self": "y"}]})
        preprocessor.apply(record, {"ignore": ["response.body.items.self"]})
        assert record["response"]["body"]["items"] == [{"id": "1"}, {"id": "2"}]

    def test_reserved_keys_are_kept(self, preprocessor, make_record):
        record = make_record(id="record-1")
        preprocessor.apply(record, {"ignore": ["id"], "obfuscate": ["id"]})
        assert record["id"] == "record-1"


class TestPick:
    """Tests for keeping only selected key paths."""

    def test_pick_by_parent(self, preprocessor, make_record):
        record = make_record(auth={"user": "admin"})
        preprocessor.apply(record, {**NO_DEFAULTS, "pick": {"request": ["method", "url"], "response": ["status"]}})
        assert record == {"request": {"method": "GET", "url": "/inventory/managedObjects"}, "response": {"status": 200}}

    def test_pick_is_idempotent(self, preprocessor, make_record):
        options = {**NO_DEFAULTS, "pick": {"request": ["method"], "response": []}}
        record = make_record(response_body={"id": "1"})
        preprocessor.apply(record, options)
        once = copy.deepcopy(record)
        preprocessor.apply(record, options)
        assert record == once
        assert record["response"]["body"] == {"id": "1"}
        assert record["request"] == {"method": "GET"}

    def test_pick_top_level_keys(self, preprocessor, make_record):
        record = make_record(auth={"user": "admin"})
        preprocessor.apply(record, {**NO_DEFAULTS, "pick": ["request", "Auth"]})
        assert set(record) == {"request", "auth"}

    def test_pick_through_list_items(self, preprocessor, make_record):
        record = make_record(response_body={"items": [{"name": "a", "secret": 1}, {"name": "b", "secret": 2}], "total": 2})
        preprocessor.apply(record, {**NO_DEFAULTS, "pick": {"response.body": ["items.name"]}})
        assert record == {"response": {"body": {"items": [{"name": "a"}, {"name": "b"}]}}}


class TestRegexReplace:
    """Tests for rewriting values with /pattern/replacement/flags expressions."""

    def test_first_match_only(self, preprocessor, make_record):
        record = make_record()
        record["request"]["url"] = "/inventory/managedObjects/123/childAssets/456"
        preprocessor.apply(record, {"regexReplace": {"request.url": "/\\d+/{id}/"}})
        assert record["request"]["url"] == "/inventory/managedObjects/{id}/childAssets/456"

    def test_global_flag(self, preprocessor, make_record):
        record = make_record()
        record["request"]["url"] = "/inventory/managedObjects/123/childAssets/456"
        preprocessor.apply(record, {"regexReplace": {"request.url": "/\\d+/{id}/g"}})
        assert record["request"]["url"] == "/inventory/managedObjects/{id}/childAssets/{id}"

    def test_malformed_expression_is_skipped(self, preprocessor, make_record):
        record = make_record()
        record["request"]["url"] = "/devices/42"
        preprocessor.apply(record, {"regexReplace": {"request.url": ["not-an-expression", "/\\d+/N/"]}})
        assert record["request"]["url"] == "/devices/N"

    def test_strings_inside_objects(self, preprocessor, make_record):
        record = make_record(response_body={"a": "secret1", "b": {"c": "secret2"}, "n": 1})
        preprocessor.apply(record, {"regexReplace": {"response.body": "/secret/hidden/g"}})
        assert record["response"]["body"] == {"a": "hidden1", "b": {"c": "hidden2"}, "n": 1}

    def test_runs_before_obfuscation(self, preprocessor, make_record):
        record = make_record(response_body={"password": "secret"})
        preprocessor.apply(record, {"regexReplace": {"response.body.password": "/.*/visible/"}})
        assert record["response"]["body"]["password"] == "****"


class TestApplyTargets:
    """Tests for the kinds of objects the preprocessor accepts."""

    @pytest.mark.parametrize("obj", [None, "record", 42, {"records": "not-a-list"}])
    def test_unsupported_input_is_ignored(self, preprocessor, obj):
        before = copy.deepcopy(obj)
        preprocessor.apply(obj)
        assert obj == before

    def test_document_records_keep_order(self, preprocessor, make_record):
        first = make_record(request_headers={"Authorization": "Bearer a"}, id="first")
        second = make_record(response_body={"password": "b"}, id="second")
        document = {"info": {"id": "pact"}, "records": [first, second]}
        preprocessor.apply(document)
        assert [record["id"] for record in document["records"]] == ["first", "second"]
        assert document["records"][0]["request"]["headers"]["Authorization"] == "Bearer ****"
        assert document["records"][1]["response"]["body"]["password"] == "****"
        assert document["info"] == {"id": "pact"}

    def test_record_model_is_updated_in_place(self, preprocessor, make_record):
        record = PactRecord.model_validate(make_record(request_headers={"Authorization": "Bearer abc"}, response_headers={"Content-Length": "2"}))
        preprocessor.apply(record)
        assert record.request.headers == {"Authorization": "Bearer ****"}
        assert record.response.headers == {}
        assert record.response.status == 200

    def test_typed_model_fields_take_the_mask(self, preprocessor):
        record = PactRecord.model_validate({"request": {"method": "GET"}, "response": {"status": 200, "duration": 12, "headers": {"Server": "nginx"}}})
        preprocessor.apply(record, {"obfuscate": ["response.duration", "response.status", "response.headers"]})
        assert record.response.duration == "****"
        assert record.response.status == "****"
        assert record.response.headers == "****"
        assert record.request.method == "GET"

    def test_model_extras_follow_the_data(self, preprocessor):
        record = PactRecord.model_validate({"request": {"url": "/a"}, "callCount": 2, "note": "x"})
        preprocessor.apply(record, {**NO_DEFAULTS, "ignore": ["note"], "obfuscate": ["callCount"]})
        assert record.model_extra == {"callCount": "****"}
        assert record.request.url == "/a"

    def test_picked_away_model_fields_are_reset(self, preprocessor, make_record):
        record = PactRecord.model_validate(make_record(auth={"user": "admin"}))
        preprocessor.apply(record, {**NO_DEFAULTS, "pick": ["request"]})
        assert record.auth is None
        assert record.response.status is None
        assert record.request.method == "GET"

    def test_document_model_is_updated_in_place(self, preprocessor, make_record):
        document = PactDocument.model_validate({"info": {"id": "pact"}, "records": [make_record(response_body={"password": "x"})]})
        records = document.records
        preprocessor.apply(document)
        assert document.records is records
        assert document.records[0].response.body == {"password": "****"}


class TestOptions:
    """Tests for option precedence."""

    def test_instance_options(self, make_record):
        record = make_record(response_body={"password": "x"})
        DefaultPactPreprocessor({"obfuscationPattern": "###"}).apply(record)
        assert record["response"]["body"]["password"] == "###"

    def test_call_options_override_instance_options(self, make_record):
        record = make_record(request_headers={"Authorization": "Bearer abc"})
        DefaultPactPreprocessor({"obfuscationPattern": "###"}).apply(record, {"obfuscationPattern": "@@@"})
        assert record["request"]["headers"]["Authorization"] == "Bearer @@@"

    def test_environment_pattern(self, monkeypatch, make_record):
        monkeypatch.setenv("HTTPCHAIN_PACT_OBFUSCATION_PATTERN", "xxx")
        record = make_record(response_body={"password": "x"})
        DefaultPactPreprocessor().apply(record)
        assert record["response"]["body"]["password"] == "xxx"

    def test_resolved_options_fill_unset_fields(self):
        resolved = DefaultPactPreprocessor({"ignore": ["a"]}).resolve_options({"ignoreCase": False})
        assert resolved.ignore == ["a"]
        assert resolved.ignore_case is False
        assert resolved.obfuscation_pattern == "****"
        assert "response.body.password" in resolved.obfuscate
