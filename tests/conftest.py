"""Shared pytest fixtures for pytest-httpchain-pact tests."""

import json
import os
from pathlib import Path
from typing import Any

import pytest

from pytest_httpchain_pact.constants import ENV_PREFIX


@pytest.fixture(autouse=True)
def clean_pact_env(monkeypatch):
    """Keep HTTPCHAIN_PACT_* variables of the surrounding environment out of the tests."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture
def create_json_file(tmp_path: Path):
    """Factory fixture for creating temporary JSON files.

    Usage:
        def test_example(create_json_file):
            file = create_json_file("pact.json", {"records": []})
            result = load_pact(file)
    """

    def _create(name: str, content: Any) -> Path:
        file = tmp_path / name
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(json.dumps(content))
        return file

    return _create


@pytest.fixture
def create_json_files(tmp_path: Path):
    """Factory fixture for creating multiple temporary JSON files at once.

    Usage:
        def test_example(create_json_files):
            files = create_json_files({
                "pact.json": {"records": [{"$ref": "record.json"}]},
                "record.json": {"request": {"url": "/"}}
            })
            result = load_pact(files["pact.json"])
    """

    def _create(files: dict[str, Any]) -> dict[str, Path]:
        result = {}
        for name, content in files.items():
            file = tmp_path / name
            file.parent.mkdir(parents=True, exist_ok=True)
            file.write_text(json.dumps(content))
            result[name] = file
        return result

    return _create


@pytest.fixture
def make_record():
    """Factory fixture for record dicts with request and response parts.

    Usage:
        def test_example(make_record):
            record = make_record(request_headers={"Authorization": "Bearer abc"})
    """

    def _create(
        request_headers: dict[str, Any] | None = None,
        response_headers: dict[str, Any] | None = None,
        response_body: Any = None,
        **extra: Any,
    ) -> dict[str, Any]:
        record: dict[str, Any] = {
            "request": {"method": "GET", "url": "/inventory/managedObjects", "headers": dict(request_headers or {})},
            "response": {"status": 200, "statusText": "OK", "headers": dict(response_headers or {})},
        }
        if response_body is not None:
            record["response"]["body"] = response_body
        record.update(extra)
        return record

    return _create
