import logging
import re
from collections.abc import Callable
from typing import Any, get_args

from pydantic import BaseModel, ValidationError

from pytest_httpchain_pact.constants import RESERVED_KEYS
from pytest_httpchain_pact.models import PreprocessOptions
from pytest_httpchain_pact.paths import RECURSIVE_DESCENT, Container, iter_key_path, split_key_path, traverse_key_path
from pytest_httpchain_pact.preprocessor.cookies import COOKIE_HEADERS, SetCookie, parse_cookie_header, serialize_cookie_header
from pytest_httpchain_pact.preprocessor.regex import perform_regex_replace
from pytest_httpchain_pact.settings import PactSettings
from pytest_httpchain_pact.utils import merge_options

logger = logging.getLogger(__name__)

AUTH_VALUE_PATTERN = re.compile(r"^(Bearer|Basic)\s+(.+)$", re.IGNORECASE | re.DOTALL)


class DefaultPactPreprocessor:
    """Normalizes records before they are stored or compared.

    Operations run in the order pick, regex replace, obfuscate, ignore. Each
    operation addresses values by key path and skips paths that do not
    resolve. Cookie and Set-Cookie headers are addressed per cookie, e.g.
    ``request.headers.cookie.XSRF-TOKEN``.
    """

    def __init__(self, options: PreprocessOptions | dict[str, Any] | None = None, settings: PactSettings | None = None):
        self.options = options
        self.settings = settings or PactSettings()

    def resolve_options(self, options: PreprocessOptions | dict[str, Any] | None = None) -> PreprocessOptions:
        """Layer call options over the preprocessor's own options over the settings defaults."""
        return merge_options(PreprocessOptions, self.settings.preprocess_options(), self.options, options)

    def apply(self, obj: Any, options: PreprocessOptions | dict[str, Any] | None = None) -> None:
        """Apply the preprocessing operations in place.

        Args:
            obj: A record, or a document with a ``records`` list. Dicts and pydantic models are accepted.
            options: Options overriding the preprocessor's own options and the settings
        """
        resolved = self.resolve_options(options)

        match obj:
            case BaseModel():
                self._apply_to_model(obj, resolved)
                return
            case dict() if "records" in obj:
                records = obj["records"]
                if not isinstance(records, list):
                    return
            case dict():
                records = [obj]
            case _:
                return

        for record in records:
            match record:
                case BaseModel():
                    self._apply_to_model(record, resolved)
                case dict():
                    self._apply_to_record(record, resolved)

    def _apply_to_model(self, model: BaseModel, options: PreprocessOptions) -> None:
        records = getattr(model, "records", None)
        if isinstance(records, list):
            for record in records:
                if isinstance(record, BaseModel):
                    self._apply_to_model(record, options)
            return

        data = model.model_dump(by_alias=True, exclude_unset=True)
        self._apply_to_record(data, options)
        updated = _rebuild_model(type(model), data)

        for name in type(model).model_fields:
            if name in updated.model_fields_set or name in model.model_fields_set:
                setattr(model, name, getattr(updated, name))
        for name in set(model.model_extra or {}) - set(updated.model_extra or {}):
            delattr(model, name)
        for name, value in (updated.model_extra or {}).items():
            setattr(model, name, value)

    def _apply_to_record(self, record: dict[str, Any], options: PreprocessOptions) -> None:
        ignore_case = bool(options.ignore_case)

        if options.pick:
            self._pick(record, options.pick, ignore_case)

        for path, expressions in (options.regex_replace or {}).items():
            self._regex_replace(record, path, expressions, ignore_case)

        pattern = options.obfuscation_pattern or ""
        for path in _without_reserved(options.obfuscate):
            self._obfuscate(record, path, pattern, ignore_case)

        for path in _without_reserved(options.ignore):
            self._remove(record, path, ignore_case)

    def _pick(self, record: dict[str, Any], pick: dict[str, list[str]] | list[str], ignore_case: bool) -> None:
        match pick:
            case dict():
                keep_paths = []
                for parent, children in pick.items():
                    keep_paths.extend([f"{parent}.{child}" for child in children] if children else [parent])
                if ignore_case:
                    keep_paths = [path.lower() for path in keep_paths]
                _filter_keep_paths(record, keep_paths, ignore_case, "")
            case list():
                keep = {key.lower() if ignore_case else key for key in pick}
                for key in list(record):
                    if (key.lower() if ignore_case else key) not in keep:
                        del record[key]

    def _regex_replace(self, record: dict[str, Any], path: str, expressions: str | list[str], ignore_case: bool) -> None:
        def _replace(container: Container, key: str | int) -> None:
            if container[key] is not None:
                container[key] = perform_regex_replace(container[key], expressions)

        traverse_key_path(record, path, _replace, ignore_case)

    def _obfuscate(self, record: dict[str, Any], path: str, pattern: str, ignore_case: bool) -> None:
        cookie_target = _cookie_target(path)
        if cookie_target is not None:
            header_path, cookie_name = cookie_target
            self._rewrite_cookies(record, header_path, cookie_name, pattern, ignore_case)
            return

        is_auth_path = any(segment.lower() == "authorization" for segment in split_key_path(path))

        def _mask(container: Container, key: str | int) -> None:
            value = container[key]
            if value is None:
                return
            is_auth = is_auth_path or (isinstance(key, str) and key.lower() == "authorization")
            container[key] = _mask_value(value, pattern, is_auth)

        self._traverse(record, path, _mask, ignore_case)

    def _remove(self, record: dict[str, Any], path: str, ignore_case: bool) -> None:
        cookie_target = _cookie_target(path)
        if cookie_target is not None and cookie_target[1] is not None:
            header_path, cookie_name = cookie_target
            self._rewrite_cookies(record, header_path, cookie_name, None, ignore_case)
            return

        # deepest and last locations first, list indices stay valid
        for container, key in reversed(list(iter_key_path(record, path, ignore_case))):
            del container[key]

    def _rewrite_cookies(self, record: dict[str, Any], header_path: list[str], cookie_name: str | None, pattern: str | None, ignore_case: bool) -> None:
        """Mask (``pattern``) or remove (``None``) cookies inside a Cookie or Set-Cookie header."""

        def _rewrite(container: Container, key: str | int) -> None:
            header = container[key]
            if not isinstance(header, str | list):
                return
            if str(key).lower() == "set-cookie":
                rewritten = _rewrite_set_cookie(header, cookie_name, pattern)
            else:
                rewritten = _rewrite_cookie(header, cookie_name, pattern)
            if rewritten is None:
                del container[key]
            else:
                container[key] = rewritten

        self._traverse(record, header_path, _rewrite, ignore_case)

    def _traverse(self, record: dict[str, Any], path: str | list[str], callback: Callable[[Container, str | int], None], ignore_case: bool) -> None:
        locations = list(iter_key_path(record, path, ignore_case))
        if not locations:
            logger.debug(f"Key path {path} not found, skipping")
        for container, key in locations:
            callback(container, key)


def _rebuild_model(model_type: type[BaseModel], data: dict[str, Any]) -> BaseModel:
    """Validate preprocessed data, keeping values that no longer fit their field type as they are."""
    try:
        return model_type.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Preprocessed {model_type.__name__} keeps {e.error_count()} value(s) unvalidated")

    values: dict[str, Any] = {}
    for name, field in model_type.model_fields.items():
        key = field.alias if field.alias in data else name
        if key not in data:
            continue
        value = data.pop(key)
        nested_type = _model_type(field.annotation)
        if nested_type is not None and isinstance(value, dict):
            value = _rebuild_model(nested_type, value)
        values[name] = value
    return model_type.model_construct(**values, **data)


def _model_type(annotation: Any) -> type[BaseModel] | None:
    candidates = get_args(annotation) or (annotation,)
    return next((candidate for candidate in candidates if isinstance(candidate, type) and issubclass(candidate, BaseModel)), None)


def _without_reserved(paths: list[str] | None) -> list[str]:
    return [path for path in paths or [] if path not in RESERVED_KEYS]


def _filter_keep_paths(current: Any, keep_paths: list[str], ignore_case: bool, path: str) -> None:
    match current:
        case list():
            for item in current:
                _filter_keep_paths(item, keep_paths, ignore_case, path)
        case dict():
            for key in list(current):
                full_path = f"{path}.{key}" if path else str(key)
                compared = full_path.lower() if ignore_case else full_path
                if compared in keep_paths:
                    continue
                if any(keep.startswith(f"{compared}.") for keep in keep_paths):
                    _filter_keep_paths(current[key], keep_paths, ignore_case, full_path)
                else:
                    del current[key]


def _cookie_target(path: str) -> tuple[list[str], str | None] | None:
    """Split a cookie path into the header path and the cookie name, if it addresses a cookie header."""
    if RECURSIVE_DESCENT in path:
        return None
    segments = split_key_path(path)
    if segments and segments[-1].lower() in COOKIE_HEADERS:
        return segments, None
    if len(segments) > 1 and segments[-2].lower() in COOKIE_HEADERS:
        return segments[:-1], segments[-1]
    return None


def _mask_value(value: Any, pattern: str, is_auth: bool) -> str:
    if is_auth and isinstance(value, str):
        match = AUTH_VALUE_PATTERN.match(value)
        if match and match.group(2).strip():
            return f"{match.group(1)} {pattern}"
    return pattern


def _rewrite_cookie(header: str | list[str], cookie_name: str | None, pattern: str | None) -> str | list[str] | None:
    values = header if isinstance(header, list) else [header]
    rewritten = []
    for value in values:
        cookies = parse_cookie_header(value)
        for name in list(cookies):
            if cookie_name is not None and name.lower() != cookie_name.lower():
                continue
            if pattern is None:
                del cookies[name]
            else:
                cookies[name] = pattern
        if cookies:
            rewritten.append(serialize_cookie_header(cookies))

    if not rewritten:
        return None
    return rewritten if isinstance(header, list) else rewritten[0]


def _rewrite_set_cookie(header: str | list[str], cookie_name: str | None, pattern: str | None) -> str | list[str] | None:
    values = header if isinstance(header, list) else [header]
    rewritten = []
    for value in values:
        cookie = SetCookie.parse(value)
        if cookie is None or (cookie_name is not None and cookie.name.lower() != cookie_name.lower()):
            rewritten.append(value)
        elif pattern is not None:
            rewritten.append(cookie._replace(value=pattern).serialize())

    if not rewritten:
        return None
    return rewritten if isinstance(header, list) else rewritten[0]
