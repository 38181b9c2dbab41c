from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pytest_httpchain_pact.constants import DEFAULT_IGNORE, DEFAULT_OBFUSCATE, DEFAULT_OBFUSCATION_PATTERN, ENV_PREFIX
from pytest_httpchain_pact.models import MatchOptions, PreprocessOptions


class PactSettings(BaseSettings):
    """Defaults shared by the matcher, the preprocessor and the reference resolver.

    Values are read from ``HTTPCHAIN_PACT_*`` environment variables. List
    settings take JSON, e.g. ``HTTPCHAIN_PACT_PREPROCESSOR_IGNORE='["response.headers.date"]'``.
    """

    strict_matching: bool = Field(default=False)
    match_schema_and_object: bool = Field(default=False)
    ignore_primitive_array_order: bool = Field(default=True)
    matcher_ignore_case: bool = Field(default=False)

    obfuscation_pattern: str = Field(default=DEFAULT_OBFUSCATION_PATTERN)
    preprocessor_ignore_case: bool = Field(default=True)
    preprocessor_ignore: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE))
    preprocessor_obfuscate: list[str] = Field(default_factory=lambda: list(DEFAULT_OBFUSCATE))

    ref_parent_traversal_depth: int = Field(default=3, ge=0)

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    def match_options(self) -> MatchOptions:
        return MatchOptions(
            strict_matching=self.strict_matching,
            ignore_case=self.matcher_ignore_case,
            match_schema_and_object=self.match_schema_and_object,
            ignore_primitive_array_order=self.ignore_primitive_array_order,
        )

    def preprocess_options(self) -> PreprocessOptions:
        return PreprocessOptions(
            ignore=list(self.preprocessor_ignore),
            obfuscate=list(self.preprocessor_obfuscate),
            obfuscation_pattern=self.obfuscation_pattern,
            ignore_case=self.preprocessor_ignore_case,
        )
