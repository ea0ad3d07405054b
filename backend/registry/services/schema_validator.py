"""Structural OpenAPI validation.

This is a gate, not a full OpenAPI validator: it checks that a document
looks like an OpenAPI 3.x or Swagger 2.x description with metadata and at
least one path. Rules run in order and the first failure is reported.
"""
import re
from dataclasses import dataclass, field

OPENAPI_FIELD = "openapi"
SWAGGER_FIELD = "swagger"
INFO_FIELD = "info"
PATHS_FIELD = "paths"

_OPENAPI_VERSION_RE = re.compile(r"^3\.\d+\.\d+$")


@dataclass
class ValidationResult:
    valid: bool
    message: str
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, message: str, warnings: list[str] | None = None) -> "ValidationResult":
        return cls(True, message, list(warnings or []))

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        return cls(False, message)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


def validate_schema(document: dict | None, strict: bool = True) -> ValidationResult:
    """Validate ``document`` against the structure and business rules.

    Both rule sets must pass. With ``strict`` off, an openapi version that
    is not 3.x.x is reported as a warning instead of a failure.
    """
    if not document:
        return ValidationResult.failure("Schema content cannot be null or empty")

    warnings: list[str] = []

    basic = _validate_basic_structure(document, strict, warnings)
    if not basic.valid:
        return basic

    business = _validate_business_rules(document)
    if not business.valid:
        return business

    return ValidationResult.success("Schema validation passed", warnings)


def _validate_basic_structure(document: dict, strict: bool, warnings: list[str]) -> ValidationResult:
    if OPENAPI_FIELD not in document and SWAGGER_FIELD not in document:
        return ValidationResult.failure(
            "Schema must contain either 'openapi' (OpenAPI 3.x) or 'swagger' (OpenAPI 2.x) field"
        )
    if INFO_FIELD not in document:
        return ValidationResult.failure("Schema must contain 'info' field")
    if PATHS_FIELD not in document:
        return ValidationResult.failure("Schema must contain 'paths' field")

    version = document.get(OPENAPI_FIELD)
    if version is not None and not _OPENAPI_VERSION_RE.match(str(version)):
        message = (
            f"Invalid OpenAPI version format: {version}. "
            "Expected format: 3.x.x (e.g., 3.0.0, 3.0.1, 3.1.0)"
        )
        if strict:
            return ValidationResult.failure(message)
        warnings.append(message)

    swagger = document.get(SWAGGER_FIELD)
    if swagger is not None and str(swagger) != "2.0":
        warnings.append(f"Unexpected swagger version: {swagger}. Expected 2.0")

    info = document[INFO_FIELD]
    if not isinstance(info, dict):
        return ValidationResult.failure("'info' field must be an object")
    if "title" not in info:
        return ValidationResult.failure("'info' object must contain 'title' field")
    if "version" not in info:
        return ValidationResult.failure("'info' object must contain 'version' field")

    if not isinstance(document[PATHS_FIELD], dict):
        return ValidationResult.failure("'paths' field must be an object")

    return ValidationResult.success("Basic structure validation passed")


def _validate_business_rules(document: dict) -> ValidationResult:
    paths = document.get(PATHS_FIELD)
    if isinstance(paths, dict) and not paths:
        return ValidationResult.failure("Schema must contain at least one API path")
    return ValidationResult.success("Business rules validation passed")
