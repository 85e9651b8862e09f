#app/schemas/requirements.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.core.errors import ValidationFailed


class PackageField(BaseModel):
    """
    One entry of a package's `required_fields_json`.
    """
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=64)
    label: str = ""
    type: Literal["text", "textarea", "number", "select"] = "text"
    required: bool = False
    options: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _select_needs_options(self) -> "PackageField":
        if self.type == "select" and not self.options:
            raise ValueError(f"select field {self.name} must list its options")
        return self


def parse_package_fields(raw: Optional[List[Dict[str, Any]]]) -> List[PackageField]:
    try:
        return [PackageField.model_validate(f) for f in (raw or [])]
    except ValidationError as e:
        raise ValidationFailed("Package field schema is invalid.", errors=e.errors())


def validate_requirements(
    fields: List[PackageField],
    requirements: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Check a submitted requirements map against the package schema.

    - required fields must be present and non-blank
    - numbers must parse, selects must be one of the options
    - keys outside the schema pass through untouched (free-form extras)

    Returns the cleaned map; number fields come back as int/float.
    """
    cleaned: Dict[str, Any] = dict(requirements or {})
    problems: Dict[str, str] = {}

    for f in fields:
        value = cleaned.get(f.name)
        blank = value is None or (isinstance(value, str) and not value.strip())

        if blank:
            if f.required:
                problems[f.name] = "required"
            continue

        if isinstance(value, (dict, list)):
            problems[f.name] = "must be a scalar"
            continue

        if f.type == "number":
            try:
                num = float(value)
            except (TypeError, ValueError):
                problems[f.name] = "must be a number"
                continue
            cleaned[f.name] = int(num) if num.is_integer() else num
        elif f.type == "select":
            if str(value) not in f.options:
                problems[f.name] = "must be one of: " + ", ".join(f.options)
        else:
            cleaned[f.name] = str(value).strip()

    if problems:
        raise ValidationFailed("Requirements do not match the package.", fields=problems)

    return cleaned
