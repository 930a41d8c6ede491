"""
Field validation for submitted stacks.

Every constraint is checked and every violation is reported together, so
the submitter can fix the whole form in one round trip.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from stackatlas.kernel.errors import FieldViolation, ValidationError
from stackatlas.kernel.models.stack import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    FOUNDED_MIN_YEAR,
    LOCATION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    TECH_CATEGORIES,
    Industry,
    Scale,
)

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)

INDUSTRY_VALUES = frozenset(i.value for i in Industry)
SCALE_VALUES = frozenset(s.value for s in Scale)


@dataclass
class StackFields:
    """Normalized descriptive fields, ready to persist."""

    name: str
    industry: str
    scale: str
    location: str
    description: str
    founded: Optional[int] = None
    employees: Optional[str] = None
    funding: Optional[str] = None
    website: Optional[str] = None
    tech_stack: Dict[str, List[str]] = field(default_factory=dict)

    def as_columns(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "industry": self.industry,
            "scale": self.scale,
            "location": self.location,
            "description": self.description,
            "founded": self.founded,
            "employees": self.employees,
            "funding": self.funding,
            "website": self.website,
            "tech_stack": self.tech_stack,
        }


def _clean_text(value: Any) -> Optional[str]:
    """Trimmed string, or None for missing/blank input."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text_field(data: Mapping[str, Any], name: str, violations: List[FieldViolation]) -> Optional[str]:
    """Trimmed text value of ``name``; a non-string value is a type violation."""
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        violations.append(FieldViolation(name, "Must be a string", "type_error"))
        return None
    return _clean_text(value)


def _founded_year(value: Any) -> Any:
    """An empty form field means no year was given."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def clean_tech_stack(raw: Any) -> tuple[Dict[str, List[str]], List[FieldViolation]]:
    """
    Drop blank technology names and trim the rest, keeping order.

    Every known category is present in the result; unknown categories and
    non-string entries are reported as violations.
    """
    cleaned: Dict[str, List[str]] = {category: [] for category in TECH_CATEGORIES}
    violations: List[FieldViolation] = []

    if raw is None:
        return cleaned, violations
    if not isinstance(raw, Mapping):
        violations.append(FieldViolation(
            field="tech_stack",
            message="Tech stack must be an object of category lists",
            type="type_error",
        ))
        return cleaned, violations

    for category, items in raw.items():
        if category not in cleaned:
            violations.append(FieldViolation(
                field=f"tech_stack.{category}",
                message=f"Unknown tech stack category. Expected one of: {', '.join(TECH_CATEGORIES)}",
            ))
            continue
        if items is None:
            continue
        if isinstance(items, str) or not isinstance(items, (list, tuple)):
            violations.append(FieldViolation(
                field=f"tech_stack.{category}",
                message="Technologies must be a list of names",
                type="type_error",
            ))
            continue
        for index, item in enumerate(items):
            if not isinstance(item, str):
                violations.append(FieldViolation(
                    field=f"tech_stack.{category}.{index}",
                    message="Technology name must be a string",
                    type="type_error",
                ))
                continue
            name = item.strip()
            if name:
                cleaned[category].append(name)

    return cleaned, violations


def is_valid_website(value: str) -> bool:
    """Accepts http(s) URLs; a bare host such as ``stripe.com`` is accepted too."""
    candidate = value if "://" in value else f"http://{value}"
    try:
        url = _URL_ADAPTER.validate_python(candidate)
    except PydanticValidationError:
        return False
    # Require a dotted host or localhost, like the web form's validator
    host = url.host or ""
    return "." in host or host == "localhost"


class ContributionValidator:
    """Validates and normalizes the descriptive fields of a submission."""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    @property
    def current_year(self) -> int:
        return (self._now or datetime.now(timezone.utc)).year

    def validate(self, data: Mapping[str, Any]) -> StackFields:
        """
        Validate raw submission fields.

        Raises:
            ValidationError: listing every violated constraint
        """
        violations: List[FieldViolation] = []

        type_violations: List[FieldViolation] = []
        name = _text_field(data, "name", type_violations)
        industry = _text_field(data, "industry", type_violations)
        scale = _text_field(data, "scale", type_violations)
        location = _text_field(data, "location", type_violations)
        description = _text_field(data, "description", type_violations) or ""
        employees = _text_field(data, "employees", type_violations)
        funding = _text_field(data, "funding", type_violations)
        website = _text_field(data, "website", type_violations)
        mistyped = {violation.field for violation in type_violations}
        violations.extend(type_violations)

        if "name" not in mistyped and (not name or len(name) > NAME_MAX_LENGTH):
            violations.append(FieldViolation(
                "name",
                f"Startup name is required and must be at most {NAME_MAX_LENGTH} characters",
            ))

        if "industry" not in mistyped and industry not in INDUSTRY_VALUES:
            violations.append(FieldViolation("industry", "Please select a valid industry"))

        if "scale" not in mistyped and scale not in SCALE_VALUES:
            violations.append(FieldViolation("scale", "Please select a valid scale"))

        if "location" not in mistyped and (not location or len(location) > LOCATION_MAX_LENGTH):
            violations.append(FieldViolation(
                "location",
                f"Location is required and must be at most {LOCATION_MAX_LENGTH} characters",
            ))

        if "description" not in mistyped and not (
            DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH
        ):
            violations.append(FieldViolation(
                "description",
                f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
                f"{DESCRIPTION_MAX_LENGTH} characters",
            ))

        founded = _founded_year(data.get("founded"))
        if founded is not None:
            if isinstance(founded, bool) or not isinstance(founded, int):
                violations.append(FieldViolation("founded", "Founded year must be a whole number", "type_error"))
            elif not FOUNDED_MIN_YEAR <= founded <= self.current_year:
                violations.append(FieldViolation(
                    "founded",
                    f"Founded year must be between {FOUNDED_MIN_YEAR} and {self.current_year}",
                ))

        if website is not None and not is_valid_website(website):
            violations.append(FieldViolation("website", "Website must be a valid URL"))

        tech_stack, stack_violations = clean_tech_stack(data.get("tech_stack"))
        violations.extend(stack_violations)

        if violations:
            raise ValidationError(violations, message="Validation failed")

        return StackFields(
            name=name,
            industry=industry,
            scale=scale,
            location=location,
            description=description,
            founded=founded,
            employees=employees,
            funding=funding,
            website=website,
            tech_stack=tech_stack,
        )
