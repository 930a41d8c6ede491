"""Unit tests for submission field validation."""

from datetime import datetime, timezone

import pytest

from stackatlas.engines.validation.contribution_validator import (
    ContributionValidator,
    clean_tech_stack,
    is_valid_website,
)
from stackatlas.kernel.errors import ValidationError
from stackatlas.kernel.models.stack import TECH_CATEGORIES


@pytest.fixture
def validator() -> ContributionValidator:
    return ContributionValidator(now=datetime(2025, 6, 1, tzinfo=timezone.utc))


def violated_fields(exc_info) -> set:
    return set(exc_info.value.fields)


class TestContributionValidator:

    def test_valid_submission_is_normalized(self, validator, valid_submission):
        fields = validator.validate(valid_submission)

        assert fields.name == "Linear"
        assert fields.website == "linear.app"
        assert fields.tech_stack["frontend"] == ["React", "TypeScript"]
        assert fields.tech_stack["mobile"] == []
        assert set(fields.tech_stack) == set(TECH_CATEGORIES)

    def test_empty_submission_reports_every_required_field(self, validator):
        with pytest.raises(ValidationError) as exc_info:
            validator.validate({})

        assert violated_fields(exc_info) == {"name", "industry", "scale", "location", "description"}
        assert exc_info.value.kind == "validation_error"

    def test_whitespace_name_is_missing(self, validator, valid_submission):
        valid_submission["name"] = "    "
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_submission)

        assert violated_fields(exc_info) == {"name"}

    def test_name_length_limit(self, validator, valid_submission):
        valid_submission["name"] = "x" * 100
        assert validator.validate(valid_submission).name == "x" * 100

        valid_submission["name"] = "x" * 101
        with pytest.raises(ValidationError):
            validator.validate(valid_submission)

    @pytest.mark.parametrize("field,value", [
        ("industry", "Crypto"),
        ("industry", "fintech"),
        ("scale", "Series D"),
    ])
    def test_enum_fields(self, validator, valid_submission, field, value):
        valid_submission[field] = value
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_submission)

        assert violated_fields(exc_info) == {field}

    @pytest.mark.parametrize("description,ok", [
        ("123456789", False),
        ("1234567890", True),
        ("   1234567890   ", True),
        ("x" * 500, True),
        ("x" * 501, False),
    ])
    def test_description_bounds(self, validator, valid_submission, description, ok):
        valid_submission["description"] = description
        if ok:
            assert validator.validate(valid_submission).description == description.strip()
        else:
            with pytest.raises(ValidationError) as exc_info:
                validator.validate(valid_submission)
            assert violated_fields(exc_info) == {"description"}

    @pytest.mark.parametrize("founded,ok", [
        (1900, True),
        (2025, True),
        (1899, False),
        (2026, False),
        ("2010", False),
        (True, False),
        (None, True),
    ])
    def test_founded_year(self, validator, valid_submission, founded, ok):
        valid_submission["founded"] = founded
        if ok:
            assert validator.validate(valid_submission).founded == founded
        else:
            with pytest.raises(ValidationError) as exc_info:
                validator.validate(valid_submission)
            assert violated_fields(exc_info) == {"founded"}

    def test_founded_upper_bound_follows_the_clock(self, valid_submission):
        valid_submission["founded"] = 2026
        later = ContributionValidator(now=datetime(2026, 1, 1, tzinfo=timezone.utc))

        assert later.validate(valid_submission).founded == 2026

    def test_bad_website(self, validator, valid_submission):
        valid_submission["website"] = "not a url"
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_submission)

        assert violated_fields(exc_info) == {"website"}

    def test_blank_optional_fields_become_none(self, validator, valid_submission):
        valid_submission.update({"website": "  ", "employees": "", "funding": None})
        fields = validator.validate(valid_submission)

        assert fields.website is None
        assert fields.employees is None
        assert fields.funding is None

    def test_all_violations_reported_together(self, validator, valid_submission):
        valid_submission.update({
            "industry": "Nope",
            "description": "short",
            "website": "ftp://example.com",
            "tech_stack": {"ai": ["PyTorch"]},
        })
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_submission)

        assert violated_fields(exc_info) == {"industry", "description", "website", "tech_stack.ai"}
        payload = exc_info.value.to_dict()
        assert payload["kind"] == "validation_error"
        assert len(payload["errors"]) == 4

    def test_wrong_types_reported_with_other_violations(self, validator, valid_submission):
        valid_submission.update({
            "name": 42,
            "industry": "Space",
            "description": "short",
            "founded": "abc",
            "funding": ["$10M"],
        })
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(valid_submission)

        assert violated_fields(exc_info) == {"name", "industry", "description", "founded", "funding"}
        types = {v.field: v.type for v in exc_info.value.violations}
        assert types["name"] == "type_error"
        assert types["founded"] == "type_error"
        assert types["industry"] == "value_error"

    def test_blank_founded_is_absent(self, validator, valid_submission):
        valid_submission["founded"] = "  "

        assert validator.validate(valid_submission).founded is None


class TestCleanTechStack:

    def test_blank_entries_dropped_and_order_kept(self):
        cleaned, violations = clean_tech_stack({"backend": ["  Go ", "", "Rust", "\t"]})

        assert violations == []
        assert cleaned["backend"] == ["Go", "Rust"]
        assert cleaned["frontend"] == []

    def test_missing_stack_gives_empty_categories(self):
        cleaned, violations = clean_tech_stack(None)

        assert violations == []
        assert cleaned == {category: [] for category in TECH_CATEGORIES}

    def test_non_string_item(self):
        _, violations = clean_tech_stack({"backend": ["Go", 5]})

        assert [v.field for v in violations] == ["tech_stack.backend.1"]

    def test_string_instead_of_list(self):
        _, violations = clean_tech_stack({"database": "PostgreSQL"})

        assert [v.field for v in violations] == ["tech_stack.database"]

    @pytest.mark.parametrize("raw", [["React"], "React", 7])
    def test_non_mapping_stack(self, raw):
        cleaned, violations = clean_tech_stack(raw)

        assert [(v.field, v.type) for v in violations] == [("tech_stack", "type_error")]
        assert cleaned == {category: [] for category in TECH_CATEGORIES}


@pytest.mark.parametrize("value,ok", [
    ("https://stripe.com", True),
    ("stripe.com", True),
    ("http://localhost:8000", True),
    ("https://sub.example.co.uk/path?q=1", True),
    ("ftp://example.com", False),
    ("not a url", False),
    ("https://nodot", False),
])
def test_is_valid_website(value, ok):
    assert is_valid_website(value) is ok
