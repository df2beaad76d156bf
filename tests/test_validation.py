import json
from decimal import Decimal

import pytest

from dynamic_form.coercion import build_types_map
from dynamic_form.errors import FormConfigError
from dynamic_form.models import Element, FormField, Instance, Validation
from dynamic_form.rules import RULES, register_rule
from dynamic_form.validation import BLANK, INVALID, validate


def _field(name, type="string", **kwargs):
    return FormField(id=kwargs.pop("id", name), name=name, type=type, **kwargs)


def _instance(*items):
    return Instance(id="test-form", name="Test", items=list(items))


# ---------------------------------------------------------------------------
# Types map
# ---------------------------------------------------------------------------

def test_build_types_map():
    fields = [
        _field("name"),
        _field("email", "email"),
        _field("bio", "textarea"),
        _field("age", "decimal"),
        _field("subscribe", "boolean"),
        _field("country", "select"),
        _field("documents", "direct_upload"),
        _field("rating", "stars"),
    ]
    assert build_types_map(fields) == {
        "name": "string",
        "email": "string",
        "bio": "string",
        "age": "decimal",
        "subscribe": "boolean",
        "country": "string",
        "documents": "array_of_records",
        "rating": "stars",
    }


# ---------------------------------------------------------------------------
# Conditional required: equals
# ---------------------------------------------------------------------------

def _payment_form():
    return _instance(
        _field(
            "payment_method",
            "select",
            required=True,
            options=[("Credit Card", "credit_card"), ("PayPal", "paypal")],
        ),
        _field(
            "card_number",
            required=True,
            visible_when={"field": "payment_method", "operator": "equals", "value": "credit_card"},
        ),
    )

def test_required_when_condition_met():
    changes = validate(_payment_form(), {"payment_method": "credit_card"})
    assert not changes.valid
    assert changes.errors == {"card_number": [BLANK]}

def test_not_required_when_condition_not_met():
    changes = validate(_payment_form(), {"payment_method": "paypal"})
    assert changes.valid
    assert changes.data == {"payment_method": "paypal"}
    assert changes.required == ["payment_method"]

def test_valid_when_visible_required_field_filled():
    changes = validate(
        _payment_form(), {"payment_method": "credit_card", "card_number": "4111111111111111"}
    )
    assert changes.valid
    assert changes.data["card_number"] == "4111111111111111"

def test_hidden_required_field_never_missing():
    changes = validate(_payment_form(), {"payment_method": "paypal", "card_number": ""})
    assert changes.valid
    assert "card_number" not in changes.errors


# ---------------------------------------------------------------------------
# Conditional required: valid
# ---------------------------------------------------------------------------

def _email_form():
    return _instance(
        _field("email", "email", required=True),
        _field(
            "confirm_email",
            "email",
            required=True,
            visible_when={"field": "email", "operator": "valid"},
        ),
    )

def test_empty_email_only_reports_email():
    changes = validate(_email_form(), {"email": ""})
    assert changes.errors == {"email": [BLANK]}

def test_filled_email_requires_confirmation():
    changes = validate(_email_form(), {"email": "a@b.com"})
    assert changes.errors == {"confirm_email": [BLANK]}

def test_both_emails_filled():
    assert validate(_email_form(), {"email": "a@b.com", "confirm_email": "a@b.com"}).valid


# ---------------------------------------------------------------------------
# Conditional required: nesting and AND
# ---------------------------------------------------------------------------

def test_conditional_required_in_section():
    instance = _instance(
        Element(
            id="address-section",
            type="section",
            content="Address",
            items=[
                _field("country", "select", required=True),
                _field(
                    "international_phone",
                    required=True,
                    visible_when={"field": "country", "operator": "equals", "value": "international"},
                ),
            ],
        )
    )
    assert validate(instance, {"country": "international"}).errors == {"international_phone": [BLANK]}
    assert validate(instance, {"country": "usa"}).valid

def test_conditional_required_in_group_with_boolean():
    instance = _instance(
        Element(
            id="contact-group",
            type="group",
            items=[
                _field("has_phone", "boolean", required=False),
                _field(
                    "phone",
                    required=True,
                    visible_when={"field": "has_phone", "operator": "equals", "value": True},
                ),
            ],
        )
    )
    assert validate(instance, {"has_phone": True}).errors == {"phone": [BLANK]}
    assert validate(instance, {"has_phone": False}).valid

def test_multiple_conditions_and_logic():
    instance = _instance(
        _field("country", "select"),
        _field("has_phone", "boolean"),
        _field(
            "phone",
            required=True,
            visible_when=[
                {"field": "country", "operator": "equals", "value": "international"},
                {"field": "has_phone", "operator": "equals", "value": True},
            ],
        ),
    )
    assert "phone" in validate(instance, {"country": "international", "has_phone": True}).errors
    assert validate(instance, {"country": "domestic", "has_phone": True}).valid
    assert validate(instance, {"country": "international", "has_phone": False}).valid

def test_required_without_condition_always_required():
    instance = _instance(_field("name", required=True), _field("email", "email", required=True))
    changes = validate(instance, {})
    assert changes.errors == {"name": [BLANK], "email": [BLANK]}

def test_optional_visible_field_not_required():
    instance = _instance(
        _field("nickname", required=False, visible_when={"field": "name", "operator": "valid"})
    )
    assert validate(instance, {"name": "Ada"}).valid

def test_required_blank_whitespace_string():
    changes = validate(_instance(_field("name", required=True)), {"name": "   "})
    assert changes.errors == {"name": [BLANK]}

def test_validate_accepts_bare_node_list():
    changes = validate([_field("name", required=True)], {})
    assert changes.errors == {"name": [BLANK]}


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def test_decimal_and_boolean_casting():
    instance = _instance(_field("age", "decimal"), _field("subscribe", "boolean"))
    changes = validate(instance, {"age": "42.5", "subscribe": "true"})
    assert changes.valid
    assert changes.data == {"age": Decimal("42.5"), "subscribe": True}

def test_invalid_values_become_field_errors():
    instance = _instance(
        _field("age", "decimal", required=True),
        _field("subscribe", "boolean"),
        _field("name"),
    )
    changes = validate(instance, {"age": "forty", "subscribe": "maybe", "name": 12})
    assert changes.errors == {"age": [INVALID], "subscribe": [INVALID], "name": [INVALID]}

def test_absent_values_are_omitted():
    changes = validate(_instance(_field("name"), _field("age", "decimal")), {"name": "Ada"})
    assert changes.data == {"name": "Ada"}

def test_empty_string_casts_to_none():
    changes = validate(_instance(_field("age", "decimal")), {"age": ""})
    assert changes.valid
    assert changes.data == {"age": None}

def test_unknown_field_type_passes_value_through():
    changes = validate(_instance(_field("rating", "stars")), {"rating": {"value": 4}})
    assert changes.valid
    assert changes.data == {"rating": {"value": 4}}

def test_extra_params_ignored():
    changes = validate(_instance(_field("name")), {"name": "Ada", "is_admin": True})
    assert changes.data == {"name": "Ada"}


# ---------------------------------------------------------------------------
# File sets
# ---------------------------------------------------------------------------

UPLOADED = [
    {
        "filename": "document.pdf",
        "cloud_bucket": "my-bucket",
        "cloud_path": "uploads/document.pdf",
        "cloud_provider": "gcp",
        "uploaded_on": "10/28/2025",
    }
]

def test_file_set_as_list():
    changes = validate(_instance(_field("documents", "direct_upload", required=True)), {"documents": UPLOADED})
    assert changes.valid
    assert changes.data["documents"] == UPLOADED

def test_file_set_as_json_string():
    changes = validate(_instance(_field("documents", "direct_upload")), {"documents": json.dumps(UPLOADED)})
    assert changes.valid
    assert changes.data["documents"][0]["filename"] == "document.pdf"

def test_file_set_bad_json_reports_invalid():
    changes = validate(_instance(_field("documents", "file_set")), {"documents": "[{not json"})
    assert changes.errors == {"documents": [INVALID]}

def test_required_file_set_empty_list_is_blank():
    changes = validate(_instance(_field("documents", "direct_upload", required=True)), {"documents": "[]"})
    assert changes.errors == {"documents": [BLANK]}


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def test_length_rules():
    instance = _instance(
        _field(
            "name",
            validations=[
                Validation(type="min_length", value=2),
                Validation(type="max_length", value=5),
            ],
        )
    )
    assert validate(instance, {"name": "A"}).errors == {"name": ["should be at least 2 characters"]}
    assert validate(instance, {"name": "Abcdefg"}).errors == {"name": ["should be at most 5 characters"]}
    assert validate(instance, {"name": "Ada"}).valid

def test_email_format_rule():
    instance = _instance(_field("email", "email", validations=[Validation(type="email_format")]))
    assert validate(instance, {"email": "user@example.com"}).valid
    for bad in ("user@", "user example@x.com", "a@b", "a@@b.com", "a\x00b@c.com", "a@b.com\n"):
        assert validate(instance, {"email": bad}).errors == {"email": ["has invalid format"]}, bad

def test_numeric_range_rule_inclusive():
    instance = _instance(
        _field("age", "decimal", validations=[Validation(type="numeric_range", min=18, max=120)])
    )
    assert validate(instance, {"age": "18"}).valid
    assert validate(instance, {"age": "120"}).valid
    assert validate(instance, {"age": "17"}).errors == {"age": ["must be greater than or equal to 18"]}
    assert validate(instance, {"age": 121}).errors == {"age": ["must be less than or equal to 120"]}

def test_numeric_range_with_single_bound():
    instance = _instance(_field("qty", "decimal", validations=[Validation(type="numeric_range", min=1)]))
    assert validate(instance, {"qty": "1000000"}).valid
    assert not validate(instance, {"qty": "0"}).valid

def test_rules_accumulate_in_order():
    instance = _instance(
        _field(
            "code",
            validations=[
                Validation(type="min_length", value=5, message="too short"),
                Validation(type="email_format", message="not an email"),
            ],
        )
    )
    assert validate(instance, {"code": "abc"}).errors == {"code": ["too short", "not an email"]}

def test_unknown_rule_is_ignored():
    instance = _instance(_field("name", validations=[Validation(type="palindrome")]))
    assert validate(instance, {"name": "abc"}).valid

def test_rules_skipped_for_absent_or_empty_values():
    instance = _instance(_field("name", validations=[Validation(type="min_length", value=3)]))
    assert validate(instance, {}).valid
    assert validate(instance, {"name": ""}).valid

def test_rules_skipped_after_cast_error():
    instance = _instance(
        _field("age", "decimal", validations=[Validation(type="numeric_range", min=18)])
    )
    assert validate(instance, {"age": "abc"}).errors == {"age": [INVALID]}

def test_custom_rule_registration():
    @register_rule("starts_with")
    def _starts_with(value, rule):
        return [] if value.startswith(rule.value) else [rule.message or f"must start with {rule.value}"]

    try:
        instance = _instance(_field("sku", validations=[Validation(type="starts_with", value="SKU-")]))
        assert validate(instance, {"sku": "SKU-1"}).valid
        assert validate(instance, {"sku": "X-1"}).errors == {"sku": ["must start with SKU-"]}
    finally:
        RULES.pop("starts_with")


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

def test_duplicate_names_in_node_list_raise():
    with pytest.raises(FormConfigError):
        validate([_field("a", id="1"), _field("a", id="2")], {})

def test_required_field_without_name_raises():
    with pytest.raises(FormConfigError, match="has no name"):
        validate([_field("", id="nameless", required=True)], {})

def test_validation_does_not_mutate_tree():
    instance = _payment_form()
    before = instance.model_dump()
    validate(instance, {"payment_method": "credit_card"})
    assert instance.model_dump() == before

def test_required_field_in_hidden_section_is_not_required():
    instance = _instance(
        _field("ship", "boolean"),
        Element(
            id="addr",
            type="section",
            visible_when={"field": "ship", "operator": "equals", "value": True},
            items=[_field("street", required=True)],
        ),
    )
    hidden = validate(instance, {"ship": False})
    assert hidden.valid
    assert hidden.required == []

    shown = validate(instance, {"ship": True})
    assert shown.errors == {"street": [BLANK]}
    assert shown.required == ["street"]

def test_required_field_under_nested_hidden_group():
    instance = _instance(
        _field("country", "select"),
        Element(
            id="outer",
            type="section",
            items=[
                Element(
                    id="inner",
                    type="group",
                    visible_when={"field": "country", "operator": "equals", "value": "international"},
                    items=[_field("passport", required=True)],
                )
            ],
        ),
    )
    assert validate(instance, {"country": "usa"}).valid
    assert validate(instance, {"country": "international"}).errors == {"passport": [BLANK]}


# ---------------------------------------------------------------------------
# Non-finite bounds
# ---------------------------------------------------------------------------

def test_infinite_length_bound_is_ignored():
    instance = _instance(
        _field(
            "n",
            validations=[
                Validation(type="min_length", value=float("inf")),
                Validation(type="max_length", value=float("-inf")),
            ],
        )
    )
    assert validate(instance, {"n": "abc"}).valid

def test_infinite_numeric_bound_is_ignored():
    instance = _instance(
        _field("age", "decimal", validations=[Validation(type="numeric_range", min=float("inf"))])
    )
    assert validate(instance, {"age": "5"}).valid
