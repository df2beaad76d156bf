# models.py
# Data contracts for form descriptions.
# No request logic lives here: pure schema plus the one tree walk every
# consumer shares.

from datetime import datetime
from typing import Any, Iterable, Iterator, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dynamic_form.errors import FormConfigError

Condition = dict[str, Any]


class Validation(BaseModel):
    """A single validation rule attached to a field."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Rule kind, e.g. min_length or email_format.")
    value: Any = Field(default=None, description="Bound for length rules.")
    min: Any = Field(default=None, description="Inclusive lower bound for numeric_range.")
    max: Any = Field(default=None, description="Inclusive upper bound for numeric_range.")
    message: str | None = Field(default=None, description="Overrides the default error message.")


class FormField(BaseModel):
    """A leaf node that collects one value; its name becomes a record key."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., description="Record key, unique across the whole tree.")
    type: str = Field(..., description="Declared field type, e.g. string, decimal, select.")
    label: str | None = None
    placeholder: str | None = None
    help_text: str | None = None
    default_value: Any = None
    options: list[Any] | None = Field(
        default=None, description="(label, value) tuples or bare strings."
    )
    validations: list[Validation] | None = None
    required: bool | None = None
    disabled: bool | None = None
    visible_when: Condition | list[Condition] | None = Field(
        default=None, description="One condition or an AND-list of conditions."
    )
    metadata: dict[str, Any] | None = None


class Element(BaseModel):
    """A container or decorative node: group, section, heading, paragraph, divider."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str = Field(..., description="Element kind, e.g. group or heading.")
    content: str | None = None
    items: list["Node"] = Field(default_factory=list, description="Nested nodes.")
    visible_when: Condition | list[Condition] | None = None
    metadata: dict[str, Any] | None = None


Node = Union[FormField, Element]

Element.model_rebuild()


class Backend(BaseModel):
    """Pointer to the collaborator that receives validated records."""

    model_config = ConfigDict(frozen=True)

    module: str = Field(..., description="Registered backend module name.")
    function: str = Field(..., description="Registered function identifier on that module.")
    config: list[tuple[str, Any]] = Field(
        default_factory=list, description="Ordered key/value configuration."
    )
    name: str | None = None
    description: str | None = None


class Instance(BaseModel):
    """A complete form description: items, backend and display metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    description: str | None = None
    items: list[Node] = Field(default_factory=list)
    backend: Backend | None = None
    metadata: dict[str, Any] | None = None
    inserted_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _unique_field_names(self) -> "Instance":
        ensure_unique_names(flatten_fields(self.items))
        return self

    @property
    def fields(self) -> list[FormField]:
        return flatten_fields(self.items)


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def flatten_fields(nodes: Iterable[Node] | None) -> list[FormField]:
    """
    Return every FormField under `nodes` in document order.

    Elements are descended into; elements without children contribute
    nothing. Every consumer walks the tree through here so field order is
    the same everywhere.
    """
    return [field for field, _ in walk_fields(nodes)]


def walk_fields(
    nodes: Iterable[Node] | None, ancestors: tuple[Element, ...] = ()
) -> Iterator[tuple[FormField, tuple[Element, ...]]]:
    """Yield `(field, enclosing elements)` in document order, outermost first."""
    for node in nodes or []:
        if isinstance(node, FormField):
            yield node, ancestors
        elif isinstance(node, Element) and node.items:
            yield from walk_fields(node.items, ancestors + (node,))


def ensure_unique_names(fields: Iterable[FormField]) -> None:
    """Raise FormConfigError if two fields share a record key."""
    seen: dict[str, str] = {}
    for field in fields:
        if field.name in seen:
            raise FormConfigError(
                f"Duplicate field name '{field.name}' "
                f"(ids '{seen[field.name]}' and '{field.id}')."
            )
        seen[field.name] = field.id
