"""
Field Definitions for formtree

A field is one leaf control definition: a typed, immutable record of
label, name, constraints and static/interactive flag.

Each field type is its own frozen dataclass carrying only its own
attributes. The attributes every field shares (id, name, label, required,
static, ...) live on BaseField.

ARCHITECTURAL RULE:
    Fields are never mutated in place.
    Every edit produces a new field via merge_field / dataclasses.replace.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

from formtree.errors import ErrorCode, FormBuilderError

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Generate a fresh node id."""
    return str(uuid.uuid4())


def timestamp() -> int:
    """Milliseconds since the epoch, used to build default names."""
    return int(time.time() * 1000)


class FieldType(Enum):
    """
    Closed set of field type tags.

    Values match the tags renderers and code generators switch on.
    """

    # Interactive controls
    INPUT = "Input"
    PASSWORD = "Password"
    OTP = "OTP"
    TEXTAREA = "Textarea"
    CHECKBOX = "Checkbox"
    RADIO_GROUP = "RadioGroup"
    TOGGLE_GROUP = "ToggleGroup"
    DATE_PICKER = "DatePicker"
    SELECT = "Select"
    MULTI_SELECT = "MultiSelect"
    SLIDER = "Slider"
    SWITCH = "Switch"

    # Static content
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    SEPARATOR = "Separator"
    FIELD_DESCRIPTION = "FieldDescription"
    FIELD_LEGEND = "FieldLegend"


@dataclass(frozen=True)
class Option:
    """One selectable choice of a radio group, toggle group or select."""

    value: str
    label: str


@dataclass(frozen=True)
class BaseField:
    """
    Attributes shared by every field type.

    Properties:
        id:
            Assigned once at creation, never changes.
            Unique within the whole document.

        name:
            Submission key. Unique within its containing field list.
            Inside a repeating group entry it encodes the entry position,
            e.g. "contacts[1].email".

        value:
            Caller-set state (e.g. a default value typed into the builder).
            Preserved by reconciliation when the field type is unchanged.
    """

    field_type: ClassVar[FieldType]

    id: str = field(default_factory=new_id)
    name: str = ""
    label: Optional[str] = None
    required: bool = False
    static: bool = False
    description: Optional[str] = None
    disabled: bool = False
    value: Any = None


@dataclass(frozen=True)
class TextInputField(BaseField):
    placeholder: Optional[str] = None
    type: str = "text"
    max_length: Optional[int] = None


@dataclass(frozen=True)
class InputField(TextInputField):
    field_type: ClassVar[FieldType] = FieldType.INPUT


@dataclass(frozen=True)
class PasswordField(TextInputField):
    field_type: ClassVar[FieldType] = FieldType.PASSWORD
    type: str = "password"


@dataclass(frozen=True)
class OTPField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.OTP
    max_length: int = 6


@dataclass(frozen=True)
class TextareaField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.TEXTAREA
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class CheckboxField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.CHECKBOX


@dataclass(frozen=True)
class SwitchField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.SWITCH


@dataclass(frozen=True)
class DatePickerField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.DATE_PICKER


@dataclass(frozen=True)
class ChoiceField(BaseField):
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class RadioGroupField(ChoiceField):
    field_type: ClassVar[FieldType] = FieldType.RADIO_GROUP


@dataclass(frozen=True)
class ToggleGroupField(ChoiceField):
    field_type: ClassVar[FieldType] = FieldType.TOGGLE_GROUP
    type: str = "multiple"


@dataclass(frozen=True)
class SelectField(ChoiceField):
    field_type: ClassVar[FieldType] = FieldType.SELECT
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class MultiSelectField(ChoiceField):
    field_type: ClassVar[FieldType] = FieldType.MULTI_SELECT
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class SliderField(BaseField):
    field_type: ClassVar[FieldType] = FieldType.SLIDER
    min: float = 0
    max: float = 100
    step: float = 1


@dataclass(frozen=True)
class StaticField(BaseField):
    """Non-interactive content node (headings, separators, legends)."""

    static: bool = True
    content: Optional[str] = None


@dataclass(frozen=True)
class H1Field(StaticField):
    field_type: ClassVar[FieldType] = FieldType.H1


@dataclass(frozen=True)
class H2Field(StaticField):
    field_type: ClassVar[FieldType] = FieldType.H2


@dataclass(frozen=True)
class H3Field(StaticField):
    field_type: ClassVar[FieldType] = FieldType.H3


@dataclass(frozen=True)
class SeparatorField(StaticField):
    field_type: ClassVar[FieldType] = FieldType.SEPARATOR


@dataclass(frozen=True)
class FieldDescriptionField(StaticField):
    field_type: ClassVar[FieldType] = FieldType.FIELD_DESCRIPTION


@dataclass(frozen=True)
class FieldLegendField(StaticField):
    field_type: ClassVar[FieldType] = FieldType.FIELD_LEGEND


FIELD_CLASSES: Dict[FieldType, Type[BaseField]] = {
    cls.field_type: cls
    for cls in (
        InputField,
        PasswordField,
        OTPField,
        TextareaField,
        CheckboxField,
        RadioGroupField,
        ToggleGroupField,
        DatePickerField,
        SelectField,
        MultiSelectField,
        SliderField,
        SwitchField,
        H1Field,
        H2Field,
        H3Field,
        SeparatorField,
        FieldDescriptionField,
        FieldLegendField,
    )
}


def _options(*pairs: Tuple[str, str]) -> Tuple[Option, ...]:
    return tuple(Option(value=v, label=l) for v, l in pairs)


# Presentation defaults applied when a field is created from its type alone.
DEFAULT_ATTRIBUTES: Dict[FieldType, Dict[str, Any]] = {
    FieldType.INPUT: {
        "name": "input-field",
        "label": "Input Field",
        "placeholder": "Enter your text",
        "type": "text",
    },
    FieldType.OTP: {
        "name": "one-time-password",
        "label": "One-Time Password",
        "description": "Please enter the one-time password sent to your phone.",
    },
    FieldType.PASSWORD: {
        "name": "password",
        "label": "Password Field",
        "placeholder": "Enter your password",
        "type": "password",
    },
    FieldType.CHECKBOX: {"label": "Checkbox Label"},
    FieldType.RADIO_GROUP: {
        "label": "Pick one option",
        "options": _options(("1", "Option 1"), ("2", "Option 2"), ("3", "Option 3")),
    },
    FieldType.TOGGLE_GROUP: {
        "label": "Pick multiple days",
        "type": "multiple",
        "options": _options(
            ("monday", "Mon"),
            ("tuesday", "Tue"),
            ("wednesday", "Wed"),
            ("thursday", "Thu"),
            ("friday", "Fri"),
            ("saturday", "Sat"),
            ("sunday", "Sun"),
        ),
    },
    FieldType.DATE_PICKER: {"label": "Pick a date"},
    FieldType.SELECT: {
        "label": "Select option",
        "placeholder": "",
        "description": "",
        "options": _options(("1", "Option 1"), ("2", "Option 2")),
    },
    FieldType.MULTI_SELECT: {
        "label": "Select multiple options",
        "options": _options(
            ("1", "Option 1"),
            ("2", "Option 2"),
            ("3", "Option 3"),
            ("4", "Option 4"),
            ("5", "Option 5"),
        ),
    },
    FieldType.SLIDER: {
        "label": "Set Range",
        "description": "Adjust the range by sliding.",
        "min": 1,
        "max": 100,
        "step": 5,
    },
    FieldType.SWITCH: {"label": "Toggle Switch", "description": "Turn on or off."},
    FieldType.TEXTAREA: {
        "label": "Textarea",
        "description": "A multi-line text input field",
        "placeholder": "Enter your text",
    },
    FieldType.H1: {"content": "Heading 1"},
    FieldType.H2: {"content": "Heading 2"},
    FieldType.H3: {"content": "Heading 3"},
    FieldType.SEPARATOR: {},
    FieldType.FIELD_DESCRIPTION: {"content": "Additional Details About Form"},
    FieldType.FIELD_LEGEND: {"content": "Additional Heading"},
}

# Attributes a field keeps when its type is changed by an edit.
_CARRIED_ON_TYPE_CHANGE = ("id", "name", "label", "required", "description", "disabled")


def parse_field_type(field_type: Union[FieldType, str]) -> FieldType:
    """
    Resolve a field type tag.

    Raises:
        FormBuilderError(UNKNOWN_FIELD_TYPE): if the tag is not recognized
    """
    if isinstance(field_type, FieldType):
        return field_type
    try:
        return FieldType(field_type)
    except ValueError:
        raise FormBuilderError(
            f"Unknown field type: {field_type}", ErrorCode.UNKNOWN_FIELD_TYPE
        ) from None


def _coerce_options(value: Any) -> Tuple[Option, ...]:
    result = []
    for item in value:
        if isinstance(item, Option):
            result.append(item)
        elif isinstance(item, Mapping):
            result.append(Option(value=str(item["value"]), label=str(item["label"])))
        else:
            opt_value, opt_label = item
            result.append(Option(value=str(opt_value), label=str(opt_label)))
    return tuple(result)


def _normalize(attrs: Dict[str, Any]) -> Dict[str, Any]:
    if "options" in attrs and attrs["options"] is not None:
        attrs["options"] = _coerce_options(attrs["options"])
    return attrs


def make_field(field_type: Union[FieldType, str], **attrs: Any) -> BaseField:
    """
    Build a field from its type's defaults merged with caller overrides.

    Raises:
        FormBuilderError(UNKNOWN_FIELD_TYPE): unknown type tag
        TypeError: an override is not an attribute of that field type
    """
    ft = parse_field_type(field_type)
    data = dict(DEFAULT_ATTRIBUTES[ft])
    data.update(attrs)
    return FIELD_CLASSES[ft](**_normalize(data))


def field_attributes(f: BaseField) -> Dict[str, Any]:
    """All dataclass attributes of a field, in declaration order."""
    return {fl.name: getattr(f, fl.name) for fl in fields(f)}


def merge_field(f: BaseField, patch: Mapping[str, Any]) -> BaseField:
    """
    Shallow-merge a patch onto a field.

    A "field_type" key in the patch rebuilds the field as the new variant,
    keeping its shared attributes and dropping those the new type lacks.
    """
    patch = dict(patch)
    target = parse_field_type(patch.pop("field_type", f.field_type))
    if target is f.field_type:
        return replace(f, **_normalize(patch))

    data = dict(DEFAULT_ATTRIBUTES[target])
    current = field_attributes(f)
    data.update({key: current[key] for key in _CARRIED_ON_TYPE_CHANGE})
    data.update(patch)
    dropped = sorted(set(current) - set(data))
    if dropped:
        logger.debug(
            "Field %s changed %s -> %s, dropped attributes: %s",
            f.id, f.field_type.value, target.value, ", ".join(dropped),
        )
    return FIELD_CLASSES[target](**_normalize(data))


__all__ = [
    "FieldType",
    "Option",
    "BaseField",
    "TextInputField",
    "InputField",
    "PasswordField",
    "OTPField",
    "TextareaField",
    "CheckboxField",
    "SwitchField",
    "DatePickerField",
    "ChoiceField",
    "RadioGroupField",
    "ToggleGroupField",
    "SelectField",
    "MultiSelectField",
    "SliderField",
    "StaticField",
    "H1Field",
    "H2Field",
    "H3Field",
    "SeparatorField",
    "FieldDescriptionField",
    "FieldLegendField",
    "FIELD_CLASSES",
    "DEFAULT_ATTRIBUTES",
    "new_id",
    "timestamp",
    "parse_field_type",
    "make_field",
    "field_attributes",
    "merge_field",
]
