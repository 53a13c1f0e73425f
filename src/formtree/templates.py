"""
Named template catalog.

A template is a (name, content) pair where content is a ready-made Document.
set_template replaces the whole document with a template's content.

Catalog:
    contact_us    - flat list with a two-field row
    sign_up       - two-step wizard
    team_members  - repeating-group-only document
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from formtree.errors import ErrorCode, FormBuilderError
from formtree.fields import FieldType, make_field
from formtree.model import (
    Document,
    FlatList,
    MultiStepWizard,
    RepeatingGroupList,
    Step,
    document_elements,
)
from formtree.reconcile import create_group, reconcile_group


@dataclass(frozen=True)
class Template:
    """
    Properties:
        name: Human-readable title
        content: Document the template expands to
    """

    name: str
    content: Document


def build_contact_us() -> Document:
    return FlatList(elements=(
        make_field(FieldType.H1, name="contact-heading", content="Contact us"),
        (
            make_field(FieldType.INPUT, name="first-name", label="First name",
                       placeholder="Jane", required=True),
            make_field(FieldType.INPUT, name="last-name", label="Last name",
                       placeholder="Doe", required=True),
        ),
        make_field(FieldType.INPUT, name="email", label="Email", type="email",
                   placeholder="jane@example.com", required=True),
        make_field(FieldType.TEXTAREA, name="message", label="Message",
                   description="How can we help?", required=True),
        make_field(FieldType.CHECKBOX, name="agree", label="I agree to be contacted",
                   required=False),
    ))


def build_sign_up() -> Document:
    account = Step(fields=(
        make_field(FieldType.H2, name="account-heading", content="Account"),
        make_field(FieldType.INPUT, name="email", label="Email", type="email",
                   required=True),
        make_field(FieldType.PASSWORD, name="password", label="Password",
                   required=True),
    ))
    profile = Step(fields=(
        make_field(FieldType.H2, name="profile-heading", content="Profile"),
        make_field(FieldType.INPUT, name="display-name", label="Display name",
                   required=True),
        make_field(FieldType.DATE_PICKER, name="birthday", label="Birthday",
                   required=False),
        make_field(FieldType.SWITCH, name="newsletter", label="Newsletter",
                   required=False),
    ))
    return MultiStepWizard(steps=(account, profile))


def build_team_members() -> Document:
    group = create_group(
        (
            make_field(FieldType.INPUT, name="full-name", label="Full name",
                       required=True),
            make_field(FieldType.INPUT, name="email", label="Email", type="email",
                       required=True),
            make_field(FieldType.SELECT, name="role", label="Role",
                       options=(("admin", "Admin"), ("member", "Member")),
                       required=True),
        ),
        name="members",
        label="Team members",
    )
    return RepeatingGroupList(groups=(reconcile_group(group),))


TEMPLATES: Dict[str, Template] = {
    "contact_us": Template(name="Contact Us", content=build_contact_us()),
    "sign_up": Template(name="Sign Up", content=build_sign_up()),
    "team_members": Template(name="Team Members", content=build_team_members()),
}


def get_template(name: str, catalog: Optional[Mapping[str, Template]] = None) -> Template:
    """
    Look up a template by key.

    Raises:
        FormBuilderError(TEMPLATE_NOT_FOUND): no template with that key
        FormBuilderError(EMPTY_TEMPLATE): template has no content
    """
    catalog = TEMPLATES if catalog is None else catalog
    template = catalog.get(name)
    if template is None:
        raise FormBuilderError(
            f"Template '{name}' not found", ErrorCode.TEMPLATE_NOT_FOUND
        )
    if not document_elements(template.content):
        raise FormBuilderError(f"Template '{name}' is empty", ErrorCode.EMPTY_TEMPLATE)
    return template


__all__ = [
    "Template",
    "TEMPLATES",
    "get_template",
    "build_contact_us",
    "build_sign_up",
    "build_team_members",
]
