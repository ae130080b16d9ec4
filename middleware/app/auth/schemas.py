"""
Form Validation Schemas
=======================

Declarative schemas for every credential form accepted by the auth facade.

Each schema is a Pydantic model. Field rules reproduce the messages shown to
end users, and every violated password rule is reported (not just the
first), so a single request can list all the fixes a user has to make.

Validation never raises to callers: ``validate_form`` returns a
``FormResult`` that is either ok (with the parsed model) or failed (with a
field-error map of ``{field: [messages]}``).
"""

import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

import email_validator
from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError


# =============================================================================
# Rule Definitions
# =============================================================================

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "@$!%*?&"

# Character classes a strong password must contain, in reporting order
_CHARACTER_CLASSES: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("uppercase", re.compile(r"[A-Z]")),
    ("lowercase", re.compile(r"[a-z]")),
    ("number", re.compile(r"[0-9]")),
    ("special", re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]")),
)

SIGN_UP_PASSWORD_MESSAGES: Dict[str, str] = {
    "min_length": "Password must be at least 8 characters long",
    "uppercase": "Password must contain at least one uppercase letter",
    "lowercase": "Password must contain at least one lowercase letter",
    "number": "Password must contain at least one number",
    "special": "Password must contain at least one special character (@$!%*?&)",
}

SHORT_PASSWORD_MESSAGES: Dict[str, str] = {
    "min_length": "Be at least 8 characters long",
    "uppercase": "Must contain at least one uppercase letter",
    "lowercase": "Must contain at least one lowercase letter",
    "number": "Must contain at least one number",
    "special": "Must contain at least one special character (@$!%*?&)",
}

INVALID_EMAIL_MESSAGE = "Please enter a valid email"
FORGOT_PASSWORD_EMAIL_MESSAGE = "Please enter valid email"
PASSWORD_MISMATCH_MESSAGE = "Password don't match"
UNSUPPORTED_PROVIDER_MESSAGE = "Unsupported OAuth provider"

# Error types produced by the rules above; their message is shown verbatim
_RULE_ERROR = "password_rules"
_CUSTOM_ERRORS = {"invalid_email", "password_mismatch", "unsupported_provider"}

# Generic pydantic errors mapped onto the wording clients already handle
_GENERIC_MESSAGES = {
    "missing": "Required",
    "string_type": "Expected string",
    "model_type": "Expected object",
    "model_attributes_type": "Expected object",
}

# OAuth providers accepted by Supabase Auth
SUPPORTED_OAUTH_PROVIDERS = frozenset({
    "apple",
    "azure",
    "bitbucket",
    "discord",
    "facebook",
    "figma",
    "fly",
    "github",
    "gitlab",
    "google",
    "kakao",
    "keycloak",
    "linkedin",
    "linkedin_oidc",
    "notion",
    "slack",
    "slack_oidc",
    "spotify",
    "twitch",
    "twitter",
    "workos",
    "zoom",
})

# Addresses on reserved and special-use domains (.test, .local, .internal)
# are still well-formed; only grammar is checked, never deliverability.
email_validator.SPECIAL_USE_DOMAIN_NAMES = []


# =============================================================================
# Rule Helpers
# =============================================================================

def password_violations(
    password: str,
    messages: Mapping[str, str],
    require_character_classes: bool = True,
) -> List[str]:
    """
    Collect the message of every password rule the value breaks.

    Args:
        password: Candidate password
        messages: Message table keyed by rule name
        require_character_classes: False for sign-in (length rule only)

    Returns:
        Violated rule messages in rule order (empty when the password passes)
    """
    violations = []

    if len(password) < MIN_PASSWORD_LENGTH:
        violations.append(messages["min_length"])

    if require_character_classes:
        for rule, pattern in _CHARACTER_CLASSES:
            if not pattern.search(password):
                violations.append(messages[rule])

    return violations


def _email_rule(message: str):
    def check(value: str) -> str:
        try:
            validate_email(value, check_deliverability=False, globally_deliverable=True)
        except EmailNotValidError:
            raise PydanticCustomError("invalid_email", message)
        return value

    return check


def _password_rule(messages: Mapping[str, str], require_character_classes: bool = True):
    def check(value: str) -> str:
        violations = password_violations(value, messages, require_character_classes)
        if violations:
            raise PydanticCustomError(
                _RULE_ERROR,
                "Password does not meet requirements",
                {"messages": violations},
            )
        return value

    return check


EmailAddress = Annotated[str, AfterValidator(_email_rule(INVALID_EMAIL_MESSAGE))]
ForgotPasswordEmail = Annotated[str, AfterValidator(_email_rule(FORGOT_PASSWORD_EMAIL_MESSAGE))]
SignUpPassword = Annotated[str, AfterValidator(_password_rule(SIGN_UP_PASSWORD_MESSAGES))]
StrongPassword = Annotated[str, AfterValidator(_password_rule(SHORT_PASSWORD_MESSAGES))]
SignInPassword = Annotated[
    str,
    AfterValidator(_password_rule(SHORT_PASSWORD_MESSAGES, require_character_classes=False)),
]


# =============================================================================
# Form Schemas
# =============================================================================

class _Form(BaseModel):
    """Base for all credential forms."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class _PasswordConfirmation(_Form):
    """
    Adds the password/confirmation equality check.

    The check only runs once every other field of the form validated, and a
    mismatch is reported against ``confirmPassword``, never ``password``.
    """

    @field_validator("confirm_password", check_fields=False)
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        preceding = [name for name in cls.model_fields if name != "confirm_password"]
        if any(name not in info.data for name in preceding):
            return value

        if value != info.data["password"]:
            raise PydanticCustomError("password_mismatch", PASSWORD_MISMATCH_MESSAGE)
        return value


class SignUpForm(_Form):
    """Sign up with email and a strong password."""

    email: EmailAddress
    password: SignUpPassword


class SignUpConfirmForm(_PasswordConfirmation):
    """Sign up with email, a strong password and its confirmation."""

    email: EmailAddress
    password: StrongPassword
    confirm_password: str = Field(alias="confirmPassword")


class SignInForm(_Form):
    """Sign in; only the minimum length is enforced on the password."""

    email: EmailAddress
    password: SignInPassword


class ForgotPasswordForm(_Form):
    email: ForgotPasswordEmail


class ResetPasswordForm(_PasswordConfirmation):
    password: StrongPassword
    confirm_password: str = Field(alias="confirmPassword")


class OAuthForm(_Form):
    provider: str

    @field_validator("provider")
    @classmethod
    def provider_supported(cls, value: str) -> str:
        if value not in SUPPORTED_OAUTH_PROVIDERS:
            raise PydanticCustomError("unsupported_provider", UNSUPPORTED_PROVIDER_MESSAGE)
        return value


# =============================================================================
# Validation Result
# =============================================================================

FormT = TypeVar("FormT", bound=BaseModel)


@dataclass(frozen=True)
class FormResult(Generic[FormT]):
    """
    Outcome of validating a form.

    Attributes:
        ok: True when every rule passed
        data: Parsed form (only when ok)
        field_errors: Field name to ordered messages (only when not ok)
    """

    ok: bool
    data: Optional[FormT] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)


def flatten_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """
    Turn a Pydantic ValidationError into a field-error map.

    Field keys use the wire names (e.g. ``confirmPassword``). Errors that are
    not tied to a field (such as a non-object payload) are reported under
    ``form``.

    Args:
        exc: Validation error raised by a form schema

    Returns:
        Mapping of field name to the list of messages it violated
    """
    field_errors: Dict[str, List[str]] = {}

    for error in exc.errors():
        loc = error.get("loc") or ()
        name = str(loc[0]) if loc else "form"
        error_type = error["type"]

        if error_type == _RULE_ERROR:
            messages = list(error["ctx"]["messages"])
        elif error_type in _CUSTOM_ERRORS:
            messages = [error["msg"]]
        else:
            messages = [_GENERIC_MESSAGES.get(error_type, error["msg"])]

        field_errors.setdefault(name, []).extend(messages)

    return field_errors


def validate_form(schema: Type[FormT], values: Any) -> FormResult[FormT]:
    """
    Validate raw input against a form schema without raising.

    Example:
        >>> result = validate_form(SignInForm, {"email": "a@b.com", "password": "short"})
        >>> result.ok
        False
        >>> result.field_errors
        {'password': ['Be at least 8 characters long']}
    """
    try:
        return FormResult(ok=True, data=schema.model_validate(values))
    except ValidationError as exc:
        return FormResult(ok=False, field_errors=flatten_errors(exc))
