from __future__ import annotations


class FormBuilderError(Exception):
    """Base class for every error raised by formbuilder."""


class FieldDefinitionError(FormBuilderError, ValueError):
    pass


class SubmissionValidationError(FormBuilderError):
    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{key}: {message}" for key, message in errors.items()))
        self.errors = errors


class FormNotFoundError(FormBuilderError, LookupError):
    def __init__(self, form_id: str | None) -> None:
        super().__init__(f"Form not found: {form_id}")
        self.form_id = form_id


class TransportError(FormBuilderError):
    """The form or submission store could not complete the operation."""


class IdentityCollisionError(FormBuilderError):
    pass


class FormLockedError(FormBuilderError):
    pass


class FormNotPublishedError(FormBuilderError):
    pass


class AuthenticationRequired(FormBuilderError):
    pass
