"""
Errors raised by typed_redaction.

Everything here is a declaration-time error: it is raised while a class is
being decorated, while a wrapper is being constructed, or when a value with
no redaction capability reaches the output boundary. Traversal and template
formatting of correctly declared types never raise.
"""


class RedactionError(Exception):
    """Base class for all typed_redaction errors."""


class DeclarationError(RedactionError, TypeError):
    """A type, field or template was declared in a way that cannot be redacted safely."""

    def __init__(self, message: str, owner: str = "", field: str = ""):
        self.owner = owner
        self.field = field
        location = ".".join(part for part in (owner, field) if part)
        super().__init__(f"{location}: {message}" if location else message)


class PolicyDeclarationError(DeclarationError):
    """A redaction policy was attached to a field that cannot carry it."""


class UnknownCapabilityError(DeclarationError):
    """A field type has no registered redaction capability."""


class PassthroughDeclarationError(DeclarationError):
    """An explicit passthrough marker is invalid or redundant."""


class TemplateError(DeclarationError):
    """A display template is malformed or references an invalid field."""
