"""Exceptions raised by the scaffolding and customization engine.

Every failure aborts the current run; nothing is retried and files already
written stay on disk.  Each exception carries enough context (path,
operation, anchor) to locate the responsible step.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class FilesystemError(ScaffoldError):
    """Raised when a read, write, mkdir, list or remove fails."""

    def __init__(self, path: str, operation: str, reason: str = "") -> None:
        self.path = path
        self.operation = operation
        self.reason = reason
        message = f"{operation} failed for {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class UnsupportedLicenseError(ScaffoldError):
    """Raised for a license kind that has no boilerplate text."""

    def __init__(self, license: str, supported: list[str]) -> None:
        self.license = license
        self.supported = supported
        super().__init__(
            f"Unsupported license {license!r}; expected one of: {', '.join(supported)}"
        )


class AnchorNotFoundError(ScaffoldError):
    """Raised when a text patch cannot find its anchor in the target file."""

    def __init__(self, path: str, anchor: str) -> None:
        self.path = path
        self.anchor = anchor
        super().__init__(f"{anchor!r} not found in {path}")


class InvalidManifestStructureError(ScaffoldError):
    """Raised when a kustomization file is missing or cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid kustomization {path}: {reason}")


class FileConflictError(ScaffoldError):
    """Raised when a template would replace a pre-existing, non-empty file."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"{path} already exists with different content; "
            "re-run with --force to overwrite or --skip-existing to keep it"
        )


class MissingBoilerplateError(ScaffoldError):
    """Raised when a template embedding the header is rendered without one."""

    def __init__(self, template: str) -> None:
        self.template = template
        super().__init__(
            f"Template {template!r} embeds the boilerplate header but none was produced"
        )


class TemplateRenderError(ScaffoldError):
    """Raised when a template body or path fails to render."""

    def __init__(self, template: str, path: str, reason: str) -> None:
        self.template = template
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to render {template!r} for {path or '?'}: {reason}")


class PluginError(ScaffoldError):
    """Raised when a post-scaffold command exits with a non-zero code."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)
