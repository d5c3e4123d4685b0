"""
Custom exceptions for assessment-export with helpful error messages.
"""


class AssessmentExportError(Exception):
    """Base exception for assessment-export errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ValidationError(AssessmentExportError):
    """Input data failed validation."""

    pass


class MissingInventoryError(ValidationError):
    """No inventory was supplied to an export."""

    def __init__(self):
        message = "No inventory data available for export"
        suggestion = (
            "Select an assessment that has at least one snapshot, or pass an\n"
            "inventory file to the export command:\n"
            "  assessment-export export-html inventory.json"
        )
        super().__init__(message, suggestion)


class InvalidInventoryShapeError(ValidationError):
    """Inventory does not match any of the accepted snapshot shapes."""

    def __init__(self, details: str = None):
        message = "Invalid inventory data structure"
        if details:
            message = f"{message}: {details}"

        suggestion = (
            "The inventory must provide 'infra' and 'vms' in one of these places:\n"
            "  - top level:          {infra, vms}\n"
            "  - under inventory:    {inventory: {infra, vms}}\n"
            "  - under the vCenter:  {inventory: {vcenter: {infra, vms}}}"
        )
        super().__init__(message, suggestion)


class InventoryFileError(AssessmentExportError):
    """Inventory file could not be read or parsed."""

    def __init__(self, file_path: str, error_details: str):
        message = f"Cannot load inventory from {file_path}: {error_details}"
        suggestion = (
            "Inventory files must be JSON or YAML documents with a mapping at the top "
            "level.\nCheck the file with:\n"
            f"  python -m json.tool {file_path}"
        )
        super().__init__(message, suggestion)


class RenderingError(AssessmentExportError):
    """A drawing surface needed to assemble the document is unavailable."""

    pass


class ExportFailedError(AssessmentExportError):
    """An export finished in the error state."""

    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(f"Export failed ({kind}): {message}")


class ConfigurationError(AssessmentExportError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the assessment-export.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv assessment-export.yaml assessment-export.yaml.backup\n"
            "  assessment-export init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, AssessmentExportError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
