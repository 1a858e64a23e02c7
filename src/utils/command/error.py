from utils.error.base_custom_error import BaseCustomError


class CommandManagerError(BaseCustomError):
    """Base error of command discovery and parser construction."""


class ModuleImportError(CommandManagerError):
    """Raised when a module under the domains package cannot be imported."""

    def __init__(self, module_path: str, error: Exception):
        super().__init__(f"Failed to import module '{module_path}': {error}", module_path=module_path)


class HierarchyConflictError(CommandManagerError):
    """Raised when two commands of the same domain share a name."""

    def __init__(self, domain: str, command_name: str):
        super().__init__(
            f"Duplicate command '{command_name}' in domain '{domain}'", domain=domain, command_name=command_name
        )
