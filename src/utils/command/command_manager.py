import importlib
import inspect
import pkgutil
from argparse import ArgumentParser

from log_config import log_manager
from utils.command.base_command import BaseCommand

from .error import CommandManagerError, HierarchyConflictError, ModuleImportError


class CommandManager:
    """Discovers BaseCommand subclasses below a package and builds the CLI parser.

    Commands are grouped by the first package level below the root, so
    `domains.cloudeye.collect_command.CollectCommand` is invoked as `cloudeye collect`.
    """

    _logger = log_manager.get_logger("CommandManager")

    def __init__(self, package_name: str = "domains"):
        self.package_name = package_name
        self.hierarchy: dict[str, dict[str, type[BaseCommand]]] = {}

    def load_commands(self) -> None:
        """Imports every module of the package tree and registers the commands found.

        A module that fails to import is logged and skipped so that one broken domain does
        not take the whole CLI down.
        """
        package = importlib.import_module(self.package_name)
        self._logger.debug(f"Loading commands from package {self.package_name}")

        for module_info in pkgutil.walk_packages(package.__path__, prefix=f"{self.package_name}."):
            try:
                module = self._import_module(module_info.name)
            except ModuleImportError as e:
                self._logger.error(e.message)
                continue
            for command in self._find_commands(module):
                self._add_to_hierarchy(command)

        self._logger.debug(f"Loaded commands for domains: {sorted(self.hierarchy)}")

    @staticmethod
    def _import_module(module_path: str):
        try:
            return importlib.import_module(module_path)
        except Exception as e:
            raise ModuleImportError(module_path=module_path, error=e) from e

    @staticmethod
    def _find_commands(module) -> list[type[BaseCommand]]:
        # Only classes defined in the module itself, not ones it imports
        return [
            obj
            for _, obj in inspect.getmembers(module, inspect.isclass)
            if issubclass(obj, BaseCommand)
            and obj is not BaseCommand
            and not inspect.isabstract(obj)
            and obj.__module__ == module.__name__
        ]

    def _add_to_hierarchy(self, command: type[BaseCommand]) -> None:
        name_parts = command.__module__.split(".")
        if len(name_parts) < 3:
            self._logger.warning(f"Command {command.__name__} is not inside a domain package, skipping")
            return

        domain = name_parts[1]
        commands = self.hierarchy.setdefault(domain, {})
        command_name = command.get_name()
        if command_name in commands:
            raise HierarchyConflictError(domain=domain, command_name=command_name)
        commands[command_name] = command
        self._logger.debug(f"Registered command {domain} {command_name}")

    def build_parser(self) -> ArgumentParser:
        """Builds `<prog> <domain> <command> [options]` from the loaded hierarchy."""
        parser = ArgumentParser(
            prog="cloudeye-exporter",
            description="Scrape Open Telekom Cloud CloudEye metrics and export them as Prometheus series",
        )
        domain_parsers = parser.add_subparsers(dest="domain", help="Available domains")

        for domain, commands in sorted(self.hierarchy.items()):
            try:
                domain_parser = domain_parsers.add_parser(domain, help=f"{domain} commands")
                command_parsers = domain_parser.add_subparsers(dest="command", help=f"{domain} commands")
                for command in commands.values():
                    command.register_command(command_parsers)
            except Exception as e:
                raise CommandManagerError(f"Failed to build parser for domain {domain}: {e}", domain=domain) from e
        return parser
