from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace


class BaseCommand(ABC):
    """Base class of the exporter's CLI commands.

    Subclasses placed anywhere under the `domains` package are discovered by the
    CommandManager and registered under their domain, e.g. `cloudeye collect`.
    """

    @staticmethod
    @abstractmethod
    def get_name() -> str:
        """Name the command is invoked with."""

    @staticmethod
    def get_description() -> str:
        return "No description provided."

    @staticmethod
    def get_help() -> str:
        return "No help available."

    @staticmethod
    @abstractmethod
    def get_arguments(parser: ArgumentParser):
        """Adds the command's options to `parser`."""

    @staticmethod
    @abstractmethod
    def main(args: Namespace):
        """Runs the command with the parsed CLI arguments."""

    @classmethod
    def register_command(cls, subparsers) -> ArgumentParser:
        """Adds this command to the subparsers of its domain and binds `main` as the handler.

        Args:
            subparsers (_SubParsersAction): Subparsers of the owning domain parser.

        Returns:
            ArgumentParser: The parser created for the command.
        """
        parser = subparsers.add_parser(cls.get_name(), description=cls.get_description(), help=cls.get_help())
        cls.get_arguments(parser)
        parser.set_defaults(func=cls.main)
        return parser
