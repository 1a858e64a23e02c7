import sys

from log_config import log_manager
from utils.command.command_manager import CommandManager
from utils.error.error_manager import ApplicationError, handle_generic_exception

logger = log_manager.get_logger("CLI")


def main():
    """Entry point of the cloudeye-exporter CLI. Discovers the domain commands and runs the
    requested one.
    """
    command_manager = CommandManager("domains")
    command_manager.load_commands()
    parser = command_manager.build_parser()

    args = parser.parse_args()

    if getattr(args, "func", None) is None:
        parser.print_help()
        return

    try:
        args.func(args)
    except ApplicationError:
        sys.exit(1)
    except Exception as e:
        try:
            handle_generic_exception(e, "An error occurred during execution.")
        except ApplicationError:
            sys.exit(1)


if __name__ == "__main__":
    main()
