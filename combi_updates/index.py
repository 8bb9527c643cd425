"""
Combi Oven Update Management System
Copyright (C) 2024 Jose Adrian Perez Cueto

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from .config import LOG_FILE, DeployConfig, load_config
from .deployer import Deployer, DeployRequest, Operation
from .errors import ArgumentError, ConfigError
from .utils.index import LOGGER_NAME, log_message

USAGE = "update | rollback <software_version>"
LOG_FORMAT = '%(asctime)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_update_logging(log_file: Optional[str], debug: bool = False) -> logging.Logger:
    """
    Log to the update log file and mirror every line to stdout.

    The log file is truncated so it only ever holds the current run. If it
    cannot be opened, logging continues on stdout alone.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    level = logging.DEBUG if debug else logging.INFO

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode='w')
        except OSError as e:
            logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


class DeployArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as ArgumentError instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentError(f"Error: {message}")


def build_parser() -> argparse.ArgumentParser:
    parser = DeployArgumentParser(
        prog="combi-update",
        description="Update or roll back the combi oven application from the usb_combioven repository"
    )
    parser.add_argument("operation", nargs="?",
                        help="'update' to install the latest version, 'rollback' to install a given version")
    parser.add_argument("version", nargs="?",
                        help="Software version to roll back to (e.g. 1.5.2)")
    parser.add_argument("--config", metavar="PATH", default=None,
                        help="JSON file overriding the built-in paths and unit lists")
    parser.add_argument("--debug", action="store_true",
                        help="Include debug messages in the log")
    return parser


def parse_request(operation: Optional[str], version: Optional[str]) -> DeployRequest:
    """
    Turn the positional arguments into a DeployRequest.

    Raises:
        ArgumentError: If the operation is missing or unknown
    """
    if not operation:
        raise ArgumentError("Error: You must specify 'update' or 'rollback <software_version>' as an argument.")

    try:
        op = Operation(operation)
    except ValueError:
        raise ArgumentError("Error: Invalid operation. Use 'update' or 'rollback <software_version>'.") from None

    return DeployRequest(operation=op, version=version)


def fallback_log_file(argv: Optional[List[str]]) -> str:
    """
    Pick the log file for a command line that failed to parse.

    Uses the log_file of --config when that option and its file can still be
    read, otherwise the built-in LOG_FILE.
    """
    pre_parser = DeployArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default=None)
    try:
        known, _ = pre_parser.parse_known_args(argv)
        if known.config:
            return load_config(known.config).log_file
    except (ArgumentError, ConfigError):
        return LOG_FILE
    return LOG_FILE


def run(argv: Optional[List[str]] = None,
        deployer_factory: Callable[[DeployConfig], Deployer] = Deployer) -> int:
    """
    Run the deployer for a command line and return the exit status.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])
        deployer_factory: Builds the Deployer from the loaded configuration

    Returns:
        int: 0 on success, 1 on any failure
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except ArgumentError as e:
        setup_update_logging(fallback_log_file(argv))
        log_message(str(e), "ERROR")
        log_message(f"Usage: {parser.prog} {USAGE}")
        return 1

    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_update_logging(None, args.debug)
        log_message(str(e), "ERROR")
        return 1

    setup_update_logging(config.log_file, args.debug)

    try:
        request = parse_request(args.operation, args.version)
    except ArgumentError as e:
        log_message(str(e), "ERROR")
        log_message(f"Usage: {parser.prog} {USAGE}")
        return 1

    deployer = deployer_factory(config)
    result = deployer.deploy(request)
    if not result.success:
        if result.failed_step == "validate_request":
            log_message(f"Usage: {parser.prog} {USAGE}")
        return 1
    return 0


def main():
    """
    Main entry point for the combi oven deployer.
    """
    try:
        sys.exit(run(sys.argv[1:]))
    except KeyboardInterrupt:
        log_message("Update process interrupted by user", "WARNING")
        sys.exit(130)


if __name__ == "__main__":
    main()
