"""
Command-line interface for tablediff.

Available commands:
- run: Compare two Athena tables and write the difference report
- plan: Show how the compare columns would be split into queries
"""

import sys

from utils.logging import configure_from_env, shutdown_logging

from .commands import build_settings, build_spec, cmd_plan, cmd_run
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tablediff CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging; options left unset fall back to LOG_* variables
    configure_from_env(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.log_json or None,
    )

    # Execute command
    try:
        if args.command == 'run':
            cmd_run(args)
        elif args.command == 'plan':
            cmd_plan(args)
        else:
            parser.print_help()
            sys.exit(1)
    finally:
        shutdown_logging()


__all__ = [
    'main',
    'build_spec',
    'build_settings',
    'cmd_run',
    'cmd_plan',
    'create_parser',
]


if __name__ == '__main__':
    main()
