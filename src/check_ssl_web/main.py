# src/check_ssl_web/main.py

import argparse
import logging
import sys
from typing import Optional

import coloredlogs
import shtab
from jinja2 import TemplateError

from check_ssl_web import __version__
from check_ssl_web.cert_lookup import DEFAULT_TIMEOUT
from check_ssl_web.web_server import run_server

DEFAULT_PORT = 8080
BIND_HOST = "127.0.0.1"
LOG_LEVELS = ["DEBUG", "INFO", "WARN", "ERROR", "CRITICAL"]

logger = logging.getLogger("checkssl")


def is_numeric(value: Optional[str]) -> bool:
    return bool(value) and value.isascii() and value.isdigit()


def resolve_port(value: Optional[str], default: int = DEFAULT_PORT) -> int:
    """
    Return the listen port for a positional argument.

    Only an argument made entirely of ASCII digits is used; anything else,
    including an empty string, silently gives the default port.
    """
    if is_numeric(value):
        return int(value)
    return default


def get_log_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.WARNING)


def setup_logging(loglevel: int) -> None:
    """Attach a (colored, when on a terminal) stderr handler to the 'checkssl' logger."""
    if loglevel > logging.DEBUG:
        log_format = '%(asctime)s [%(levelname)-8s] %(name)s: %(message)s'
    else:
        log_format = '%(asctime)s [%(levelname)-8s] %(name)s (%(filename)s:%(lineno)d): %(message)s'

    logger.propagate = False
    if not logger.handlers:
        if sys.stderr.isatty():
            coloredlogs.install(level=loglevel, logger=logger, fmt=log_format, stream=sys.stderr)
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(log_format))
            logger.addHandler(handler)
    logger.setLevel(loglevel)
    # Requests are logged by the application itself.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_parser():
    '''
    Create and configure the argument parser for check-ssl-web.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    '''
    parser = argparse.ArgumentParser(
        description="Serve a web page reporting the TLS certificate of a domain.",
        epilog="Example: check-ssl-web 3000 -l INFO"
    )
    parser.add_argument(
        '--version',
        '-V',
        action='version',
        version=f'%(prog)s {__version__}',
        help="Show program's version number and exit"
    )
    parser.add_argument('port', nargs='?', default=None,
                        help=f'Port to listen on (default: {DEFAULT_PORT}). Non-numeric values are ignored.')
    parser.add_argument('-l', '--loglevel', type=str, choices=LOG_LEVELS, default='WARN',
                        help='Set log level (default: WARN)')
    parser.add_argument('-m', '--mode', type=str, choices=['simple', 'full'], default='full',
                        help="'simple' (leaf certificate only) or 'full' (also fetch issuers via AIA, default)")
    parser.add_argument('-t', '--timeout', type=float, default=DEFAULT_TIMEOUT,
                        help=f'Timeout in seconds for the TLS connection to a checked domain (default: {DEFAULT_TIMEOUT})')

    prog_name = parser.prog
    shtab.add_argument_to(parser, ['--print-completion'], preamble={
        "bash": f"""
# Load this into your shell environment by adding
# eval "$({prog_name} --print-completion bash)"
# to your .bashrc or .bash_profile
        """,
        "zsh": f"""
# Load this into your shell environment by adding
# eval "$({prog_name} --print-completion zsh)"
# to your .zshrc
        """,
    })
    return parser


def main(argv=None):
    """
    Parse command-line arguments and run the web server on the loopback
    interface until interrupted.
    """
    parser = create_parser()
    args, extra = parser.parse_known_args(argv)
    setup_logging(get_log_level(args.loglevel))
    if extra:
        logger.debug(f"Ignoring extra arguments: {' '.join(extra)}")

    port = resolve_port(args.port)
    if args.port is not None and not is_numeric(args.port):
        logger.debug(f"Ignoring non-numeric port argument '{args.port}', using {port}")
    if not (1 <= port <= 65535):
        logger.error(f"Port {port} is out of range (1-65535)")
        sys.exit(1)
    config = {"LOOKUP_MODE": args.mode, "LOOKUP_TIMEOUT": args.timeout}

    print(f"Server run on port {port}")
    try:
        run_server(port, host=BIND_HOST, config=config)
    except TemplateError as e:
        logger.error(f"Invalid templates, cannot start server: {e}")
        sys.exit(1)
    except (OSError, OverflowError) as e:
        logger.error(f"Failed to start Flask server on {BIND_HOST}:{port}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
