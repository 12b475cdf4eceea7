"""
Command line entry point for the Sieve language server.

Usage
-----
    sieve-lsp                      # serve over stdin/stdout (editors)
    sieve-lsp --tcp 2087           # serve one client on 127.0.0.1:2087
    sieve-lsp --log-level debug    # verbose logging to stderr
"""
from __future__ import annotations

import argparse
import logging
import sys

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='sieve-lsp',
        description='Language Server (LSP) for Sieve mail filtering scripts.',
    )
    transport = p.add_mutually_exclusive_group()
    transport.add_argument(
        '--stdio',
        action='store_true',
        help='Talk LSP over stdin/stdout (the default)',
    )
    transport.add_argument(
        '--tcp',
        metavar='PORT',
        type=int,
        help='Listen on a TCP port instead, for attaching a debugger or client by hand',
    )
    p.add_argument(
        '--host',
        default='127.0.0.1',
        help='Interface to bind with --tcp (default: 127.0.0.1)',
    )
    p.add_argument(
        '--log-level',
        metavar='LEVEL',
        type=str.upper,
        default='WARNING',
        choices=LOG_LEVELS,
        help='Minimum level of messages written to stderr (default: WARNING)',
    )
    p.add_argument('--version', action='store_true', help='Print the version and exit')
    return p


def sievelsp(argv: list[str] | None = None) -> None:
    """Entry point for the ``sieve-lsp`` command."""
    args = _build_parser().parse_args(argv)

    from sievelsp import __version__

    if args.version:
        print(f'sieve-lsp {__version__}')
        sys.exit(0)

    # stdout carries the protocol, so logs must only go to stderr
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    from sievelsp.server import server

    log = logging.getLogger(__name__)
    if args.tcp is not None:
        log.info('sieve-lsp %s listening on %s:%d', __version__, args.host, args.tcp)
        server.start_tcp(args.host, args.tcp)
    else:
        log.info('sieve-lsp %s serving on stdio', __version__)
        server.start_io()


if __name__ == '__main__':
    sievelsp()
