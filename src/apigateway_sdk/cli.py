"""
Command-line interface for the API Gateway Python SDK
Signs requests for inspection and invokes API Gateway endpoints
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .client import ApiGatewayClient
from .config import ClientConfig
from .exceptions import ApiGatewaySDKError, ResponseError
from .http_clients.retry import create_retry_policy
from .signing.constants import DEFAULT_SERVICE


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='apigw-cli',
        description='API Gateway SDK command-line interface for signing and invoking requests'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'API Gateway Python SDK {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_invoke_parser(subparsers)

    return parser


def add_request_arguments(parser: argparse.ArgumentParser):
    """Add the options shared by every request command."""
    parser.add_argument('path', help='Path below the invoke URL, e.g. /pets')
    parser.add_argument('--invoke-url', required=True, help='Stage invoke URL')
    parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    parser.add_argument('--region', help='AWS region, required when signing')
    parser.add_argument('--service', default=DEFAULT_SERVICE, help=f'Signing service name (default: {DEFAULT_SERVICE})')
    parser.add_argument('--access-key', help='AWS access key')
    parser.add_argument('--secret-key', help='AWS secret key')
    parser.add_argument('--session-token', help='AWS session token')
    parser.add_argument('--api-key', help='API key sent as x-api-key')
    parser.add_argument('--host', help='Host header value used for signing')
    parser.add_argument(
        '--header',
        action='append',
        default=[],
        metavar='NAME:VALUE',
        help='Request header (repeatable)'
    )
    parser.add_argument(
        '--query',
        action='append',
        default=[],
        metavar='NAME=VALUE',
        help='Query parameter (repeatable)'
    )
    parser.add_argument('--data', help='Request body')
    parser.add_argument('--timeout', type=int, default=0, help='Request timeout in milliseconds (0 for default)')
    parser.add_argument('--retries', type=int, default=0, help='Retries after the first attempt (default: 0)')
    parser.add_argument(
        '--retry-delay',
        default=None,
        help="Delay between retries: 'exponential' or milliseconds"
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')


def setup_sign_parser(subparsers):
    """Setup sign subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Print the signed request without sending it')
    add_request_arguments(sign_parser)
    sign_parser.add_argument(
        '--show-canonical',
        action='store_true',
        help='Include the canonical request and string to sign'
    )


def setup_invoke_parser(subparsers):
    """Setup invoke subcommand."""
    invoke_parser = subparsers.add_parser('invoke', help='Send a request and print the response')
    add_request_arguments(invoke_parser)


def parse_pairs(values: List[str], separator: str, label: str) -> Dict[str, str]:
    """
    Parse repeated NAME<sep>VALUE options into a dict.

    Raises:
        ValueError: If an entry has no separator or an empty name
    """
    pairs = {}
    for item in values:
        name, sep, value = item.partition(separator)
        if not sep or not name.strip():
            raise ValueError(f"Invalid {label} {item!r}, expected NAME{separator}VALUE")
        pairs[name.strip()] = value.strip() if separator == ':' else value
    return pairs


def parse_retry_delay(value: Optional[str]) -> Any:
    if value is None or value == 'exponential':
        return value
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid retry delay {value!r}, expected 'exponential' or milliseconds")


def build_client(args) -> ApiGatewayClient:
    """Create a client from parsed command-line arguments."""
    retry_policy = None
    if args.retries:
        retry_policy = create_retry_policy(args.retries, parse_retry_delay(args.retry_delay))

    config = ClientConfig(
        invoke_url=args.invoke_url,
        access_key=args.access_key,
        secret_key=args.secret_key,
        session_token=args.session_token,
        region=args.region,
        service=args.service,
        api_key=args.api_key,
        host=args.host,
        retry_policy=retry_policy,
        debug_logging=args.verbose,
    )
    return ApiGatewayClient(config)


def _body_text(body: Any) -> Optional[str]:
    if isinstance(body, bytes):
        return body.decode('utf-8', errors='replace')
    return body


def handle_sign_command(args) -> int:
    """Handle sign command."""
    client = build_client(args)
    try:
        request = client.build_request(
            args.method,
            args.path,
            body=args.data,
            headers=parse_pairs(args.header, ':', 'header'),
            query_params=parse_pairs(args.query, '=', 'query parameter'),
            timeout=args.timeout,
        )
        signed, signing_result = client.dispatcher.prepare_request(request)

        output = {
            'method': signed.method,
            'url': signed.url,
            'headers': signed.headers,
            'body': _body_text(signed.body),
            'timeout': signed.timeout,
        }
        if args.show_canonical:
            if signing_result is None:
                output['canonical_request'] = None
                output['string_to_sign'] = None
            else:
                output['canonical_request'] = signing_result.canonical_request
                output['string_to_sign'] = signing_result.string_to_sign

        print(json.dumps(output, indent=2))
        return 0
    finally:
        asyncio.run(client.close())


async def _invoke(args):
    async with build_client(args) as client:
        return await client.invoke_api(
            args.method,
            args.path,
            body=args.data,
            headers=parse_pairs(args.header, ':', 'header'),
            query_params=parse_pairs(args.query, '=', 'query parameter'),
            timeout=args.timeout,
        )


def print_response(response):
    print(f"HTTP {response.status_code} {response.reason}".rstrip())
    for name, value in response.headers.items():
        print(f"{name}: {value}")
    print()
    print(response.text)


def handle_invoke_command(args) -> int:
    """Handle invoke command."""
    try:
        response = asyncio.run(_invoke(args))
    except ResponseError as e:
        print(f"Error: {e}", file=sys.stderr)
        print_response(e.response)
        return 1

    print_response(response)
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )

    try:
        if args.command == 'sign':
            return handle_sign_command(args)
        elif args.command == 'invoke':
            return handle_invoke_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except ApiGatewaySDKError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
