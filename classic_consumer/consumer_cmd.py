"""
Command line utility for the classic API consumer.

Run with `python -m classic_consumer.consumer_cmd $@`.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

from prometheus_client import start_http_server

from .config import as_display_dict, from_environment
from .consumer import ClassicConsumer
from .log_format import StructuredFormatter

Namespace = argparse.Namespace

ExitCode = int
EXIT_OK = 0
EXIT_ERROR = 1

# -----------------------------------------------------------------------------

def parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Convert a list of KEY=VALUE strings into a dictionary."""
    params: Dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected KEY=VALUE but got '{pair}'")
        key, value = pair.split("=", 1)
        params[key] = value
    return params


def print_dict_as_pretty_json(d: Dict[str, Any]) -> None:
    """Print the provided Dict as pretty-print JSON."""
    print(json.dumps(d, indent=4, sort_keys=True))


def print_result(result: Optional[str]) -> ExitCode:
    """Print a result if there is one; the exit code says whether there was."""
    if result is None:
        print("No result; see the log for details.", file=sys.stderr)
        return EXIT_ERROR
    print(result)
    return EXIT_OK

# -----------------------------------------------------------------------------

async def assertion(args: Namespace) -> ExitCode:
    """Create a token request assertion and display its verified claims."""
    jwt_util = args.di["consumer"].jwt_util
    signed = jwt_util.create_token_request_assertion(args.member_id)
    if signed is None:
        return print_result(None)
    print(signed)
    print_dict_as_pretty_json(jwt_util.verify_assertion(signed))
    return EXIT_OK


async def display_config(args: Namespace) -> ExitCode:
    """Display the configuration provided to the application."""
    config = as_display_dict(args.di["config"])
    if args.json:
        print_dict_as_pretty_json(config)
    else:
        for key in config:
            print(f"{key}:\t\t{config[key]}")
    return EXIT_OK


async def get(args: Namespace) -> ExitCode:
    """GET a resource from the classic API on behalf of a member."""
    params = parse_params(args.param)
    result = await args.di["consumer"].do_classic_api_get(args.member_id, args.host_and_path, params)
    return print_result(result)


async def post(args: Namespace) -> ExitCode:
    """POST content to the classic API on behalf of a member."""
    if args.body_file:
        content_body = Path(args.body_file).read_text()
    else:
        content_body = args.body
    result = await args.di["consumer"].do_classic_api_post(args.member_id, args.host_and_path, content_body)
    return print_result(result)


async def token(args: Namespace) -> ExitCode:
    """Obtain an access token on behalf of a member."""
    result = await args.di["consumer"].get_access_token_only(args.member_id)
    return print_result(result)

# -----------------------------------------------------------------------------

def configure_logging(component_name: str, log_level: str) -> None:
    """Send structured logging for the application to stderr."""
    structured_formatter = StructuredFormatter(
        component_type='ClassicConsumer',
        component_name=component_name,
        ndjson=True)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(structured_formatter)
    root_logger = logging.getLogger(None)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.addHandler(stream_handler)


def create_parser(di: Dict[str, Any]) -> argparse.ArgumentParser:
    """Define the command line interface."""
    parser = argparse.ArgumentParser(prog="classic-consumer")
    parser.set_defaults(di=di)
    parser.add_argument("--metrics-port",
                        dest="metrics_port",
                        help="expose prometheus metrics on this port",
                        type=int)
    subparser = parser.add_subparsers(help='command help')

    # define a subparser for the 'assertion' subcommand
    parser_assertion = subparser.add_parser('assertion', help='create a signed token request assertion')
    parser_assertion.add_argument("member_id", help="member on whose behalf to assert")
    parser_assertion.set_defaults(func=assertion)

    # define a subparser for the 'display-config' subcommand
    parser_display_config = subparser.add_parser('display-config', help='display environment configuration')
    parser_display_config.add_argument("--json",
                                       help="display output in JSON",
                                       action="store_true")
    parser_display_config.set_defaults(func=display_config)

    # define a subparser for the 'get' subcommand
    parser_get = subparser.add_parser('get', help='GET a classic API resource')
    parser_get.add_argument("member_id", help="member on whose behalf to call")
    parser_get.add_argument("host_and_path", help="host and path of the resource")
    parser_get.add_argument("--param",
                            help="query parameter as KEY=VALUE",
                            action="append")
    parser_get.set_defaults(func=get)

    # define a subparser for the 'post' subcommand
    parser_post = subparser.add_parser('post', help='POST to a classic API resource')
    parser_post.add_argument("member_id", help="member on whose behalf to call")
    parser_post.add_argument("host_and_path", help="host and path of the resource")
    body_group = parser_post.add_mutually_exclusive_group()
    body_group.add_argument("--body",
                            help="content body to send",
                            default="")
    body_group.add_argument("--body-file",
                            dest="body_file",
                            help="file containing the content body to send")
    parser_post.set_defaults(func=post)

    # define a subparser for the 'token' subcommand
    parser_token = subparser.add_parser('token', help='obtain an access token')
    parser_token.add_argument("member_id", help="member on whose behalf to obtain a token")
    parser_token.set_defaults(func=token)

    return parser


async def main(argv: Optional[List[str]] = None) -> ExitCode:
    """Process a request from the Command Line."""
    # create a dictionary that we can inject dependencies into later if necessary
    di: Dict[str, Any] = {}
    parser = create_parser(di)

    # parse the provided command line arguments and call the function
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_usage()
        return EXIT_OK
    try:
        # load and inject the dependencies needed by the command
        config = from_environment()
        configure_logging(config.COMPONENT_NAME, config.LOG_LEVEL)
        if args.metrics_port:
            start_http_server(args.metrics_port)
        di["config"] = config
        async with ClassicConsumer(config, logging.getLogger("classic_consumer")) as consumer:
            di["consumer"] = consumer
            # execute the command indicated by the user
            return await args.func(args)
    except Exception as e:
        print(e, file=sys.stderr)
        return EXIT_ERROR


def main_sync() -> None:
    """Run the command line utility and exit with its exit code."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    main_sync()
