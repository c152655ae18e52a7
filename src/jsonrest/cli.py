"""Command-line interface for jsonrest."""

import argparse
import json
import sys
import threading
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from . import __version__
from .core.client import Client
from .http.protocols import HttpMethod
from .logging_config import setup_logging
from .models.config import ClientConfig
from .models.response import Response


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="jsonrest",
        description="Send JSON HTTP requests and print the normalized response",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Blocking GET with repeated query parameters
  jsonrest https://httpbin.org/get -p trial=true -p error=true -p error=false

  # POST a JSON body
  jsonrest https://httpbin.org/post -X POST -d test=true -d name=demo

  # Deliver responses through callbacks instead of blocking
  jsonrest https://httpbin.org/status/200 https://httpbin.org/status/404 --async
        """,
    )

    parser.add_argument(
        "urls",
        nargs="+",
        metavar="URL",
        help="URL(s) to request",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    request_group = parser.add_argument_group("request")
    request_group.add_argument(
        "--method",
        "-X",
        type=str.upper,
        choices=[m.value for m in HttpMethod],
        default=HttpMethod.GET.value,
        help="Request method (default: GET)",
    )
    request_group.add_argument(
        "--param",
        "-p",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter for GET/DELETE; repeat a key to send a list",
    )
    request_group.add_argument(
        "--data",
        "-d",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="JSON body field for POST/PUT/PATCH; values are parsed as JSON when possible",
    )
    request_group.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra request header",
    )
    request_group.add_argument(
        "--async",
        dest="use_callback",
        action="store_true",
        help="Use the callback call style instead of blocking",
    )

    settings_group = parser.add_argument_group("settings")
    settings_group.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML client configuration file",
    )
    settings_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Total request timeout in seconds (default: none)",
    )
    settings_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config, INFO)",
    )
    settings_group.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file",
    )

    return parser


def _split_pair(raw: str, sep: str) -> tuple[str, str]:
    key, found, value = raw.partition(sep)
    if not found or not key.strip():
        raise ValueError(f"Expected KEY{sep}VALUE, got {raw!r}")
    return key.strip(), value.strip()


def parse_params(pairs: list[str]) -> dict[str, Any]:
    """Parse KEY=VALUE query parameters; repeated keys collect into a list."""
    params: dict[str, Any] = {}
    for raw in pairs:
        key, value = _split_pair(raw, "=")
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


def parse_data(pairs: list[str]) -> dict[str, Any]:
    """Parse KEY=VALUE body fields, decoding each value as JSON when it is valid JSON."""
    data: dict[str, Any] = {}
    for raw in pairs:
        key, value = _split_pair(raw, "=")
        try:
            data[key] = json.loads(value)
        except ValueError:
            data[key] = value
    return data


def parse_headers(pairs: list[str]) -> dict[str, str]:
    """Parse 'Name: value' headers."""
    return dict(_split_pair(raw, ":") for raw in pairs)


def load_config(args: argparse.Namespace) -> ClientConfig:
    """Build the client config from an optional YAML file plus CLI overrides."""
    config = ClientConfig.from_yaml_file(args.config) if args.config else ClientConfig()

    overrides: dict[str, Any] = {}
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_file:
        overrides["log_file"] = args.log_file
    if overrides:
        config = ClientConfig.model_validate({**config.model_dump(), **overrides})
    return config


def print_response(console: Console, url: str, response: Response) -> None:
    """Render one response."""
    style = "green" if response.ok else "red"
    console.print(f"[bold {style}]{url}[/bold {style}]")
    console.print(response.render(), markup=False, highlight=False)
    console.print()


def run_requests(args: argparse.Namespace) -> int:
    """Issue the requested calls and print each response."""
    console = Console()

    try:
        config = load_config(args)
        params = parse_params(args.param)
        data = parse_data(args.data)
        headers = parse_headers(args.header)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        include_aiohttp=config.log_level == "DEBUG",
    )

    method = HttpMethod(args.method)
    request_kwargs: dict[str, Any] = {"headers": headers}
    if method.has_body:
        request_kwargs["data"] = data
    else:
        request_kwargs["params"] = params

    failures = 0
    with Client(config) as client:
        for url in args.urls:
            if args.use_callback:
                done = threading.Event()
                delivered: list[Response] = []

                def on_complete(response: Response) -> None:
                    delivered.append(response)
                    done.set()

                client.request(method, url, on_complete=on_complete, **request_kwargs)
                done.wait()
                response = delivered[0]
            else:
                response = client.request(method, url, **request_kwargs)

            print_response(console, url, response)
            if not response.ok:
                failures += 1

    return 0 if failures == 0 else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_requests(args)


if __name__ == "__main__":
    sys.exit(main())
