#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "requests",
#     "python-dotenv",
#     "pyyaml",
#     "psutil",
# ]
# ///

# Host hook entry point
# Receives a lifecycle event on stdin, forwards it to the API server and prints
# the hook's response on stdout for the host to act on

import asyncio
import json
import sys
import requests
from typing import Dict, Any, Optional, Tuple
from config import config
from utils.constants import NetworkConstants, get_server_url
from utils.hooks_constants import is_valid_hook_event
from utils.colored_logger import setup_logger, configure_root_logging

configure_root_logging()
logger = setup_logger(__name__)

RESERVED_KEYS = ("session_id", "hook_event_name", "payload")


def read_json_from_stdin() -> Dict[Any, Any]:
    """Read and parse JSON data from stdin."""
    try:
        data = sys.stdin.read()
        if not data.strip():
            raise ValueError("No data received from stdin")

        parsed = json.loads(data)
        if not isinstance(parsed, dict):
            raise ValueError("Expected a JSON object")
        return parsed
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON format - {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error reading from stdin: {e}")
        sys.exit(1)


def parse_custom_arguments(argv=None) -> Dict[str, Any]:
    """
    Parse any --key=value or --flag arguments dynamically.
    This makes the script scalable for future parameter additions.
    """
    arguments: Dict[str, Any] = {}
    for arg in (sys.argv[1:] if argv is None else argv):
        if not arg.startswith("--"):
            continue
        key = arg[2:]
        if "=" in key:
            key, value = key.split("=", 1)
            arguments[key.replace("-", "_")] = value
        else:
            arguments[key.replace("-", "_")] = True
    return arguments


def build_event(
    data: Dict[str, Any], arguments: Dict[str, Any]
) -> Tuple[str, str, Dict[str, Any]]:
    """
    Work out (event name, session id, payload) from stdin data and CLI flags.

    Flags win over the JSON body. Without an explicit "payload" key every
    non-reserved key of the body is treated as payload.
    """
    event_name = str(arguments.get("event") or data.get("hook_event_name") or "")
    session_id = str(arguments.get("session_id") or data.get("session_id") or "default")

    payload = data.get("payload")
    if not isinstance(payload, dict):
        payload = {k: v for k, v in data.items() if k not in RESERVED_KEYS}
    return event_name, session_id, payload


def send_to_api(
    event_name: str, session_id: str, payload: Dict[str, Any], port: int
) -> Any:
    """Send event data to the API endpoint and return the hook response."""
    response = requests.post(
        get_server_url(port, "/events"),
        json={
            "session_id": session_id,
            "hook_event_name": event_name,
            "payload": payload,
        },
        timeout=NetworkConstants.REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    return response.json().get("response")


def dispatch_locally(event_name: str, session_id: str, payload: Dict[str, Any]) -> Any:
    """
    Dispatch in-process with a fresh session store.

    Shell gating and permission decisions are stateless, so they are identical
    to the server's. Edited-file tracking does not survive the process.
    """
    from app.event_processor import EventDispatcher

    return asyncio.run(
        EventDispatcher(settings=config).dispatch_raw(event_name, session_id, payload)
    )


def handle(data: Dict[str, Any], arguments: Dict[str, Any]) -> Optional[Any]:
    event_name, session_id, payload = build_event(data, arguments)
    if not event_name:
        logger.error("No hook event name given (use --event=<name> or hook_event_name)")
        return None

    if not is_valid_hook_event(event_name):
        logger.warning(f"Ignoring unknown hook event: {event_name}")
        return None

    if arguments.get("local"):
        return dispatch_locally(event_name, session_id, payload)

    port = int(arguments.get("port") or config.port)
    try:
        return send_to_api(event_name, session_id, payload, port)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Hook server unreachable ({e}), dispatching in-process")
        return dispatch_locally(event_name, session_id, payload)


def main():
    """Main function to handle the hook process."""
    arguments = parse_custom_arguments()
    data = read_json_from_stdin()

    response = handle(data, arguments)
    if response is not None:
        sys.stdout.write(json.dumps(response))
        sys.stdout.write("\n")


if __name__ == "__main__":
    main()
