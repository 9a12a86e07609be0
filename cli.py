"""CLI entry point for slack-token-relay.

Runs the relay listener on this machine, or checks the configuration it
would start with.
"""
import argparse
import os
import sys

import uvicorn

from config import load_config, load_env_file
from logging_config import setup_logging
from oauth.errors import ConfigurationError
from oauth.relay import VERSION


def _load_or_exit(host: str = None, port: int = None):
    """Load config from the environment, exiting with status 1 if unusable."""
    load_env_file()
    env = dict(os.environ)
    if host:
        env["HOST"] = host
    if port:
        env["PORT"] = str(port)
    try:
        config = load_config(env)
    except ConfigurationError as e:
        print(f"[X] Invalid configuration: {e.message}", file=sys.stderr)
        sys.exit(1)

    missing = config.missing_credentials()
    if missing:
        print("[X] Missing required environment variables:", file=sys.stderr)
        for name in missing:
            print(f"    {name}", file=sys.stderr)
        print("  Set them in the environment or in a .env file.", file=sys.stderr)
        sys.exit(1)
    return config


def cmd_serve(args):
    """Validate config and run the listener until interrupted."""
    config = _load_or_exit(args.host, args.port)
    setup_logging(config.log_level, config.log_format, secrets=[config.client_secret])

    from main import create_app
    app = create_app(config)

    print(f"Slack User Token Generator v{VERSION}")
    print(f"  Listening on: http://{config.host}:{config.port}")
    print(f"  Callback URL: {config.redirect_uri}")
    print("  Tokens are displayed once and never stored.")
    # log_config=None keeps uvicorn on the root handler set up above
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        log_config=None,
    )


def cmd_check(args):
    """Print the configuration the server would start with."""
    config = _load_or_exit(args.host, args.port)
    print("[OK] Configuration is valid\n")
    for key, value in config.summary().items():
        print(f"  {key:<18} {value}")


def cmd_version(args):
    """Show version information."""
    print(f"slack-token-relay v{VERSION}")


# ============== Main Entry Point ==============

def main(argv=None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="slack-token-relay",
        description="Slack User Token Relay - one-time display of Slack user tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  serve     Start the relay server (default)
  check     Validate configuration and print a summary
  version   Show version

Environment:
  SLACK_CLIENT_ID, SLACK_CLIENT_SECRET   required
  SLACK_REDIRECT_URI                     default http://localhost:{PORT}/auth/callback
  PORT, HOST, SLACK_USER_SCOPES, STATE_TTL_SECONDS, LOG_LEVEL, LOG_FORMAT

Examples:
  slack-token-relay serve --port 8080
  slack-token-relay check
"""
    )

    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "check", "version"],
        help="Command to run (default: serve)"
    )
    parser.add_argument("--host", help="Listen address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Listen port (overrides PORT)")

    args = parser.parse_args(argv)

    commands = {
        "serve": cmd_serve,
        "check": cmd_check,
        "version": cmd_version,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
