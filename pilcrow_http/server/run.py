import argparse
from typing import List, Optional

from pilcrow_http.errors import ConfigError
from pilcrow_http.server.config import ServerConfig, load_config
from pilcrow_http.server.logutil import setup as setup_logging
from pilcrow_http.server.main import ServerRunner


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="pilcrow-http", description="pilcrow-http server")
    sub = p.add_subparsers(dest="cmd", required=True)
    serve = sub.add_parser("serve", help="Serve an App over the socket transport")
    serve.add_argument("--config", help="Path to TOML config file")
    serve.add_argument("--host", help="Listen address")
    serve.add_argument("--port", type=int, help="Listen port")
    serve.add_argument("--app", help="App to serve, as module:attr")
    serve.add_argument("--plugin", action="append", default=[], help="Module with register(app); repeatable")
    serve.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING)")
    serve.add_argument("--quiet", action="store_true", help="Reduce logging output")
    return p.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> ServerConfig:
    cfg = load_config(args.config) if args.config else ServerConfig()
    if args.host:
        cfg.host = args.host
    if args.port is not None:
        cfg.port = args.port
    if args.app:
        cfg.app = args.app
    if args.plugin:
        cfg.plugins = cfg.plugins + list(args.plugin)
    if args.log_level:
        cfg.log_level = args.log_level.upper()
    if args.quiet:
        cfg.log_level = "WARNING"
    return cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = resolve_config(args)
    except (ConfigError, OSError) as e:
        raise SystemExit(f"pilcrow-http: {e}")
    setup_logging(cfg.log_level)
    ServerRunner(cfg).start()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
