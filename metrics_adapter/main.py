#!/usr/bin/env python3
"""
nrql-metrics-adapter server entry point

Loads the YAML config, builds the provider and serves the external
metrics API with uvicorn.
"""

import argparse

import uvicorn

from .core.config import load_config_from
from .core.server import create_app


def main():
    """Main entry point for the metrics adapter."""
    parser = argparse.ArgumentParser(description="New Relic external metrics adapter")
    parser.add_argument("-c", "--config", help="Path to YAML config", default="config.yaml")
    parser.add_argument("--cert", help="TLS certificate file")
    parser.add_argument("--key", help="TLS private key file")
    args = parser.parse_args()

    config = load_config_from(args.config)
    app = create_app(config)

    uvicorn_kwargs = {
        "host": config.host,
        "port": config.port,
        "reload": False,
        "access_log": False,
        "log_level": config.log_level.lower(),
    }

    if args.cert and args.key:
        uvicorn_kwargs.update({
            "ssl_certfile": args.cert,
            "ssl_keyfile": args.key,
        })

    uvicorn.run(app, **uvicorn_kwargs)


if __name__ == "__main__":
    main()
