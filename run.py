"""Development runner.
Usage: python run.py [--config weeklies.yaml]  (reads .env if present)
Set DEV_CREATE_ALL=1 to auto-create tables (development only).
"""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from weeklies import create_app

load_dotenv()


def main() -> None:  # pragma: no cover
    parser = argparse.ArgumentParser(description="Run the weeklies development server")
    parser.add_argument("--config", help="YAML configuration file (overrides WEEKLIES_CONFIG)")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()
    if args.config:
        os.environ["WEEKLIES_CONFIG"] = args.config
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    app = create_app()
    cfg = app.weeklies_config  # type: ignore[attr-defined]
    app.logger.info("Listening at http://%s:%s/...", cfg.listen_address, cfg.listen_port)
    app.run(debug=args.debug, host=cfg.listen_address, port=cfg.listen_port, threaded=True)


if __name__ == "__main__":  # pragma: no cover
    main()
