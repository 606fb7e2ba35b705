from __future__ import annotations

import argparse
import asyncio
import sys

from sniper_bot.app.bootstrap import build_runtime
from sniper_bot.core.config import load_config
from sniper_bot.core.env import load_dotenv
from sniper_bot.monitoring.logger import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sniper_bot")
    p.add_argument("mode", choices=["run", "once"], help="run: tick forever; once: a single tick")
    p.add_argument("--config", default="configs/default.yaml", help="Path to YAML config")
    p.add_argument("--env-file", default=".env")
    return p


async def _amain(argv: list[str]) -> int:
    args = _build_parser().parse_args(argv)
    load_dotenv(args.env_file)
    cfg = load_config(args.config)
    setup_logging(cfg.logging.level, cfg.logging.file)
    runtime = build_runtime(cfg)
    if args.mode == "once":
        await runtime.run_once()
    else:
        await runtime.run()
    return 0


def main() -> None:
    try:
        rc = asyncio.run(_amain(sys.argv[1:]))
    except KeyboardInterrupt:
        rc = 130
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
