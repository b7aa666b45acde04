from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
from typing import Optional, Sequence

from ultron_core.agents.orchestrator import Orchestrator
from ultron_core.config.loader import resolve_run_config
from ultron_core.config.run_config import RunConfig
from ultron_core.config.settings import CONFIG_FILE_ENV, config_file_path, load_settings, write_default_config
from ultron_core.domain.exceptions import ConfigError, PersistenceError
from ultron_core.infrastructure.logging.logger import logger, setup_logger
from ultron_core.infrastructure.storage.json_store import JsonConversationStore
from ultron_core.infrastructure.turtle.gateway import TurtleGateway
from ultron_core.providers import ChatBackend, create_backend


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ultron", description="LLM control loop for a remote turtle.")
    parser.add_argument("--config", help=f"Path to config.yaml (defaults to ${CONFIG_FILE_ENV} or ./config.yaml)")
    parser.add_argument("--backend", choices=["openai", "deepseek", "custom"], help="Override the configured backend")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Read operator commands from stdin and pass them to the model with the next state",
    )
    parser.add_argument("--fresh", action="store_true", help="Discard saved conversation history before starting")
    return parser


def _startup(args: argparse.Namespace) -> tuple[RunConfig, ChatBackend]:
    if args.config:
        os.environ[CONFIG_FILE_ENV] = args.config
    path = config_file_path()
    if not path.exists():
        write_default_config(path)
        print(f"Config file not found. Created a default one at {path}.", file=sys.stderr)

    overrides = {}
    if args.backend:
        overrides["backend"] = args.backend
    if args.debug:
        overrides["debug"] = True
    settings = load_settings(**overrides)
    setup_logger(settings)
    logger.info("Starting Ultron-AI...")
    run_config = resolve_run_config(settings)
    return run_config, create_backend(run_config.backend)


def _read_operator_input(orchestrator: Orchestrator) -> None:
    for line in sys.stdin:
        if orchestrator.stopped:
            break
        orchestrator.submit_human_input(line)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run_config, backend = _startup(args)
    except ConfigError as exc:
        logger.error("startup.config_error", extra={"extra": {"code": exc.code, "error": exc.message}})
        print(f"ultron: configuration error [{exc.code}]: {exc.message}", file=sys.stderr)
        return 1

    store = JsonConversationStore()
    if args.fresh:
        try:
            store.clear(run_config.loop.history_file)
        except PersistenceError as exc:
            logger.warning("startup.fresh.failed", extra={"extra": {"error": exc.message}})

    orchestrator = Orchestrator(
        store=store,
        backend=backend,
        gateway=TurtleGateway(run_config.turtle),
        config=run_config.loop,
    )

    def _handle_signal(signum, _frame):
        logger.info("shutdown.signal", extra={"extra": {"signal": signum}})
        orchestrator.stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    if args.interactive:
        threading.Thread(target=_read_operator_input, args=(orchestrator,), name="operator-input", daemon=True).start()

    completed = orchestrator.run()
    logger.info("Task completed successfully." if completed else "Stopped before task completion.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
