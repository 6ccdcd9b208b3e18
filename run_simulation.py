#!/usr/bin/env python3
"""CLI entrypoint for the token paper-trading simulator.

Usage::

    python run_simulation.py --config config/example.yaml start
    python run_simulation.py --config config/example.yaml trade 0x6b175474e89094c44da98b954eedeac495271d0f
    python run_simulation.py --config config/example.yaml analyze 0x6b175474e89094c44da98b954eedeac495271d0f
    python run_simulation.py --config config/example.yaml end
    python run_simulation.py --config config/example.yaml repl

Session state lives in the configured store between invocations, so
``start``, ``trade`` and ``end`` may be run as separate commands. ``analyze``
needs no session. ``repl`` reads free text ("start simulation", a token
address, "analyze 0x...", "end simulation").
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from agents.registry import available_oracles, create_oracle, describe_oracles
from api_client.market_data.dexscreener import DexScreenerGateway
from models.config import SimulatorConfig
from simulation import messages
from simulation.errors import AlreadyActive, NoActiveSession, SimulationError
from simulation.intent import parse_intent
from simulation.ledger import PortfolioLedger
from simulation.orchestrator import TradeOrchestrator
from simulation.session_store import create_session_store
from simulation.sim_logging import ReportWriter, run_name_from_config_path

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Paper-trade tokens against a simulated WETH bankroll.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to the YAML configuration file (defaults are used when omitted).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        type=str,
        help="Directory where session reports are written (overrides config).",
    )
    parser.add_argument(
        "--oracle",
        default=None,
        type=str,
        help="Decision oracle to use (overrides config): "
        + "; ".join(f"{name} = {summary}" for name, summary in describe_oracles().items()),
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("start", help="Start a simulation session.")
    trade = sub.add_parser("trade", help="Ask the oracle about one token and apply its decision.")
    trade.add_argument("address", help="Token contract address (0x...).")
    analyze = sub.add_parser("analyze", help="Ask the oracle for an overview of one token (no session needed).")
    analyze.add_argument("address", help="Token contract address (0x...).")
    sub.add_parser("end", help="End the session and print the PnL report.")
    sub.add_parser("status", help="Show the active session's portfolio.")
    sub.add_parser("repl", help="Interactive mode driven by free-text commands.")
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_orchestrator(config: SimulatorConfig) -> TradeOrchestrator:
    """Wire the ledger, gateway, oracle and store described by *config*."""
    return TradeOrchestrator(
        ledger=PortfolioLedger(config.reference_asset),
        gateway=DexScreenerGateway(config.market_data, config.reference_asset),
        oracle=create_oracle(config.oracle),
        store=create_session_store(config.store),
        session_key=config.store.session_key,
    )


async def handle_command(
    orchestrator: TradeOrchestrator,
    command: str,
    argument: str,
    writer: ReportWriter,
    reference_symbol: str,
) -> str:
    """Run one command and return the text to show the user."""
    try:
        if command == "start":
            session = await orchestrator.start_session()
            return messages.start_message(session)
        if command == "trade":
            result = await orchestrator.trade(argument)
            return messages.trade_message(result)
        if command == "analyze":
            analysis = await orchestrator.analyze(argument)
            return messages.analysis_message(analysis)
        if command == "end":
            report = await orchestrator.end_session()
            try:
                writer.write_report(report)
            except OSError as exc:
                logger.warning("Could not write session report under %s: %s", writer.run_dir, exc)
            return messages.report_message(report, reference_symbol)
        if command == "status":
            return messages.status_message(orchestrator.status())
    except AlreadyActive:
        return messages.already_active_message()
    except NoActiveSession:
        return messages.not_active_message()
    except SimulationError as exc:
        return messages.error_message(exc, command)
    return "Unrecognized command. Type 'start simulation', a token address, 'analyze <address>', or 'end simulation'."


async def _repl(orchestrator: TradeOrchestrator, writer: ReportWriter, reference_symbol: str) -> None:
    loop = asyncio.get_running_loop()
    print(
        "Type 'start simulation', a token address, 'analyze <address>', 'status', "
        "or 'end simulation'. Ctrl-D to quit."
    )
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        intent = parse_intent(line)
        print(await handle_command(orchestrator, intent.command, intent.argument, writer, reference_symbol))


async def _main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.log_level)

    if args.config:
        logger.info("Loading config from '%s'...", args.config)
        config = SimulatorConfig.from_yaml(args.config)
    else:
        config = SimulatorConfig()
    if args.oracle:
        if args.oracle not in available_oracles():
            logger.error("Unknown oracle '%s'. Available: %s", args.oracle, ", ".join(available_oracles()))
            return 2
        config.oracle.oracle_system = args.oracle
    output_dir = args.output_dir or config.output_dir

    orchestrator = build_orchestrator(config)
    writer = ReportWriter(output_dir, run_name_from_config_path(args.config))
    reference_symbol = config.reference_asset.symbol
    try:
        if args.command == "repl":
            await _repl(orchestrator, writer, reference_symbol)
        else:
            argument = getattr(args, "address", "")
            print(await handle_command(orchestrator, args.command, argument, writer, reference_symbol))
    finally:
        await orchestrator.aclose()
    return 0


def cli() -> None:
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    cli()
