# main.py
"""Command line entry point for the TradeVision journal."""
import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from src.config.settings import Settings
from src.journal import JournalManager
from src.journal.models import CandlestickAggregation, PeriodType, TradeLoggingMode, TradingMode


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TradeVision journal report")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--backup", type=Path, default=None, help="Backup JSON to load")
    parser.add_argument("--flows", type=Path, default=None, help="Logical edge flow export to load")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in TradeLoggingMode],
        default=None,
        help="Journal view, settings default if omitted",
    )
    parser.add_argument("--start", type=date.fromisoformat, default=None)
    parser.add_argument("--end", type=date.fromisoformat, default=None)
    parser.add_argument("--period", choices=[p.value for p in PeriodType], default=None)
    parser.add_argument(
        "--aggregation", choices=[a.value for a in CandlestickAggregation], default=None
    )
    parser.add_argument("--export-csv", type=Path, default=None, help="Write trades to this CSV")
    return parser.parse_args(argv)


def load_settings(config_path: Path) -> Settings:
    """Load settings, falling back to defaults when no YAML file exists.

    Raises:
        SystemExit: If the YAML file exists but cannot be parsed.
    """
    load_dotenv()
    logger.info("✓ Loaded environment variables")

    if not config_path.exists():
        logger.info(f"{config_path} not found, using default settings")
        return Settings.from_dict({})

    try:
        settings = Settings.from_yaml(config_path)
        logger.info(f"✓ Settings loaded from {config_path}")
    except Exception as e:
        logger.error(f"Failed to parse {config_path}: {e}")
        sys.exit(1)

    return settings


def print_startup_banner(settings: Settings) -> None:
    """Print system startup banner."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.system.name}")
    logger.info(f"Mode: {settings.system.mode.value}")
    logger.info(f"Version: {settings.system.version}")
    logger.info("=" * 60)


def log_report(report: dict) -> None:
    metrics = report["metrics"]
    logger.info(f"Trades: {metrics.trade_count} ({metrics.wins}W / {metrics.losses}L)")
    logger.info(f"Win rate: {metrics.win_rate:.2f}%")
    logger.info(f"Net P&L: {metrics.net_pnl:.2f}")
    logger.info(f"Profit factor: {metrics.profit_factor:.2f}")
    logger.info(f"Risk/reward: {metrics.risk_reward_ratio:.2f}")

    for row in report["periodic"]:
        logger.info(f"  {row.period}: {row.trade_count} trades, P&L {row.net_pnl:.2f}")

    streaks = report["streaks"]
    logger.info(f"Longest win streak: {streaks.longest_win_streak}, longest loss streak: {streaks.longest_loss_streak}")
    logger.info(f"Max drawdown: {report['drawdown'].max_drawdown:.2f}")


async def run(args: argparse.Namespace) -> None:
    settings = load_settings(args.config)
    print_startup_banner(settings)

    manager = JournalManager(settings=settings.journal, flow_settings=settings.flows)
    await manager.load_backup(args.backup)
    logger.info("✓ Journal loaded")

    mode = TradeLoggingMode(args.mode) if args.mode else settings.system.mode
    if args.flows:
        flows_mode = TradingMode.THEORETICAL if mode is TradeLoggingMode.THEORETICAL else TradingMode.REAL
        await manager.load_flows(flows_mode, args.flows)
        logger.info(f"✓ {len(manager.state.flows_for(mode))} logical edge flows available")

    report = manager.get_report(
        mode,
        start=args.start,
        end=args.end,
        period=PeriodType(args.period) if args.period else None,
        aggregation=CandlestickAggregation(args.aggregation) if args.aggregation else None,
    )
    log_report(report)

    if args.export_csv:
        path = await manager.export_csv(mode, args.export_csv)
        logger.info(f"✓ CSV written to {path}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(run(args))
    except ValueError as e:
        logger.error(f"Journal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
