"""
Entry point for the cross-exchange arbitrage monitor.

Usage:
    python -m crossarb
    crossarb  # if installed via pip
"""

import asyncio
import sys


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from crossarb import __version__
    from crossarb.config.settings import get_settings
    from crossarb.core.engine import create_engine
    from crossarb.telemetry.logger import setup_logging

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     CROSS-EXCHANGE ARBITRAGE MONITOR v{__version__:<18}      ║
║                                                               ║
║     Read-only opportunity scanner for spot markets            ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nSettings are read from the environment or a .env file, e.g.:")
        print('  EXCHANGE_CREDENTIALS={"binance": {"api_key": "...", "secret": "..."}}')
        print('  WATCH_PAIRS=["BTC/USDT", "ETH/USDT"]')
        return 1

    use_uvloop = settings.use_uvloop and sys.platform != "win32"

    print("Configuration:")
    print(f"  Exchanges:      {', '.join(settings.scan_exchanges())}")
    print(f"  Credentialed:   {', '.join(settings.credentialed_exchanges) or 'none'}")
    print(f"  Pairs:          {', '.join(settings.watch_pairs)}")
    print(f"  Trade amount:   {settings.trade_amount_quote} (quote)")
    print(f"  Min profit:     {settings.min_profit_percentage}%")
    print(f"  Risk level:     {settings.risk_level}")
    print(f"  Refresh:        {settings.refresh_rate_sec}s")
    print(f"  Telegram:       {'Enabled' if settings.telegram_enabled else 'Disabled'}")
    print(f"  uvloop:         {'Enabled' if use_uvloop else 'Disabled'}")
    print()

    async_logger = setup_logging(settings.log_level, settings.log_file)

    async def run_engine() -> int:
        try:
            async with create_engine(settings) as engine:
                await engine.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

    try:
        if use_uvloop:
            import uvloop

            return uvloop.run(run_engine())
        return asyncio.run(run_engine())
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
