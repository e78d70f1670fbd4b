import argparse
import asyncio

from core.errors import CoinbaseError
from core.initialization import initialize_components, load_configuration


async def run_cashier(env_path: str, rate: str | None = None) -> None:
    """
    Entrypoint coroutine: load the configuration, connect to Coinbase and
    report the cashier wallet balances (plus one spot rate when asked).
    """
    config = load_configuration(env_path)
    components = initialize_components(config)
    logger = components["logger"]

    async with components["client"] as client:
        for code, wallet in client.get_cashier_accounts().items():
            logger.info("%s wallet %s: balance %s", code, wallet.id, wallet.balance)

        if rate:
            base, _, quote = rate.upper().partition("-")
            amount = await client.get_exchange_rate(base, quote)
            logger.info("1 %s = %s %s", base, amount, quote)


def main():
    parser = argparse.ArgumentParser(description="Check Coinbase cashier wallets.")
    parser.add_argument("--env", default="config.env", help="path to the .env file")
    parser.add_argument("--rate", help="spot rate to print, e.g. BTC-EUR")
    args = parser.parse_args()
    try:
        asyncio.run(run_cashier(args.env, args.rate))
    except CoinbaseError as e:
        print(f"❌ Cashier check failed: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
