"""Command line interface for reading chain state, the tip store, and tipping.

Usage:
    tipjar network
    tipjar balance 0x26d6a3805cbae5d5a510443a15129bec456cacff
    tipjar send --to 0x26d6... --amount 0.5 --creator-id 2
"""

import argparse
import asyncio
import sys

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from tipjar.errors import InvalidRecipient, StoreError, TipJarError
from tipjar.helpers.config import get_rpc_url, get_store_url, load_chain_config
from tipjar.helpers.http import create_http_client, retry_with_backoff
from tipjar.helpers.logging import get_logger, set_log_level
from tipjar.helpers.parsers import format_address, from_base_units, is_valid_address
from tipjar.helpers.rpc import RPCClient
from tipjar.tips.flow import TipFlow
from tipjar.tips.orchestrator import TipOrchestrator
from tipjar.tips.reconciler import TipLedgerReconciler
from tipjar.tips.store import TipStoreClient
from tipjar.wallet.provider import ProviderBridge
from tipjar.wallet.rpc_provider import JsonRpcProvider
from tipjar.wallet.session import SessionController


if TYPE_CHECKING:
    import httpx

    from tipjar.tips.models import TipRecord
    from tipjar.wallet.models import ChainConfig


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_RECORDED = 3


def _require_address(address: str) -> str:
    if not is_valid_address(address):
        msg = f"Invalid address: {address!r}"
        raise InvalidRecipient(msg)
    return address


def _records_table(title: str, records: "list[TipRecord]", symbol: str) -> Table:
    table = Table(title=title)
    table.add_column("Time")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Tx")
    for record in records:
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            format_address(record.from_address),
            format_address(record.to_address),
            f"{record.amount} {symbol}",
            record.status.value,
            format_address(record.tx_hash),
        )
    return table


class TipJarCLI:
    """Wires configuration, clients and console output for each command."""

    def __init__(
        self,
        chain: "ChainConfig",
        rpc_client: RPCClient,
        store: TipStoreClient,
        console: Console | None = None,
    ) -> None:
        self.chain = chain
        self.rpc_client = rpc_client
        self.store = store
        self.console = console or Console()

    async def network(self, client: "httpx.AsyncClient") -> int:
        info = await retry_with_backoff()(self.rpc_client.get_network_info)(client)
        table = Table(title="Network")
        table.add_column("Field")
        table.add_column("Value")
        table.add_row("Chain id", info.chain_id)
        table.add_row("Block", str(info.block_number))
        table.add_row("Gas price", f"{from_base_units(info.gas_price, 9)} gwei")
        self.console.print(table)
        if not self.chain.matches(info.chain_id):
            self.console.print(
                f"[yellow]Endpoint serves {info.chain_id}, "
                f"expected {self.chain.chain_id_hex}[/yellow]"
            )
        return EXIT_OK

    async def balance(self, client: "httpx.AsyncClient", address: str) -> int:
        address = _require_address(address)
        read_balance = retry_with_backoff()(self.rpc_client.get_balance)
        read_nonce = retry_with_backoff()(self.rpc_client.get_transaction_count)
        balance_wei = await read_balance(client, address)
        nonce = await read_nonce(client, address)
        self.console.print(
            f"{address}: [bold]{from_base_units(balance_wei, self.chain.decimals)} "
            f"{self.chain.currency.symbol}[/bold] ({balance_wei} base units), "
            f"nonce {nonce}"
        )
        return EXIT_OK

    async def transaction(self, client: "httpx.AsyncClient", tx_hash: str) -> int:
        transaction = await self.rpc_client.get_transaction(client, tx_hash)
        if transaction is None:
            self.console.print(f"[yellow]Transaction {tx_hash} not found[/yellow]")
            return EXIT_ERROR
        receipt = await self.rpc_client.get_transaction_receipt(client, tx_hash)
        self.console.print_json(data={"transaction": transaction, "receipt": receipt})
        return EXIT_OK

    async def creators(self, client: "httpx.AsyncClient") -> int:
        creators = await retry_with_backoff()(self.store.get_creators)(client)
        table = Table(title="Creators")
        table.add_column("Id")
        table.add_column("Name")
        table.add_column("Address")
        table.add_column("Tips", justify="right")
        table.add_column("Total", justify="right")
        for creator in creators:
            table.add_row(
                creator.id,
                creator.name,
                format_address(creator.address),
                str(creator.tip_count),
                f"{creator.total_tips} {self.chain.currency.symbol}",
            )
        self.console.print(table)
        return EXIT_OK

    async def history(self, client: "httpx.AsyncClient", address: str | None) -> int:
        if address is None:
            records = await retry_with_backoff()(self.store.get_transactions)(client)
            title = "All tips"
        else:
            address = _require_address(address)
            records = await retry_with_backoff()(self.store.get_history)(
                client, address
            )
            title = f"Tips for {format_address(address)}"
        if not records:
            self.console.print("[yellow]No tips yet[/yellow]")
            return EXIT_OK
        self.console.print(_records_table(title, records, self.chain.currency.symbol))
        return EXIT_OK

    async def send(
        self,
        client: "httpx.AsyncClient",
        *,
        recipient: str | None,
        amount: str,
        creator_id: str | None,
        wallet_rpc_url: str,
        switch_network: bool,
    ) -> int:
        if recipient is None:
            if creator_id is None:
                msg = "Either --to or --creator-id is required"
                raise InvalidRecipient(msg)
            recipient = (await self.store.get_creator(client, creator_id)).address

        async with JsonRpcProvider(RPCClient(wallet_rpc_url)) as provider:
            bridge = ProviderBridge(provider)
            controller = SessionController(bridge, self.rpc_client, client, self.chain)
            with controller.watch():
                session = await controller.connect()
                if not controller.is_correct_network and switch_network:
                    await controller.switch_network()

                orchestrator = TipOrchestrator(
                    bridge, self.rpc_client, client, self.chain
                )
                reconciler = TipLedgerReconciler(self.store, client)
                outcome = await TipFlow(orchestrator, reconciler).send(
                    session, recipient, amount, creator_id=creator_id
                )

        self.console.print(f"[green]Transaction sent:[/green] {outcome.tx_hash}")
        if not outcome.recorded:
            self.console.print(
                f"[yellow]Warning: {outcome.recording_error}. "
                "Do not send again.[/yellow]"
            )
            return EXIT_NOT_RECORDED
        if outcome.record is not None:
            self.console.print(
                f"Recorded tip {outcome.record.id} ({outcome.record.status.value})"
            )
        return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tipjar",
        description="Tip creators in the native token and inspect tip history",
    )
    parser.add_argument("--rpc-url", help="Chain JSON-RPC endpoint (TIPJAR_RPC_URL)")
    parser.add_argument("--api-url", help="Tip store API base URL (TIPJAR_API_URL)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (TIPJAR_LOG_LEVEL)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("network", help="Show chain id, block and gas price")

    balance = commands.add_parser("balance", help="Show balance and nonce")
    balance.add_argument("address")

    tx = commands.add_parser("tx", help="Show a transaction and its receipt")
    tx.add_argument("tx_hash")

    commands.add_parser("creators", help="List registered creators")

    history = commands.add_parser("history", help="List recorded tips")
    history.add_argument("address", nargs="?", help="Only tips from or to this address")

    send = commands.add_parser("send", help="Send a tip and record it")
    send.add_argument("--to", dest="recipient", help="Recipient address")
    send.add_argument("--amount", required=True, help="Amount, e.g. 0.5")
    send.add_argument("--creator-id", help="Creator to credit (and recipient if --to is omitted)")
    send.add_argument(
        "--wallet-rpc-url",
        help="Node holding the sending account (defaults to --rpc-url)",
    )
    send.add_argument(
        "--switch-network",
        action="store_true",
        help="Ask the wallet to switch chains before sending",
    )
    return parser


async def run(args: argparse.Namespace, console: Console | None = None) -> int:
    chain = load_chain_config()
    rpc_url = get_rpc_url(args.rpc_url)
    cli = TipJarCLI(
        chain,
        RPCClient(rpc_url),
        TipStoreClient(get_store_url(args.api_url)),
        console=console,
    )

    async with create_http_client() as client:
        match args.command:
            case "network":
                return await cli.network(client)
            case "balance":
                return await cli.balance(client, args.address)
            case "tx":
                return await cli.transaction(client, args.tx_hash)
            case "creators":
                return await cli.creators(client)
            case "history":
                return await cli.history(client, args.address)
            case "send":
                return await cli.send(
                    client,
                    recipient=args.recipient,
                    amount=args.amount,
                    creator_id=args.creator_id,
                    wallet_rpc_url=args.wallet_rpc_url or rpc_url,
                    switch_network=args.switch_network,
                )
    msg = f"Unknown command {args.command}"
    raise ValueError(msg)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)

    console = Console()
    try:
        return asyncio.run(run(args, console))
    except StoreError as e:
        console.print(f"[red]Store error:[/red] {e}")
    except TipJarError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
