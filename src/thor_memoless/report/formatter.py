"""Rich console output for eligible assets and deposit instructions."""

from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..constants import THORNODE_DECIMALS
from ..domain import Asset
from ..pipeline.context import FlowContext
from ..processors.expiry import format_time_remaining


def _format_rune(balance_e8: Decimal) -> str:
    """Format a 1e8 RUNE balance compactly with comma separators."""
    return f"{balance_e8.scaleb(-THORNODE_DECIMALS):,.2f}"


def format_assets_table(assets: list[Asset], console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title="Memoless Assets", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Asset", style="bold cyan")
    table.add_column("Decimals", justify="right")
    table.add_column("Price (USD)", justify="right")
    table.add_column("Pool depth (RUNE)", justify="right")

    for i, asset in enumerate(assets, start=1):
        table.add_row(
            str(i),
            asset.id,
            str(asset.decimals),
            f"{asset.price_usd:,.4f}",
            _format_rune(asset.liquidity_weight),
        )
    console.print(table)


def instruction_to_dict(ctx: FlowContext) -> dict[str, Any]:
    """Flatten the flow context into a JSON-friendly dict."""
    registration = ctx.registration_required
    instruction = ctx.instruction_required
    encoding = ctx.encoding_required
    data: dict[str, Any] = {
        "asset": ctx.asset_required.id,
        "registration": asdict(registration),
        "encoding": asdict(encoding),
        "instruction": asdict(instruction),
    }
    if ctx.validation is not None:
        data["validation"] = asdict(ctx.validation)
    if ctx.expiry is not None:
        data["expiry"] = {
            "blocks_remaining": ctx.expiry.blocks_remaining,
            "seconds_remaining": ctx.expiry.seconds_remaining,
            "time_remaining": format_time_remaining(ctx.expiry),
        }
    return data


def format_deposit_instruction(ctx: FlowContext, console: Console | None = None) -> None:
    """Print the deposit instruction panel to stdout."""
    console = console or Console()
    registration = ctx.registration_required
    instruction = ctx.instruction_required
    encoding = ctx.encoding_required

    details = Table.grid(padding=(0, 2))
    details.add_column(style="dim")
    details.add_column()
    details.add_row("Asset", ctx.asset_required.id)
    details.add_row("Memo", registration.memo)
    details.add_row("Reference ID", Text(registration.reference_id, style="bold"))
    details.add_row("Requested", encoding.requested_value)
    details.add_row("Send exactly", Text(instruction.encoded_amount, style="bold green"))
    details.add_row("Raw amount", encoding.raw_base_units)
    details.add_row("Deposit address", Text(instruction.deposit_address, style="cyan"))
    if ctx.validation is not None:
        details.add_row(
            "Usage",
            f"{ctx.validation.usage_count}/{ctx.validation.max_use}",
        )
    if ctx.expiry is not None:
        details.add_row(
            "Expires",
            f"{format_time_remaining(ctx.expiry)} ({ctx.expiry.blocks_remaining} blocks)",
        )
    details.add_row("Payment URI", instruction.qr_payload)

    warnings = []
    if encoding.truncated:
        warnings.append(
            Text("Amount truncated to fit reference ID requirements", style="yellow")
        )
    warnings.append(
        Text(
            "Send the exact amount above. Any other amount loses the memo.",
            style="bold red",
        )
    )

    console.print(
        Panel(
            Group(details, *warnings),
            title=f"Deposit {instruction.chain_id}",
            border_style="green",
        )
    )
