"""CLI entrypoint for thor-memoless."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console

from .clients.thornode import ThornodeClient
from .deposit.qr import SvgQRRenderer
from .domain import RegistrationIntent
from .errors import DustError, MemolessError
from .logger import setup_logging
from .processors.amount_codec import decode_and_validate, encode_amount
from .processors.eligibility import resolve_eligible_assets
from .processors.expiry import estimate_expiry, format_time_remaining
from .registration.registrar import build_registration_memo, validate_intent
from .report.formatter import (
    format_assets_table,
    format_deposit_instruction,
    instruction_to_dict,
)
from .settings import MemolessSettings, Network
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Register THORChain memos and encode their reference into deposit amounts.",
)

err_console = Console(stderr=True)


def _build_logger() -> logging.Logger:
    return logging.getLogger("thor_memoless")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise typer.BadParameter("Settings were not initialised")
    return state


def _abort(error: MemolessError) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {error}")
    context = {k: v for k, v in error.context.items() if v}
    if isinstance(error, DustError):
        context["minimum_amount"] = error.minimum_amount
    if context:
        err_console.print(f"[dim]{json.dumps(context)}[/dim]")
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [thor_memoless] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use (mainnet or stagenet)."),
    ] = None,
    thornode_url: Annotated[
        str | None,
        typer.Option("--thornode-url", help="THORNode API URL; overrides the network default."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option("--show-config", help="Print effective config and exit."),
    ] = False,
):
    """Load configuration shared by all commands."""
    if config_path:
        os.environ["THOR_MEMOLESS_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | str] = {}
    if network is not None:
        init_kwargs["network"] = network
    if thornode_url is not None:
        init_kwargs["thornode_url"] = thornode_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = MemolessSettings(**init_kwargs)
    setup_logging(settings.log_level)
    ctx.obj = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command()
def assets(ctx: typer.Context) -> None:
    """List assets that accept memoless deposits, deepest pools first."""
    state = _state(ctx)
    client = ThornodeClient.from_settings(state.settings)
    try:
        pools = asyncio.run(client.get_pools())
    except MemolessError as e:
        _abort(e)
    format_assets_table(resolve_eligible_assets(pools))


@app.command("registration-memo")
def registration_memo(
    asset: Annotated[str, typer.Argument(help="Asset to register the memo for, e.g. BTC.BTC.")],
    memo: Annotated[str, typer.Argument(help="Memo to register.")],
) -> None:
    """Print the memo to send with a RUNE deposit from an external wallet."""
    try:
        validate_intent(RegistrationIntent(asset_id=asset, raw_memo=memo))
    except MemolessError as e:
        _abort(e)
    typer.echo(build_registration_memo(asset, memo))


@app.command()
def encode(
    amount: Annotated[str, typer.Argument(help="Amount you want to send.")],
    reference: Annotated[str, typer.Argument(help="Reference ID of the registration.")],
    decimals: Annotated[int, typer.Option("--decimals", "-d", help="Asset decimals.")] = 8,
) -> None:
    """Encode a reference into an amount without touching the network."""
    try:
        encoding = encode_amount(amount, reference, decimals)
    except MemolessError as e:
        _abort(e)
    if encoding.truncated:
        err_console.print("[yellow]Amount truncated to fit reference ID requirements[/yellow]")
    typer.echo(
        json.dumps(
            {
                "encoded_amount": encoding.encoded_amount,
                "raw_base_units": encoding.raw_base_units,
            }
        )
    )


@app.command("check-amount")
def check_amount(
    amount: Annotated[str, typer.Argument(help="Amount to check.")],
    reference: Annotated[str, typer.Argument(help="Reference ID expected in the amount.")],
    decimals: Annotated[int, typer.Option("--decimals", "-d", help="Asset decimals.")] = 8,
) -> None:
    """Exit 0 when the amount carries the reference, 1 otherwise."""
    try:
        matches = decode_and_validate(amount, reference, decimals)
    except MemolessError as e:
        _abort(e)
    typer.echo("match" if matches else "no match")
    if not matches:
        raise typer.Exit(code=1)


@app.command()
def expiry(
    ctx: typer.Context,
    expires_at: Annotated[int, typer.Argument(help="Expiry block height of the registration.")],
    current_height: Annotated[
        int | None,
        typer.Option("--current-height", help="Current height; fetched from THORNode when omitted."),
    ] = None,
) -> None:
    """Estimate the time left before a registration expires."""
    state = _state(ctx)
    if current_height is None:
        client = ThornodeClient.from_settings(state.settings)
        try:
            current_height = asyncio.run(client.get_current_height())
        except MemolessError as e:
            _abort(e)
    estimate = estimate_expiry(expires_at, current_height, state.settings.block_time_seconds)
    typer.echo(
        f"{format_time_remaining(estimate)} "
        f"({estimate.blocks_remaining} blocks, {estimate.seconds_remaining:.0f}s)"
    )


@app.command()
def deposit(
    ctx: typer.Context,
    registration_tx_id: Annotated[
        str, typer.Argument(help="Transaction id of the memo registration.")
    ],
    amount: Annotated[str, typer.Argument(help="Amount you want to send.")],
    asset: Annotated[
        str | None,
        typer.Option("--asset", "-a", help="Registered asset; read from the registration when omitted."),
    ] = None,
    memo: Annotated[
        str | None,
        typer.Option("--memo", "-m", help="Registered memo, cross-checked against the chain."),
    ] = None,
    output_json: Annotated[
        bool, typer.Option("--json", help="Print the instruction as JSON.")
    ] = False,
) -> None:
    """Resume a registration and print validated deposit instructions."""
    from .pipeline.run import run_memoless_flow

    state = _state(ctx)
    s = state.settings
    client = ThornodeClient.from_settings(s)
    renderer = SvgQRRenderer(s.qr_box_size, s.qr_border) if s.qr_enabled else None

    try:
        flow = asyncio.run(
            run_memoless_flow(
                state,
                client,
                amount,
                registration_tx_id=registration_tx_id,
                asset_id=asset,
                memo=memo,
                qr_renderer=renderer,
            )
        )
    except MemolessError as e:
        _abort(e)

    if output_json:
        typer.echo(json.dumps(instruction_to_dict(flow.ctx), indent=2, default=str))
    else:
        format_deposit_instruction(flow.ctx)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
