"""CLI entry point for the momoapi tool.

This module is the composition root of the application.  It is the only
place that wires concrete implementations (MomoApiClient,
InMemoryCredentialStore, the signers) together with the persisted
credentials.  All other layers depend solely on abstractions.
"""

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Any

# Ensure UTF-8 output on Windows where stdout may default to cp1252.
# reconfigure() is a no-op when encoding is already utf-8.
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from momoapi.auth import credentials as creds_store
from momoapi.auth.interfaces import AccessTokenCredentials, BasicAuthCredentials
from momoapi.core.constants import AccountHolderType, ProductType
from momoapi.core.models import (
    AccountHolder,
    MomoNotification,
    MomoTransaction,
    WireModel,
)
from momoapi.core.result import Error, Loading, Result
from momoapi.core.settings import (
    MomoSettings,
    format_phone_number,
    generate_request_id,
    is_notification_message_valid,
)
from momoapi.providers.momo.auth import InMemoryCredentialStore
from momoapi.services.repository import MomoRepository, watch_transaction

app = typer.Typer(help="Command-line client for the MTN Mobile Money API.")
auth_app = typer.Typer(help="Provision API users and manage tokens.")
collection_app = typer.Typer(help="Collect money from account holders.")
disbursement_app = typer.Typer(help="Send money to account holders.")
account_app = typer.Typer(help="Inspect accounts and account holders.")

app.add_typer(auth_app, name="auth")
app.add_typer(collection_app, name="collection")
app.add_typer(disbursement_app, name="disbursement")
app.add_typer(account_app, name="account")

console = Console(legacy_windows=False)
err_console = Console(stderr=True, legacy_windows=False)


# ---------------------------------------------------------------------------
# Output format
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Supported output formats."""

    table = "table"
    json = "json"


def _output_option():
    return typer.Option(
        OutputFormat.table, "--output", "-o", help="Output format."
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log HTTP traffic to stderr."
    ),
):
    """Command-line client for the MTN Mobile Money API."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


def _get_repository() -> MomoRepository:
    """Build a repository from the environment and the saved credentials.

    Saved credentials take precedence over ``MOMO_API_USER_ID`` and
    ``MOMO_API_KEY``.  An expired saved token is not loaded.

    Returns:
        A :class:`~momoapi.services.repository.MomoRepository` instance.
    """
    settings = MomoSettings.from_env()
    saved = creds_store.load()
    store = InMemoryCredentialStore(
        basic=BasicAuthCredentials(
            saved.get("api_user_id") or settings.api_user_id,
            saved.get("api_key") or settings.api_key,
        ),
        bearer=AccessTokenCredentials(creds_store.load_valid_access_token()),
    )
    return MomoRepository.create(settings, store)


def _unwrap(result: Result) -> Any:
    """Return the value of a ``Success`` or exit with the error message."""
    if isinstance(result, Error):
        console.print(f"[red]Error:[/red] {escape(result.message)}")
        if result.error_response and result.error_response.message:
            console.print(f"[dim]{escape(result.error_response.message)}[/dim]")
        raise typer.Exit(1)
    if isinstance(result, Loading):
        console.print("[red]Error:[/red] request did not complete")
        raise typer.Exit(1)
    return result.value


def _flatten(data: dict, prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested dictionaries into ``("a.b", value)`` rows."""
    rows: list[tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            rows.extend(_flatten(value, f"{name}."))
        elif value is not None:
            rows.append((name, str(value)))
    return rows


def _print_model(model: WireModel, output: OutputFormat, title: str) -> None:
    data = model.to_dict()
    if output == OutputFormat.json:
        print(json.dumps(data, indent=2))
        return
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in _flatten(data):
        table.add_row(name, escape(value))
    console.print(table)


def _party(phone: str, country_code: str | None) -> AccountHolder:
    msisdn = format_phone_number(phone, country_code) if country_code else phone
    if not msisdn:
        console.print("[red]Error:[/red] phone number is required")
        raise typer.Exit(1)
    return AccountHolder(
        party_id_type=AccountHolderType.MSISDN.value.upper(), party_id=msisdn
    )


def _report_submission(
    result: Result[str],
    status_call,
    output: OutputFormat,
    wait: bool,
    interval: float,
    attempts: int,
) -> None:
    """Print the reference ID of a submitted transaction, optionally polling.

    With ``--wait`` the transaction is polled until it leaves ``PENDING``;
    the command exits with status 1 if it ends ``FAILED``.
    """
    reference_id = _unwrap(result)
    if not wait:
        if output == OutputFormat.json:
            print(json.dumps({"reference_id": reference_id}, indent=2))
        else:
            console.print(
                f"[green]✓ Request accepted.[/green] Reference ID: "
                f"[bold]{reference_id}[/bold]"
            )
        return

    final: Result = Loading()
    for final in watch_transaction(
        status_call, reference_id, interval=interval, max_attempts=attempts
    ):
        if isinstance(final, Loading) and output == OutputFormat.table:
            err_console.print(f"[dim]Checking {reference_id}...[/dim]")
    transaction: MomoTransaction = _unwrap(final)
    _print_model(transaction, output, f"Transaction {reference_id}")
    if transaction.is_terminal_failure:
        raise typer.Exit(1)


def _wait_option():
    return typer.Option(
        False, "--wait", "-w", help="Poll until the transaction completes."
    )


def _interval_option():
    return typer.Option(5.0, "--interval", help="Seconds between status checks.")


def _attempts_option():
    return typer.Option(12, "--attempts", help="Maximum status checks.")


def _country_code_option():
    return typer.Option(
        None,
        "--country-code",
        "-c",
        help="Dialling code used to normalise local numbers, e.g. 256.",
    )


# ---------------------------------------------------------------------------
# auth commands
# ---------------------------------------------------------------------------


@auth_app.command()
def setup(
    callback_host: str = typer.Option(
        None,
        "--callback-host",
        help="Provider callback host.  Defaults to MOMO_PROVIDER_CALLBACK_HOST.",
    ),
    product: ProductType = typer.Option(
        ProductType.COLLECTION,
        "--product",
        "-p",
        help="Product whose subscription key authorises provisioning.",
    ),
):
    """Create an API user and key (sandbox) and save them locally."""
    repo = _get_repository()
    api_user_id = _unwrap(
        repo.create_api_user(callback_host, product_type=product)
    )
    api_key = _unwrap(repo.create_api_key(api_user_id, product_type=product))
    creds_store.save(api_user_id, api_key.api_key)
    console.print(f"[green]✓ API user created:[/green] {api_user_id}")
    console.print(
        f"[green]✓ Credentials saved to:[/green] {creds_store.credentials_path()}"
    )
    console.print(
        "[dim]Run [bold]momoapi auth token --product <product>[/bold] "
        "to obtain an access token.[/dim]"
    )


@auth_app.command()
def token(
    product: ProductType = typer.Option(
        ProductType.COLLECTION, "--product", "-p", help="Product to authorise."
    ),
):
    """Request an access token and save it locally."""
    repo = _get_repository()
    if not repo.has_basic_auth():
        console.print("[red]Error:[/red] no API user and key configured")
        console.print(
            "Run [bold]momoapi auth setup[/bold] or set MOMO_API_USER_ID "
            "and MOMO_API_KEY."
        )
        raise typer.Exit(1)
    access_token = _unwrap(repo.get_access_token(product))
    expires_at = creds_store.save_access_token(access_token, product)
    expiry_str = datetime.fromtimestamp(expires_at).strftime(
        "%Y-%m-%d %H:%M:%S"
    )
    console.print(
        f"[green]✓ {product.value} token saved to:[/green] "
        f"{creds_store.access_token_path()}"
    )
    console.print(f"  Expires : {expiry_str}")


@auth_app.command()
def status():
    """Show the status of the saved credentials and access token."""
    saved = creds_store.load()
    token_data = creds_store.load_access_token()

    if not saved and not token_data:
        console.print("[yellow]No credentials configured.[/yellow]")
        console.print("Run [bold]momoapi auth setup[/bold].")
        raise typer.Exit(1)

    if saved:
        console.print(
            f"[green]✓ API user[/green]  {saved.get('api_user_id', '')}  "
            f"{creds_store.credentials_path()}"
        )

    if token_data:
        expired = creds_store.is_expired(token_data)
        state = "[red]expired[/red]" if expired else "[green]valid[/green]"
        try:
            expiry_str = datetime.fromtimestamp(
                float(token_data.get("expires_at", 0))
            ).strftime("%Y-%m-%d %H:%M:%S")
        except (TypeError, ValueError):
            expiry_str = "unknown"
        console.print(
            f"[green]✓ Access token[/green] "
            f"({token_data.get('product_type', '?')})  "
            f"{creds_store.access_token_path()}"
        )
        console.print(f"  Expires : {expiry_str} ({state})")


@auth_app.command()
def clear():
    """Remove the locally saved credentials and access token."""
    removed_creds = creds_store.clear()
    removed_token = creds_store.clear_access_token()
    if removed_creds:
        console.print("[green]✓ API user credentials removed.[/green]")
    if removed_token:
        console.print("[green]✓ Access token removed.[/green]")
    if not removed_creds and not removed_token:
        console.print("[yellow]No saved credentials found.[/yellow]")


# ---------------------------------------------------------------------------
# collection commands
# ---------------------------------------------------------------------------


@collection_app.command()
def pay(
    amount: str,
    currency: str,
    phone: str,
    external_id: str = typer.Option(
        None, "--external-id", help="Your unique ID.  Generated when omitted."
    ),
    payer_message: str = typer.Option(None, "--payer-message"),
    payee_note: str = typer.Option(None, "--payee-note"),
    callback_url: str = typer.Option(None, "--callback-url"),
    country_code: str = _country_code_option(),
    wait: bool = _wait_option(),
    interval: float = _interval_option(),
    attempts: int = _attempts_option(),
    output: OutputFormat = _output_option(),
):
    """Request a payment from PHONE."""
    repo = _get_repository()
    transaction = MomoTransaction(
        amount=amount,
        currency=currency,
        external_id=external_id or generate_request_id(),
        payer=_party(phone, country_code),
        payer_message=payer_message,
        payee_note=payee_note,
    )
    _report_submission(
        repo.request_to_pay(transaction, callback_url=callback_url),
        repo.request_to_pay_status,
        output, wait, interval, attempts,
    )


@collection_app.command(name="pay-status")
def pay_status(reference_id: str, output: OutputFormat = _output_option()):
    """Show the state of a request to pay."""
    repo = _get_repository()
    transaction = _unwrap(repo.request_to_pay_status(reference_id))
    _print_model(transaction, output, f"Request to pay {reference_id}")


@collection_app.command()
def withdraw(
    amount: str,
    currency: str,
    phone: str,
    external_id: str = typer.Option(None, "--external-id"),
    payer_message: str = typer.Option(None, "--payer-message"),
    payee_note: str = typer.Option(None, "--payee-note"),
    callback_url: str = typer.Option(None, "--callback-url"),
    country_code: str = _country_code_option(),
    wait: bool = _wait_option(),
    interval: float = _interval_option(),
    attempts: int = _attempts_option(),
    output: OutputFormat = _output_option(),
):
    """Request a withdrawal from PHONE."""
    repo = _get_repository()
    transaction = MomoTransaction(
        amount=amount,
        currency=currency,
        external_id=external_id or generate_request_id(),
        payer=_party(phone, country_code),
        payer_message=payer_message,
        payee_note=payee_note,
    )
    _report_submission(
        repo.request_to_withdraw(transaction, callback_url=callback_url),
        repo.request_to_withdraw_status,
        output, wait, interval, attempts,
    )


@collection_app.command(name="withdraw-status")
def withdraw_status(reference_id: str, output: OutputFormat = _output_option()):
    """Show the state of a request to withdraw."""
    repo = _get_repository()
    transaction = _unwrap(repo.request_to_withdraw_status(reference_id))
    _print_model(transaction, output, f"Request to withdraw {reference_id}")


@collection_app.command()
def notify(reference_id: str, message: str):
    """Send a delivery notification to the payer of a request to pay."""
    if not is_notification_message_valid(message):
        console.print(
            "[red]Error:[/red] notification message must be 1 to 160 "
            "characters"
        )
        raise typer.Exit(1)
    repo = _get_repository()
    _unwrap(
        repo.request_to_pay_delivery_notification(
            reference_id, MomoNotification(message)
        )
    )
    console.print("[green]✓ Notification sent.[/green]")


# ---------------------------------------------------------------------------
# disbursement commands
# ---------------------------------------------------------------------------


@disbursement_app.command()
def deposit(
    amount: str,
    currency: str,
    phone: str,
    external_id: str = typer.Option(None, "--external-id"),
    payer_message: str = typer.Option(None, "--payer-message"),
    payee_note: str = typer.Option(None, "--payee-note"),
    callback_url: str = typer.Option(None, "--callback-url"),
    country_code: str = _country_code_option(),
    wait: bool = _wait_option(),
    interval: float = _interval_option(),
    attempts: int = _attempts_option(),
    output: OutputFormat = _output_option(),
):
    """Deposit money into PHONE's account."""
    repo = _get_repository()
    transaction = MomoTransaction(
        amount=amount,
        currency=currency,
        external_id=external_id or generate_request_id(),
        payee=_party(phone, country_code),
        payer_message=payer_message,
        payee_note=payee_note,
    )
    _report_submission(
        repo.deposit(transaction, callback_url=callback_url),
        repo.deposit_status,
        output, wait, interval, attempts,
    )


@disbursement_app.command(name="deposit-status")
def deposit_status(reference_id: str, output: OutputFormat = _output_option()):
    """Show the state of a deposit."""
    repo = _get_repository()
    transaction = _unwrap(repo.deposit_status(reference_id))
    _print_model(transaction, output, f"Deposit {reference_id}")


@disbursement_app.command()
def refund(
    amount: str,
    currency: str,
    reference_id_to_refund: str,
    external_id: str = typer.Option(None, "--external-id"),
    payer_message: str = typer.Option(None, "--payer-message"),
    payee_note: str = typer.Option(None, "--payee-note"),
    callback_url: str = typer.Option(None, "--callback-url"),
    wait: bool = _wait_option(),
    interval: float = _interval_option(),
    attempts: int = _attempts_option(),
    output: OutputFormat = _output_option(),
):
    """Refund the request to pay REFERENCE_ID_TO_REFUND."""
    repo = _get_repository()
    transaction = MomoTransaction(
        amount=amount,
        currency=currency,
        external_id=external_id or generate_request_id(),
        payer_message=payer_message,
        payee_note=payee_note,
        reference_id_to_refund=reference_id_to_refund,
    )
    _report_submission(
        repo.refund(transaction, callback_url=callback_url),
        repo.refund_status,
        output, wait, interval, attempts,
    )


@disbursement_app.command(name="refund-status")
def refund_status(reference_id: str, output: OutputFormat = _output_option()):
    """Show the state of a refund."""
    repo = _get_repository()
    transaction = _unwrap(repo.refund_status(reference_id))
    _print_model(transaction, output, f"Refund {reference_id}")


@disbursement_app.command()
def transfer(
    amount: str,
    currency: str,
    phone: str,
    product: ProductType = typer.Option(
        ProductType.DISBURSEMENT, "--product", "-p"
    ),
    external_id: str = typer.Option(None, "--external-id"),
    payer_message: str = typer.Option(None, "--payer-message"),
    payee_note: str = typer.Option(None, "--payee-note"),
    callback_url: str = typer.Option(None, "--callback-url"),
    country_code: str = _country_code_option(),
    wait: bool = _wait_option(),
    interval: float = _interval_option(),
    attempts: int = _attempts_option(),
    output: OutputFormat = _output_option(),
):
    """Transfer money to PHONE."""
    repo = _get_repository()
    transaction = MomoTransaction(
        amount=amount,
        currency=currency,
        external_id=external_id or generate_request_id(),
        payee=_party(phone, country_code),
        payer_message=payer_message,
        payee_note=payee_note,
    )
    _report_submission(
        repo.transfer(transaction, product, callback_url=callback_url),
        lambda ref: repo.get_transfer_status(ref, product),
        output, wait, interval, attempts,
    )


@disbursement_app.command(name="transfer-status")
def transfer_status(
    reference_id: str,
    product: ProductType = typer.Option(
        ProductType.DISBURSEMENT, "--product", "-p"
    ),
    output: OutputFormat = _output_option(),
):
    """Show the state of a transfer."""
    repo = _get_repository()
    transaction = _unwrap(repo.get_transfer_status(reference_id, product))
    _print_model(transaction, output, f"Transfer {reference_id}")


# ---------------------------------------------------------------------------
# account commands
# ---------------------------------------------------------------------------


@account_app.command()
def balance(
    product: ProductType = typer.Option(
        ProductType.COLLECTION, "--product", "-p"
    ),
    currency: str = typer.Option(
        None, "--currency", help="Query the balance in this currency."
    ),
    output: OutputFormat = _output_option(),
):
    """Show the merchant account balance."""
    repo = _get_repository()
    account_balance = _unwrap(repo.get_account_balance(product, currency))
    _print_model(account_balance, output, f"{product.value} balance")


@account_app.command(name="holder-status")
def holder_status(
    account_holder_id: str,
    id_type: AccountHolderType = typer.Option(
        AccountHolderType.MSISDN, "--id-type"
    ),
    product: ProductType = typer.Option(
        ProductType.COLLECTION, "--product", "-p"
    ),
    output: OutputFormat = _output_option(),
):
    """Check whether an account holder is active."""
    repo = _get_repository()
    active = _unwrap(
        repo.validate_account_holder_status(
            AccountHolder(
                party_id_type=id_type.value, party_id=account_holder_id
            ),
            product,
        )
    )
    _print_model(active, output, f"Account holder {account_holder_id}")


@account_app.command(name="basic-info")
def basic_info(
    phone: str,
    product: ProductType = typer.Option(
        ProductType.COLLECTION, "--product", "-p"
    ),
    country_code: str = _country_code_option(),
    output: OutputFormat = _output_option(),
):
    """Show basic information about the holder of PHONE."""
    repo = _get_repository()
    msisdn = _party(phone, country_code).party_id
    info = _unwrap(repo.get_basic_user_info(msisdn, product))
    _print_model(info, output, f"Account holder {msisdn}")


@account_app.command(name="user-info")
def user_info(
    product: ProductType = typer.Option(
        ProductType.COLLECTION, "--product", "-p"
    ),
    output: OutputFormat = _output_option(),
):
    """Show the information an account holder consented to share."""
    repo = _get_repository()
    info = _unwrap(repo.get_user_info_with_consent(product))
    _print_model(info, output, "User info")
