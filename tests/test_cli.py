"""Unit tests for CLI commands.

All tests use Typer's CliRunner and mock _get_repository so that no real
HTTP requests are made.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from momoapi.core.constants import ProductType
from momoapi.core.models import (
    AccessToken,
    AccountBalance,
    AccountHolder,
    AccountHolderStatus,
    ApiKey,
    ErrorResponse,
    MomoTransaction,
)
from momoapi.core.result import Error, Success
from momoapi_cli.main import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _tx(status: str) -> MomoTransaction:
    return MomoTransaction(
        amount="100",
        currency="EUR",
        external_id="e-1",
        financial_transaction_id="1234",
        payer=AccountHolder("MSISDN", "46733123453"),
        status=status,
    )


@pytest.fixture()
def repo():
    r = MagicMock()
    r.request_to_pay.return_value = Success("ref-1")
    r.request_to_pay_status.return_value = Success(_tx("SUCCESSFUL"))
    r.deposit.return_value = Success("dep-1")
    r.has_basic_auth.return_value = True
    return r


def _invoke(repo, args):
    with patch("momoapi_cli.main._get_repository", return_value=repo):
        return runner.invoke(app, args)


# ---------------------------------------------------------------------------
# collection commands
# ---------------------------------------------------------------------------


def test_pay_json_output(repo):
    result = _invoke(
        repo,
        ["collection", "pay", "100", "EUR", "46733123453", "-o", "json"],
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {"reference_id": "ref-1"}
    transaction = repo.request_to_pay.call_args[0][0]
    assert transaction.payer == AccountHolder("MSISDN", "46733123453")
    assert transaction.external_id


def test_pay_table_output(repo):
    result = _invoke(repo, ["collection", "pay", "100", "EUR", "46733123453"])
    assert result.exit_code == 0
    assert "ref-1" in result.output


def test_pay_normalises_local_number(repo):
    result = _invoke(
        repo,
        ["collection", "pay", "100", "EUR", "0772123456",
         "--country-code", "256", "--external-id", "order-7"],
    )
    assert result.exit_code == 0
    transaction = repo.request_to_pay.call_args[0][0]
    assert transaction.payer.party_id == "256772123456"
    assert transaction.external_id == "order-7"


def test_pay_wait_polls_until_final(repo):
    repo.request_to_pay_status.side_effect = [
        Success(_tx("PENDING")),
        Success(_tx("SUCCESSFUL")),
    ]
    result = _invoke(
        repo,
        ["collection", "pay", "100", "EUR", "46733123453",
         "--wait", "--interval", "0", "-o", "json"],
    )
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["status"] == "SUCCESSFUL"
    assert repo.request_to_pay_status.call_count == 2


def test_pay_wait_failed_exits_1(repo):
    repo.request_to_pay_status.return_value = Success(_tx("FAILED"))
    result = _invoke(
        repo,
        ["collection", "pay", "100", "EUR", "46733123453",
         "--wait", "--interval", "0", "-o", "json"],
    )
    assert result.exit_code == 1


def test_pay_error(repo):
    repo.request_to_pay.return_value = Error(
        "409 Conflict",
        ErrorResponse(code="RESOURCE_ALREADY_EXIST", message="Duplicated"),
    )
    result = _invoke(repo, ["collection", "pay", "100", "EUR", "4673"])
    assert result.exit_code == 1
    assert "Error: 409 Conflict" in result.output
    assert "Duplicated" in result.output


def test_pay_status_json_output(repo):
    result = _invoke(repo, ["collection", "pay-status", "ref-1", "-o", "json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["status"] == "SUCCESSFUL"
    assert data["payer"]["partyId"] == "46733123453"
    repo.request_to_pay_status.assert_called_once_with("ref-1")


def test_pay_status_table_flattens_nested_fields(repo):
    result = _invoke(repo, ["collection", "pay-status", "ref-1"])
    assert result.exit_code == 0
    assert "payer.partyId" in result.output
    assert "SUCCESSFUL" in result.output


def test_notify_rejects_long_message(repo):
    result = _invoke(repo, ["collection", "notify", "ref-1", "x" * 161])
    assert result.exit_code == 1
    repo.request_to_pay_delivery_notification.assert_not_called()


def test_notify(repo):
    repo.request_to_pay_delivery_notification.return_value = Success("ref-1")
    result = _invoke(repo, ["collection", "notify", "ref-1", "Order ready"])
    assert result.exit_code == 0
    notification = repo.request_to_pay_delivery_notification.call_args[0][1]
    assert notification.notification_message == "Order ready"


# ---------------------------------------------------------------------------
# disbursement commands
# ---------------------------------------------------------------------------


def test_deposit_sets_payee(repo):
    result = _invoke(
        repo, ["disbursement", "deposit", "5", "EUR", "4670", "-o", "json"]
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {"reference_id": "dep-1"}
    transaction = repo.deposit.call_args[0][0]
    assert transaction.payee.party_id == "4670"
    assert transaction.payer is None


def test_refund_passes_reference(repo):
    repo.refund.return_value = Success("ref-r")
    result = _invoke(
        repo, ["disbursement", "refund", "5", "EUR", "ref-original"]
    )
    assert result.exit_code == 0
    transaction = repo.refund.call_args[0][0]
    assert transaction.reference_id_to_refund == "ref-original"


def test_transfer_status_product(repo):
    repo.get_transfer_status.return_value = Success(_tx("PENDING"))
    result = _invoke(
        repo,
        ["disbursement", "transfer-status", "t-1", "--product", "remittance"],
    )
    assert result.exit_code == 0
    repo.get_transfer_status.assert_called_once_with(
        "t-1", ProductType.REMITTANCE
    )


# ---------------------------------------------------------------------------
# account commands
# ---------------------------------------------------------------------------


def test_balance_in_currency(repo):
    repo.get_account_balance.return_value = Success(
        AccountBalance("1000", "EUR")
    )
    result = _invoke(
        repo, ["account", "balance", "--currency", "EUR", "-o", "json"]
    )
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "availableBalance": "1000",
        "currency": "EUR",
    }
    repo.get_account_balance.assert_called_once_with(
        ProductType.COLLECTION, "EUR"
    )


def test_holder_status(repo):
    repo.validate_account_holder_status.return_value = Success(
        AccountHolderStatus(result=True)
    )
    result = _invoke(repo, ["account", "holder-status", "4670", "-o", "json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"result": True}
    holder = repo.validate_account_holder_status.call_args[0][0]
    assert holder == AccountHolder("msisdn", "4670")


def test_user_info_error(repo):
    repo.get_user_info_with_consent.return_value = Error("401 Unauthorized")
    result = _invoke(repo, ["account", "user-info"])
    assert result.exit_code == 1
    assert "Error: 401 Unauthorized" in result.output


# ---------------------------------------------------------------------------
# auth commands
# ---------------------------------------------------------------------------


def test_auth_setup_saves_credentials(repo):
    repo.create_api_user.return_value = Success("user-9")
    repo.create_api_key.return_value = Success(ApiKey("key-9"))
    with patch("momoapi_cli.main.creds_store") as store:
        result = _invoke(repo, ["auth", "setup", "--callback-host", "cb.test"])
    assert result.exit_code == 0
    store.save.assert_called_once_with("user-9", "key-9")
    repo.create_api_key.assert_called_once_with(
        "user-9", product_type=ProductType.COLLECTION
    )


def test_auth_token_requires_basic_credentials(repo):
    repo.has_basic_auth.return_value = False
    result = _invoke(repo, ["auth", "token"])
    assert result.exit_code == 1
    repo.get_access_token.assert_not_called()


def test_auth_token_saves_token(repo):
    token = AccessToken("tok", "access_token", "3600")
    repo.get_access_token.return_value = Success(token)
    with patch("momoapi_cli.main.creds_store") as store:
        store.save_access_token.return_value = 1700000000.0
        result = _invoke(repo, ["auth", "token", "--product", "disbursement"])
    assert result.exit_code == 0
    store.save_access_token.assert_called_once_with(
        token, ProductType.DISBURSEMENT
    )


def test_auth_status_without_credentials():
    with patch("momoapi_cli.main.creds_store") as store:
        store.load.return_value = {}
        store.load_access_token.return_value = None
        result = runner.invoke(app, ["auth", "status"])
    assert result.exit_code == 1
    assert "No credentials configured" in result.output


def test_auth_status_reports_expired_token():
    with patch("momoapi_cli.main.creds_store") as store:
        store.load.return_value = {"api_user_id": "user-1", "api_key": "k"}
        store.load_access_token.return_value = {
            "access_token": "tok",
            "product_type": "collection",
            "expires_at": 0,
        }
        store.is_expired.return_value = True
        result = runner.invoke(app, ["auth", "status"])
    assert result.exit_code == 0
    assert "user-1" in result.output
    assert "expired" in result.output


def test_auth_clear_nothing_saved():
    with patch("momoapi_cli.main.creds_store") as store:
        store.clear.return_value = False
        store.clear_access_token.return_value = False
        result = runner.invoke(app, ["auth", "clear"])
    assert result.exit_code == 0
    assert "No saved credentials found" in result.output
