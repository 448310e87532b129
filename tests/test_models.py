"""Unit tests for core data models."""

import pytest

from momoapi.core.constants import MomoApiErrorCode, TransactionStatus
from momoapi.core.models import (
    AccessToken,
    AccountHolder,
    ApiUser,
    ErrorResponse,
    MomoTransaction,
    Oauth2AccessToken,
    UserInfoWithConsent,
)


class TestWireModel:
    def test_to_dict_uses_wire_names(self):
        holder = AccountHolder(party_id_type="MSISDN", party_id="46733123453")
        assert holder.to_dict() == {
            "partyIdType": "MSISDN",
            "partyId": "46733123453",
        }

    def test_to_dict_keeps_none_by_default(self):
        user = ApiUser(provider_callback_host=None, target_environment="sandbox")
        assert user.to_dict() == {
            "providerCallbackHost": None,
            "targetEnvironment": "sandbox",
        }

    def test_to_dict_drop_none(self):
        tx = MomoTransaction(amount="5", currency="EUR", external_id="e-1")
        assert tx.to_dict(drop_none=True) == {
            "amount": "5",
            "currency": "EUR",
            "externalId": "e-1",
        }

    def test_every_transaction_field_survives_round_trip(self):
        tx = MomoTransaction(
            amount="5",
            currency="EUR",
            external_id="e-1",
            financial_transaction_id="1234",
            payer=AccountHolder("MSISDN", "4670"),
            payee=AccountHolder("EMAIL", "shop@example.test"),
            payer_message="Thanks",
            payee_note="Order 7",
            status="FAILED",
            reason={"code": "APPROVAL_REJECTED", "message": "Rejected"},
            reference_id_to_refund="ref-0",
        )
        assert MomoTransaction.from_dict(tx.to_dict()) == tx

    def test_none_fields_survive_round_trip(self):
        tx = MomoTransaction(
            amount="5",
            currency="EUR",
            external_id="e-1",
            payer=AccountHolder("MSISDN", "4670"),
        )
        assert MomoTransaction.from_dict(tx.to_dict()) == tx

    def test_from_dict_ignores_unknown_keys(self):
        user = ApiUser.from_dict(
            {"targetEnvironment": "sandbox", "somethingNew": 1}
        )
        assert user.target_environment == "sandbox"
        assert user.provider_callback_host is None

    def test_from_dict_parses_nested_models(self):
        tx = MomoTransaction.from_dict({
            "amount": "100",
            "currency": "EUR",
            "externalId": "e-2",
            "payee": {"partyIdType": "MSISDN", "partyId": "4671"},
        })
        assert isinstance(tx.payee, AccountHolder)
        assert tx.payee.party_id == "4671"

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            ApiUser.from_dict(["not", "an", "object"])

    def test_from_dict_rejects_missing_required_field(self):
        with pytest.raises(ValueError, match="AccessToken"):
            AccessToken.from_dict({"token_type": "access_token"})


class TestAccessToken:
    def test_expires_at_counts_minutes(self):
        token = AccessToken("tok", "access_token", "3600")
        assert token.expires_at(now=1000.0) == 1000.0 + 3600 * 60

    def test_integer_expires_in(self):
        token = AccessToken("tok", "access_token", 5)
        assert token.expires_at(now=0.0) == 300.0

    @pytest.mark.parametrize("expires_in", ["", "  ", "soon"])
    def test_blank_expires_in_means_one_minute(self, expires_in):
        token = AccessToken("tok", "access_token", expires_in)
        assert token.expires_at(now=10.0) == 70.0

    def test_oauth2_token_extends_access_token(self):
        token = Oauth2AccessToken.from_dict({
            "access_token": "tok",
            "token_type": "Bearer",
            "expires_in": 60,
            "scope": "profile",
            "refresh_token": "r-1",
        })
        assert token.scope == "profile"
        assert token.refresh_token == "r-1"
        assert token.refresh_token_expired_in is None


class TestMomoTransaction:
    def test_status_enum(self):
        tx = MomoTransaction("1", "EUR", "e", status="SUCCESSFUL")
        assert tx.transaction_status is TransactionStatus.SUCCESSFUL
        assert not tx.is_pending
        assert not tx.is_terminal_failure

    def test_pending(self):
        tx = MomoTransaction("1", "EUR", "e", status="PENDING")
        assert tx.is_pending

    def test_failed_is_terminal_failure(self):
        tx = MomoTransaction(
            "1", "EUR", "e", status="FAILED", reason="APPROVAL_REJECTED"
        )
        assert tx.is_terminal_failure
        assert tx.reason == "APPROVAL_REJECTED"

    def test_unknown_status(self):
        tx = MomoTransaction("1", "EUR", "e", status="WEIRD")
        assert tx.transaction_status is None


class TestUserInfoWithConsent:
    def test_inherits_basic_fields(self):
        info = UserInfoWithConsent.from_dict({
            "sub": "0",
            "given_name": "Sand",
            "family_name": "Box",
            "email_verified": True,
        })
        assert info.given_name == "Sand"
        assert info.email_verified is True
        assert info.occupation is None


class TestErrorResponse:
    def test_known_code(self):
        error = ErrorResponse(code="PAYER_NOT_FOUND", message="Payer not found")
        assert error.error_code is MomoApiErrorCode.PAYER_NOT_FOUND

    def test_unknown_code(self):
        assert ErrorResponse(code="NEW_CODE").error_code is None
