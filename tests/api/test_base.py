"""Tests for the unified API response envelope."""

from datetime import timezone
from decimal import Decimal

import pytest

from api.base import ErrorCodes, error_response, success_response
from core.exceptions import BusinessRuleError, ConflictError, DatabaseError, ERPError, NotFoundError


class TestSuccessResponse:

    def test_structure(self):
        resp = success_response({"total": "5500.00"})
        assert resp.success is True
        assert resp.data == {"total": "5500.00"}
        assert resp.error is None

    def test_meta(self):
        resp = success_response({})
        assert resp.meta.request_id
        assert resp.meta.timestamp.tzinfo == timezone.utc

    def test_decimal_serializes_in_json_mode(self):
        body = success_response({"amount": Decimal("10.50")}).model_dump(mode="json")
        assert body["data"]["amount"] == "10.50"


class TestErrorResponse:

    def test_structure(self):
        resp = error_response(ErrorCodes.PAYMENT_EXCEEDS_TOTAL, "Payment amount 6000 exceeds invoice total 5500")
        assert resp.success is False
        assert resp.data is None
        assert resp.error.code == "PAYMENT_EXCEEDS_TOTAL"

    def test_each_response_has_own_request_id(self):
        assert error_response("X", "a").meta.request_id != error_response("X", "b").meta.request_id

    def test_given_request_id_and_details_are_used(self):
        resp = error_response("NOT_FOUND", "gone", request_id="req-1", details={"operation": "get"})
        assert resp.meta.request_id == "req-1"
        assert resp.error.details == {"operation": "get"}


class TestErrorCodes:
    """Every code a domain error can carry is a published error code."""

    @pytest.mark.parametrize("cls", [ERPError, NotFoundError, BusinessRuleError, ConflictError, DatabaseError])
    def test_domain_codes_published(self, cls):
        assert getattr(ErrorCodes, cls.code) == cls.code

    def test_payment_ceiling_code(self):
        err = BusinessRuleError("too much", code=ErrorCodes.PAYMENT_EXCEEDS_TOTAL)
        assert err.code == "PAYMENT_EXCEEDS_TOTAL"
