"""End-to-end invoice and payment flows against PostgreSQL."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest

from core.exceptions import BusinessRuleError, NotFoundError
from core.models import (
    CustomerCreate,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceStatus,
    PaymentCreate,
)
from utils.timezone import current_year


@pytest.fixture
def services(db, event_bus):
    from main import build_services
    return build_services(db, event_bus)


@pytest.fixture
def customer(services, as_test_user):
    return services["customer"].create(CustomerCreate(name="Acme Ltd", type="business"))


def _invoice(customer_id, *items):
    return InvoiceCreate(
        customer_id=customer_id,
        issue_date=date(2026, 3, 1),
        due_date=date(2026, 3, 31),
        items=list(items) or [InvoiceItemCreate(
            description="Consulting", quantity=Decimal("1"),
            unit_price=Decimal("5000.00"), tax_rate=Decimal("0.10"),
        )],
    )


def _payment(invoice, amount, status="completed"):
    return PaymentCreate(invoice_id=invoice.id, amount=Decimal(amount), payment_method="bank_transfer", status=status)


class TestInvoiceToPaid:

    def test_full_flow(self, db, services, customer, as_test_user):
        invoice = services["invoice"].create_invoice(_invoice(customer.id))

        assert invoice.number == f"INV{current_year()}0001"
        assert (invoice.subtotal, invoice.tax_total, invoice.total) == (
            Decimal("5000.00"), Decimal("500.00"), Decimal("5500.00")
        )
        assert invoice.status == InvoiceStatus.DRAFT
        assert len(invoice.items) == 1

        services["payment"].create_payment(_payment(invoice, "5500.00"))

        paid = services["invoice"].get_invoice(invoice.id)
        assert paid.status == InvoiceStatus.PAID

        notes, _ = services["interaction"].list_interactions(customer.id)
        assert [n.summary for n in notes] == [f"Payment received for invoice {invoice.number}"]

    def test_numbers_increase(self, services, customer, as_test_user):
        first = services["invoice"].create_invoice(_invoice(customer.id))
        second = services["invoice"].create_invoice(_invoice(customer.id))

        assert second.number == f"INV{current_year()}0002"
        assert first.number < second.number

    def test_overpayment_rejected_without_side_effects(self, db, services, customer, as_test_user):
        invoice = services["invoice"].create_invoice(_invoice(customer.id))

        with pytest.raises(BusinessRuleError) as exc_info:
            services["payment"].create_payment(_payment(invoice, "6000.00"))

        assert exc_info.value.code == "PAYMENT_EXCEEDS_TOTAL"
        assert services["invoice"].get_invoice(invoice.id).status == InvoiceStatus.DRAFT
        assert services["payment"].list_payments(invoice.id) == []

    def test_cumulative_payments_may_exceed_total(self, services, customer, as_test_user):
        invoice = services["invoice"].create_invoice(_invoice(customer.id))

        services["payment"].create_payment(_payment(invoice, "3000.00"))
        assert services["invoice"].get_invoice(invoice.id).status == InvoiceStatus.DRAFT

        services["payment"].create_payment(_payment(invoice, "3000.00"))
        assert services["invoice"].get_invoice(invoice.id).status == InvoiceStatus.PAID
        assert len(services["payment"].list_payments(invoice.id)) == 2

    def test_pending_payment_does_not_settle(self, services, customer, as_test_user):
        invoice = services["invoice"].create_invoice(_invoice(customer.id))

        services["payment"].create_payment(_payment(invoice, "5500.00", status="pending"))

        assert services["invoice"].get_invoice(invoice.id).status == InvoiceStatus.DRAFT

    def test_payment_for_unknown_invoice(self, services, as_test_user):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            services["payment"].create_payment(
                PaymentCreate(invoice_id=uuid4(), amount=Decimal("1"), payment_method="cash")
            )


class TestAtomicity:

    def test_failing_item_leaves_nothing(self, db, services, customer, as_test_user):
        good = InvoiceItemCreate(description="Good", quantity=Decimal("1"), unit_price=Decimal("10.00"))
        # Bypasses model validation so the database CHECK on tax_rate rejects the second item
        bad = InvoiceItemCreate.model_construct(
            description="Bad", quantity=Decimal("1"), unit_price=Decimal("10.00"), tax_rate=Decimal("2"),
        )

        with pytest.raises(BusinessRuleError):
            services["invoice"].create_invoice(_invoice(customer.id, good, bad))

        assert db.execute_scalar("SELECT COUNT(*) FROM invoices") == 0
        assert db.execute_scalar("SELECT COUNT(*) FROM invoice_items") == 0

        invoice = services["invoice"].create_invoice(_invoice(customer.id))
        assert invoice.number == f"INV{current_year()}0001"

    def test_unknown_customer(self, db, services, as_test_user):
        from uuid import uuid4

        with pytest.raises(BusinessRuleError):
            services["invoice"].create_invoice(_invoice(uuid4()))

        assert db.execute_scalar("SELECT COUNT(*) FROM invoices") == 0

    def test_items_keep_order(self, services, customer, as_test_user):
        items = [
            InvoiceItemCreate(description=name, quantity=Decimal("1"), unit_price=Decimal("1.00"))
            for name in ("first", "second", "third")
        ]

        invoice = services["invoice"].create_invoice(_invoice(customer.id, *items))

        assert [i.description for i in invoice.items] == ["first", "second", "third"]


class TestConcurrency:

    def test_concurrent_creation_gets_distinct_numbers(self, services, customer, test_user_id):
        def create(_):
            return services["invoice"].create_invoice(_invoice(customer.id), actor_id=test_user_id).number

        with ThreadPoolExecutor(max_workers=8) as pool:
            numbers = list(pool.map(create, range(16)))

        year = current_year()
        assert sorted(numbers) == [f"INV{year}{n:04d}" for n in range(1, 17)]

    def test_concurrent_payments_settle_once(self, services, customer, as_test_user, test_user_id):
        invoice = services["invoice"].create_invoice(_invoice(customer.id))
        paid_events = []
        services["payment"].event_bus.subscribe("InvoicePaid", paid_events.append)

        def pay(_):
            return services["payment"].create_payment(_payment(invoice, "2750.00"), actor_id=test_user_id)

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(pay, range(4)))

        assert services["invoice"].get_invoice(invoice.id).status == InvoiceStatus.PAID
        assert len(paid_events) == 1
