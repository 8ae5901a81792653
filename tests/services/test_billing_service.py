"""
Tests for branch_pms/services/billing_service.py
Covers: bill generation, regeneration, payments and bill status
"""
import pytest
from datetime import datetime
from decimal import Decimal

from branch_pms.models.ontology import Bill, BillStatus, PaymentMethod
from branch_pms.services.billing_service import (
    BillingService, derive_bill_status, to_money
)
from branch_pms.services.booking_service import BookingService
from branch_pms.services.service_usage_service import ServiceUsageService
from branch_pms.services.result import ErrorKind


@pytest.fixture
def billing_service(db_session):
    return BillingService(db_session)


@pytest.fixture
def checked_in_booking(db_session, branch, room_201, sample_guest):
    """豪华间 201，10-15 15:00 入住，10-19 11:00 离店（4 天）"""
    bookings = BookingService(db_session)
    result = bookings.create_booking(
        sample_guest.id, datetime(2025, 10, 15, 15, 0), datetime(2025, 10, 19, 11, 0),
        [room_201.id], branch.id
    )
    booking_id = result.data['booking_id']
    bookings.check_in_booking(booking_id, branch.id)
    return booking_id


@pytest.fixture
def bill_id(billing_service, branch, checked_in_booking):
    """总额 81,400：房费 74,000 + 税 7,400"""
    result = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.1"))
    return result.data['bill_id']


class TestMoneyHelpers:
    def test_to_money_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(3) == Decimal("3.00")

    def test_derive_bill_status(self):
        assert derive_bill_status(Decimal("100"), Decimal("0")) == BillStatus.PENDING
        assert derive_bill_status(Decimal("100"), Decimal("40")) == BillStatus.PARTIALLY_PAID
        assert derive_bill_status(Decimal("100"), Decimal("100")) == BillStatus.PAID
        assert derive_bill_status(Decimal("0"), Decimal("0")) == BillStatus.PAID


class TestGenerateBill:
    def test_end_to_end_figures(self, db_session, billing_service, branch, checked_in_booking, breakfast):
        usage = ServiceUsageService(db_session).add_service_usage(
            checked_in_booking, breakfast.id, 2, branch.id
        )
        assert usage.success

        result = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("5000"), tax_rate=Decimal("0.1")
        )
        assert result.success
        bill = result.data
        assert bill['days'] == 4
        assert bill['room_charges'] == Decimal("74000.00")
        assert bill['service_charges'] == Decimal("7000.00")
        assert bill['discount'] == Decimal("5000.00")
        assert bill['tax'] == Decimal("7600.00")
        assert bill['total_amount'] == Decimal("83600.00")
        assert bill['status'] == BillStatus.PENDING
        assert bill['paid_amount'] == Decimal("0.00")
        assert bill['remaining_amount'] == Decimal("83600.00")

    def test_default_tax_rate(self, billing_service, branch, checked_in_booking):
        result = billing_service.generate_bill(checked_in_booking, branch.id)
        assert result.data['tax_rate'] == Decimal("0.1")
        assert result.data['total_amount'] == Decimal("81400.00")

    def test_regeneration_updates_same_bill(self, db_session, billing_service, branch, checked_in_booking):
        first = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.1"))
        second = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.1"))

        assert second.data['bill_id'] == first.data['bill_id']
        assert second.data['total_amount'] == first.data['total_amount']
        assert db_session.query(Bill).count() == 1

    def test_regeneration_applies_new_discount(self, billing_service, branch, checked_in_booking):
        billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.1"))
        result = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("4000"), tax_rate=Decimal("0")
        )
        assert result.data['total_amount'] == Decimal("70000.00")

    def test_discount_larger_than_charges_clamps_to_zero(self, billing_service, branch, checked_in_booking):
        result = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("100000"), tax_rate=Decimal("0.1")
        )
        assert result.success
        assert result.data['tax'] == Decimal("0.00")
        assert result.data['total_amount'] == Decimal("0.00")
        assert result.data['status'] == BillStatus.PAID

    def test_zero_total_status_stable_across_regeneration(self, billing_service, branch, checked_in_booking):
        """应付为 0 的账单首次生成与重新生成都为已结清"""
        first = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("100000"), tax_rate=Decimal("0.1")
        )
        second = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("100000"), tax_rate=Decimal("0.1")
        )
        assert first.data['status'] == second.data['status'] == BillStatus.PAID
        assert second.data['remaining_amount'] == Decimal("0.00")

    def test_tax_rate_rounded_to_stored_precision(self, billing_service, branch, checked_in_booking):
        result = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.12345"))
        bill = result.data
        assert bill['tax_rate'] == Decimal("0.1235")
        assert bill['tax'] == Decimal("9139.00")
        assert bill['total_amount'] == Decimal("83139.00")

    def test_refresh_keeps_total_after_fractional_rate(self, db_session, billing_service, branch,
                                                       checked_in_booking):
        generated = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.12345"))
        billing_service.refresh_bill(checked_in_booking)
        db_session.commit()

        bill = billing_service.get_bill(generated.data['bill_id'])
        assert bill.total_amount == generated.data['total_amount']

    def test_negative_discount_rejected(self, billing_service, branch, checked_in_booking):
        result = billing_service.generate_bill(checked_in_booking, branch.id, discount=Decimal("-1"))
        assert result.error_kind == ErrorKind.VALIDATION

    def test_tax_rate_out_of_range(self, billing_service, branch, checked_in_booking):
        result = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("1.5"))
        assert result.error_kind == ErrorKind.VALIDATION

    def test_cancelled_booking_rejected(self, db_session, billing_service, branch, room_101, sample_guest):
        bookings = BookingService(db_session)
        created = bookings.create_booking(
            sample_guest.id, datetime(2025, 11, 1, 14), datetime(2025, 11, 3, 11), [room_101.id], branch.id
        )
        bookings.cancel_booking(created.data['booking_id'], branch.id)

        result = billing_service.generate_bill(created.data['booking_id'], branch.id)
        assert result.error_kind == ErrorKind.VALIDATION

    def test_unknown_booking(self, billing_service, branch):
        assert billing_service.generate_bill(9999, branch.id).error_kind == ErrorKind.NOT_FOUND

    def test_other_branch_booking_not_found(self, billing_service, other_branch, checked_in_booking):
        result = billing_service.generate_bill(checked_in_booking, other_branch.id)
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_get_bills_scoped_to_branch(self, billing_service, branch, other_branch, bill_id):
        assert [b['bill_id'] for b in billing_service.get_bills(branch.id)] == [bill_id]
        assert billing_service.get_bills(other_branch.id) == []


class TestRecordPayment:
    def test_full_payment_marks_paid(self, billing_service, branch, bill_id):
        result = billing_service.record_payment(bill_id, PaymentMethod.CARD, Decimal("81400"), branch_id=branch.id)
        assert result.success
        assert result.data['bill_status'] == BillStatus.PAID
        assert result.data['remaining_amount'] == Decimal("0.00")

    def test_partial_then_full(self, billing_service, branch, bill_id):
        first = billing_service.record_payment(bill_id, "cash", Decimal("40000"), branch_id=branch.id)
        assert first.data['bill_status'] == BillStatus.PARTIALLY_PAID
        assert first.data['remaining_amount'] == Decimal("41400.00")

        second = billing_service.record_payment(bill_id, "online", Decimal("41400"), branch_id=branch.id)
        assert second.data['bill_status'] == BillStatus.PAID
        assert second.data['total_paid'] == Decimal("81400.00")

    def test_single_overpayment_rejected(self, billing_service, branch, bill_id):
        result = billing_service.record_payment(bill_id, "cash", Decimal("81400.01"), branch_id=branch.id)
        assert result.error_kind == ErrorKind.VALIDATION

    def test_cumulative_overpayment_rejected(self, billing_service, branch, bill_id):
        """单笔不超过总额，但累计超过剩余应付"""
        billing_service.record_payment(bill_id, "cash", Decimal("60000"), branch_id=branch.id)
        result = billing_service.record_payment(bill_id, "cash", Decimal("30000"), branch_id=branch.id)
        assert result.error_kind == ErrorKind.VALIDATION
        assert billing_service.get_paid_amount(bill_id) == Decimal("60000.00")

    def test_non_positive_amount(self, billing_service, branch, bill_id):
        assert billing_service.record_payment(bill_id, "cash", 0, branch_id=branch.id).error_kind == ErrorKind.VALIDATION
        assert billing_service.record_payment(bill_id, "cash", -5, branch_id=branch.id).error_kind == ErrorKind.VALIDATION

    def test_unknown_method(self, billing_service, branch, bill_id):
        result = billing_service.record_payment(bill_id, "cheque", Decimal("10"), branch_id=branch.id)
        assert result.error_kind == ErrorKind.VALIDATION

    def test_unknown_bill(self, billing_service, branch):
        result = billing_service.record_payment(9999, "cash", Decimal("10"), branch_id=branch.id)
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_other_branch_bill_not_found(self, billing_service, other_branch, bill_id):
        result = billing_service.record_payment(bill_id, "cash", Decimal("10"), branch_id=other_branch.id)
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_regeneration_keeps_paid_status(self, billing_service, branch, checked_in_booking, bill_id):
        billing_service.record_payment(bill_id, "card", Decimal("81400"), branch_id=branch.id)
        result = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.1"))
        assert result.data['status'] == BillStatus.PAID
        assert result.data['paid_amount'] == Decimal("81400.00")

    def test_regeneration_with_higher_total_becomes_partial(self, billing_service, branch,
                                                            checked_in_booking, bill_id):
        billing_service.record_payment(bill_id, "card", Decimal("81400"), branch_id=branch.id)
        result = billing_service.generate_bill(checked_in_booking, branch.id, tax_rate=Decimal("0.2"))
        assert result.data['total_amount'] == Decimal("88800.00")
        assert result.data['status'] == BillStatus.PARTIALLY_PAID

    def test_regeneration_below_paid_amount_rejected(self, billing_service, branch, checked_in_booking, bill_id):
        """已付 81,400 后把总额打折到 26,400：拒绝，账单保持原样"""
        billing_service.record_payment(bill_id, "card", Decimal("81400"), branch_id=branch.id)

        result = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("50000"), tax_rate=Decimal("0.1")
        )
        assert result.error_kind == ErrorKind.VALIDATION

        bill = billing_service.get_bill(bill_id)
        assert bill.total_amount == Decimal("81400.00")
        assert bill.discount == Decimal("0.00")
        assert bill.status == BillStatus.PAID
        snapshot = billing_service.get_bill_snapshot(bill)
        assert snapshot['remaining_amount'] == Decimal("0.00")

    def test_regeneration_down_to_paid_amount_allowed(self, billing_service, branch, checked_in_booking, bill_id):
        billing_service.record_payment(bill_id, "cash", Decimal("40000"), branch_id=branch.id)
        result = billing_service.generate_bill(
            checked_in_booking, branch.id, discount=Decimal("34000"), tax_rate=Decimal("0")
        )
        assert result.data['total_amount'] == Decimal("40000.00")
        assert result.data['status'] == BillStatus.PAID
