import pytest

from wcefp.client.actions import VoucherRecord
from wcefp.client.errors import FormValidationError
from wcefp.client.vouchers import VoucherManager, available_actions, filter_vouchers, status_label


def _vouchers() -> list[VoucherRecord]:
    return [
        VoucherRecord(code="GIFT-1", status="active", amount=90.0, recipient_name="Giulia Rossi", product_name="Degustazione"),
        VoucherRecord(code="GIFT-2", status="redeemed", amount=65.0, recipient_name="Luca Bianchi", product_name="Corso di pasta"),
        VoucherRecord(code="GIFT-3", status="expired", amount=120.0, recipient_email="sara@example.com"),
    ]


def test_available_actions_depend_on_status() -> None:
    assert available_actions("active") == ("details", "resend_email", "cancel_voucher")
    assert available_actions("redeemed") == ("details", "resend_email")
    assert available_actions("cancelled") == ("details", "resend_email")


def test_status_labels_are_italian() -> None:
    assert status_label("active") == "Attivo"
    assert status_label("redeemed") == "Utilizzato"
    assert status_label("mystery") == "mystery"


def test_filter_vouchers_by_text_and_status() -> None:
    vouchers = _vouchers()

    assert [v.code for v in filter_vouchers(vouchers, search="pasta")] == ["GIFT-2"]
    assert [v.code for v in filter_vouchers(vouchers, search="SARA@")] == ["GIFT-3"]
    assert [v.code for v in filter_vouchers(vouchers, status="active")] == ["GIFT-1"]
    assert len(filter_vouchers(vouchers)) == 3


def test_cancel_updates_local_status(fake_transport) -> None:
    fake_transport.queue("wcefp_voucher_action", {"message": "Voucher annullato"})
    manager = VoucherManager(fake_transport, _vouchers())

    result = manager.perform_action("cancel_voucher", "GIFT-1")

    assert result.message == "Voucher annullato"
    assert manager.vouchers["GIFT-1"].status == "cancelled"
    assert fake_transport.requests[0].action_type == "cancel_voucher"


def test_disallowed_action_is_rejected_before_sending(fake_transport) -> None:
    manager = VoucherManager(fake_transport, _vouchers())

    with pytest.raises(FormValidationError):
        manager.perform_action("cancel_voucher", "GIFT-2")
    with pytest.raises(FormValidationError):
        manager.perform_action("delete_everything", "GIFT-1")

    assert fake_transport.requests == []


def test_details_stores_returned_voucher(fake_transport) -> None:
    fake_transport.queue(
        "wcefp_voucher_action",
        {
            "voucher": {"code": "GIFT-9", "status": "active", "amount": 50.0},
            "formatted_amount": "€50,00",
            "status_label": "Attivo",
        },
    )
    manager = VoucherManager(fake_transport)

    result = manager.details("GIFT-9")

    assert result.formatted_amount == "€50,00"
    assert manager.vouchers["GIFT-9"].amount == 50.0
    assert fake_transport.requests[0].action_type == "get_voucher_details"


def test_analytics(fake_transport) -> None:
    fake_transport.queue(
        "wcefp_get_voucher_analytics",
        {"total_vouchers": 4, "active_vouchers": 2, "redemption_rate": 25.0, "status_breakdown": [{"status": "active", "count": 2}]},
    )

    analytics = VoucherManager(fake_transport).analytics()

    assert analytics.total_vouchers == 4
    assert analytics.status_breakdown[0].count == 2
