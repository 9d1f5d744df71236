"""Gift voucher administration: status rules, list filtering and server actions."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from .actions import VoucherActionRequest, VoucherActionResult, VoucherAnalytics, VoucherAnalyticsRequest, VoucherRecord
from .errors import FormValidationError
from .logging import get_logger
from .transport import AjaxTransport

logger = get_logger(__name__)


class VoucherStatus(str, Enum):
    ACTIVE = "active"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


STATUS_LABELS = {
    VoucherStatus.ACTIVE: "Attivo",
    VoucherStatus.REDEEMED: "Utilizzato",
    VoucherStatus.EXPIRED: "Scaduto",
    VoucherStatus.CANCELLED: "Annullato",
}

DETAILS_ACTION = "details"
SERVER_ACTIONS = ("resend_email", "cancel_voucher")


def status_label(status: str) -> str:
    try:
        return STATUS_LABELS[VoucherStatus(status)]
    except ValueError:
        return status


def available_actions(status: str) -> tuple[str, ...]:
    if status == VoucherStatus.ACTIVE.value:
        return (DETAILS_ACTION, "resend_email", "cancel_voucher")
    return (DETAILS_ACTION, "resend_email")


def _search_text(voucher: VoucherRecord) -> str:
    parts = (
        voucher.code,
        voucher.recipient_name,
        voucher.recipient_email,
        voucher.sender_name,
        voucher.product_name,
        status_label(voucher.status),
    )
    return " ".join(part for part in parts if part).lower()


def filter_vouchers(vouchers: Iterable[VoucherRecord], search: str = "", status: str = "") -> list[VoucherRecord]:
    term = search.lower()
    return [
        voucher
        for voucher in vouchers
        if (not term or term in _search_text(voucher)) and (not status or voucher.status == status)
    ]


class VoucherManager:
    def __init__(self, transport: AjaxTransport, vouchers: Iterable[VoucherRecord] = ()) -> None:
        self._transport = transport
        self.vouchers: dict[str, VoucherRecord] = {voucher.code: voucher for voucher in vouchers}

    def actions_for(self, code: str) -> tuple[str, ...]:
        voucher = self.vouchers.get(code)
        return available_actions(voucher.status if voucher else "")

    def perform_action(self, action: str, code: str) -> VoucherActionResult:
        if action not in SERVER_ACTIONS:
            raise FormValidationError([f"Azione non valida: {action}"])
        if code in self.vouchers and action not in self.actions_for(code):
            raise FormValidationError([f"Azione {action} non disponibile per il voucher {code}"])

        result = self._transport.call(VoucherActionRequest(action_type=action, voucher_code=code))
        logger.info("Voucher %s: %s", code, action)
        if action == "cancel_voucher" and code in self.vouchers:
            self.vouchers[code] = self.vouchers[code].model_copy(update={"status": VoucherStatus.CANCELLED.value})
        return result

    def details(self, code: str) -> VoucherActionResult:
        result = self._transport.call(VoucherActionRequest(action_type="get_voucher_details", voucher_code=code))
        if result.voucher is not None:
            self.vouchers[result.voucher.code] = result.voucher
        return result

    def analytics(self) -> VoucherAnalytics:
        return self._transport.call(VoucherAnalyticsRequest())

    def filtered(self, search: str = "", status: str = "") -> list[VoucherRecord]:
        return filter_vouchers(self.vouchers.values(), search, status)
