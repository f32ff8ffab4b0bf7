"""Billing domain models."""

from core.models.wire import WireModel
from core.models.line_item import LineItem
from core.models.invoice import (
    TaxMode, GstSplit, InvoiceStatus, InvoiceTotals, TaxBreakdown,
    InvoiceDraft, InvoiceRecord, OutstandingInvoice, InvoiceEmail, default_due_date,
)
from core.models.receipt import PaymentMethod, Allocation, AllocationResult, ReceiptDraft, ReceiptRecord
from core.models.credit_note import CreditReason, CreditNoteAmounts, CreditNoteDraft, CreditNoteRecord
from core.models.reference import (
    Customer, ServiceType, ClientType,
    CustomerCreate, CustomerUpdate, ServiceTypeInput, ClientTypeInput,
    TaxCategory, GstDisplayFormat, FilingFrequency, TaxRateEntry, GstSettings,
)
from core.models.dashboard import DashboardMetrics, RevenueTrendPoint, AgingBucket, CustomerRevenue

__all__ = [
    "WireModel",
    # LineItem
    "LineItem",
    # Invoice
    "TaxMode", "GstSplit", "InvoiceStatus", "InvoiceTotals", "TaxBreakdown",
    "InvoiceDraft", "InvoiceRecord", "OutstandingInvoice", "InvoiceEmail", "default_due_date",
    # Receipt
    "PaymentMethod", "Allocation", "AllocationResult", "ReceiptDraft", "ReceiptRecord",
    # CreditNote
    "CreditReason", "CreditNoteAmounts", "CreditNoteDraft", "CreditNoteRecord",
    # Reference
    "Customer", "ServiceType", "ClientType",
    "CustomerCreate", "CustomerUpdate", "ServiceTypeInput", "ClientTypeInput",
    "TaxCategory", "GstDisplayFormat", "FilingFrequency", "TaxRateEntry", "GstSettings",
    # Dashboard
    "DashboardMetrics", "RevenueTrendPoint", "AgingBucket", "CustomerRevenue",
]
