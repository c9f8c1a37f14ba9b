"""Tenant-scoped repositories for the source documents."""

from ohada_kernel.repositories.base import TenantScopedRepository
from ohada_modules.automation.orm import (
    InvoiceModel,
    PaymentModel,
    PayslipModel,
    PurchaseOrderModel,
)


class InvoiceRepository(TenantScopedRepository[InvoiceModel]):
    model = InvoiceModel


class PaymentRepository(TenantScopedRepository[PaymentModel]):
    model = PaymentModel


class PurchaseOrderRepository(TenantScopedRepository[PurchaseOrderModel]):
    model = PurchaseOrderModel


class PayslipRepository(TenantScopedRepository[PayslipModel]):
    model = PayslipModel
