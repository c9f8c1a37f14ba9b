"""Third party and cost center repositories."""

from ohada_kernel.models.third_party import CostCenter, ThirdParty
from ohada_kernel.repositories.base import TenantScopedRepository


class ThirdPartyRepository(TenantScopedRepository[ThirdParty]):
    model = ThirdParty


class CostCenterRepository(TenantScopedRepository[CostCenter]):
    model = CostCenter
