"""
Billing catalog module.

Holds the static plan catalog, credit packs, quality tiers and the
credit-cost formula.

Public API:
- IPlanCatalog: Interface for catalog lookups
- PlanCatalog: Catalog implementation
- Plan, CreditPack, QualityTier: Catalog entries
- CatalogConfig: Catalog configuration (defaults or YAML override)
"""

from .interfaces import IPlanCatalog
from .models import (
    BillingInterval,
    PriceKind,
    Plan,
    CreditPack,
    PriceEntry,
    QualityTier,
    CreditCostConfig,
    FreeUserConfig,
    CatalogConfig,
    UpscaleOptions,
    CostBreakdown,
)
from .exceptions import (
    InvalidPriceIdError,
    UnknownQualityTierError,
    UnsupportedScaleError,
    ForbiddenTierError,
)
from .catalog import (
    DEFAULT_CATALOG_CONFIG,
    FREE_TIER,
    PlanCatalog,
    load_catalog_config,
)

__all__ = [
    # Interfaces
    "IPlanCatalog",
    # Models
    "BillingInterval",
    "PriceKind",
    "Plan",
    "CreditPack",
    "PriceEntry",
    "QualityTier",
    "CreditCostConfig",
    "FreeUserConfig",
    "CatalogConfig",
    "UpscaleOptions",
    "CostBreakdown",
    # Exceptions
    "InvalidPriceIdError",
    "UnknownQualityTierError",
    "UnsupportedScaleError",
    "ForbiddenTierError",
    # Catalog
    "DEFAULT_CATALOG_CONFIG",
    "FREE_TIER",
    "PlanCatalog",
    "load_catalog_config",
]
