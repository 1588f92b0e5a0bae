"""Tests for the plan catalog and credit-cost calculation."""

import pytest
from pydantic import ValidationError

from modules.billing.catalog import DEFAULT_CATALOG_CONFIG, PlanCatalog, load_catalog_config
from modules.billing.exceptions import (
    ForbiddenTierError,
    InvalidPriceIdError,
    UnknownQualityTierError,
    UnsupportedScaleError,
)
from modules.billing.interfaces import IPlanCatalog
from modules.billing.models import (
    CatalogConfig,
    CreditCostConfig,
    CreditPack,
    Plan,
    PriceKind,
    QualityTier,
    UpscaleOptions,
)


HOBBY = "price_1SZmVyALMLhQocpf0H7n5ls8"
PRO = "price_1SZmVzALMLhQocpfPyRX2W8D"
BUSINESS = "price_1SZmVzALMLhQocpfqPk9spg4"
SMALL_PACK = "price_1SbAASALMLhQocpfGUg3wLXM"


@pytest.fixture
def catalog():
    return PlanCatalog()


class TestPriceResolution:
    def test_resolves_plan_price(self, catalog):
        """A plan price should resolve to its plan."""
        entry = catalog.resolve_price_id(PRO)
        assert entry.kind == PriceKind.PLAN
        assert entry.plan.key == "pro"
        assert entry.credits == 1000

    def test_resolves_pack_price(self, catalog):
        """A pack price should resolve to its credit pack."""
        entry = catalog.resolve_price_id(SMALL_PACK)
        assert entry.kind == PriceKind.PACK
        assert entry.pack.credits == 50
        assert entry.credits == 50

    def test_unknown_price_is_none(self, catalog):
        assert catalog.resolve_price_id("price_unknown") is None

    def test_assert_known_price_id_raises(self, catalog):
        """Unknown prices should raise INVALID_PRICE_ID."""
        with pytest.raises(InvalidPriceIdError) as exc_info:
            catalog.assert_known_price_id("price_unknown")
        assert exc_info.value.code == "INVALID_PRICE_ID"
        assert exc_info.value.status_code == 400

    def test_require_plan_price_rejects_pack(self, catalog):
        """A credit pack is not a valid plan-change target."""
        with pytest.raises(InvalidPriceIdError) as exc_info:
            catalog.require_plan_price(SMALL_PACK)
        assert "not a subscription plan" in exc_info.value.message

    def test_require_plan_price(self, catalog):
        assert catalog.require_plan_price(HOBBY).key == "hobby"

    def test_disabled_plan_is_not_resolvable(self):
        """Disabled catalog entries should not resolve."""
        config = CatalogConfig(
            plans=[
                Plan(key="a", name="A", price_id="price_a", price_in_cents=100,
                     credits_per_cycle=10, batch_limit=1, enabled=False),
            ],
            quality_tiers=[QualityTier(key="quick", label="Quick", credits=1, model_id="m")],
        )
        catalog = PlanCatalog(config)
        assert catalog.resolve_price_id("price_a") is None
        assert catalog.plans == []

    def test_duplicate_price_ids_rejected(self):
        """Config validation should reject a price id used twice."""
        with pytest.raises(ValidationError):
            CatalogConfig(
                plans=[
                    Plan(key="a", name="A", price_id="price_x", price_in_cents=100,
                         credits_per_cycle=10, batch_limit=1),
                ],
                credit_packs=[
                    CreditPack(key="p", name="P", price_id="price_x", price_in_cents=100, credits=5),
                ],
                quality_tiers=[QualityTier(key="quick", label="Quick", credits=1, model_id="m")],
            )


class TestIsDowngrade:
    def test_fewer_credits_is_downgrade(self, catalog):
        assert catalog.is_downgrade(PRO, HOBBY) is True
        assert catalog.is_downgrade(BUSINESS, PRO) is True

    def test_more_credits_is_not_downgrade(self, catalog):
        assert catalog.is_downgrade(HOBBY, PRO) is False
        assert catalog.is_downgrade(HOBBY, BUSINESS) is False

    def test_same_price_is_not_downgrade(self, catalog):
        assert catalog.is_downgrade(PRO, PRO) is False

    def test_equal_credits_is_not_downgrade(self):
        """Ties should be treated as upgrades."""
        config = CatalogConfig(
            plans=[
                Plan(key="monthly", name="Monthly", price_id="price_m", price_in_cents=1000,
                     credits_per_cycle=100, batch_limit=5),
                Plan(key="yearly", name="Yearly", price_id="price_y", price_in_cents=9000,
                     credits_per_cycle=100, batch_limit=5, interval="year"),
            ],
            quality_tiers=[QualityTier(key="quick", label="Quick", credits=1, model_id="m")],
        )
        catalog = PlanCatalog(config)
        assert catalog.is_downgrade("price_m", "price_y") is False
        assert catalog.is_downgrade("price_y", "price_m") is False

    def test_unknown_prices_are_not_downgrades(self, catalog):
        assert catalog.is_downgrade("price_legacy", HOBBY) is False
        assert catalog.is_downgrade(PRO, "price_unknown") is False


class TestTierGating:
    def test_free_user_cannot_use_ultra(self, catalog):
        """Premium quality tiers should require a paid plan."""
        with pytest.raises(ForbiddenTierError) as exc_info:
            catalog.assert_tier_allowed("ultra", "free")
        error = exc_info.value
        assert error.code == "TIER_RESTRICTED"
        assert error.status_code == 403
        assert error.details["required_tier"] == "hobby"
        assert error.details["current_tier"] == "free"

    def test_missing_tier_is_free(self, catalog):
        with pytest.raises(ForbiddenTierError):
            catalog.assert_tier_allowed("face-pro", None)

    def test_paid_user_can_use_ultra(self, catalog):
        catalog.assert_tier_allowed("ultra", "hobby")
        catalog.assert_tier_allowed("ultra", "business")

    def test_free_user_can_use_quick(self, catalog):
        catalog.assert_tier_allowed("quick", "free")

    def test_unknown_quality_tier(self, catalog):
        with pytest.raises(UnknownQualityTierError) as exc_info:
            catalog.get_quality_tier("mystery")
        assert exc_info.value.code == "INVALID_QUALITY_TIER"

    def test_tier_rank(self, catalog):
        assert catalog.tier_rank("free") == 0
        assert catalog.tier_rank("business") > catalog.tier_rank("pro") > catalog.tier_rank("hobby")
        assert catalog.tier_rank("unknown") == 0
        assert catalog.tier_rank(None) == 0

    @pytest.mark.parametrize("tier,limit", [
        ("free", 1),
        (None, 1),
        ("hobby", 10),
        ("pro", 50),
        ("business", 500),
    ])
    def test_batch_limit_for_tier(self, catalog, tier, limit):
        assert catalog.batch_limit_for_tier(tier) == limit


class TestCreditCost:
    def test_quick_tier_costs_one(self, catalog):
        cost = catalog.calculate_credit_cost("quick", 2)
        assert cost.total == 1
        assert cost.base_credits == 1
        assert cost.addon_credits == 0

    def test_priority_processing_adds_cost(self, catalog):
        cost = catalog.calculate_credit_cost("hd-upscale", 4, UpscaleOptions(priority_processing=True))
        assert cost.base_credits == 4
        assert cost.addon_credits == 1
        assert cost.total == 5

    def test_scale_multiplier_rounds_up(self):
        """Fractional costs should round up."""
        config = DEFAULT_CATALOG_CONFIG.model_copy(update={
            "credit_costs": CreditCostConfig(scale_multipliers={2: 1.0, 4: 1.5}),
        })
        catalog = PlanCatalog(config)
        assert catalog.calculate_credit_cost("face-restore", 4).total == 3
        assert catalog.calculate_credit_cost("quick", 4).total == 2

    def test_cost_is_clamped_to_maximum(self):
        config = DEFAULT_CATALOG_CONFIG.model_copy(update={
            "credit_costs": CreditCostConfig(scale_multipliers={2: 10.0}, maximum_cost=20),
        })
        catalog = PlanCatalog(config)
        assert catalog.calculate_credit_cost("ultra", 2).total == 20

    def test_unsupported_scale(self, catalog):
        with pytest.raises(UnsupportedScaleError) as exc_info:
            catalog.calculate_credit_cost("quick", 3)
        assert exc_info.value.details["supported"] == [2, 4, 8]

    def test_cost_config_bounds_validated(self):
        with pytest.raises(ValidationError):
            CreditCostConfig(minimum_cost=10, maximum_cost=5)


class TestLoadCatalogConfig:
    def test_loads_yaml_override(self, tmp_path):
        """A YAML file should replace the default catalog."""
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "plans:\n"
            "  - key: starter\n"
            "    name: Starter\n"
            "    price_id: price_starter\n"
            "    price_in_cents: 900\n"
            "    credits_per_cycle: 50\n"
            "    batch_limit: 5\n"
            "quality_tiers:\n"
            "  - key: quick\n"
            "    label: Quick\n"
            "    credits: 1\n"
            "    model_id: real-esrgan\n"
            "low_credit_threshold: 3\n"
        )

        catalog = PlanCatalog.from_path(str(path))

        assert catalog.require_plan_price("price_starter").credits_per_cycle == 50
        assert catalog.low_credit_threshold == 3
        assert catalog.resolve_price_id(PRO) is None

    def test_from_path_none_uses_defaults(self):
        catalog = PlanCatalog.from_path(None)
        assert [p.key for p in catalog.plans] == ["hobby", "pro", "business"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog_config(tmp_path / "missing.yaml")


class TestIPlanCatalog:
    def test_catalog_implements_interface(self, catalog):
        """PlanCatalog should satisfy the runtime-checkable protocol."""
        assert isinstance(catalog, IPlanCatalog)


class TestPlanModel:
    def test_max_rollover(self):
        plan = Plan(key="hobby", name="Hobby", price_id="p", price_in_cents=1900,
                    credits_per_cycle=200, batch_limit=10)
        assert plan.max_rollover == 1200

    def test_plan_is_frozen(self):
        plan = DEFAULT_CATALOG_CONFIG.plans[0]
        with pytest.raises(ValidationError):
            plan.credits_per_cycle = 1
