"""
定价服务测试
"""

from datetime import date
from decimal import Decimal

import pytest

from ..config.settings import settings
from ..models.catalog import CatalogSnapshot, Extra, FoodOption, Mampara, Package
from ..models.reservation import ExtraSelection, ReservationDraft, normalize_selection
from ..services import pricing_service
from ..services.pricing_service import PricingService

WEDNESDAY = date(2025, 6, 4)
TUESDAY = date(2025, 6, 3)
SATURDAY = date(2025, 6, 7)


@pytest.fixture
def simple_package():
    return Package(id=9, name="Fiesta", price_weekday=Decimal("2000"), price_weekend=Decimal("2500"))


class TestPackagePrice:
    """套餐价格测试"""

    @pytest.mark.parametrize("day", [date(2025, 6, 2), date(2025, 6, 4), date(2025, 6, 5)])
    def test_weekday_rate(self, simple_package, day):
        """周一、周三、周四按工作日价"""
        assert pricing_service.package_price(simple_package, day) == Decimal("2000")

    @pytest.mark.parametrize("day", [date(2025, 6, 6), date(2025, 6, 7), date(2025, 6, 8)])
    def test_weekend_rate(self, simple_package, day):
        """周五至周日按周末价"""
        assert pricing_service.package_price(simple_package, day) == Decimal("2500")

    def test_wednesday_and_saturday(self, simple_package):
        """周三 2000，周六 2500"""
        assert pricing_service.package_price(simple_package, WEDNESDAY) == Decimal("2000")
        assert pricing_service.package_price(simple_package, SATURDAY) == Decimal("2500")

    def test_tuesday_surcharge(self, simple_package):
        """周二 = 工作日价 + 附加费"""
        expected = Decimal("2000") + Decimal(str(settings.tuesday_surcharge))
        assert pricing_service.package_price(simple_package, TUESDAY) == expected

    def test_tuesday_surcharge_default_amount(self, simple_package, monkeypatch):
        """默认附加费 1500 时周二价格为 3500"""
        monkeypatch.setattr(settings, "tuesday_surcharge", 1500.0)
        assert pricing_service.package_price(simple_package, TUESDAY) == Decimal("3500")

    def test_tuesday_surcharge_not_stacked(self, simple_package):
        """重复计算不会叠加附加费"""
        first = pricing_service.package_price(simple_package, TUESDAY)
        second = pricing_service.package_price(simple_package, TUESDAY)
        assert first == second

    def test_iso_string_with_offset(self, simple_package):
        """带时间和时区的字符串只看日历日"""
        assert pricing_service.package_price(simple_package, "2025-06-07T23:30:00-06:00") == Decimal("2500")

    def test_missing_inputs_are_zero(self, simple_package):
        """缺少套餐或日期时为 0"""
        assert pricing_service.package_price(None, WEDNESDAY) == Decimal("0")
        assert pricing_service.package_price(simple_package, None) == Decimal("0")
        assert pricing_service.package_price(simple_package, "not-a-date") == Decimal("0")

    def test_unparseable_price_is_zero(self):
        """价格无法解析时按 0 计"""
        broken = Package(id=5, price_weekday="abc", price_weekend="NaN")
        assert broken.price_weekday is None
        assert pricing_service.package_price(broken, WEDNESDAY) == Decimal("0")
        assert pricing_service.package_price(broken, SATURDAY) == Decimal("0")

    def test_spanish_field_names(self):
        """兼容后端的西班牙语字段"""
        package = Package.model_validate({
            "id": 7, "nombre": "Clásico",
            "precio_lunes_jueves": "1800.00", "precio_viernes_domingo": 2200,
        })
        assert pricing_service.package_price(package, WEDNESDAY) == Decimal("1800.00")
        assert pricing_service.package_price(package, SATURDAY) == Decimal("2200")


class TestSelectionPrices:
    """餐食选项与背景板价格测试"""

    def test_catalog_lookup_by_id(self, catalog):
        assert pricing_service.food_option_price(2, catalog) == Decimal("800")
        assert pricing_service.mampara_price("11", catalog) == Decimal("1800")

    def test_embedded_price_wins(self, catalog):
        """选择时携带的价格优先于目录"""
        option = {"value": 2, "label": "Pizza", "data": {"extra_price": 750}}
        assert pricing_service.food_option_price(option, catalog) == Decimal("750")

    def test_embedded_without_price_falls_back(self, catalog):
        option = {"value": 1, "label": "Tacos"}
        assert pricing_service.food_option_price(option, catalog) == Decimal("500")

    def test_catalog_model_instance(self, catalog):
        mampara = Mampara(id=99, theme_id=1, pieces=2, price=Decimal("900"))
        assert pricing_service.mampara_price(mampara, catalog) == Decimal("900")

    def test_unselected_or_unknown_is_zero(self, catalog):
        assert pricing_service.food_option_price(None, catalog) == Decimal("0")
        assert pricing_service.food_option_price("", catalog) == Decimal("0")
        assert pricing_service.food_option_price(404, catalog) == Decimal("0")
        assert pricing_service.mampara_price(10, None) == Decimal("0")


class TestExtrasTotal:
    """附加项小计测试"""

    def test_price_times_quantity(self):
        catalog = CatalogSnapshot(extras=(Extra(id=1, name="Globos", price=Decimal("100")),))
        assert pricing_service.extras_total([{"id": 1, "quantity": 2}], catalog) == Decimal("200")

    def test_quantity_zero_contributes_nothing(self):
        catalog = CatalogSnapshot(extras=(Extra(id=1, name="Globos", price=Decimal("100")),))
        assert pricing_service.extras_total([{"id": 1, "quantity": 0}], catalog) == Decimal("0")
        assert pricing_service.extras_total([], catalog) == Decimal("0")

    def test_adding_extra_increases_total(self, catalog):
        """添加附加项使小计增加 单价 × 数量，移除后恢复"""
        before = [ExtraSelection(id=1, quantity=1)]
        after = before + [ExtraSelection(id=2, quantity=3)]

        base_total = pricing_service.extras_total(before, catalog)
        new_total = pricing_service.extras_total(after, catalog)

        assert new_total - base_total == Decimal("1200") * 3
        assert pricing_service.extras_total(after[:1], catalog) == base_total

    def test_unknown_extra_skipped(self, catalog):
        extras = [{"id": 1, "quantity": 1}, {"id": 999, "quantity": 5}, {"id": "x", "quantity": 1}]
        assert pricing_service.extras_total(extras, catalog) == Decimal("350")

    def test_lines_carry_names(self, catalog):
        lines = pricing_service.extras_lines([ExtraSelection(id=3, quantity=2)], catalog)
        assert len(lines) == 1
        assert lines[0].name == "Pastel"
        assert lines[0].subtotal == Decimal("901.00")


class TestTotal:
    """总价测试"""

    @pytest.fixture
    def full_draft(self):
        return ReservationDraft(
            package_id=1,
            date=WEDNESDAY,
            food_option=normalize_selection(2, FoodOption),
            mampara=normalize_selection(10, Mampara),
            extras=[ExtraSelection(id=1, quantity=2), ExtraSelection(id=3, quantity=1)],
        )

    def test_sum_of_all_terms(self, catalog, full_draft):
        """套餐 5000 + 餐食 800 + 背景板 1200 + 附加项 700 + 450.50"""
        assert pricing_service.total(full_draft, catalog) == Decimal("8150.50")

    def test_empty_draft_is_zero(self, catalog):
        """未选套餐和日期时总价为 0，不抛异常"""
        assert pricing_service.total(ReservationDraft(), catalog) == Decimal("0.00")
        assert pricing_service.total(None, catalog) == Decimal("0")

    def test_idempotent(self, catalog, full_draft):
        """未修改的草稿重复计算结果相同"""
        first = pricing_service.total(full_draft, catalog)
        second = pricing_service.total(full_draft, catalog)
        assert first == second

    def test_rounding_half_up(self):
        catalog = CatalogSnapshot(
            packages=(Package(id=1, price_weekday=Decimal("100.005"), price_weekend=Decimal("0")),)
        )
        draft = ReservationDraft(package_id=1, date=WEDNESDAY)
        assert pricing_service.total(draft, catalog) == Decimal("100.01")

    def test_tuesday_fee_in_breakdown(self, catalog):
        draft = ReservationDraft(package_id=1, date=TUESDAY)
        breakdown = pricing_service.price_breakdown(draft, catalog)
        fee = Decimal(str(settings.tuesday_surcharge))
        assert breakdown.tuesday_fee == fee
        assert breakdown.base_package_price == Decimal("5000")
        assert breakdown.computed_total == Decimal("5000") + fee

    def test_no_tuesday_fee_without_package(self, catalog):
        draft = ReservationDraft(date=TUESDAY)
        assert pricing_service.price_breakdown(draft, catalog).tuesday_fee == Decimal("0")

    def test_manual_total_kept_in_breakdown(self, catalog, full_draft):
        """手工金额时最终总价取手工值，计算值仍然给出"""
        full_draft.manual_total = True
        full_draft.total = Decimal("7000")
        breakdown = PricingService(catalog).quote(full_draft)

        assert breakdown.total == Decimal("7000.00")
        assert breakdown.computed_total == Decimal("8150.50")
        assert breakdown.diverges is True
        assert pricing_service.total(full_draft, catalog) == Decimal("8150.50")


class TestCarriedPriceReload:
    """草稿重新解析后仍使用携带的价格"""

    def test_embedded_dict_parsed_as_catalog_model(self, catalog):
        draft = ReservationDraft.model_validate(
            {"food_option": {"id": 1, "embedded": {"id": 1, "extra_price": "99"}}})

        assert isinstance(draft.food_option.embedded, FoodOption)
        assert pricing_service.food_option_price(draft.food_option, catalog) == Decimal("99")

    @pytest.mark.parametrize("mode", ["python", "json"])
    def test_dump_and_reload(self, catalog, mode):
        draft = ReservationDraft(
            package_id=1,
            theme=1,
            food_option=FoodOption(id=1, extra_price=Decimal("650")),
            mampara=Mampara(id=10, theme_id=1, price=Decimal("999")),
        )

        reloaded = ReservationDraft.model_validate(draft.model_dump(mode=mode))

        assert reloaded.theme_id == 1
        assert reloaded.mampara.embedded.theme_id == 1
        assert pricing_service.food_option_price(reloaded.food_option, catalog) == Decimal("650")
        assert pricing_service.mampara_price(reloaded.mampara, catalog) == Decimal("999")
