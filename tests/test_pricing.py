import unittest

from cartlink.models import DiscountTier
from cartlink.pricing import calculate_best_price


def buy(threshold, price, cap=None, club=False, active=True):
    return DiscountTier(
        threshold_qty=threshold,
        bundle_price=price,
        max_discounted_qty=cap,
        club_only=club,
        active=active,
    )


class TestUncappedTier(unittest.TestCase):
    def setUp(self):
        self.tiers = [buy(2, 10)]

    def test_exact_bundle(self):
        quote = calculate_best_price(6, 2, self.tiers)
        self.assertEqual(quote.total_price, 10)
        self.assertEqual(quote.unit_price, 5)
        self.assertEqual(quote.sale_annotation, "Sale: 2 for 10 ILS (Save 2.00 ILS)")

    def test_leftover_unit_charged_at_regular_price(self):
        quote = calculate_best_price(6, 3, self.tiers)
        self.assertEqual(quote.total_price, 16)
        self.assertAlmostEqual(quote.unit_price, 16 / 3)

    def test_two_bundles(self):
        self.assertEqual(calculate_best_price(6, 4, self.tiers).total_price, 20)


class TestCappedTier(unittest.TestCase):
    def setUp(self):
        self.tiers = [buy(3, 15, cap=6)]

    def test_two_full_bundles_within_cap(self):
        quote = calculate_best_price(6, 6, self.tiers)
        self.assertEqual(quote.total_price, 30)
        self.assertIn("(Max 6 items on sale)", quote.sale_annotation)

    def test_units_beyond_cap_revert_to_regular(self):
        self.assertEqual(calculate_best_price(6, 9, self.tiers).total_price, 48)

    def test_leftover_inside_cap_is_regular(self):
        # 5 discounted-eligible units: one bundle of 3 + 2 regular.
        self.assertEqual(calculate_best_price(6, 5, self.tiers).total_price, 27)


class TestNoQualifyingTier(unittest.TestCase):
    def test_potential_hint_keeps_regular_total(self):
        quote = calculate_best_price(6, 1, [buy(2, 10)])
        self.assertEqual(quote.total_price, 6)
        self.assertEqual(quote.unit_price, 6)
        self.assertEqual(quote.sale_annotation, "Add 1 more for sale: 2 for 10 ILS")

    def test_zero_quantity(self):
        quote = calculate_best_price(6, 0, [buy(2, 10)])
        self.assertEqual(quote.total_price, 0)
        self.assertIsNone(quote.sale_annotation)

    def test_no_tiers(self):
        quote = calculate_best_price(4.5, 3, [])
        self.assertEqual(quote.total_price, 13.5)
        self.assertIsNone(quote.sale_annotation)

    def test_tier_that_does_not_beat_regular_is_not_applied(self):
        quote = calculate_best_price(6, 2, [buy(2, 13)])
        self.assertEqual(quote.total_price, 12)
        self.assertIsNone(quote.sale_annotation)

    def test_malformed_and_inactive_tiers_are_ignored(self):
        tiers = [buy(0, 10), buy(2, 0), buy(2, 5, active=False)]
        quote = calculate_best_price(6, 2, tiers)
        self.assertEqual(quote.total_price, 12)
        self.assertIsNone(quote.sale_annotation)

    def test_quantity_at_or_above_cap_gets_no_hint(self):
        quote = calculate_best_price(6, 4, [buy(5, 20, cap=4)])
        self.assertEqual(quote.total_price, 24)
        self.assertIsNone(quote.sale_annotation)

    def test_cap_below_threshold_lowers_the_hint_target(self):
        quote = calculate_best_price(6, 1, [buy(3, 12, cap=2)])
        self.assertEqual(quote.sale_annotation, "Add 1 more for sale: 3 for 12 ILS (Max 2 items on sale)")

    def test_potential_hint_prefers_cheapest_unit_price(self):
        quote = calculate_best_price(6, 1, [buy(2, 11), buy(3, 15)])
        self.assertTrue(quote.sale_annotation.startswith("Add 2 more for sale: 3 for 15"))


class TestTierSelection(unittest.TestCase):
    def test_lowest_total_wins(self):
        quote = calculate_best_price(6, 4, [buy(2, 11), buy(4, 18)])
        self.assertEqual(quote.total_price, 18)
        self.assertTrue(quote.sale_annotation.startswith("Sale: 4 for 18 ILS"))

    def test_tie_keeps_first_tier(self):
        first = buy(2, 10)
        quote = calculate_best_price(6, 2, [first, buy(2, 10, club=True)])
        self.assertNotIn("Club", quote.sale_annotation)

    def test_club_tier_is_annotated_not_gated(self):
        quote = calculate_best_price(6, 2, [buy(2, 9, club=True)])
        self.assertEqual(quote.total_price, 9)
        self.assertIn("(Club members only)", quote.sale_annotation)

    def test_totals_are_not_rounded(self):
        quote = calculate_best_price(3.333, 3, [buy(2, 5.555)])
        self.assertAlmostEqual(quote.total_price, 5.555 + 3.333)
        self.assertIn("Save 1.11 ILS", quote.sale_annotation)


class TestDiscountTierFromRaw(unittest.TestCase):
    def test_maps_sale_record(self):
        tier = DiscountTier.from_raw(
            {"code": 77, "cmt": 3, "scm": 20, "is_club": 1, "active": 1, "max_in_doc": 6, "from": "2024-01-01", "label": "3 ב-20"}
        )
        self.assertEqual(tier.threshold_qty, 3)
        self.assertEqual(tier.bundle_price, 20)
        self.assertEqual(tier.max_discounted_qty, 6)
        self.assertTrue(tier.club_only)
        self.assertTrue(tier.active)
        self.assertEqual(tier.code, "77")

    def test_zero_cap_means_uncapped(self):
        tier = DiscountTier.from_raw({"cmt": 2, "scm": 10, "active": 1, "max_in_doc": 0})
        self.assertIsNone(tier.max_discounted_qty)
        self.assertFalse(tier.club_only)

    def test_garbage_fields_do_not_raise(self):
        tier = DiscountTier.from_raw({"cmt": "x", "scm": None, "active": "1"})
        self.assertFalse(tier.is_well_formed)
