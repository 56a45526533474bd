import unittest
from datetime import date
from decimal import Decimal

from caisse.validation import (
    CASH_METHODS,
    EXPENSE_CATEGORY_LABELS,
    MAX_QUANTITY,
    PAYMENT_METHOD_LABELS,
    ExpenseCategory,
    InvalidDomainValue,
    RevenueKind,
    SettlementMethod,
    ValidationError,
    difference_status,
    is_cash_method,
    optional_text,
    parse_amount,
    parse_expense_category,
    parse_quantity,
    parse_query_int,
    parse_revenue_kind,
    parse_session_date,
    parse_settlement_method,
    require_text,
    to_money,
)


class VocabularyTests(unittest.TestCase):
    def test_settlement_methods_parse(self):
        self.assertIs(parse_settlement_method("cash"), SettlementMethod.CASH)
        self.assertIs(parse_settlement_method("airtel_money"), SettlementMethod.AIRTEL_MONEY)
        self.assertIs(parse_settlement_method("moov_money"), SettlementMethod.MOOV_MONEY)
        self.assertIs(parse_settlement_method("card"), SettlementMethod.CARD)
        self.assertIs(parse_settlement_method("other"), SettlementMethod.OTHER)

    def test_whitespace_and_case_are_normalised(self):
        self.assertIs(parse_settlement_method("  Cash "), SettlementMethod.CASH)
        self.assertIs(parse_expense_category("SALARY"), ExpenseCategory.SALARY)

    def test_enum_member_passes_through(self):
        self.assertIs(parse_settlement_method(SettlementMethod.CARD), SettlementMethod.CARD)
        self.assertIs(parse_revenue_kind(RevenueKind.GOOD), RevenueKind.GOOD)

    def test_unknown_method_rejected(self):
        with self.assertRaises(InvalidDomainValue) as cm:
            parse_settlement_method("bitcoin")
        self.assertEqual(cm.exception.field, "settlement_method")
        self.assertEqual(cm.exception.value, "bitcoin")
        self.assertIn("cash", cm.exception.allowed)

    def test_invalid_domain_value_is_a_validation_error(self):
        with self.assertRaises(ValidationError):
            parse_expense_category("gambling")

    def test_non_string_tag_rejected(self):
        for bad in (None, 1, ["cash"]):
            with self.assertRaises(InvalidDomainValue):
                parse_settlement_method(bad)

    def test_every_category_parses(self):
        for tag in ("stock_purchase", "salary", "utilities", "transport",
                    "maintenance", "marketing", "rent", "other"):
            self.assertEqual(parse_expense_category(tag).value, tag)

    def test_revenue_kinds(self):
        self.assertIs(parse_revenue_kind("good"), RevenueKind.GOOD)
        self.assertIs(parse_revenue_kind("service"), RevenueKind.SERVICE)
        with self.assertRaises(InvalidDomainValue):
            parse_revenue_kind("gift")

    def test_cash_subset_is_exactly_cash(self):
        self.assertEqual(CASH_METHODS, frozenset({SettlementMethod.CASH}))
        self.assertTrue(is_cash_method(SettlementMethod.CASH))
        self.assertFalse(is_cash_method(SettlementMethod.AIRTEL_MONEY))
        self.assertFalse(is_cash_method(SettlementMethod.CARD))
        self.assertTrue(is_cash_method("cash"))
        self.assertFalse(is_cash_method("legacy_voucher"))

    def test_every_tag_has_a_label(self):
        self.assertEqual(set(PAYMENT_METHOD_LABELS), set(SettlementMethod))
        self.assertEqual(set(EXPENSE_CATEGORY_LABELS), set(ExpenseCategory))


class AmountTests(unittest.TestCase):
    def test_accepts_int_string_decimal(self):
        self.assertEqual(parse_amount(1500), Decimal("1500.00"))
        self.assertEqual(parse_amount("1500.5"), Decimal("1500.50"))
        self.assertEqual(parse_amount(Decimal("0.01")), Decimal("0.01"))
        self.assertEqual(parse_amount(12.1), Decimal("12.10"))

    def test_zero_allowed(self):
        self.assertEqual(parse_amount(0), Decimal("0.00"))

    def test_rejects_negative(self):
        with self.assertRaises(ValidationError):
            parse_amount(-1)

    def test_rejects_more_than_two_places(self):
        with self.assertRaises(ValidationError):
            parse_amount("1.005")

    def test_rejects_garbage(self):
        for bad in (None, True, "", "abc", "NaN", "Infinity", [1]):
            with self.assertRaises(ValidationError):
                parse_amount(bad)

    def test_rejects_overflow(self):
        with self.assertRaises(ValidationError):
            parse_amount("100000000000")

    def test_field_name_in_message(self):
        with self.assertRaisesRegex(ValidationError, "opening_balance"):
            parse_amount("x", "opening_balance")


class QuantityTests(unittest.TestCase):
    def test_accepts_positive_int(self):
        self.assertEqual(parse_quantity(3), 3)
        self.assertEqual(parse_quantity(" 7 "), 7)

    def test_rejects_zero_and_negative(self):
        for bad in (0, -2, "0"):
            with self.assertRaises(ValidationError):
                parse_quantity(bad)

    def test_rejects_decimals_and_scientific_notation(self):
        for bad in (1.5, 2.0, "1.5", "1e3", "1E3"):
            with self.assertRaises(ValidationError):
                parse_quantity(bad)

    def test_rejects_bool_and_none(self):
        for bad in (True, None, ""):
            with self.assertRaises(ValidationError):
                parse_quantity(bad)

    def test_upper_bound(self):
        self.assertEqual(parse_quantity(MAX_QUANTITY), MAX_QUANTITY)
        for bad in (MAX_QUANTITY + 1, 10**20, str(10**20)):
            with self.assertRaises(ValidationError):
                parse_quantity(bad)


class QueryIntTests(unittest.TestCase):
    def test_absent_is_none(self):
        self.assertIsNone(parse_query_int(None, "limit", 1, 366))

    def test_in_range(self):
        self.assertEqual(parse_query_int("1", "limit", 1, 366), 1)
        self.assertEqual(parse_query_int("366", "limit", 1, 366), 366)
        self.assertEqual(parse_query_int("42", "exclude_id", 1), 42)

    def test_malformed_rejected(self):
        for bad in ("abc", "", "1.5", "-3", "1e2"):
            with self.assertRaises(ValidationError):
                parse_query_int(bad, "limit", 1, 366)

    def test_out_of_range_rejected(self):
        with self.assertRaises(ValidationError):
            parse_query_int("0", "limit", 1, 366)
        with self.assertRaises(ValidationError):
            parse_query_int("367", "limit", 1, 366)
        with self.assertRaises(ValidationError):
            parse_query_int("0", "exclude_id", 1)


class ScalarHelperTests(unittest.TestCase):
    def test_session_date(self):
        self.assertEqual(parse_session_date("2024-01-01"), date(2024, 1, 1))
        self.assertEqual(parse_session_date(date(2024, 2, 29)), date(2024, 2, 29))
        for bad in (None, "", "01/01/2024", "2024-13-01"):
            with self.assertRaises(ValidationError):
                parse_session_date(bad)

    def test_require_text(self):
        self.assertEqual(require_text("  Bissap  ", "description"), "Bissap")
        with self.assertRaises(ValidationError):
            require_text("   ", "description")
        with self.assertRaises(ValidationError):
            require_text(None, "description")
        with self.assertRaises(ValidationError):
            require_text("x" * 256, "description")

    def test_optional_text(self):
        self.assertIsNone(optional_text(None, "notes"))
        self.assertIsNone(optional_text("   ", "notes"))
        self.assertEqual(optional_text(" ok ", "notes"), "ok")

    def test_difference_status(self):
        self.assertEqual(difference_status(None), "ok")
        self.assertEqual(difference_status(Decimal("0.00")), "ok")
        self.assertEqual(difference_status(Decimal("-500.00")), "minor")
        self.assertEqual(difference_status(Decimal("120")), "minor")
        self.assertEqual(difference_status(Decimal("500.01")), "major")
        self.assertEqual(difference_status(Decimal("-2000"), 1000), "major")

    def test_to_money(self):
        self.assertEqual(to_money(None), Decimal("0.00"))
        self.assertEqual(to_money(3000.0), Decimal("3000.00"))
        self.assertEqual(to_money(0.1 + 0.2), Decimal("0.30"))
        self.assertEqual(to_money(Decimal("12.3")), Decimal("12.30"))


if __name__ == "__main__":
    unittest.main()
