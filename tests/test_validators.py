from datetime import date, datetime, time
from decimal import Decimal

import pytest

from utils.exceptions import ValidationException
from utils.validators import BankingValidator, BusinessRuleValidator


class TestAmount:
    @pytest.mark.parametrize("amount", [Decimal("0.01"), Decimal("30"), Decimal("1000.50")])
    def test_valid(self, amount):
        assert BankingValidator.validate_amount(amount)

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("0.001"), 10, "10.00"])
    def test_invalid(self, amount):
        with pytest.raises(ValidationException):
            BankingValidator.validate_amount(amount)


class TestIdentity:
    @pytest.mark.parametrize("id_type,id_number", [
        ("nric", "S1234567A"), ("NRIC", "T7654321Z"), ("passport", "E1234567"), ("passport", "K12345678"),
    ])
    def test_valid_documents(self, id_type, id_number):
        assert BankingValidator.validate_id_document(id_type, id_number)

    @pytest.mark.parametrize("id_type,id_number", [
        ("nric", "A1234567B"), ("nric", "S123456A"), ("passport", "1234567"), ("licence", "S1234567A"),
    ])
    def test_invalid_documents(self, id_type, id_number):
        with pytest.raises(ValidationException):
            BankingValidator.validate_id_document(id_type, id_number)

    @pytest.mark.parametrize("name", ["scan.PDF", "photo.jpeg", "id.png"])
    def test_kyc_extensions(self, name):
        assert BankingValidator.validate_kyc_filename(name)

    @pytest.mark.parametrize("name", ["", "id", "id.docx"])
    def test_kyc_rejected(self, name):
        with pytest.raises(ValidationException):
            BankingValidator.validate_kyc_filename(name)


class TestProfileFields:
    @pytest.mark.parametrize("phone", ["1234567", "123456789", "8123 4567", ""])
    def test_phone(self, phone):
        with pytest.raises(ValidationException, match="8 digits"):
            BankingValidator.validate_phone(phone)

    @pytest.mark.parametrize("postcode", ["12345", "1234567", "AB1234"])
    def test_postcode(self, postcode):
        with pytest.raises(ValidationException, match="6 digits"):
            BankingValidator.validate_postcode(postcode)

    def test_missing_fields_listed(self):
        with pytest.raises(ValidationException, match="first_name, country"):
            BankingValidator.validate_required({'username': 'a', 'first_name': ' ', 'country': None})

    def test_otp_format(self):
        assert BankingValidator.validate_otp("012345")
        with pytest.raises(ValidationException):
            BankingValidator.validate_otp("01234a")


class TestProductRules:
    def base(self, product_type, **extra):
        data = {'product_name': ' Saver ', 'product_type': product_type, 'description': 'd',
                'interest_rate': '1.25', 'min_balance': '100', 'tenure_months': 12, 'annual_fee': '50'}
        data.update(extra)
        return data

    def test_savings_clears_fee_and_tenure(self):
        product = BusinessRuleValidator.normalize_product(self.base('savings'))
        assert product['product_name'] == 'Saver'
        assert product['min_balance'] == Decimal('100')
        assert product['annual_fee'] is None and product['tenure_months'] is None

    def test_fixed_deposit_needs_tenure(self):
        with pytest.raises(ValidationException, match="Tenure"):
            BusinessRuleValidator.normalize_product(self.base('fixed_deposit', tenure_months=0))

    def test_card_keeps_only_fee(self):
        product = BusinessRuleValidator.normalize_product(self.base('credit_card'))
        assert product['annual_fee'] == Decimal('50')
        assert product['min_balance'] is None and product['tenure_months'] is None

    def test_card_needs_fee(self):
        with pytest.raises(ValidationException, match="Annual fee"):
            BusinessRuleValidator.normalize_product(self.base('credit_card', annual_fee=''))

    def test_negative_rate(self):
        with pytest.raises(ValidationException, match="negative"):
            BusinessRuleValidator.normalize_product(self.base('savings', interest_rate='-1'))

    def test_non_numeric_rate(self):
        with pytest.raises(ValidationException, match="number"):
            BusinessRuleValidator.normalize_product(self.base('savings', interest_rate='abc'))

    def test_unknown_type(self):
        with pytest.raises(ValidationException, match="Invalid product type"):
            BusinessRuleValidator.normalize_product(self.base('mortgage'))


class TestSlotRules:
    NOW = datetime(2030, 1, 7, 8, 0)

    def test_valid(self):
        assert BusinessRuleValidator.validate_slot(date(2030, 1, 7), time(9, 0), self.NOW)

    @pytest.mark.parametrize("start,message", [
        (time(7, 0), "past"),
        (time(18, 0), "between"),
        (time(8, 30), "between"),
    ])
    def test_invalid(self, start, message):
        with pytest.raises(ValidationException, match=message):
            BusinessRuleValidator.validate_slot(date(2030, 1, 7), start, self.NOW)

    def test_initial_deposit_minimum(self):
        assert BusinessRuleValidator.validate_initial_deposit(Decimal('50'), Decimal('50'))
        with pytest.raises(ValidationException):
            BusinessRuleValidator.validate_initial_deposit(Decimal('49.99'), Decimal('50'))
