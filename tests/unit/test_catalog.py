from app.classification import catalog


class TestToTypeKey:
    def test_snake_cases_labels(self) -> None:
        assert catalog.to_type_key("PAN Card") == "pan_card"
        assert catalog.to_type_key("Admission Letter (I-20)") == "admission_letter__i_20_"

    def test_empty_is_unknown(self) -> None:
        assert catalog.to_type_key(None) == "unknown"
        assert catalog.to_type_key("") == "unknown"


class TestLookup:
    def test_exact_key(self) -> None:
        known = catalog.lookup("passport")
        assert known is not None
        assert known.label == "Passport"

    def test_alias(self) -> None:
        known = catalog.lookup("payslip")
        assert known is not None
        assert known.key == "salary_slip"

    def test_unknown(self) -> None:
        assert catalog.lookup("unknown") is None


class TestTypeLabel:
    def test_known_type(self) -> None:
        assert catalog.type_label("itr") == "Income Tax Return"

    def test_unknown_type_is_title_cased(self) -> None:
        assert catalog.type_label("gas_bill") == "Gas Bill"

    def test_unknown_placeholder(self) -> None:
        assert catalog.type_label("unknown") == "Unknown Document"


class TestResolveCategory:
    def test_default_category(self) -> None:
        assert catalog.resolve_category("property_deed", "collateral") == "collateral"

    def test_co_applicant_owned_kyc(self) -> None:
        assert catalog.resolve_category("aadhaar", "co_applicant") == "financial_co_applicant"

    def test_student_owned_kyc_stays(self) -> None:
        assert catalog.resolve_category("aadhaar", "student") == "student"

    def test_unknown_type_is_student(self) -> None:
        assert catalog.resolve_category("gas_bill", "unknown") == "student"

    def test_category_label_falls_back_to_key(self) -> None:
        assert catalog.category_label("misc") == "misc"
