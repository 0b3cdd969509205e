"""Known loan-application document types and how AI labels map onto them."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class KnownDocumentType:
    key: str
    label: str
    category: str
    owner: str
    aliases: tuple[str, ...] = ()


KNOWN_TYPES: tuple[KnownDocumentType, ...] = (
    # Student KYC
    KnownDocumentType("pan_card", "PAN Card", "student", "student", ("pan_copy", "pan_card_copy")),
    KnownDocumentType(
        "aadhaar", "Aadhaar Card", "student", "student",
        ("aadhaar_copy", "aadhaar_card", "aadhaar_card_copy"),
    ),
    KnownDocumentType("passport", "Passport", "student", "student", ("passport_copy", "passport_document")),
    KnownDocumentType(
        "photo", "Photograph", "student", "student",
        ("passport_size_photo", "passport_photo", "passport_size_photograph", "photograph"),
    ),
    KnownDocumentType(
        "mark_sheet", "Mark Sheet", "student", "student",
        ("mark_sheets", "academic_mark_sheets", "mark_sheet_document", "transcript", "academic_transcript"),
    ),
    KnownDocumentType(
        "degree_certificate", "Degree Certificate", "student", "student",
        ("degree_certificates", "graduation_certificate", "diploma"),
    ),
    KnownDocumentType(
        "offer_letter", "Offer Letter", "student", "student",
        ("offer_letter_document", "admission_offer", "university_offer", "condition_letter", "conditional_offer"),
    ),
    KnownDocumentType(
        "admission_letter", "Admission Letter (I-20/CAS)", "student", "student",
        ("admission_letter_i_20_cas", "i_20", "cas", "admission_document", "i20"),
    ),
    KnownDocumentType(
        "english_test", "English Test Score", "student", "student",
        ("ielts", "toefl", "pte", "duolingo", "english_proficiency_test_result"),
    ),
    KnownDocumentType("visa", "Visa", "student", "student", ("visa_copy", "visa_document", "visa_stamp")),
    # Co-applicant financial
    KnownDocumentType(
        "co_applicant_pan", "Co-Applicant PAN", "financial_co_applicant", "co_applicant",
        ("co_applicant_pan_card",),
    ),
    KnownDocumentType(
        "co_applicant_aadhaar", "Co-Applicant Aadhaar", "financial_co_applicant", "co_applicant",
        ("co_applicant_aadhaar_card",),
    ),
    KnownDocumentType(
        "co_applicant_photo", "Co-Applicant Photo", "financial_co_applicant", "co_applicant",
        ("co_applicant_photograph",),
    ),
    KnownDocumentType(
        "bank_statement", "Bank Statement", "financial_co_applicant", "co_applicant",
        ("bank_account_statement", "indian_bank_account_statement", "last_6_months_bank_statement",
         "nri_bank_statement"),
    ),
    KnownDocumentType(
        "salary_slip", "Salary Slip", "financial_co_applicant", "co_applicant",
        ("salary_slips", "latest_salary_slips", "payslip", "pay_slip"),
    ),
    KnownDocumentType(
        "itr", "Income Tax Return", "financial_co_applicant", "co_applicant",
        ("itr_documents", "itr_returns", "income_tax_return", "tax_return"),
    ),
    # Collateral
    KnownDocumentType(
        "property_deed", "Property Deed", "collateral", "collateral",
        ("property_documents", "property_papers", "sale_deed", "property_sale_deed"),
    ),
    KnownDocumentType(
        "encumbrance_certificate", "Encumbrance Certificate", "collateral", "collateral",
        ("ec", "encumbrance"),
    ),
    KnownDocumentType(
        "property_tax_receipt", "Property Tax Receipt", "collateral", "collateral",
        ("tax_receipt", "property_tax"),
    ),
    KnownDocumentType(
        "fd_certificate", "FD Certificate", "collateral", "collateral",
        ("fixed_deposit", "fd", "fixed_deposit_certificate"),
    ),
    # Other KYC
    KnownDocumentType(
        "driving_license", "Driving License", "student", "any",
        ("driving_licence", "dl", "driving_license_copy"),
    ),
    KnownDocumentType("voter_id", "Voter ID", "student", "any", ("voter_id_card", "epic_card", "election_id")),
)

CATEGORY_LABELS: dict[str, str] = {
    "student": "Student KYC",
    "financial_co_applicant": "Co-Applicant Financial",
    "non_financial_co_applicant": "Non-Financial Co-Applicant",
    "collateral": "Property/Collateral",
    "nri_financial": "NRI Documents",
}

# Types an AI may attribute to a co-applicant without using the co_applicant_ key.
_CO_APPLICANT_CAPABLE = frozenset(
    {"pan_card", "aadhaar", "photo", "bank_statement", "salary_slip", "itr"}
)

_BY_KEY = {t.key: t for t in KNOWN_TYPES}


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def to_type_key(raw: str | None) -> str:
    """Snake-case an AI type label: 'PAN Card' -> 'pan_card'."""
    if not raw:
        return "unknown"
    return re.sub(r"[^a-z0-9]", "_", raw.lower()) or "unknown"


def lookup(type_key: str) -> KnownDocumentType | None:
    """Find a known type by exact key, then by alias containment in either direction."""
    known = _BY_KEY.get(type_key)
    if known is not None:
        return known
    for candidate in KNOWN_TYPES:
        if any(alias in type_key or type_key in alias for alias in candidate.aliases):
            return candidate
    return None


def type_label(type_key: str) -> str:
    known = _BY_KEY.get(type_key)
    if known is not None:
        return known.label
    if type_key == "unknown":
        return "Unknown Document"
    return " ".join(word.capitalize() for word in type_key.replace("_", " ").split())


def resolve_category(type_key: str, owner: str) -> str:
    """Category of a detected type, moved to co-applicant financial when the owner says so."""
    known = lookup(type_key)
    category = known.category if known is not None else "student"
    if owner == "co_applicant" and "co_applicant" not in type_key and type_key in _CO_APPLICANT_CAPABLE:
        category = "financial_co_applicant"
    return category
