"""Profile sections and field definitions, ordered by RM priority."""

from dataclasses import dataclass
from typing import Any

from shared_types import FieldType, Priority

P, T = Priority, FieldType


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    priority: Priority
    type: FieldType


@dataclass(frozen=True)
class SectionDefinition:
    id: str
    label: str
    fields: tuple[FieldDefinition, ...]


@dataclass(frozen=True)
class SectionCompleteness:
    filled: int
    total: int
    percentage: int


@dataclass(frozen=True)
class ProfileCompleteness:
    percentage: int
    high_priority_filled: int
    high_priority_total: int
    medium_priority_filled: int
    medium_priority_total: int
    level: str  # minimal | basic | moderate | detailed | complete


def _section(id: str, label: str, *fields: tuple) -> SectionDefinition:
    return SectionDefinition(id, label, tuple(FieldDefinition(*f) for f in fields))


PROFILE_SECTIONS: tuple[SectionDefinition, ...] = (
    _section(
        "goals",
        "Goals & Constraints",
        ("goals_summary", "Goals Summary", P.HIGH, T.TEXT),
        ("primary_goal_type", "Primary Goal", P.HIGH, T.ENUM),
        ("primary_goal_horizon", "Goal Horizon", P.HIGH, T.ENUM),
        ("goal_priority_style", "Priority Style", P.MEDIUM, T.ENUM),
        ("goal_clarity_level", "Clarity Level", P.MEDIUM, T.ENUM),
        ("constraints_summary", "Key Constraints", P.HIGH, T.TEXT),
        ("regulatory_constraints_notes", "Regulatory Constraints", P.MEDIUM, T.TEXT),
    ),
    _section(
        "income",
        "Income & Cashflow",
        ("income_band_annual", "Annual Income", P.HIGH, T.ENUM),
        ("income_stability", "Income Stability", P.HIGH, T.ENUM),
        ("income_sources_primary", "Primary Source", P.MEDIUM, T.ENUM),
        ("income_sources_secondary", "Secondary Sources", P.LOW, T.TEXT),
        ("expense_band_monthly", "Monthly Expenses", P.HIGH, T.ENUM),
        ("surplus_investable_band", "Investable Surplus", P.HIGH, T.ENUM),
        ("emergency_buffer_status", "Emergency Buffer", P.HIGH, T.ENUM),
        ("upcoming_liquidity_events", "Upcoming Liquidity Events", P.HIGH, T.TEXT),
        ("liquidity_needs_horizon", "Liquidity Horizon", P.HIGH, T.ENUM),
    ),
    _section(
        "risk",
        "Risk Assessment",
        ("risk_questionnaire_completed", "Questionnaire Done", P.HIGH, T.BOOLEAN),
        ("risk_bucket", "Risk Bucket", P.HIGH, T.ENUM),
        ("behavioral_risk_label", "Behavioral Risk", P.HIGH, T.ENUM),
        ("liquidity_risk_label", "Liquidity Risk", P.HIGH, T.ENUM),
        ("return_mismatch_flag", "Return Mismatch", P.MEDIUM, T.BOOLEAN),
        ("risk_discussion_notes", "Discussion Notes", P.HIGH, T.TEXT),
        ("risk_disagreement_flag", "Client Disagrees", P.MEDIUM, T.ENUM),
        ("risk_anecdotes", "Risk Anecdotes", P.MEDIUM, T.TEXT),
    ),
    _section(
        "preferences",
        "Investment Preferences",
        ("investment_style_preference", "Investment Style", P.HIGH, T.ENUM),
        ("liquidity_preference", "Liquidity Preference", P.HIGH, T.ENUM),
        ("asset_class_preference", "Asset Classes", P.MEDIUM, T.MULTI_SELECT),
        ("product_preference", "Products", P.MEDIUM, T.MULTI_SELECT),
        ("products_to_avoid", "Products to Avoid", P.MEDIUM, T.TEXT),
        ("tax_sensitivity", "Tax Sensitivity", P.MEDIUM, T.ENUM),
        ("international_exposure_comfort", "International Comfort", P.MEDIUM, T.ENUM),
        ("esg_preference", "ESG Preference", P.LOW, T.ENUM),
        ("sector_tilts_preferences", "Sector Preferences", P.LOW, T.TEXT),
    ),
    _section(
        "professional",
        "Professional",
        ("occupation_type", "Occupation", P.HIGH, T.ENUM),
        ("industry", "Industry", P.MEDIUM, T.ENUM),
        ("job_title", "Job Title", P.LOW, T.TEXT),
        ("employer_business_name", "Employer/Business", P.MEDIUM, T.TEXT),
        ("work_location", "Work Location", P.LOW, T.TEXT),
    ),
    _section(
        "identity",
        "Identity & Household",
        ("full_name", "Full Name", P.HIGH, T.TEXT),
        ("dob", "Date of Birth", P.HIGH, T.DATE),
        ("age_band", "Age Band", P.MEDIUM, T.ENUM),
        ("gender", "Gender", P.LOW, T.ENUM),
        ("marital_status", "Marital Status", P.MEDIUM, T.ENUM),
        ("dependents_count", "Dependents", P.MEDIUM, T.NUMBER),
        ("dependents_notes", "Dependents Details", P.LOW, T.TEXT),
        ("household_structure", "Household", P.LOW, T.ENUM),
        ("family_financial_responsibilities", "Family Responsibilities", P.MEDIUM, T.TEXT),
        ("city_of_residence", "City", P.HIGH, T.TEXT),
        ("country_of_residence", "Country", P.MEDIUM, T.ENUM),
        ("residence_status", "Residence Status", P.MEDIUM, T.ENUM),
    ),
    _section(
        "contact",
        "Contact & Communication",
        ("primary_mobile", "Primary Mobile", P.HIGH, T.TEXT),
        ("secondary_mobile", "Secondary Mobile", P.LOW, T.TEXT),
        ("email_primary", "Email", P.HIGH, T.TEXT),
        ("preferred_channel", "Preferred Channel", P.HIGH, T.ENUM),
        ("preferred_contact_time", "Contact Time", P.LOW, T.ENUM),
        ("language_preference", "Language", P.LOW, T.ENUM),
        ("content_format_preference", "Content Format", P.MEDIUM, T.ENUM),
        ("advisory_touch_frequency", "Touch Frequency", P.MEDIUM, T.ENUM),
        ("communication_tone_preference", "Tone Preference", P.LOW, T.ENUM),
    ),
    _section(
        "trust",
        "Trust & Decisioning",
        ("trust_concerns", "Trust Concerns", P.HIGH, T.TEXT),
        ("past_advisory_experience", "Past Experience", P.LOW, T.ENUM),
        ("reasons_for_switching", "Reasons for Switching", P.LOW, T.TEXT),
        ("decision_style", "Decision Style", P.MEDIUM, T.ENUM),
        ("decision_speed", "Decision Speed", P.LOW, T.ENUM),
        ("financial_literacy_level", "Financial Literacy", P.MEDIUM, T.ENUM),
        ("knowledge_gaps_notes", "Knowledge Gaps", P.MEDIUM, T.TEXT),
    ),
    _section(
        "special",
        "Special Situations",
        ("major_life_events_next_12m", "Major Events (12m)", P.HIGH, T.TEXT),
        ("liabilities_presence", "Liabilities", P.MEDIUM, T.ENUM),
        ("liabilities_notes", "Liabilities Notes", P.MEDIUM, T.TEXT),
        ("primary_interests", "Interests", P.LOW, T.TEXT),
        ("lifestyle_changes_planned", "Lifestyle Changes", P.LOW, T.TEXT),
        ("spouse_involvement_level", "Spouse Involvement", P.LOW, T.ENUM),
        ("succession_planning_interest", "Succession Interest", P.LOW, T.ENUM),
        ("health_planning_notes", "Health Planning", P.LOW, T.TEXT),
        ("legal_constraints_notes", "Legal Constraints", P.LOW, T.TEXT),
    ),
    _section(
        "kyc",
        "KYC & Compliance",
        ("kyc_stage", "KYC Stage", P.MEDIUM, T.ENUM),
        ("kyc_gaps_notes", "KYC Gaps", P.MEDIUM, T.TEXT),
        ("pan_shared_status", "PAN Shared", P.MEDIUM, T.ENUM),
        ("tax_residency_status", "Tax Residency", P.MEDIUM, T.ENUM),
        ("product_restrictions_notes", "Product Restrictions", P.MEDIUM, T.TEXT),
        ("ticket_size_sip_band", "SIP Ticket Size", P.MEDIUM, T.ENUM),
        ("ticket_size_lumpsum_band", "Lumpsum Ticket Size", P.MEDIUM, T.ENUM),
    ),
    _section(
        "relationship",
        "Relationship & Workflow",
        ("relationship_origin", "Relationship Origin", P.MEDIUM, T.ENUM),
        ("referral_source_name", "Referral Source", P.LOW, T.TEXT),
        ("next_follow_up_date", "Next Follow-up", P.HIGH, T.DATE),
        ("next_follow_up_agenda", "Follow-up Agenda", P.HIGH, T.TEXT),
        ("last_meeting_date", "Last Meeting", P.HIGH, T.DATE),
        ("last_meeting_notes", "Meeting Notes", P.HIGH, T.TEXT),
        ("key_discussion_points", "Key Points", P.MEDIUM, T.TEXT),
        ("client_pain_points", "Pain Points", P.MEDIUM, T.TEXT),
        ("client_feedback", "Client Feedback", P.LOW, T.TEXT),
        ("relationship_strength_notes", "Relationship Notes", P.LOW, T.TEXT),
    ),
)


def is_empty(value: Any) -> bool:
    """None, blank strings and empty lists count as "not set"."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


def round_percent(filled: int, total: int) -> int:
    """Percentage rounded half up (0.5 -> 1), not banker's rounding."""
    if total <= 0:
        return 0
    return int(filled * 100 / total + 0.5)


def section_completeness(values: dict, section: SectionDefinition) -> SectionCompleteness:
    """Filled/total over every field of the section."""
    total = len(section.fields)
    filled = sum(1 for f in section.fields if not is_empty(values.get(f.key)))
    return SectionCompleteness(filled=filled, total=total, percentage=round_percent(filled, total))


def profile_completeness(
    values: dict, sections: tuple[SectionDefinition, ...] = PROFILE_SECTIONS
) -> ProfileCompleteness:
    """Weighted completeness: high-priority fields 70%, medium-priority 30%."""
    fields = [f for s in sections for f in s.fields]
    high = [f for f in fields if f.priority == Priority.HIGH]
    medium = [f for f in fields if f.priority == Priority.MEDIUM]
    high_filled = sum(1 for f in high if not is_empty(values.get(f.key)))
    medium_filled = sum(1 for f in medium if not is_empty(values.get(f.key)))

    high_ratio = high_filled / len(high) if high else 0.0
    medium_ratio = medium_filled / len(medium) if medium else 0.0
    percentage = int((high_ratio * 0.7 + medium_ratio * 0.3) * 100 + 0.5)

    if percentage < 15:
        level = "minimal"
    elif percentage < 35:
        level = "basic"
    elif percentage < 55:
        level = "moderate"
    elif percentage < 75:
        level = "detailed"
    else:
        level = "complete"

    return ProfileCompleteness(
        percentage=percentage,
        high_priority_filled=high_filled,
        high_priority_total=len(high),
        medium_priority_filled=medium_filled,
        medium_priority_total=len(medium),
        level=level,
    )


def get_section(section_id: str) -> SectionDefinition | None:
    for section in PROFILE_SECTIONS:
        if section.id == section_id:
            return section
    return None
