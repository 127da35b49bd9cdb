"""
Seed reference data for the in-memory collaborators.

Jurisdiction deadline rules and charge categories follow the data the guidance
product ships with. The precedent entries are illustrative sample records for
local runs and tests; production deployments read the corpus from Supabase.
"""

from datetime import date

from src.services.guidance.models import ChargeDefinition, CourtLevel, PrecedentCase, StatuteRule

# ---------------------------------------------------------------------------
# Deadline rules per jurisdiction ("US" = federal)
# ---------------------------------------------------------------------------
JURISDICTION_DEADLINE_RULES: dict[str, dict[str, str]] = {
    "CA": {"arraignment": "48 hours", "speedy_trial": "60 days (felony) / 30 days (misdemeanor)", "bail_hearing": "48 hours"},
    "NY": {"arraignment": "24 hours", "speedy_trial": "6 months (felony) / 90 days (misdemeanor)", "bail_hearing": "24 hours"},
    "TX": {"arraignment": "48 hours", "speedy_trial": "No statutory limit", "bail_hearing": "48 hours"},
    "FL": {"arraignment": "24 hours", "speedy_trial": "175 days (felony) / 90 days (misdemeanor)", "bail_hearing": "24 hours"},
    "IL": {"arraignment": "48 hours", "speedy_trial": "120 days (felony) / 30 days (misdemeanor)", "bail_hearing": "48 hours"},
    "PA": {"arraignment": "72 hours", "speedy_trial": "365 days", "bail_hearing": "72 hours"},
    "OH": {"arraignment": "48 hours", "speedy_trial": "270 days (felony) / 90 days (misdemeanor)", "bail_hearing": "48 hours"},
    "GA": {"arraignment": "48 hours", "speedy_trial": "Term of court rule", "bail_hearing": "48 hours"},
    "NC": {"arraignment": "96 hours", "speedy_trial": "No statutory limit", "bail_hearing": "48 hours"},
    "MI": {"arraignment": "48 hours", "speedy_trial": "180 days", "bail_hearing": "48 hours"},
    "US": {"arraignment": "48 hours", "speedy_trial": "70 days", "bail_hearing": "48 hours"},
}

# Citation prefix per jurisdiction, used for charge-scoped rules
CITATION_PREFIX: dict[str, str] = {
    "CA": "Cal. Penal Code §",
    "NY": "N.Y. Penal Law §",
    "TX": "Tex. Penal Code §",
    "FL": "Fla. Stat. §",
    "US": "18 USC §",
}

# Full state name -> code; "FEDERAL" maps to the federal table
STATE_NAME_TO_CODE: dict[str, str] = {
    "ALABAMA": "AL", "ALASKA": "AK", "ARIZONA": "AZ", "ARKANSAS": "AR", "CALIFORNIA": "CA",
    "COLORADO": "CO", "CONNECTICUT": "CT", "DELAWARE": "DE", "DISTRICT OF COLUMBIA": "DC",
    "FLORIDA": "FL", "GEORGIA": "GA", "HAWAII": "HI", "IDAHO": "ID", "ILLINOIS": "IL",
    "INDIANA": "IN", "IOWA": "IA", "KANSAS": "KS", "KENTUCKY": "KY", "LOUISIANA": "LA",
    "MAINE": "ME", "MARYLAND": "MD", "MASSACHUSETTS": "MA", "MICHIGAN": "MI", "MINNESOTA": "MN",
    "MISSISSIPPI": "MS", "MISSOURI": "MO", "MONTANA": "MT", "NEBRASKA": "NE", "NEVADA": "NV",
    "NEW HAMPSHIRE": "NH", "NEW JERSEY": "NJ", "NEW MEXICO": "NM", "NEW YORK": "NY",
    "NORTH CAROLINA": "NC", "NORTH DAKOTA": "ND", "OHIO": "OH", "OKLAHOMA": "OK", "OREGON": "OR",
    "PENNSYLVANIA": "PA", "RHODE ISLAND": "RI", "SOUTH CAROLINA": "SC", "SOUTH DAKOTA": "SD",
    "TENNESSEE": "TN", "TEXAS": "TX", "UTAH": "UT", "VERMONT": "VT", "VIRGINIA": "VA",
    "WASHINGTON": "WA", "WEST VIRGINIA": "WV", "WISCONSIN": "WI", "WYOMING": "WY",
    "FEDERAL": "US",
}

# ---------------------------------------------------------------------------
# Charge registry
# ---------------------------------------------------------------------------
SEED_CHARGES: list[tuple[ChargeDefinition, str]] = [
    # (charge, statute section)
    (ChargeDefinition("ca-disorderly-conduct", "Disorderly Conduct", "CA", frozenset({"public_order"}), "misdemeanor", "6 months jail and $1,000 fine"), "647"),
    (ChargeDefinition("ca-petty-theft", "Petty Theft", "CA", frozenset({"theft"}), "misdemeanor", "6 months jail and $1,000 fine"), "488"),
    (ChargeDefinition("ca-dui-first", "DUI - First Offense", "CA", frozenset({"dui"}), "misdemeanor", "6 months jail"), "23152"),
    (ChargeDefinition("ca-assault-deadly-weapon", "Assault with a Deadly Weapon", "CA", frozenset({"assault", "weapons"}), "felony", "4 years prison"), "245"),
    (ChargeDefinition("ca-burglary-first", "First-Degree Burglary", "CA", frozenset({"burglary"}), "felony", "6 years prison"), "459"),
    (ChargeDefinition("ny-assault-3", "Assault in the Third Degree", "NY", frozenset({"assault"}), "misdemeanor", "1 year jail"), "120.00"),
    (ChargeDefinition("ny-petit-larceny", "Petit Larceny", "NY", frozenset({"theft"}), "misdemeanor", "1 year jail"), "155.25"),
    (ChargeDefinition("tx-dwi-first", "DWI - First Offense", "TX", frozenset({"dui"}), "misdemeanor", "180 days jail"), "49.04"),
    (ChargeDefinition("tx-possession-marijuana", "Possession of Marijuana (under 2 oz)", "TX", frozenset({"drug"}), "misdemeanor", "180 days jail"), "481.121"),
    (ChargeDefinition("fl-battery", "Battery", "FL", frozenset({"assault"}), "misdemeanor", "1 year jail"), "784.03"),
    (ChargeDefinition("us-drug-possession", "Simple Possession of a Controlled Substance", "US", frozenset({"drug"}), "misdemeanor", "1 year prison"), "844"),
    (ChargeDefinition("us-wire-fraud", "Wire Fraud", "US", frozenset({"fraud"}), "felony", "20 years prison"), "1343"),
]


def build_seed_rules() -> list[StatuteRule]:
    """Deadline rules for every jurisdiction plus classification/penalty rules per seeded charge."""
    rules: list[StatuteRule] = []
    for jurisdiction, deadlines in JURISDICTION_DEADLINE_RULES.items():
        rules.append(
            StatuteRule(jurisdiction, "arraignment_deadline", deadlines["arraignment"], critical=True)
        )
        rules.append(StatuteRule(jurisdiction, "bail_hearing_deadline", deadlines["bail_hearing"]))
        rules.append(StatuteRule(jurisdiction, "speedy_trial", deadlines["speedy_trial"]))

    for charge, section in SEED_CHARGES:
        prefix = CITATION_PREFIX.get(charge.jurisdiction, "§")
        citation = f"{prefix} {section}"
        rules.append(
            StatuteRule(
                charge.jurisdiction,
                "charge_classification",
                charge.classification,
                citation=citation,
                charge_code=charge.code,
            )
        )
        rules.append(
            StatuteRule(
                charge.jurisdiction,
                "max_penalty",
                charge.max_penalty,
                citation=citation,
                charge_code=charge.code,
            )
        )
    return rules


# ---------------------------------------------------------------------------
# Sample precedents (illustrative)
# ---------------------------------------------------------------------------
SEED_PRECEDENTS: list[PrecedentCase] = [
    PrecedentCase(
        id="sample-ca-001",
        case_name="People v. Sample (Disorderly Conduct)",
        citation="Sample Cal. Supreme 1",
        court="Supreme Court of California",
        court_level=CourtLevel.SUPREME,
        jurisdiction="CA",
        date_filed=date(2019, 6, 3),
        charge_categories=frozenset({"public_order"}),
        holding_classification="misdemeanor",
        excerpt="Conduct in a public place that disturbs the peace is punishable as a misdemeanor.",
    ),
    PrecedentCase(
        id="sample-ca-002",
        case_name="People v. Example",
        citation="Sample Cal. App. 2",
        court="California Court of Appeal, Second District",
        court_level=CourtLevel.APPELLATE,
        jurisdiction="CA",
        date_filed=date(2021, 2, 17),
        charge_categories=frozenset({"public_order", "assault"}),
        holding_classification="misdemeanor",
    ),
    PrecedentCase(
        id="sample-ca-003",
        case_name="People v. Illustration",
        citation="Sample Cal. Super. 3",
        court="Superior Court of Los Angeles County",
        court_level=CourtLevel.TRIAL,
        jurisdiction="CA",
        date_filed=date(2015, 9, 30),
        charge_categories=frozenset({"theft"}),
        holding_classification="misdemeanor",
    ),
    PrecedentCase(
        id="sample-ca-004",
        case_name="People v. Demonstration",
        citation="Sample Cal. App. 4",
        court="California Court of Appeal, Fourth District",
        court_level=CourtLevel.APPELLATE,
        jurisdiction="CA",
        date_filed=date(2012, 4, 11),
        charge_categories=frozenset({"assault", "weapons"}),
        holding_classification="felony",
    ),
    PrecedentCase(
        id="sample-ny-001",
        case_name="People v. Placeholder",
        citation="Sample N.Y. App. Div. 1",
        court="New York Appellate Division, First Department",
        court_level=CourtLevel.APPELLATE,
        jurisdiction="NY",
        date_filed=date(2018, 11, 5),
        charge_categories=frozenset({"assault"}),
        holding_classification="misdemeanor",
    ),
    PrecedentCase(
        id="sample-tx-001",
        case_name="State v. Specimen",
        citation="Sample Tex. Crim. App. 1",
        court="Texas Court of Criminal Appeals",
        court_level=CourtLevel.APPELLATE,
        jurisdiction="TX",
        date_filed=date(2020, 1, 22),
        charge_categories=frozenset({"dui"}),
        holding_classification="misdemeanor",
    ),
]
