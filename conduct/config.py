"""
Conduct pipeline configuration.

Every table here is an explicit, immutable argument default. Analytics
functions never read this module implicitly; callers pass overrides (for
example a synthetic calendar in tests) through keyword arguments.
"""

from __future__ import annotations

import os
from datetime import date
from types import MappingProxyType
from typing import Mapping

# ---------------------------------------------------------------------------
# Academic years
# ---------------------------------------------------------------------------

ACADEMIC_YEARS: tuple[str, ...] = (
    "AY1920",
    "AY2021",
    "AY2122",
    "AY2223",
    "AY2324",
    "AY2425",
    "AY2526",
)

# Inclusive bounds of the incident dates the exports are expected to cover.
DATE_RANGE: tuple[date, date] = (date(2019, 8, 1), date(2027, 7, 31))

# ---------------------------------------------------------------------------
# Record schema (CONTRACT-LOCKED with the upstream case export)
# ---------------------------------------------------------------------------

FILE_ID: str = "FILE_ID"
SID: str = "SID"
ROLE: str = "ROLE"
INCIDENT_DATE: str = "INCIDENT_DATE"
ACADEMIC_YEAR: str = "ACADEMIC_YEAR"
RESOLUTION: str = "RESOLUTION"
COLLEGE: str = "College"
LOCATION: str = "Location"

REQUIRED_COLUMNS: tuple[str, ...] = (FILE_ID, SID, ROLE, INCIDENT_DATE)

# Ordered (charge, finding) slot pairs carried by every export row.
CHARGE_SLOT_COUNT: int = 6
CHARGE_FINDING_SLOTS: tuple[tuple[str, str], ...] = tuple(
    (f"CHARGE_{i}", f"FINDING_{i}") for i in range(1, CHARGE_SLOT_COUNT + 1)
)

RESPONDENT_ROLE: str = "Respondent"
RESPONSIBLE_FINDING: str = "responsible"
WARNING_LETTER: str = "Warning Letter"
NOT_REPORTED: str = "Not Reported"
OVERALL: str = "Overall"

# ---------------------------------------------------------------------------
# Anonymization
# ---------------------------------------------------------------------------

PEPPER_PATH: str = os.getenv("CONDUCT_PEPPER_PATH", "Imports/pepper.bin")
DEFAULT_HASH_LENGTH: int = 32

# ---------------------------------------------------------------------------
# Name canonicalization tables
# ---------------------------------------------------------------------------

VIOLATION_REPLACEMENTS: Mapping[str, str] = MappingProxyType({
    "Academic Misconduct - Aiding &amp; Abetting": "Academic Misconduct - Aiding and Abetting",
    "Academic Misconduct - Violating Ethical or Professional Standards": "Academic Misconduct - Violating Standards",
    "Aiding &amp; Abetting": "Aiding and Abetting",
    "Alcohol - Underage possession": "Alcohol",
    "Alcohol - Public Intoxication": "Alcohol",
    "Dishonesty &amp; Misrepresentation": "Dishonesty and Misrepresentation",
    "Drugs or Narcotics - Paraphernalia": "Drugs or Narcotics",
    "Drugs or Narcotics - Possession/ Use": "Drugs or Narcotics",
    "Drugs or Narcotics - Distribution": "Drugs or Narcotics",
    "Drugs or Narcotics - Unauthorized prescription": "Drugs or Narcotics",
    "Physical Abuse or Harm, or Threat of Physical Abuse or Harm": "Physical Abuse or Harm (or Threat)",
    "Residence Hall Rules &amp; Regulations - Appliances and Electric Cords": "GUL - Appliances and Electric Cords",
    "Residence Hall Rules &amp; Regulations - Fire Safety": "GUL - Fire Safety",
    "Residence Hall Rules &amp; Regulations - Guests": "GUL - Guests",
    "Residence Hall Rules &amp; Regulations - Health &amp; Safety": "GUL - Health and Safety",
    "Residence Hall Rules &amp; Regulations - Quiet Hours &amp; Noise": "GUL - Noise",
    "Residence Hall Rules &amp; Regulations - Windows": "GUL - Windows and Exits",
    "Residence Hall Rules &amp; Regulations - Windows &amp; Exits": "GUL - Windows and Exits",
    "Unauthorized use of university key": "Unauthorized Use of University Key",
    "University policies or rules": "University Policies or Rules",
    "Harassment or Discrimination/Dating Violence": "Harassment or Discrimination",
    "Harassment or Discrimination/Stalking": "Harassment or Discrimination",
    "Violation of federal, state, or local law": "Violation of Federal, State, or Local Law",
})

COLLEGE_REPLACEMENTS: Mapping[str, str] = MappingProxyType({
    "Colege of Dsn, Arch, Art & Pln": "DAAP",
    "Lindner College of Business": "LCOB",
    "Col of Arts & Science": "CAS",
    "College of Ed, CJ, & HS": "CECH",
    "Blue Ash College": "UCBA",
    "College of Nursing": "CON",
    "College of Eng & Appl Sci": "CEAS",
    "University of Cincinnati": "UC",
    "Clermont College": "UCCC",
    "College of Allied Health Sci": "CAHS",
    "College of Medicine": "COM",
    "College Conservatory of Music": "CCM",
    "UC International Pathways": "UCIP",
    "Adult Learning Center": "ALC",
    "James L. Winkle Coll of Pharm": "COP",
})

LOCATION_MAP: Mapping[str, str] = MappingProxyType({
    "101 Corry": "101 East Corry",
    "Campus Park Apartments": "CP Cincy",
    "Campus Rec Cen Residence Hall": "CRC Hall",
    "Cp Cincy": "CP Cincy",
    "Crc Hall": "CRC Hall",
    "Deacon": "The Deacon",
    "Fairfield Inn &Amp; Suites": "Fairfield Inn",
    "Graduate Hotel": "The Graduate",
    "Hampton Inn &Amp; Suites Cincinnati/Uptown University": "Hampton Inn",
    "Hampton Inn &Amp; Suites": "Hampton Inn",
    "Stratford Heights Bld 1": "Stratford Heights",
    "Stratford Heights Bld 4": "Stratford Heights",
    "Stratford Heights Bldg 5": "Stratford Heights",
    "Stratford Heights Bldg 9": "Stratford Heights",
    "Stratford Hts Bld 10": "Stratford Heights",
    "Stratford Hts Bld 12 Tower Hall": "Stratford Heights",
    "Stratford Hts Bld 2": "Stratford Heights",
    "Stratford Hts Bld 3": "Stratford Heights",
    "The Deacon Apartments": "The Deacon",
    "The Eden Apartments": "The Eden",
    "The Graduate Cincinnati": "The Graduate",
    "University Park Apts": "University Park Apartments",
    "University Park Apts South": "University Park Apartments",
    "University Park Apts. (Calhoun)": "University Park Apartments",
    "Usquare": "USquare",
    "Verge": "The Verge",
})

# ---------------------------------------------------------------------------
# Academic calendar pause periods
# ---------------------------------------------------------------------------
# Breaks, holidays and other ranges excluded from timeline calculations.
# Inclusive (start, end) ISO dates. Grouped by academic year for reading only;
# lookups treat the tuple as one flat, unordered set.

PAUSE_PERIODS: tuple[tuple[str, str], ...] = (
    # AY1718
    ("2017-08-06", "2017-08-20"),  # summer to fall transition
    ("2017-09-04", "2017-09-04"),  # labor day
    ("2017-11-10", "2017-11-10"),  # veterans day
    ("2017-11-22", "2017-11-26"),  # thanksgiving holiday
    ("2017-12-10", "2018-01-07"),  # semester break
    ("2018-01-15", "2018-01-15"),  # MLK Day
    ("2018-03-12", "2018-03-16"),  # spring break
    ("2018-04-27", "2018-05-06"),  # spring to summer transition
    ("2018-05-28", "2018-05-28"),  # memorial day
    ("2018-07-04", "2018-07-04"),  # independence day

    # AY1819
    ("2018-08-06", "2018-08-26"),  # summer to fall transition
    ("2018-09-04", "2018-09-04"),  # labor day
    ("2018-10-11", "2018-10-12"),  # reading days
    ("2018-11-12", "2018-11-12"),  # veterans day
    ("2018-11-22", "2018-11-25"),  # thanksgiving holiday
    ("2018-12-10", "2019-01-13"),  # semester break
    ("2019-01-21", "2019-01-21"),  # MLK Day
    ("2019-03-18", "2019-03-24"),  # spring break
    ("2019-04-27", "2019-05-12"),  # spring to summer transition
    ("2019-05-27", "2019-05-27"),  # memorial day
    ("2019-07-04", "2019-07-04"),  # independence day

    # AY1920
    ("2019-08-11", "2019-08-25"),  # summer to fall transition
    ("2019-09-02", "2019-09-02"),  # labor day
    ("2019-10-10", "2019-10-11"),  # reading days
    ("2019-11-11", "2019-11-11"),  # veterans day
    ("2019-11-28", "2019-12-01"),  # thanksgiving holiday
    ("2019-12-09", "2020-01-12"),  # semester break
    ("2020-01-20", "2020-01-20"),  # MLK Day
    ("2020-03-16", "2020-03-25"),  # spring break
    ("2020-04-26", "2020-05-10"),  # spring to summer transition
    ("2020-05-25", "2020-05-25"),  # memorial day
    ("2020-07-03", "2020-07-03"),  # independence day

    # AY2021
    ("2020-08-09", "2020-08-23"),  # summer to fall transition
    ("2020-09-07", "2020-09-07"),  # labor day
    ("2020-11-11", "2020-11-11"),  # veterans day
    ("2020-11-26", "2020-11-29"),  # thanksgiving
    ("2020-12-03", "2021-01-10"),  # semester break
    ("2021-01-18", "2021-01-18"),  # MLK Day
    ("2021-04-24", "2021-05-09"),  # spring to summer transition
    ("2021-05-31", "2021-05-31"),  # memorial day
    ("2021-07-05", "2021-07-05"),  # independence day

    # AY2122
    ("2021-08-10", "2021-08-22"),  # summer to fall transition
    ("2021-09-06", "2021-09-06"),  # labor day
    ("2021-10-11", "2021-10-12"),  # reading days
    ("2021-11-11", "2021-11-11"),  # veterans day
    ("2021-11-25", "2021-11-28"),  # thanksgiving holiday
    ("2021-12-05", "2022-01-09"),  # semester break
    ("2022-01-17", "2022-01-17"),  # MLK Day
    ("2022-03-14", "2022-03-20"),  # spring break
    ("2022-04-22", "2022-05-08"),  # spring to summer transition
    ("2022-05-30", "2022-05-30"),  # memorial day
    ("2022-06-20", "2022-06-20"),  # juneteenth
    ("2022-07-04", "2022-07-04"),  # independence day

    # AY2223
    ("2022-08-07", "2022-08-21"),  # summer to fall transition
    ("2022-09-05", "2022-09-05"),  # labor day
    ("2022-10-10", "2022-10-10"),  # reading day
    ("2022-11-08", "2022-11-08"),  # reading day
    ("2022-11-11", "2022-11-11"),  # veterans day
    ("2022-11-24", "2022-11-27"),  # thanksgiving holiday
    ("2022-12-04", "2023-01-08"),  # semester break
    ("2023-01-16", "2023-01-16"),  # MLK Day
    ("2023-03-13", "2023-03-19"),  # spring break
    ("2023-04-22", "2023-05-07"),  # spring to summer transition
    ("2023-05-29", "2023-05-29"),  # memorial day
    ("2023-06-19", "2023-06-19"),  # juneteenth
    ("2023-07-04", "2023-07-04"),  # independence day

    # AY2324
    ("2023-08-06", "2023-08-20"),  # summer to fall transition
    ("2023-09-04", "2023-09-04"),  # labor day
    ("2023-10-09", "2023-10-09"),  # reading day
    ("2023-11-07", "2023-11-07"),  # reading day
    ("2023-11-10", "2023-11-10"),  # veterans day
    ("2023-11-23", "2023-11-26"),  # thanksgiving holiday
    ("2023-12-03", "2024-01-07"),  # semester break
    ("2024-01-15", "2024-01-15"),  # MLK Day
    ("2024-03-11", "2024-03-17"),  # spring break
    ("2024-04-20", "2024-05-05"),  # spring to summer transition
    ("2024-05-27", "2024-05-27"),  # memorial day
    ("2024-06-19", "2024-06-19"),  # juneteenth
    ("2024-07-04", "2024-07-04"),  # independence day

    # AY2425
    ("2024-08-04", "2024-08-25"),  # summer to fall transition
    ("2024-09-02", "2024-09-02"),  # labor day
    ("2024-10-11", "2024-10-11"),  # reading day
    ("2024-11-05", "2024-11-05"),  # reading day
    ("2024-11-11", "2024-11-11"),  # veterans day
    ("2024-11-28", "2024-12-01"),  # thanksgiving holiday
    ("2024-12-08", "2025-01-12"),  # semester break
    ("2025-01-20", "2025-01-20"),  # MLK Day
    ("2025-01-13", "2025-02-14"),  # Datafeed error schedules
    ("2025-03-17", "2025-03-23"),  # spring break
    ("2025-04-26", "2025-05-11"),  # spring to summer transition
    ("2025-05-26", "2025-05-26"),  # memorial day
    ("2025-06-19", "2025-06-19"),  # juneteenth
    ("2025-07-04", "2025-07-04"),  # independence day

    # AY2526
    ("2025-08-10", "2025-08-24"),  # summer to fall transition
    ("2025-09-01", "2025-09-01"),  # labor day
    ("2025-10-09", "2025-10-10"),  # reading day
    ("2025-11-11", "2025-11-11"),  # veterans day
    ("2025-11-26", "2025-11-28"),  # thanksgiving holiday
    ("2025-12-06", "2026-01-11"),  # semester break
    ("2026-01-19", "2026-01-19"),  # MLK Day
    ("2026-03-16", "2026-03-20"),  # spring break
    ("2026-05-01", "2026-05-10"),  # spring to summer transition
    ("2026-05-25", "2026-05-25"),  # memorial day
    ("2026-06-19", "2026-06-19"),  # juneteenth
    ("2026-07-03", "2026-07-03"),  # independence day
)
