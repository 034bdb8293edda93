"""Healthcare credential extraction from free profile text.

Three independent pattern tables (certifications, licenses, specialties).
Matching is case-insensitive with letter guards on both sides, so "ACLS-certified"
matches but "questions" never yields ONS. Two-letter abbreviations that are also
common English words (ER, OR) must appear upper-case.
"""

import re

from leadfinder.core.schemas import CredentialProfile

_L = r"(?<![A-Za-z])"
_R = r"(?![A-Za-z])"


def _word(pattern: str) -> re.Pattern[str]:
    return re.compile(f"{_L}(?:{pattern}){_R}", re.IGNORECASE)


def _upper_or_word(abbrev: str, words: str) -> re.Pattern[str]:
    """Match ``abbrev`` case-sensitively or any of ``words`` case-insensitively."""
    return re.compile(f"{_L}(?:{abbrev}|(?i:{words})){_R}")


CERTIFICATION_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (label, _word(re.escape(label)))
    for label in (
        "BLS", "ACLS", "PALS", "NRP", "TNCC", "CCRN", "CEN", "CNOR", "ONS", "NIHSS", "STABLE",
    )
)

LICENSE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (label, _word(re.escape(label)))
    for label in ("RN", "BSN", "MSN", "LPN", "NP", "CRNA", "CNA")
)

SPECIALTY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("ICU", _word(r"ICU|Intensive Care")),
    ("Emergency", _upper_or_word("ER", "Emergency")),
    ("Surgical", _upper_or_word("OR", "Operating Room|Surgical")),
    ("NICU", _word("NICU")),
    ("Med-Surg", _word(r"Med[\s-]?Surg")),
    ("L&D", _word(r"L&D|Labor")),
    ("PACU", _word("PACU")),
    ("Telemetry", _word("Tele|Telemetry")),
    ("Oncology", _word("Oncology")),
    ("Pediatrics", re.compile(f"{_L}Pediatric", re.IGNORECASE)),
)


def match_labels(text: str, table: tuple[tuple[str, re.Pattern[str]], ...]) -> str | None:
    """Comma-join the labels whose pattern matches, in table order; None if none match."""
    found: list[str] = []
    for label, pattern in table:
        if label not in found and pattern.search(text):
            found.append(label)
    return ", ".join(found) if found else None


def extract_credentials(text: str) -> CredentialProfile:
    """Scan ``text`` for certification, license and specialty signals."""
    if not text:
        return CredentialProfile()
    return CredentialProfile(
        certifications=match_labels(text, CERTIFICATION_PATTERNS),
        licenses=match_labels(text, LICENSE_PATTERNS),
        specialty=match_labels(text, SPECIALTY_PATTERNS),
    )
