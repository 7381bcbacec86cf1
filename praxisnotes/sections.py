"""
Split generated report text into named sections
"""
import re
from typing import Dict, List, Optional, Protocol, Tuple

from .config import REPORT_SECTIONS, SECTION_PLACEHOLDERS

# Keyword pattern per section; spaces match any run of whitespace
SECTION_KEYWORDS = {
    "summary": r"summary",
    "skill_acquisition": r"skills?\s+acquisition",
    "behavior_management": r"behaviou?r\s+management",
    "reinforcement": r"reinforcement",
    "observations": r"observations?",
    "recommendations": r"recommendations?",
    "next_steps": r"next\s+steps?",
}

# A heading is a whole line: optional #'s, optional "1." numbering, optional
# bold/underscore markers and an optional trailing colon around the keyword
_HEADING_TEMPLATE = (
    r"^\s*(?:#{{1,6}}\s*)?(?:\d+[.)]\s*)?(?:\*\*|__)?\s*"
    r"{keyword}"
    r"\s*:?\s*(?:\*\*|__)?\s*:?\s*$"
)

HEADING_PATTERNS = [
    (key, re.compile(_HEADING_TEMPLATE.format(keyword=SECTION_KEYWORDS[key]), re.IGNORECASE))
    for key, _ in REPORT_SECTIONS
]


class SectionExtractor(Protocol):
    def extract(self, full_text: str) -> Dict[str, str]:
        """Return whatever sections could be found, keyed by section name."""
        ...


class HeadingSectionExtractor:
    """Finds sections by matching heading lines against fixed keywords."""

    def _headings(self, lines: List[str]) -> List[Tuple[int, str]]:
        found = []
        for index, line in enumerate(lines):
            for key, pattern in HEADING_PATTERNS:
                if pattern.match(line):
                    found.append((index, key))
                    break
        return found

    def extract(self, full_text: str) -> Dict[str, str]:
        lines = full_text.splitlines()
        headings = self._headings(lines)
        boundaries = [index for index, _ in headings] + [len(lines)]

        sections = {}
        for position, (index, key) in enumerate(headings):
            if key in sections:
                # first match wins
                continue
            end = boundaries[position + 1]
            sections[key] = "\n".join(lines[index + 1:end]).strip()
        return sections


_default_extractor = HeadingSectionExtractor()


def parse_sections(full_text: Optional[str],
                   extractor: Optional[SectionExtractor] = None) -> Dict[str, str]:
    """
    Map every report section name to its text.

    Sections the extractor could not find, or found empty, get their
    placeholder, so the result always carries all seven keys.
    """
    extractor = extractor or _default_extractor
    found = extractor.extract(full_text or "")
    return {
        key: found.get(key) or SECTION_PLACEHOLDERS[key]
        for key, _ in REPORT_SECTIONS
    }
