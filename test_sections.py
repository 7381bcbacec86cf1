"""Test splitting generated reports into sections"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

from praxisnotes.config import REPORT_SECTIONS, SECTION_PLACEHOLDERS
from praxisnotes.sections import HeadingSectionExtractor, parse_sections

SECTION_KEYS = [key for key, _ in REPORT_SECTIONS]


def test_three_headings():
    text = (
        "Summary\n"
        "Alex had a productive session.\n\n"
        "Skill Acquisition\n"
        "Manding improved to 60% accuracy.\n\n"
        "Next Steps\n"
        "Continue manding practice.\n"
    )
    sections = parse_sections(text)

    assert list(sections) == SECTION_KEYS
    assert sections["summary"] == "Alex had a productive session."
    assert sections["skill_acquisition"] == "Manding improved to 60% accuracy."
    assert sections["next_steps"] == "Continue manding practice."
    for key in ("behavior_management", "reinforcement", "observations", "recommendations"):
        assert sections[key] == SECTION_PLACEHOLDERS[key]


def test_no_headings_gives_placeholders():
    sections = parse_sections("Just a paragraph of prose with no structure at all.")
    assert sections == SECTION_PLACEHOLDERS

    assert parse_sections("") == SECTION_PLACEHOLDERS
    assert parse_sections(None) == SECTION_PLACEHOLDERS


def test_markdown_heading_styles():
    text = (
        "# Session Report\n\n"
        "## 1. Summary\n"
        "Overview line.\n\n"
        "**Behavior Management:**\n"
        "One episode of elopement.\n\n"
        "### Reinforcement:\n"
        "Stickers worked well.\n"
        "Bubbles less so.\n\n"
        "__Observations__\n"
        "Alert and engaged.\n\n"
        "4) recommendations\n"
        "Add visual schedule.\n"
    )
    sections = parse_sections(text)
    assert sections["summary"] == "Overview line."
    assert sections["behavior_management"] == "One episode of elopement."
    assert sections["reinforcement"] == "Stickers worked well.\nBubbles less so."
    assert sections["observations"] == "Alert and engaged."
    assert sections["recommendations"] == "Add visual schedule."


def test_keyword_inside_sentence_is_not_a_heading():
    text = "Summary\nThe summary of reinforcement used today was brief.\n"
    sections = parse_sections(text)
    assert sections["summary"] == "The summary of reinforcement used today was brief."
    assert sections["reinforcement"] == SECTION_PLACEHOLDERS["reinforcement"]


def test_first_heading_wins():
    text = "Summary\nFirst.\n\nSummary\nSecond.\n"
    assert parse_sections(text)["summary"] == "First."


def test_empty_section_uses_placeholder():
    text = "Summary\n\nObservations\nCalm throughout.\n"
    sections = parse_sections(text)
    assert sections["summary"] == SECTION_PLACEHOLDERS["summary"]
    assert sections["observations"] == "Calm throughout."


def test_custom_extractor():
    class TaggedExtractor:
        def extract(self, full_text):
            return {"summary": full_text.upper()}

    sections = parse_sections("tagged output", extractor=TaggedExtractor())
    assert sections["summary"] == "TAGGED OUTPUT"
    assert sections["next_steps"] == SECTION_PLACEHOLDERS["next_steps"]


def test_extractor_returns_only_found_sections():
    found = HeadingSectionExtractor().extract("Recommendations\nMore breaks.\n")
    assert found == {"recommendations": "More breaks."}
