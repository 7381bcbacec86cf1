"""Test the predefined skill, behavior and reinforcer catalogs"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

from praxisnotes import catalogs
from praxisnotes.config import REINFORCER_TYPE_LABELS


def test_skill_programs_and_targets():
    programs = catalogs.skill_programs()
    assert [p.name for p in programs][:2] == ["Communication", "Social Skills"]

    targets = catalogs.skill_targets("prog-3")
    assert [t.name for t in targets] == ["Hand washing", "Getting dressed", "Toileting"]
    assert len(catalogs.skill_targets()) == 15
    assert catalogs.skill_targets("prog-99") == []


def test_find_behavior():
    assert catalogs.find_behavior("behavior-4").name == "Elopement"
    assert catalogs.find_behavior("nope") is None


def test_search_behaviors_matches_definition_case_insensitively():
    names = [b.name for b in catalogs.search_behaviors("SCREAMING")]
    assert names == ["Tantrum", "Verbal disruption"]
    assert catalogs.search_behaviors("zzz") == []


def test_reinforcers():
    assert catalogs.find_reinforcer("reinforcer-4").name == "Stickers"
    assert [r.name for r in catalogs.search_reinforcers("token")] == ["Token economy"]
    assert all(r.type in REINFORCER_TYPE_LABELS for r in catalogs.reinforcers())
