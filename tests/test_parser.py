import pytest

from xray_insight.models import AnatomicalRegion
from xray_insight.parser import (
    FALLBACK_FINDINGS, DigestFindingParser, KeywordFindingParser,
    detect_pathology, determine_region, extract_findings,
)

from conftest import digest_for_seed


class TestFindingExtraction:

    def test_multiple_groups_follow_rule_order(self):
        findings = extract_findings("a Chest radiograph with a possible FRACTURE", digest_for_seed(0))
        assert findings == ["suspected fracture", "pulmonary tissue changes"]

    def test_every_group(self):
        description = "crack joint lung disc healthy lesion"
        assert KeywordFindingParser().parse(description) == [
            "suspected fracture",
            "joint changes",
            "pulmonary tissue changes",
            "spinal changes",
            "normal structure",
            "pathological changes",
        ]

    def test_empty_description_uses_digest(self):
        assert extract_findings("", digest_for_seed(0)) == ["bone structures are visualized"]

    def test_digest_fallback_picks_count_and_stride(self):
        # seed 2: count 3, indices 2, 9 % 5 = 4, 16 % 5 = 1
        assert DigestFindingParser(digest_for_seed(2)).parse("ignored") == [
            "articular surfaces are congruent",
            "age-related changes",
            "soft tissues unremarkable",
        ]

    @pytest.mark.parametrize("seed", range(0, 60))
    def test_fallback_is_non_empty_and_unique(self, seed):
        findings = extract_findings("a photo of something", digest_for_seed(seed))
        assert 1 <= len(findings) <= 3
        assert len(findings) == len(set(findings))
        assert set(findings) <= set(FALLBACK_FINDINGS)


class TestRegion:

    def test_chest_beats_spine(self):
        assert determine_region("chest and spine visible", "scan.png") is AnatomicalRegion.CHEST

    def test_filename_counts(self):
        assert determine_region("an x-ray image", "left_hand.png") is AnatomicalRegion.LIMB

    @pytest.mark.parametrize("description, expected", [
        ("lateral view of the vertebra", AnatomicalRegion.SPINE),
        ("pelvis ap view", AnatomicalRegion.PELVIS),
        ("skull series", AnatomicalRegion.SKULL),
        ("рентген грудь", AnatomicalRegion.CHEST),
        ("снимок таз", AnatomicalRegion.PELVIS),
        ("a grey picture", AnatomicalRegion.GENERAL),
    ])
    def test_keywords(self, description, expected):
        assert determine_region(description, "image.png") is expected


class TestPathology:

    def test_pathology_without_normal(self):
        assert detect_pathology("fracture of the radius", []) is True

    def test_findings_are_considered(self):
        assert detect_pathology("", ["suspected fracture"]) is True
        assert detect_pathology("", ["normal structure"]) is False

    def test_both_present_is_not_pathology(self):
        assert detect_pathology("normal bones, small fracture", []) is False

    def test_neither_present_is_not_pathology(self):
        assert detect_pathology("a photo of a cat", ["bone structures are visualized"]) is False

    @pytest.mark.parametrize("seed", [2, 4])
    def test_age_related_fallback_finding_is_pathology(self, seed):
        findings = extract_findings("a photo of a bone", digest_for_seed(seed))
        assert "age-related changes" in findings
        assert "soft tissues unremarkable" in findings
        assert detect_pathology("a photo of a bone", findings) is True

    def test_label_keywords_ignore_description(self):
        assert detect_pathology("bone changes visible", ["bone structures are visualized"]) is False
        assert detect_pathology("suspected pathological area", []) is False
        assert detect_pathology("a photo", ["spinal changes"]) is True
