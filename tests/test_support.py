import os
import re
from datetime import datetime

import pytest
from pydantic import ValidationError

from xray_insight.api.forms import PatientValidationError, parse_patient
from xray_insight.config import load_settings
from xray_insight.detailed_report import FOOTER, generate_detailed_analysis
from xray_insight.presentation import format_report_text, sort_diagnosis, sort_recommendations
from xray_insight.uploads import UploadStore, is_allowed_extension

ALLOWED = (".jpg", ".jpeg", ".png", ".dcm", ".dicom")


class TestUploadStore:

    def test_unique_names_keep_extension(self, tmp_path):
        store = UploadStore(tmp_path / "up", ALLOWED)
        first = store.save("Chest.PNG", b"a")
        second = store.save("Chest.PNG", b"a")

        assert first != second
        assert re.fullmatch(r"xrayImage-\d+-\d+\.png", first.name)
        assert store.count_images() == 2

    def test_remove_is_quiet_for_missing_files(self, tmp_path):
        store = UploadStore(tmp_path, ALLOWED)
        path = store.save("a.jpg", b"a")
        store.remove(path)
        store.remove(path)
        assert not path.exists()

    def test_cleanup_respects_retention(self, tmp_path):
        store = UploadStore(tmp_path, ALLOWED, retention_hours=24)
        old = store.save("old.png", b"o")
        fresh = store.save("fresh.png", b"f")
        now = 1_700_000_000
        os.utime(old, (now - 25 * 3600, now - 25 * 3600))
        os.utime(fresh, (now - 23 * 3600, now - 23 * 3600))

        assert store.cleanup(now=now) == 1
        assert not old.exists()
        assert fresh.exists()

    @pytest.mark.parametrize("name, allowed", [
        ("scan.DCM", True), ("scan.jpeg", True), ("scan.gif", False), ("noext", False), ("", False),
    ])
    def test_allowed_extensions(self, name, allowed):
        assert is_allowed_extension(name, ALLOWED) is allowed


class TestDetailedReport:
    NOW = datetime(2024, 5, 1, 14, 30, 5)

    def test_header_and_footer(self):
        report = generate_detailed_analysis("/srv/uploads/xrayImage-1.png", [], now=self.NOW)
        assert "Image file: xrayImage-1.png" in report
        assert "Analysis date: 01.05.2024" in report
        assert "Analysis time: 14:30:05" in report
        assert report.endswith(FOOTER)
        assert "CONCLUSION: No pathological changes detected" in report

    def test_arthritis_template(self):
        report = generate_detailed_analysis("a.png", ["Knee OSTEOARTHRITIS"], now=self.NOW)
        assert "Subchondral sclerosis" in report

    def test_fracture_wins_over_arthritis(self):
        report = generate_detailed_analysis("a.png", ["arthritis", "перелом"], now=self.NOW)
        assert "The fracture line is clearly traceable" in report


class TestPresentation:
    ANALYSIS = {
        "diagnosis": [{"text": "b", "confidence": 0.5}, {"text": "a", "confidence": 0.9}],
        "recommendations": [
            {"text": "later", "priority": "low"},
            {"text": "now", "priority": "high"},
            {"text": "soon", "priority": "medium"},
            {"text": "also now", "priority": "high"},
        ],
        "similarCases": [{"diagnosis": "Normal radiograph", "match": 95, "description": "ok"}],
        "confidence": 0.9,
        "analysisDate": "2024-05-01T12:00:00Z",
    }

    def test_sorting(self):
        assert [d["text"] for d in sort_diagnosis(self.ANALYSIS["diagnosis"])] == ["a", "b"]
        assert [r["text"] for r in sort_recommendations(self.ANALYSIS["recommendations"])] == [
            "now", "also now", "soon", "later",
        ]

    def test_report_text(self):
        patient = {"firstName": "Maria", "lastName": "K", "age": "34", "doctorName": "Dr. Orlov"}
        text = format_report_text(self.ANALYSIS, patient)
        assert "Patient: Maria K, age 34" in text
        assert "Overall confidence: 90%" in text
        assert text.index("- a (90%)") < text.index("- b (50%)")
        assert "- Normal radiograph (95% match): ok" in text


class TestConfig:

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text(
            "vision:\n"
            "  max_attempts: 5\n"
            "  models:\n"
            "    - name: only/model\n"
            "      default_confidence: 0.6\n"
            "uploads:\n"
            "  retention_hours: 1\n"
        )
        settings = load_settings(str(path))
        assert settings.vision.max_attempts == 5
        assert [m.name for m in settings.vision.models] == ["only/model"]
        assert settings.uploads.retention_hours == 1
        assert settings.uploads.max_file_size_bytes == 10 * 1024 * 1024

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"))
        assert settings.vision.on_missing_api_key == "fallback"
        assert len(settings.vision.models) == 2

    def test_invalid_policy_rejected(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("vision:\n  on_missing_api_key: maybe\n")
        with pytest.raises(ValidationError):
            load_settings(str(path))

    def test_settings_are_frozen(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"))
        with pytest.raises(ValidationError):
            settings.vision.max_attempts = 10


class TestPatientForm:

    def test_fields_are_trimmed(self):
        patient = parse_patient(" Maria ", "Kuznetsova ", " 0 ", "Dr. Orlov")
        assert patient.first_name == "Maria"
        assert patient.age == 0

    @pytest.mark.parametrize("age", ["25abc", "-1", "151", "3.5"])
    def test_invalid_age(self, age):
        with pytest.raises(PatientValidationError, match="age"):
            parse_patient("Maria", "K", age, "Dr. Orlov")

    def test_blank_field_rejected(self):
        with pytest.raises(PatientValidationError):
            parse_patient("Maria", "   ", "30", "Dr. Orlov")
