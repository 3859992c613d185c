"""
Unit tests for the analysis domain models.

These tests verify the core business logic without touching
external services (no API calls, no database, no file system).

Testing philosophy:
- Test behavior, not implementation
- Each test should have a clear "given/when/then" structure
- Use descriptive names that explain what we're testing
- Prefer real objects over mocks where practical
"""

from datetime import datetime, timezone

import pytest

from guardian.core.analysis.models import (
    AnalysisRecord,
    AnalysisResult,
    AnalysisType,
    Upload,
    UserAccount,
    Verdict,
)


# ---------------------------------------------------------------------------
# AnalysisResult Tests
# ---------------------------------------------------------------------------

class TestAnalysisResult:
    """Tests for the AnalysisResult value object."""

    def test_from_dict_accepts_well_formed_reply(self):
        result = AnalysisResult.from_dict({
            "verdict": "misinformation",
            "confidence": 0.92,
            "explanation": "Frames show a spliced background.",
        })

        assert result.verdict == Verdict.MISINFORMATION
        assert result.confidence == 0.92

    def test_verdict_is_case_insensitive(self):
        """Models sometimes capitalize the verdict."""
        result = AnalysisResult.from_dict({
            "verdict": " Caution ",
            "confidence": 0.4,
            "explanation": "Unclear source.",
        })

        assert result.verdict == Verdict.CAUTION

    @pytest.mark.parametrize("verdict", ["safe.", "not safe", "misinfo", ""])
    def test_verdict_leniency_stops_at_case_and_whitespace(self, verdict):
        with pytest.raises(ValueError):
            AnalysisResult.from_dict({
                "verdict": verdict,
                "confidence": 0.4,
                "explanation": "Unclear source.",
            })

    def test_confidence_bounds_are_inclusive(self):
        assert AnalysisResult(Verdict.SAFE, 0, "").confidence == 0
        assert AnalysisResult(Verdict.SAFE, 1, "").confidence == 1

    @pytest.mark.parametrize("confidence", [-0.01, 1.01, float("nan"), "0.5", None, True])
    def test_rejects_invalid_confidence(self, confidence):
        with pytest.raises(ValueError):
            AnalysisResult.from_dict({
                "verdict": "safe",
                "confidence": confidence,
                "explanation": "x",
            })

    def test_rejects_unknown_verdict(self):
        with pytest.raises(ValueError):
            AnalysisResult.from_dict({
                "verdict": "probably fine",
                "confidence": 0.5,
                "explanation": "x",
            })

    def test_rejects_missing_keys(self):
        with pytest.raises(ValueError, match="verdict"):
            AnalysisResult.from_dict({"confidence": 0.5, "explanation": "x"})

    def test_rejects_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            AnalysisResult.from_dict(["safe", 0.5, "x"])

    def test_to_dict_uses_wire_names(self):
        result = AnalysisResult(Verdict.SAFE, 1, "Looks authentic.")

        assert result.to_dict() == {
            "verdict": "safe",
            "confidence": 1.0,
            "explanation": "Looks authentic.",
        }


# ---------------------------------------------------------------------------
# AnalysisRecord Tests
# ---------------------------------------------------------------------------

class TestAnalysisRecord:
    """Tests for the persisted record shape."""

    def test_video_document_shape(self):
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        record = AnalysisRecord(
            type=AnalysisType.VIDEO,
            result=AnalysisResult(Verdict.SAFE, 0.9, "Consistent lighting."),
            file_name="clip.mp4",
            storage_path="gs://theog/videos/1-abc-clip.mp4",
            created_at=created,
        )

        assert record.to_document() == {
            "type": "video",
            "fileName": "clip.mp4",
            "storagePath": "gs://theog/videos/1-abc-clip.mp4",
            "result": {
                "verdict": "safe",
                "confidence": 0.9,
                "explanation": "Consistent lighting.",
            },
            "createdAt": "2024-05-01T12:00:00+00:00",
        }

    def test_text_document_has_no_file_fields(self):
        record = AnalysisRecord(
            type=AnalysisType.TEXT,
            result=AnalysisResult(Verdict.CAUTION, 0.5, "Unverified claim."),
            input_text="The moon is made of cheese.",
        )

        document = record.to_document()

        assert document["inputText"] == "The moon is made of cheese."
        assert "fileName" not in document
        assert "storagePath" not in document

    def test_created_at_defaults_to_utc_now(self):
        record = AnalysisRecord(
            type=AnalysisType.TEXT,
            result=AnalysisResult(Verdict.SAFE, 0.5, ""),
        )

        assert record.created_at.tzinfo is not None


# ---------------------------------------------------------------------------
# Upload and UserAccount Tests
# ---------------------------------------------------------------------------

class TestUpload:
    def test_size_bytes(self):
        assert Upload(data=b"12345", filename="a.mp4").size_bytes == 5


class TestUserAccount:
    def test_email_is_normalized(self):
        user = UserAccount(email="  Alice@Example.COM ", password_hash="hash")
        assert user.email == "alice@example.com"

    def test_rejects_blank_email(self):
        with pytest.raises(ValueError, match="Email"):
            UserAccount(email="   ", password_hash="hash")
