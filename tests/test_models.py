"""Tests for the pydantic models of the prospect list generator."""

import pytest
from pydantic import ValidationError

from app.models import (
    GenerationImportResponse,
    GenerationPreviewResponse,
    GenerationRequest,
    PreviewResult,
    ProspectCandidate,
    to_camel,
)


class TestToCamel:
    """Tests for the alias generator."""

    def test_converts_snake_case(self):
        """Test that snake_case names become camelCase."""
        assert to_camel("target_count") == "targetCount"
        assert to_camel("preview_data") == "previewData"

    def test_single_word_unchanged(self):
        """Test that single words are left alone."""
        assert to_camel("industry") == "industry"


class TestProspectCandidate:
    """Tests for ProspectCandidate."""

    def test_defaults(self):
        """Test that only source is required."""
        candidate = ProspectCandidate(source="web_crawl")
        assert candidate.name == ""
        assert candidate.email is None
        assert candidate.confidence_score == 0.5

    def test_source_required(self):
        """Test that an empty source is rejected."""
        with pytest.raises(ValidationError):
            ProspectCandidate(name="Acme", source="")

    def test_has_contact_info(self, sample_candidate):
        """Test contact detection on email, phone or website."""
        assert sample_candidate.has_contact_info is True
        assert ProspectCandidate(name="Acme", source="x", website="https://a.fr").has_contact_info
        assert not ProspectCandidate(name="Acme", source="x", address="Lyon").has_contact_info


class TestGenerationRequest:
    """Tests for GenerationRequest validation."""

    def test_parses_camel_case_payload(self, sample_generation_request):
        """Test that camelCase keys populate the model."""
        request = GenerationRequest.model_validate(sample_generation_request)
        assert request.target_count == 20
        assert request.list_name == "Tech Lyon"
        assert request.preview is True

    def test_preview_defaults_to_false(self, sample_generation_request):
        """Test that preview is optional."""
        del sample_generation_request["preview"]
        request = GenerationRequest.model_validate(sample_generation_request)
        assert request.preview is False

    @pytest.mark.parametrize("target", [9, 501, 0, -5])
    def test_target_count_out_of_range(self, sample_generation_request, target):
        """Test that targetCount must be within [10, 500]."""
        sample_generation_request["targetCount"] = target
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate(sample_generation_request)

    @pytest.mark.parametrize("target", [10, 500])
    def test_target_count_bounds_inclusive(self, sample_generation_request, target):
        """Test that both bounds are accepted."""
        sample_generation_request["targetCount"] = target
        assert GenerationRequest.model_validate(sample_generation_request).target_count == target

    @pytest.mark.parametrize("field", ["industry", "location", "listName"])
    def test_blank_strings_rejected(self, sample_generation_request, field):
        """Test that whitespace-only required strings are rejected."""
        sample_generation_request[field] = "   "
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate(sample_generation_request)

    @pytest.mark.parametrize("field", ["industry", "location", "targetCount", "listName"])
    def test_missing_required_field(self, sample_generation_request, field):
        """Test that every required field is enforced."""
        del sample_generation_request[field]
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate(sample_generation_request)

    def test_strips_whitespace(self, sample_generation_request):
        """Test that surrounding whitespace is removed."""
        sample_generation_request["location"] = "  Lyon, France "
        request = GenerationRequest.model_validate(sample_generation_request)
        assert request.location == "Lyon, France"

    def test_unknown_selected_column_rejected(self, sample_generation_request):
        """Test that only known prospect columns can be selected."""
        sample_generation_request["selectedColumns"] = {"name": True, "salary": True}
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate(sample_generation_request)

    def test_preview_data_parsed(self, sample_generation_request, sample_candidate):
        """Test that previewData is parsed into a PreviewResult."""
        sample_generation_request["previewData"] = {
            "prospects": [sample_candidate.model_dump()],
            "sources_used": ["annuaire-sante.fr"],
            "total_found": 1,
        }
        request = GenerationRequest.model_validate(sample_generation_request)
        assert request.preview_data.prospects[0].name == "Cabinet Dentaire Moderne"
        assert request.preview_data.errors == []


class TestResponses:
    """Tests for response serialization."""

    def test_preview_response_uses_camel_case_envelope(self, sample_candidate):
        """Test that the envelope is camelCase and the preview body snake_case."""
        response = GenerationPreviewResponse(
            preview_data=PreviewResult(
                prospects=[sample_candidate],
                sources_used=["annuaire-sante.fr"],
                total_found=1,
            )
        )
        data = response.model_dump()
        assert data["success"] is True
        assert "previewData" in data
        assert data["previewData"]["sources_used"] == ["annuaire-sante.fr"]
        assert data["previewData"]["total_found"] == 1
        assert data["previewData"]["prospects"][0]["confidence_score"] == 0.7

    def test_import_response_aliases(self):
        """Test import response keys."""
        response = GenerationImportResponse(
            list_id="list_1",
            generated_count=3,
            message="ok",
        )
        data = response.model_dump()
        assert data["listId"] == "list_1"
        assert data["generatedCount"] == 3
        assert data["sourcesUsed"] == []
