from __future__ import annotations

import pytest

from augury.errors import ArtifactShapeError, OperationalError
from augury.schemas import ARTIFACT_SCHEMAS, validate_artifact, validator_for


class TestArtifactSchemas:
    @pytest.mark.parametrize("name", sorted(ARTIFACT_SCHEMAS))
    def test_schemas_are_valid(self, name: str) -> None:
        validator_for(name)

    def test_accepts_expected_shape(self) -> None:
        validate_artifact({"signature": "0xabc", "extra": 1}, "signature")
        validate_artifact([{"transaction": {}}], "near.outcomes")

    def test_rejects_empty_signature(self) -> None:
        with pytest.raises(ArtifactShapeError) as excinfo:
            validate_artifact({"signature": ""}, "signature")
        assert isinstance(excinfo.value, OperationalError)
        assert excinfo.value.errors[0].startswith("signature:")

    def test_reports_root_errors(self) -> None:
        with pytest.raises(ArtifactShapeError, match="<root>"):
            validate_artifact("0xabc", "hash")

    def test_elrond_signature_accepts_buffer(self) -> None:
        validate_artifact({"signature": {"type": "Buffer", "data": [1, 2, 255]}}, "elrond.signature")
        validate_artifact({"signature": "ab" * 64}, "elrond.signature")

    def test_elrond_signature_rejects_missing_key(self) -> None:
        with pytest.raises(ArtifactShapeError) as excinfo:
            validate_artifact({"sig": "00"}, "elrond.signature")
        assert str(excinfo.value).startswith("Unexpected wallet response (elrond.signature)")
