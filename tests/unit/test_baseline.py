"""Tests for the violation baseline."""

import json

import pytest

from manilint.core.baseline import Baseline, build_signature
from manilint.core.schema.violation import Violation


def _violation(check_id="probe.MISSING_LIVENESS", source="app.yaml", resource="Deployment/web",
               fields=("spec", "template"), line=5, message="no liveness probe"):
    return Violation(
        check_id,
        message,
        [source, resource] + list(fields),
        "info",
        evidence={"line": line},
    )


class TestSignature:
    """Tests for build_signature()."""

    def test_signature_ignores_line_and_message(self):
        """Test that moving a finding does not change its signature."""
        a = _violation(line=5, message="one wording")
        b = _violation(line=42, message="another wording")

        assert build_signature(a) == build_signature(b)

    def test_signature_includes_location(self):
        """Test that id, file, resource and field path all matter."""
        base = build_signature(_violation())

        assert build_signature(_violation(check_id="probe.MISSING_READINESS")) != base
        assert build_signature(_violation(source="other.yaml")) != base
        assert build_signature(_violation(resource="Deployment/api")) != base
        assert build_signature(_violation(fields=("spec",))) != base
        assert base == ("probe.MISSING_LIVENESS", "app.yaml", "Deployment/web", "spec/template")


class TestBaseline:
    """Tests for Baseline."""

    def test_in_memory_baseline(self):
        """Test filtering without persistence."""
        baseline = Baseline()
        known = _violation()
        new = _violation(check_id="resource.MISSING_LIMITS")

        assert baseline.record([known]) == 1
        assert len(baseline) == 1
        assert known in baseline
        assert baseline.filter([known, new]) == [new]

    def test_record_replaces_by_default(self):
        """Test that fixed findings drop out of the baseline."""
        baseline = Baseline()
        first = _violation()
        second = _violation(check_id="resource.MISSING_LIMITS")

        baseline.record([first, second])
        added = baseline.record([second])

        assert added == 0
        assert len(baseline) == 1
        assert first not in baseline

    def test_record_keeps_existing_metadata(self):
        """Test that re-recording a known finding keeps its creation time."""
        baseline = Baseline()
        violation = _violation()
        baseline.record([violation])
        created = baseline.entries[build_signature(violation)].metadata["created_at"]

        baseline.record([violation])

        assert baseline.entries[build_signature(violation)].metadata["created_at"] == created

    def test_record_without_replace_merges(self):
        """Test merging into an existing baseline."""
        baseline = Baseline()
        baseline.record([_violation()])
        baseline.record([_violation(check_id="resource.MISSING_LIMITS")], replace=False)

        assert len(baseline) == 2

    def test_persistence_round_trip(self, tmp_path):
        """Test that a saved baseline is loaded again."""
        path = tmp_path / "baseline.json"
        violation = _violation()

        Baseline(str(path)).record([violation])
        reloaded = Baseline(str(path))

        assert violation in reloaded
        assert len(reloaded) == 1

    def test_file_format_is_sorted_json(self, tmp_path):
        """Test the on-disk format."""
        path = tmp_path / "baseline.json"
        baseline = Baseline(str(path))
        baseline.record([
            _violation(check_id="workload.IMAGE_TAG_LATEST"),
            _violation(check_id="probe.MISSING_LIVENESS"),
        ])

        data = json.loads(path.read_text())
        assert data["version"] == "1.0"
        assert [e["id"] for e in data["entries"]] == ["probe.MISSING_LIVENESS", "workload.IMAGE_TAG_LATEST"]
        assert data["entries"][0]["path"] == "spec/template"
        assert data["entries"][0]["resource"] == "Deployment/web"

    def test_missing_file_is_empty(self, tmp_path):
        """Test that a baseline path that does not exist yet starts empty."""
        baseline = Baseline(str(tmp_path / "missing.json"))

        assert len(baseline) == 0

    def test_invalid_file_raises(self, tmp_path):
        """Test that a corrupt baseline is reported."""
        path = tmp_path / "baseline.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid baseline file"):
            Baseline(str(path))

    def test_wrong_shape_raises(self, tmp_path):
        """Test that a JSON file without an entries list is rejected."""
        path = tmp_path / "baseline.json"
        path.write_text(json.dumps({"entries": "nope"}))

        with pytest.raises(ValueError, match="missing entries list"):
            Baseline(str(path))
