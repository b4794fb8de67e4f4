"""Unit tests for the structural fingerprint."""

import logging

from edgeprobe.analysis.skeleton import StructuralBaseline, skeleton_hash


class TestSkeletonHash:
    def test_text_does_not_contribute(self):
        assert skeleton_hash("<div>A</div>") == skeleton_hash("<div>B</div>")

    def test_nesting_order_matters(self):
        assert skeleton_hash("<div><span></span></div>") != skeleton_hash(
            "<span><div></div></span>"
        )

    def test_added_tag_changes_hash(self):
        assert skeleton_hash("<p></p>") != skeleton_hash("<p></p><br>")

    def test_attributes_are_part_of_tag(self):
        assert skeleton_hash('<a href="/x">') != skeleton_hash('<a href="/y">')

    def test_text_outside_tags_only(self):
        assert skeleton_hash("hello") == skeleton_hash("world") == skeleton_hash("")

    def test_unterminated_tag_contributes(self):
        assert skeleton_hash("<div") != skeleton_hash("")

    def test_fits_in_64_bits(self):
        assert 0 <= skeleton_hash("<html><body></body></html>") < 2**64


class TestStructuralBaseline:
    def test_first_observation_captures(self):
        baseline = StructuralBaseline()
        assert baseline.value is None
        assert baseline.observe("<div>A</div>") == (True, False)
        assert baseline.value == skeleton_hash("<div>A</div>")

    def test_same_structure_does_not_drift(self):
        baseline = StructuralBaseline()
        baseline.observe("<div>A</div>")
        assert baseline.observe("<div>B</div>") == (False, False)

    def test_drift_detected_and_baseline_kept(self, caplog):
        baseline = StructuralBaseline()
        baseline.observe("<div>A</div>")
        original = baseline.value
        with caplog.at_level(logging.WARNING, logger="edgeprobe.analysis.skeleton"):
            assert baseline.observe("<span>A</span>") == (False, True)
        assert baseline.value == original
        assert any("drift" in r.getMessage() for r in caplog.records)
