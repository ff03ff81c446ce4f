"""Tests for age calculation, exclusion matchers and classification."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from orphan_disks.schemas.disk import Classification, ClassificationRule, TagMap
from orphan_disks.services.classifier import (
    REASON_EXCLUDED_NAME,
    REASON_EXCLUDED_TAG,
    REASON_MISSING_CREATED,
    REASON_RECENT,
    REASON_SAFE,
    calculate_age_days,
    classify,
    classify_disk,
    matches_excluded_name,
    matches_excluded_tag,
)


class TestCalculateAgeDays:
    """Test whole-day age calculation."""

    def test_missing_creation_time(self, now):
        """Test that a missing timestamp yields None rather than an error."""
        assert calculate_age_days(None, now) is None

    def test_floors_partial_days(self, now):
        """Test that partial days are floored."""
        created = now - timedelta(days=4, hours=23, minutes=59)
        assert calculate_age_days(created, now) == 4

    def test_exact_days(self, now):
        """Test exact day boundaries."""
        assert calculate_age_days(now - timedelta(days=30), now) == 30

    def test_future_timestamp_clamped_to_zero(self, now):
        """Test that clock skew never yields a negative age."""
        assert calculate_age_days(now + timedelta(days=2), now) == 0

    def test_naive_timestamp_treated_as_utc(self, now):
        """Test that naive timestamps are interpreted as UTC."""
        created = datetime(2025, 5, 22, 12, 0, 0)
        assert calculate_age_days(created, now) == 10

    def test_other_timezone(self, now):
        """Test that aware timestamps in other zones compare correctly."""
        plus_two = timezone(timedelta(hours=2))
        created = datetime(2025, 5, 2, 14, 0, 0, tzinfo=plus_two)  # 12:00 UTC
        assert calculate_age_days(created, now) == 30


class TestTagMatcher:
    """Test case-insensitive tag key exclusion."""

    def test_case_insensitive_match(self):
        """Test that configured keys match tag keys regardless of case."""
        tags = TagMap({"DoNotDelete": "true"})
        assert matches_excluded_tag(tags, ["donotdelete"]) is True

    def test_value_is_ignored(self):
        """Test that only keys are matched, never values."""
        tags = TagMap({"owner": "donotdelete"})
        assert matches_excluded_tag(tags, ["donotdelete"]) is False

    def test_empty_tags(self):
        """Test that a disk without tags never matches."""
        assert matches_excluded_tag(TagMap({}), ["keep"]) is False

    def test_empty_configuration(self):
        """Test that an empty exclusion list never matches."""
        assert matches_excluded_tag(TagMap({"keep": "yes"}), []) is False

    def test_blank_entries_skipped(self):
        """Test that blank configured keys do not match blank-ish tag keys."""
        tags = TagMap({"": "x", " ": "y"})
        assert matches_excluded_tag(tags, ["", "   "]) is False

    def test_partial_key_does_not_match(self):
        """Test that tag key matching is by equality, not substring."""
        tags = TagMap({"keeper": "alice"})
        assert matches_excluded_tag(tags, ["keep"]) is False


class TestNameMatcher:
    """Test case-insensitive name substring exclusion."""

    def test_substring_match(self):
        """Test that a pattern anywhere in the name matches."""
        assert matches_excluded_name("golden-base-image", ["base-image"]) is True

    def test_case_insensitive(self):
        """Test that pattern and name are compared case-insensitively."""
        assert matches_excluded_name("Win2022-GOLDEN", ["golden"]) is True
        assert matches_excluded_name("win2022-golden", ["GOLDEN"]) is True

    def test_no_match(self):
        """Test that unrelated names do not match."""
        assert matches_excluded_name("data-disk-01", ["golden", "template"]) is False

    def test_empty_patterns(self):
        """Test that an empty pattern list never matches."""
        assert matches_excluded_name("golden", []) is False

    def test_blank_patterns_skipped(self):
        """Test that blank patterns do not match every name."""
        assert matches_excluded_name("data-disk-01", ["", "  "]) is False


class TestClassify:
    """Test the classification precedence."""

    def test_tag_exclusion_wins(self):
        """Test that tag exclusion wins over everything else."""
        decision = classify(age_days=None, min_age_days=30, excluded_by_tags=True, excluded_by_name=True)
        assert decision.classification == Classification.EXCLUDE
        assert decision.reason == REASON_EXCLUDED_TAG

    def test_name_exclusion_before_age(self):
        """Test that name exclusion wins over missing or recent age."""
        decision = classify(age_days=1, min_age_days=30, excluded_by_tags=False, excluded_by_name=True)
        assert decision.classification == Classification.EXCLUDE
        assert decision.reason == REASON_EXCLUDED_NAME

    def test_missing_age_is_review(self):
        """Test that an unknown creation time needs review."""
        decision = classify(age_days=None, min_age_days=30, excluded_by_tags=False, excluded_by_name=False)
        assert decision.classification == Classification.REVIEW
        assert decision.reason == REASON_MISSING_CREATED

    def test_recent_is_review(self):
        """Test that disks younger than the threshold need review."""
        decision = classify(age_days=29, min_age_days=30, excluded_by_tags=False, excluded_by_name=False)
        assert decision.classification == Classification.REVIEW
        assert decision.reason == REASON_RECENT

    def test_threshold_is_inclusive(self):
        """Test that a disk exactly at the threshold is SAFE."""
        decision = classify(age_days=30, min_age_days=30, excluded_by_tags=False, excluded_by_name=False)
        assert decision.classification == Classification.SAFE
        assert decision.reason == REASON_SAFE

    def test_zero_threshold_makes_everything_old_enough(self):
        """Test that min_age_days=0 classifies a brand-new disk as SAFE."""
        decision = classify(age_days=0, min_age_days=0, excluded_by_tags=False, excluded_by_name=False)
        assert decision.classification == Classification.SAFE

    @pytest.mark.parametrize(
        "age_days,excluded_by_tags,excluded_by_name",
        list(itertools.product([None, 0, 29, 30, 365], [False, True], [False, True])),
    )
    def test_total_and_ordered(self, age_days, excluded_by_tags, excluded_by_name):
        """Test that every input combination yields the expected single outcome."""
        decision = classify(age_days, 30, excluded_by_tags, excluded_by_name)

        if excluded_by_tags:
            expected = (Classification.EXCLUDE, REASON_EXCLUDED_TAG)
        elif excluded_by_name:
            expected = (Classification.EXCLUDE, REASON_EXCLUDED_NAME)
        elif age_days is None:
            expected = (Classification.REVIEW, REASON_MISSING_CREATED)
        elif age_days < 30:
            expected = (Classification.REVIEW, REASON_RECENT)
        else:
            expected = (Classification.SAFE, REASON_SAFE)

        assert (decision.classification, decision.reason) == expected

    def test_deterministic(self):
        """Test that repeated calls return equal decisions."""
        first = classify(12, 30, False, False)
        second = classify(12, 30, False, False)
        assert first == second


class TestClassifyDisk:
    """Test the combined matcher and classifier step."""

    def test_uses_rule_settings(self):
        """Test that the rule's keys, patterns and threshold are applied."""
        rule = ClassificationRule(
            min_age_days=7,
            exclude_tag_keys=("retain",),
            exclude_name_patterns=("tmpl",),
        )

        assert classify_disk("disk-a", TagMap({"Retain": "1"}), 100, rule).reason == REASON_EXCLUDED_TAG
        assert classify_disk("vm-tmpl-os", TagMap({}), 100, rule).reason == REASON_EXCLUDED_NAME
        assert classify_disk("disk-b", TagMap({}), 6, rule).reason == REASON_RECENT
        assert classify_disk("disk-c", TagMap({}), 7, rule).classification == Classification.SAFE
