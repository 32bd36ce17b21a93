"""Tests for the license compatibility scorer (metrics/license.py)."""

from __future__ import annotations

import pytest

from netscore.metrics.license import LICENSE_SCORES, license_compatibility


class TestLicenseCompatibility:
    @pytest.mark.parametrize(
        ("license_name", "expected"),
        [
            ("MIT", 1.0),
            ("MIT License", 1.0),
            ("Apache-2.0", 0.5),
            ("Apache License 2.0", 0.5),
            ("GNU Lesser General Public License v2.1", 1.0),
            ("LGPL-3.0", 0.0),
            ("GPL-3.0", 0.0),
            ("WTFPL", 0.5),
            ("The Unlicense", 1.0),
        ],
    )
    def test_known_licenses(self, make_details, license_name, expected):
        assert license_compatibility(make_details(license=license_name)) == expected

    @pytest.mark.parametrize("license_name", ["No license", "Proprietary", "mit", "MIT "])
    def test_unmatched_license_scores_zero(self, make_details, license_name):
        assert license_compatibility(make_details(license=license_name)) == 0.0

    def test_table_scores_are_bounded(self):
        assert all(0.0 <= score <= 1.0 for score in LICENSE_SCORES.values())
