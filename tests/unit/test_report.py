"""
Unit tests for report module
"""
from datetime import datetime

import pandas as pd

from log_sentinel.report import ReportParams, render_report, severity_class, write_report
from log_sentinel.stats import RobustStats


def _ranked():
    return pd.DataFrame({
        "line_no": [4, 1],
        "score": [42.0, 20.5],
        "z": [4.1, 2.7],
        "line": ["<script>alert(1)</script>", "plain & simple"],
    })


class TestSeverityClass:
    """Tests for severity tiers"""

    def test_tiers(self):
        """Test boundaries between sev1, sev2 and sev3"""
        assert severity_class(2.49) == "sev1"
        assert severity_class(2.5) == "sev2"
        assert severity_class(3.49) == "sev2"
        assert severity_class(3.5) == "sev3"

    def test_custom_params(self):
        """Test custom tier boundaries"""
        params = ReportParams(moderate=1.0, severe=2.0)
        assert severity_class(1.5, params) == "sev2"
        assert severity_class(2.0, params) == "sev3"


class TestRenderReport:
    """Tests for render_report and write_report"""

    def test_contents(self):
        """Test header, rows and escaping"""
        stats = RobustStats(p25=1.0, p50=2.0, p75=3.0, mad=0.5)
        html = render_report(_ranked(), stats, "/var/log/app.log", generated_at=datetime(2024, 1, 2, 3, 4, 5))
        assert "Sentinel Anomaly Report" in html
        assert "/var/log/app.log" in html
        assert "2024-01-02 03:04:05" in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
        assert "<script>" not in html
        assert "plain &amp; simple" in html
        assert html.index('class="sev3"') < html.index('class="sev2"')
        assert "<td>1</td>" in html and "<td>2</td>" in html

    def test_empty_table(self):
        """Test rendering with no anomalies"""
        html = render_report(_ranked().iloc[0:0], RobustStats(), "x.log")
        assert "<tbody>" in html
        assert 'class="sev' not in html

    def test_write_report(self, tmp_path):
        """Test the report is written to disk"""
        out = write_report(tmp_path / "out" / "report.html", _ranked(), RobustStats(), "x.log")
        assert out.exists()
        assert out.read_text(encoding="utf-8").startswith("<!doctype html>")
