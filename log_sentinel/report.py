"""HTML 이상 리포트 렌더러

순위가 매겨진 이상 라인 테이블(line_no, score, z, line)을 단일 HTML 파일로 변환.
Z 구간별 심각도: z < moderate → sev1(정상), moderate <= z < severe → sev2(중간), z >= severe → sev3(심각)
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

import html  # 라인 텍스트 이스케이프
from dataclasses import dataclass  # 파라미터 데이터클래스
from datetime import datetime  # 생성 시간
from pathlib import Path  # 경로 타입
from typing import List, Optional  # 타입 힌트

import pandas as pd  # 결과 테이블

from .stats import RobustStats  # 로버스트 통계


@dataclass  # 리포트 파라미터
class ReportParams:
    moderate: float = 2.5  # 중간 심각도 시작 Z
    severe: float = 3.5  # 심각 시작 Z


_STYLE = """ body{font-family:ui-sans-serif,system-ui,Segoe UI,Roboto,Helvetica,Arial,sans-serif;margin:24px}
 h1{margin:0 0 8px} .dim{color:#666} code{background:#f6f8fa;padding:2px 4px;border-radius:4px}
 table{border-collapse:collapse;width:100%;margin-top:16px}
 th,td{border-bottom:1px solid #eee;padding:8px;text-align:left;font-size:14px}
 .sev1{background:#fff} .sev2{background:#fff7e6} .sev3{background:#ffe9e9}
 .pill{display:inline-block;padding:2px 8px;border-radius:999px;background:#eee;font-size:12px}"""


def severity_class(z: float, params: Optional[ReportParams] = None) -> str:
    """Z 값에 해당하는 행 CSS 클래스 (sev1/sev2/sev3)."""
    params = params or ReportParams()
    if z >= params.severe:
        return "sev3"
    if z >= params.moderate:
        return "sev2"
    return "sev1"


def render_report(ranked: pd.DataFrame, stats: RobustStats, source: str | Path,
                  params: Optional[ReportParams] = None, generated_at: Optional[datetime] = None) -> str:
    """순위 테이블을 HTML 문자열로 렌더링."""
    params = params or ReportParams()
    generated = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    rows: List[str] = []
    for idx, row in enumerate(ranked.itertuples(index=False), start=1):  # 1부터 순번
        rows.append(
            f'<tr class="{severity_class(row.z, params)}"><td>{idx}</td><td>{row.score:.4f}</td>'
            f'<td><span class="pill">{row.z:.2f}</span></td><td><code>{html.escape(row.line)}</code></td></tr>'
        )

    return f"""<!doctype html>
<html><head><meta charset="utf-8"><title>Sentinel Report</title>
<style>
{_STYLE}
</style></head><body>
<h1>Sentinel Anomaly Report</h1>
<p class="dim">Source: <code>{html.escape(str(source))}</code> • Generated: {generated} • Model: unigram+bigram • Robust center: {stats.p50:f} (MAD {stats.mad:f})</p>
<table><thead><tr><th>#</th><th>Score</th><th>Z</th><th>Line</th></tr></thead><tbody>
{chr(10).join(rows)}
</tbody></table></body></html>
"""


def write_report(out_path: str | Path, ranked: pd.DataFrame, stats: RobustStats, source: str | Path,
                 params: Optional[ReportParams] = None) -> Path:
    """HTML 리포트를 파일로 저장하고 경로 반환."""
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)  # 출력 폴더 생성
    out.write_text(render_report(ranked, stats, source, params), encoding="utf-8")
    return out
