"""로버스트 통계 (사분위수 + MAD) 와 로버스트 Z-스코어

- 분위수는 보간 없는 위치 기반: 정렬 후 1-기반 인덱스 max(floor(q*n), 1) 의 값
- MAD = 같은 방식의 중앙값을 |x - p50| 에 적용
- MAD가 정확히 0이면 1로 고정 (0 나눗셈 방지)
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

from dataclasses import dataclass  # 통계 데이터클래스
from typing import Dict, Iterable  # 타입 힌트

import numpy as np  # 수치 계산

MAD_Z_FACTOR = 0.6745  # 정규분포 가정에서 MAD 기반 Z를 표준 Z와 비교 가능하게 하는 상수
STAT_KEYS = ("p25", "p50", "p75", "mad")  # stats.tsv 키 순서


@dataclass(frozen=True)
class RobustStats:
    p25: float = 0.0  # 1사분위수
    p50: float = 0.0  # 중앙값
    p75: float = 0.0  # 3사분위수
    mad: float = 1.0  # 중앙값 절대 편차 (0이 아님)

    def z_score(self, x: float) -> float:
        return z_score(x, self)

    def as_dict(self) -> Dict[str, float]:
        return {key: getattr(self, key) for key in STAT_KEYS}


def _positional(sorted_values: np.ndarray, q: float) -> float:
    """정렬된 배열에서 1-기반 위치 max(floor(q*n), 1) 의 값."""
    position = max(int(q * len(sorted_values)), 1)
    return float(sorted_values[position - 1])


def compute_stats(scores: Iterable[float]) -> RobustStats:
    """점수 분포에서 p25/p50/p75/MAD 계산. 빈 입력이면 (0, 0, 0, 1)."""
    values = np.sort(np.asarray(list(scores), dtype=float))  # 오름차순 정렬
    if values.size == 0:
        return RobustStats()

    p25 = _positional(values, 0.25)
    p50 = _positional(values, 0.50)
    p75 = _positional(values, 0.75)

    deviations = np.sort(np.abs(values - p50))  # 중앙값으로부터의 절대 편차
    mad = _positional(deviations, 0.50)
    if mad == 0:  # 모든 점수가 같은 경우
        mad = 1.0
    return RobustStats(p25=p25, p50=p50, p75=p75, mad=mad)


def z_score(x: float, stats: RobustStats) -> float:
    """로버스트 Z = 0.6745 * (x - p50) / mad"""
    return MAD_Z_FACTOR * (x - stats.p50) / stats.mad
