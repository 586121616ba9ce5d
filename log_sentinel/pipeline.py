"""학습/점수/감시/설명 파이프라인

- train: 코퍼스 → 빈도 모델 학습 → 가지치기 → 부트스트랩 점수 → 로버스트 통계 → 저장
- score: 모델/통계 로드 → 라인별 NLL + Z → 임계값 필터 → Z 내림차순 정렬 → Top-K
- watch: score 와 동일한 라인 단위 판정을 끝없는 스트림에 적용, 이상 라인을 즉시 콜백으로 전달
- explain: 한 라인의 항별 기여도와 전체 NLL
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

import logging  # 로깅
from dataclasses import asdict, dataclass  # 파라미터/결과 데이터클래스
from pathlib import Path  # 경로 타입
from typing import Callable, Iterable, Iterator, Optional, Tuple  # 타입 힌트

import numpy as np  # 수치 계산
import pandas as pd  # 결과 테이블
from tqdm import tqdm  # 진행률 표시 바

from .errors import ConfigurationError  # 예외
from .model import FrequencyModel  # 빈도 모델
from .scorer import Explanation, explain, score  # NLL 계산
from .stats import RobustStats, compute_stats, z_score  # 로버스트 통계
from .store import load_model, save_model  # 모델 저장/로드
from .tokenizer import iter_lines, tokenize  # 토큰화/라인 스트리밍

logger = logging.getLogger(__name__)  # 모듈 로거

SCORE_COLUMNS = ["line_no", "score", "z", "line"]  # 점수 테이블 컬럼 순서


@dataclass  # 학습 파라미터
class TrainParams:
    min_count: int = 1  # 이 횟수 미만 토큰은 가지치기 (1 = 가지치기 없음)
    progress: bool = False  # tqdm 진행률 표시 여부


@dataclass  # 점수 계산 파라미터
class ScoreParams:
    threshold: float = 2.5  # 이상 판정 Z 임계값
    top_k: int = 200  # 최대 보고 라인 수


@dataclass  # 감시 모드 파라미터
class WatchParams:
    threshold: float = 2.5  # 이상 판정 Z 임계값
    poll_interval: float = 1.0  # 파일 이벤트가 없을 때 재확인 주기(초)
    initial_lines: int = 10  # 시작 시 보여줄 기존 마지막 라인 수 (tail -F 기본값)
    max_line_chars: int = 400  # 출력 시 라인 최대 길이


@dataclass(frozen=True)
class ScoredLine:  # 한 라인의 점수 결과
    line_no: int  # 입력 내 0-기반 위치
    score: float  # 원시 NLL
    z: float  # 로버스트 Z
    line: str  # 원문 라인


@dataclass
class TrainingResult:  # 학습 결과 요약
    model: FrequencyModel
    stats: RobustStats
    num_lines: int
    model_dir: Path


def train_model(lines: Iterable[str], params: Optional[TrainParams] = None) -> FrequencyModel:
    """라인 스트림으로 모델 학습 + 선택적 가지치기."""
    params = params or TrainParams()
    if params.min_count < 1:  # 계산 시작 전에 파라미터 검증
        raise ConfigurationError(f"min_count must be >= 1, got {params.min_count}")
    model = FrequencyModel.train(lines)
    logger.info("빈도 집계 완료: %s", model.summary())
    if params.min_count > 1:
        model = model.prune(params.min_count)
        logger.info("가지치기 완료 (min_count=%d): %s", params.min_count, model.summary())
    return model


def bootstrap_scores(lines: Iterable[str], model: FrequencyModel) -> np.ndarray:
    """학습 코퍼스를 방금 학습한 모델로 다시 점수화 (로버스트 통계 산출 전용 단계)."""
    return np.fromiter((score(tokenize(line), model) for line in lines), dtype=float)


def run_training(input_path: str | Path, model_dir: str | Path,
                 params: Optional[TrainParams] = None) -> TrainingResult:
    """코퍼스 파일로 모델을 학습하고 모델 디렉토리에 저장.

    코퍼스는 두 번 스트리밍함 (학습 1회, 부트스트랩 점수 1회). 빈 줄도 점수 분포에 포함.
    """
    params = params or TrainParams()
    logger.info("학습 시작: %s → %s", input_path, model_dir)

    lines = tqdm(iter_lines(input_path), desc="학습", unit="line", disable=not params.progress)
    model = train_model(lines, params)

    lines = tqdm(iter_lines(input_path), desc="부트스트랩", unit="line", disable=not params.progress)
    scores = bootstrap_scores(lines, model)
    stats = compute_stats(scores)
    logger.info("로버스트 통계: %s (lines=%d)", stats.as_dict(), len(scores))

    out = save_model(model, stats, model_dir)
    return TrainingResult(model=model, stats=stats, num_lines=len(scores), model_dir=out)


def score_line(line: str, model: FrequencyModel, stats: RobustStats, line_no: int = 0) -> ScoredLine:
    """한 라인의 NLL 과 Z. 임의의 텍스트에 대해 실패하지 않음."""
    nll = score(tokenize(line), model)
    return ScoredLine(line_no=line_no, score=nll, z=z_score(nll, stats), line=line)


def iter_scored(lines: Iterable[str], model: FrequencyModel, stats: RobustStats) -> Iterator[ScoredLine]:
    for line_no, line in enumerate(lines):  # 원래 위치를 함께 기록
        yield score_line(line, model, stats, line_no)


def score_lines(lines: Iterable[str], model: FrequencyModel, stats: RobustStats) -> pd.DataFrame:
    """모든 라인의 점수 테이블 (line_no, score, z, line)."""
    rows = [asdict(scored) for scored in iter_scored(lines, model, stats)]
    frame = pd.DataFrame(rows, columns=SCORE_COLUMNS)
    return frame.astype({"line_no": "int64", "score": "float64", "z": "float64"})


def rank_anomalies(frame: pd.DataFrame, threshold: float, top_k: int) -> pd.DataFrame:
    """z >= threshold 인 라인만 남기고 Z 내림차순(동점은 입력 순서) 정렬 후 상위 top_k."""
    if top_k < 0:
        raise ConfigurationError(f"top_k must be >= 0, got {top_k}")
    flagged = frame[frame["z"] >= threshold]  # 임계값 필터
    ranked = flagged.sort_values("z", ascending=False, kind="stable")  # 안정 정렬
    return ranked.head(top_k).reset_index(drop=True)


def run_scoring(input_path: str | Path, model_dir: str | Path,
                params: Optional[ScoreParams] = None) -> Tuple[pd.DataFrame, RobustStats]:
    """파일 전체를 점수화하고 순위가 매겨진 이상 라인과 모델 통계를 반환."""
    params = params or ScoreParams()
    model, stats = load_model(model_dir)
    frame = score_lines(iter_lines(input_path), model, stats)
    ranked = rank_anomalies(frame, params.threshold, params.top_k)
    logger.info("점수 계산 완료: %d 라인 중 %d 라인 보고 (z >= %.2f)", len(frame), len(ranked), params.threshold)
    return ranked, stats


def watch_lines(lines: Iterable[str], model: FrequencyModel, stats: RobustStats, threshold: float,
                on_anomaly: Callable[[ScoredLine], None]) -> int:
    """도착하는 라인을 하나씩 점수화하고 이상 라인은 다음 입력을 기다리기 전에 즉시 전달.

    라인 사이에 버퍼링이나 상태가 없음. 입력 이터레이터가 끝나면(감시 중단) 처리한 라인 수를 반환.
    """
    processed = 0
    for scored in iter_scored(lines, model, stats):
        processed += 1
        if scored.z >= threshold:
            on_anomaly(scored)
    return processed


def explain_line(line: str, model: FrequencyModel, stats: Optional[RobustStats] = None) -> Explanation:
    """한 라인의 기여도 분해. 통계가 있으면 Z 도 채움."""
    result = explain(tokenize(line), model, line=line)
    if stats is not None:
        result.z = z_score(result.total, stats)
    return result
