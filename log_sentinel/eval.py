# 평가 유틸리티 모듈
# 목적:
# - 라인 단위 이상 판정(z >= threshold)을 라벨(line_no, is_anomaly)과 비교해 Precision/Recall/F1 계산
# - 합성 로그(gen-synth)나 직접 라벨링한 로그로 임계값을 조정할 때 사용

from __future__ import annotations  # 미래 표기법: 타입 힌트 전방 참조 허용

from pathlib import Path  # 경로 타입 사용
from typing import Tuple  # 반환 타입 튜플 표기

import numpy as np  # 수치 계산용
import pandas as pd  # 데이터프레임 처리용

from .pipeline import score_lines  # 라인 점수 테이블
from .store import load_model  # 모델 로드
from .tokenizer import iter_lines  # 라인 스트리밍


def evaluate_lines(scored: pd.DataFrame, labels: pd.DataFrame, threshold: float) -> Tuple[float, float, float]:  # 라인 단위 평가
    merged = pd.merge(scored[["line_no", "z"]], labels[["line_no", "is_anomaly"]], on="line_no", how="inner")  # 라인 번호 기준 내부 조인
    y_true = merged["is_anomaly"].astype(int).values  # 정답 라벨 배열
    y_pred = (merged["z"] >= threshold).astype(int).values  # 예측 라벨 배열
    return _prf1(y_true, y_pred)  # PRF1 계산


def evaluate_file(model_dir: str | Path, input_path: str | Path, labels_path: str | Path,
                  threshold: float) -> Tuple[float, float, float]:  # 파일 단위 평가
    model, stats = load_model(model_dir)  # 모델/통계 로드
    scored = score_lines(iter_lines(input_path), model, stats)  # 전체 라인 점수
    labels = pd.read_parquet(labels_path)  # 라벨 로드
    return evaluate_lines(scored, labels, threshold)


def _prf1(y_true: np.ndarray, y_pred: np.ndarray) -> Tuple[float, float, float]:  # PRF1 계산 헬퍼
    tp = int(((y_true == 1) & (y_pred == 1)).sum())  # True Positive 개수
    fp = int(((y_true == 0) & (y_pred == 1)).sum())  # False Positive 개수
    fn = int(((y_true == 1) & (y_pred == 0)).sum())  # False Negative 개수
    precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0  # 정밀도 계산 (분모 0 방지)
    recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0  # 재현율 계산 (분모 0 방지)
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0  # F1 스코어
    return precision, recall, f1  # (정밀도, 재현율, F1) 반환
