"""모델 디렉토리 저장/로드

모델 디렉토리 구성 (탭 구분, 헤더 없음):
- unigram.tsv: token<TAB>count
- bigram.tsv: left<TAB>right<TAB>count
- stats.tsv: p25/p50/p75/mad 네 줄, key<TAB>value

각 파일은 같은 디렉토리의 임시 파일에 먼저 쓰고 os.replace 로 교체하므로
쓰는 도중 실패해도 반쯤 쓰인 파일이 남지 않음.
세 파일 묶음은 stats.tsv 를 완료 표시로 사용: 교체 전에 이전 stats.tsv 를 지우고 마지막에 새로 놓음.
따라서 교체 도중 중단되면 로드가 "model incomplete" 로 거부되고, 서로 다른 학습의 파일이 섞여 로드되지 않음.
레코드는 키 기준으로 정렬해 재학습 결과를 diff 로 비교할 수 있게 함.
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

import csv  # 인용 규칙 상수
import logging  # 로깅
import os  # 원자적 교체
import tempfile  # 임시 파일
from pathlib import Path  # 경로 타입
from typing import Dict, List, Tuple  # 타입 힌트

import pandas as pd  # 테이블 입출력

from .errors import ConfigurationError  # 예외
from .model import FrequencyModel  # 빈도 모델
from .stats import STAT_KEYS, RobustStats  # 로버스트 통계

logger = logging.getLogger(__name__)  # 모듈 로거

UNIGRAM_FILE = "unigram.tsv"
BIGRAM_FILE = "bigram.tsv"
STATS_FILE = "stats.tsv"
MODEL_FILES = (UNIGRAM_FILE, BIGRAM_FILE, STATS_FILE)

UNIGRAM_COLUMNS = ["token", "count"]
BIGRAM_COLUMNS = ["left", "right", "count"]
STATS_COLUMNS = ["key", "value"]

# 토큰은 'nan', 'null', 'true' 같은 문자열일 수 있으므로 NA/불리언 변환을 모두 끔
_READ_OPTIONS = dict(
    sep="\t",
    header=None,
    quoting=csv.QUOTE_NONE,
    keep_default_na=False,
    na_filter=False,
    encoding="utf-8",
)


def unigram_frame(model: FrequencyModel) -> pd.DataFrame:  # 유니그램 테이블 (토큰 정렬)
    rows = sorted(model.unigram_counts.items())
    return pd.DataFrame(rows, columns=UNIGRAM_COLUMNS)


def bigram_frame(model: FrequencyModel) -> pd.DataFrame:  # 바이그램 테이블 ((left, right) 정렬)
    rows = [(u, v, c) for (u, v), c in sorted(model.bigram_counts.items())]
    return pd.DataFrame(rows, columns=BIGRAM_COLUMNS)


def stats_frame(stats: RobustStats) -> pd.DataFrame:  # 통계 테이블 (고정 키 순서)
    return pd.DataFrame([(key, float(getattr(stats, key))) for key in STAT_KEYS], columns=STATS_COLUMNS)


def _write_temp(frame: pd.DataFrame, directory: Path, name: str) -> Path:
    """프레임을 대상 디렉토리의 임시 파일에 TSV로 기록하고 경로 반환."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=directory)
    with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
        frame.to_csv(
            handle,
            sep="\t",
            header=False,
            index=False,
            quoting=csv.QUOTE_NONE,
            lineterminator="\n",
        )
    return Path(tmp_name)


def save_model(model: FrequencyModel, stats: RobustStats, model_dir: str | Path) -> Path:
    """모델 + 통계를 모델 디렉토리에 저장 (파일별 임시 파일 → 교체)."""
    out = Path(model_dir)
    out.mkdir(parents=True, exist_ok=True)  # 디렉토리 생성(존재 시 무시)

    frames = {  # stats.tsv 는 반드시 마지막 (교체 완료 표시)
        UNIGRAM_FILE: unigram_frame(model),
        BIGRAM_FILE: bigram_frame(model),
        STATS_FILE: stats_frame(stats),
    }
    staged: List[Tuple[Path, Path]] = []  # (임시 경로, 최종 경로)
    try:
        for name, frame in frames.items():  # 모든 파일을 먼저 임시로 기록
            staged.append((_write_temp(frame, out, name), out / name))
        # 이전 stats.tsv 를 먼저 지워서 교체 도중 중단되면 디렉토리가 "불완전"으로 보이게 함
        (out / STATS_FILE).unlink(missing_ok=True)
        for tmp_path, final_path in staged:  # 유니그램 → 바이그램 → 통계 순서로 교체
            os.replace(tmp_path, final_path)
    finally:
        for tmp_path, _ in staged:  # 실패 시 남은 임시 파일 정리
            if tmp_path.exists():
                tmp_path.unlink()

    logger.info("모델 저장 완료: %s (%s)", out, ", ".join(MODEL_FILES))
    return out


def check_model_dir(model_dir: str | Path) -> Path:
    """모델 디렉토리와 세 파일이 모두 있는지 확인."""
    path = Path(model_dir)
    if not path.is_dir():
        raise ConfigurationError(f"model directory missing/invalid: {path}")
    missing = [name for name in MODEL_FILES if not (path / name).is_file()]
    if missing:
        raise ConfigurationError(f"model incomplete in {path} (missing: {', '.join(missing)})")
    return path


def _read_table(path: Path, columns: List[str], dtypes: Dict[str, str]) -> pd.DataFrame:
    """헤더 없는 TSV를 읽음. 빈 파일은 빈 프레임."""
    if path.stat().st_size == 0:
        return pd.DataFrame({col: pd.Series(dtype=dtypes[col]) for col in columns})
    try:
        return pd.read_csv(path, names=columns, dtype=dtypes, **_READ_OPTIONS)
    except ValueError as e:  # 열 개수/숫자 형식 오류 (pandas ParserError 포함)
        raise ConfigurationError(f"malformed model file {path}: {e}") from e


def load_frequency_model(model_dir: str | Path) -> FrequencyModel:
    path = Path(model_dir)
    uni = _read_table(path / UNIGRAM_FILE, UNIGRAM_COLUMNS, {"token": "str", "count": "int64"})
    bi = _read_table(path / BIGRAM_FILE, BIGRAM_COLUMNS, {"left": "str", "right": "str", "count": "int64"})

    unigrams = dict(zip(uni["token"].tolist(), uni["count"].tolist()))
    bigrams = dict(zip(zip(bi["left"].tolist(), bi["right"].tolist()), bi["count"].tolist()))
    model = FrequencyModel(unigrams, bigrams)
    model.ensure_vocabulary(str(path / UNIGRAM_FILE))  # 빈 유니그램 테이블 거부
    return model


def load_stats(model_dir: str | Path) -> RobustStats:
    path = Path(model_dir) / STATS_FILE
    table = _read_table(path, STATS_COLUMNS, {"key": "str", "value": "float64"})
    values = dict(zip(table["key"].tolist(), table["value"].tolist()))
    missing = [key for key in STAT_KEYS if key not in values]
    if missing:
        raise ConfigurationError(f"{path} is missing keys: {', '.join(missing)}")
    mad = float(values["mad"])
    if mad == 0:  # 0 MAD 는 절대 사용하지 않음
        mad = 1.0
    return RobustStats(
        p25=float(values["p25"]),
        p50=float(values["p50"]),
        p75=float(values["p75"]),
        mad=mad,
    )


def load_model(model_dir: str | Path) -> Tuple[FrequencyModel, RobustStats]:
    """모델 디렉토리를 검사한 뒤 빈도 모델과 통계를 읽기 전용 스냅샷으로 로드."""
    path = check_model_dir(model_dir)
    model = load_frequency_model(path)
    stats = load_stats(path)
    logger.info(
        "모델 로드: %s (vocab=%d, bigrams=%d, p50=%.4f, mad=%.4f)",
        path, model.vocabulary_size, len(model.bigram_counts), stats.p50, stats.mad,
    )
    return model, stats
