"""라인 음의 로그우도(NLL) 점수 계산

add-one(라플라스) 스무딩:
- 유니그램: p(u) = (count(u) + 1) / (total_unigram_count + vocabulary_size)
- 바이그램: p(v|u) = (count(u, v) + 1) / (left_total(u) + vocabulary_size)

라인 점수는 모든 -ln(p) 항의 합이며 토큰 수로 정규화하지 않음.
긴 라인일수록 점수가 커지는 것은 알려진 모델 한계이며, 비교는 같은 코퍼스 안의 로버스트 Z로 수행.
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

import math  # 로그 계산
from dataclasses import dataclass, field  # 결과 데이터클래스
from typing import Iterator, List, Optional, Sequence  # 타입 힌트

from .errors import DegenerateModelError  # 예외
from .model import FrequencyModel  # 빈도 모델

UNIGRAM = "unigram"  # 기여 항 종류
BIGRAM = "bigram"


@dataclass(frozen=True)
class Contribution:  # explain 결과의 한 항
    kind: str  # "unigram" 또는 "bigram"
    token: str  # 유니그램 토큰 / 바이그램 왼쪽 토큰
    next_token: Optional[str]  # 바이그램 오른쪽 토큰 (유니그램은 None)
    count: int  # 학습 시 관측 횟수 (미관측이면 0)
    nll: float  # -ln(p)

    @property
    def label(self) -> str:
        if self.kind == BIGRAM:
            return f"{self.token}→{self.next_token}"
        return self.token


@dataclass
class Explanation:  # 한 라인의 전체 기여도 분해
    line: str
    tokens: List[str]
    contributions: List[Contribution] = field(default_factory=list)
    total: float = 0.0  # 전체 NLL (score()와 동일한 값)
    z: Optional[float] = None  # 통계가 주어진 경우에만 채움


def _terms(tokens: Sequence[str], model: FrequencyModel) -> Iterator[Contribution]:
    """토큰 순서대로 유니그램/바이그램 항을 생성. score()와 explain()이 공유하는 유일한 확률 계산."""
    vocab = model.vocabulary_size
    if vocab == 0:  # 분모 0 방지
        raise DegenerateModelError("cannot score against a model with an empty vocabulary")
    unigram_denom = model.total_unigram_count + vocab  # 모든 토큰에 공통인 유니그램 분모
    unigrams = model.unigram_counts
    bigrams = model.bigram_counts
    left_totals = model.left_totals

    n = len(tokens)
    for i, u in enumerate(tokens):
        count_u = unigrams.get(u, 0)
        yield Contribution(UNIGRAM, u, None, count_u, -math.log((count_u + 1) / unigram_denom))
        if i + 1 < n:  # 다음 토큰이 있으면 바이그램 항 추가
            v = tokens[i + 1]
            count_uv = bigrams.get((u, v), 0)
            p_v_given_u = (count_uv + 1) / (left_totals.get(u, 0) + vocab)
            yield Contribution(BIGRAM, u, v, count_uv, -math.log(p_v_given_u))


def score(tokens: Sequence[str], model: FrequencyModel) -> float:
    """토큰 시퀀스의 전체 NLL (기여 항 목록은 만들지 않음)."""
    total = 0.0
    for term in _terms(tokens, model):
        total += term.nll  # explain()과 같은 순서로 합산
    return total


def explain(tokens: Sequence[str], model: FrequencyModel, line: str = "") -> Explanation:
    """토큰 시퀀스의 NLL과 항별 기여도."""
    result = Explanation(line=line, tokens=list(tokens))
    for term in _terms(tokens, model):
        result.contributions.append(term)
        result.total += term.nll
    return result
