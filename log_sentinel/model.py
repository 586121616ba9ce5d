"""유니그램/바이그램 빈도 모델

- 입력: 정상 로그 라인 스트림
- 처리: 토큰화 후 유니그램(단어)과 인접 바이그램(단어쌍) 출현 횟수 누적, 최소 빈도 가지치기
- 출력: 불변 FrequencyModel (점수 계산 시 읽기 전용으로 공유)

파생 값(left_totals, vocabulary_size, total_unigram_count)은 모델당 한 번만 계산해 캐시함.
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

from collections import Counter, defaultdict  # 빈도 집계
from dataclasses import dataclass, field  # 모델 데이터클래스
from functools import cached_property  # 파생 값 캐시
from typing import Dict, Iterable, Tuple  # 타입 힌트

from .errors import ConfigurationError, DegenerateModelError  # 예외
from .tokenizer import tokenize  # 공통 토크나이저

Bigram = Tuple[str, str]  # (왼쪽 토큰, 오른쪽 토큰)


@dataclass(frozen=True)  # 학습이 끝나면 변경하지 않음
class FrequencyModel:
    unigram_counts: Dict[str, int] = field(default_factory=dict)  # 토큰 -> 출현 횟수
    bigram_counts: Dict[Bigram, int] = field(default_factory=dict)  # (u, v) -> 출현 횟수

    @classmethod
    def train(cls, lines: Iterable[str]) -> "FrequencyModel":
        """라인 스트림에서 빈도 모델을 학습.

        각 토큰은 출현할 때마다 유니그램 1회, 인접한 토큰 쌍은 바이그램 1회 증가.
        라인의 마지막 토큰도 유니그램 카운트는 받음 (바이그램의 왼쪽이 되지 않을 뿐).
        """
        unigrams: Counter = Counter()  # 유니그램 누적
        bigrams: Counter = Counter()  # 바이그램 누적
        for line in lines:  # 라인 단위 스트리밍
            tokens = tokenize(line)  # 토큰화
            unigrams.update(tokens)  # 토큰별 +1
            bigrams.update(zip(tokens, tokens[1:]))  # 인접 쌍별 +1
        model = cls(dict(unigrams), dict(bigrams))  # 불변 모델 생성
        model.ensure_vocabulary("training corpus")  # 빈 코퍼스 거부
        return model

    def merge(self, other: "FrequencyModel") -> "FrequencyModel":
        """두 모델의 카운트를 합친 새 모델 (샤드 단위 학습 결과 병합용, 교환/결합 법칙 성립)."""
        unigrams = Counter(self.unigram_counts)
        unigrams.update(other.unigram_counts)  # 키별 합산
        bigrams = Counter(self.bigram_counts)
        bigrams.update(other.bigram_counts)
        return FrequencyModel(dict(unigrams), dict(bigrams))

    def prune(self, min_count: int) -> "FrequencyModel":
        """min_count 미만 유니그램 제거 후, 제거된 토큰을 포함한 바이그램 제거.

        순서가 중요함: 바이그램 제거는 남은 유니그램 집합에 의존하므로 유니그램을 먼저 처리.
        """
        if min_count < 1:  # 0 이하는 의미 없음
            raise ConfigurationError(f"min_count must be >= 1, got {min_count}")
        if min_count == 1:  # 모든 카운트가 1 이상이므로 변화 없음
            return self

        kept = {tok: c for tok, c in self.unigram_counts.items() if c >= min_count}  # 살아남은 유니그램
        bigrams = {
            (u, v): c
            for (u, v), c in self.bigram_counts.items()
            if u in kept and v in kept  # 양쪽 토큰이 모두 남아 있어야 유지
        }
        pruned = FrequencyModel(kept, bigrams)
        pruned.ensure_vocabulary(f"pruning with min_count={min_count}")  # 전부 잘려나간 경우 거부
        return pruned

    def ensure_vocabulary(self, source: str) -> None:
        """어휘가 비어 있으면 DegenerateModelError (스무딩 분모가 0이 되는 것을 방지)."""
        if self.vocabulary_size == 0:
            raise DegenerateModelError(f"{source} produced an empty vocabulary (no tokens)")

    @cached_property
    def vocabulary_size(self) -> int:  # 고유 유니그램 수 (유니그램/바이그램 스무딩 공통 항)
        return len(self.unigram_counts)

    @cached_property
    def total_unigram_count(self) -> int:  # 전체 유니그램 카운트 합
        return sum(self.unigram_counts.values())

    @cached_property
    def left_totals(self) -> Dict[str, int]:  # 왼쪽 토큰별 바이그램 카운트 합 (바이그램 정규화 분모)
        totals: Dict[str, int] = defaultdict(int)
        for (left, _right), count in self.bigram_counts.items():
            totals[left] += count
        return dict(totals)

    def unigram_count(self, token: str) -> int:
        return self.unigram_counts.get(token, 0)

    def bigram_count(self, left: str, right: str) -> int:
        return self.bigram_counts.get((left, right), 0)

    def left_total(self, token: str) -> int:
        return self.left_totals.get(token, 0)  # 본 적 없는 왼쪽 토큰은 0

    def summary(self) -> Dict[str, int]:
        """로그/CLI 출력용 요약 통계."""
        return {
            "vocabulary_size": self.vocabulary_size,
            "total_unigram_count": self.total_unigram_count,
            "bigram_types": len(self.bigram_counts),
        }
