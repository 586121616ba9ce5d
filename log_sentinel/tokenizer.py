from __future__ import annotations  # 타입 힌트에서 문자열 리터럴을 앞으로 참조하기 위한 기능 활성화

import re  # 정규표현식을 위한 모듈
from pathlib import Path  # 경로 처리를 위한 모듈
from typing import Iterator, List  # 타입 힌트를 위한 모듈


# 영숫자/밑줄이 아닌 문자의 최대 연속 구간 (예: ": [", "@", "...")
NON_WORD_RUN = re.compile(r"[^\w]+")


def tokenize(line: str) -> List[str]:
    """로그 라인을 소문자 토큰 목록으로 분리하는 함수.

    학습, 부트스트랩 점수 계산, 점수 계산, watch, explain 모두 이 함수 하나만 사용해야 함.
    토큰화가 조금이라도 달라지면 학습된 모델과 점수가 조용히 어긋남.
    """
    lowered = line.lower()  # 소문자 변환
    spaced = NON_WORD_RUN.sub(" ", lowered)  # 구분자 구간을 공백 하나로 치환
    return spaced.split()  # 공백 기준 분리 (빈 조각은 split()이 자동으로 제거)


def iter_lines(path: str | Path) -> Iterator[str]:
    """텍스트 파일을 한 줄씩 스트리밍하는 제너레이터 (개행 문자 제거).

    전체 파일을 메모리에 올리지 않으므로 큰 로그 파일도 그대로 처리 가능.
    """
    with open(path, "r", encoding="utf-8", errors="ignore", newline="\n") as f:  # 감시 모드와 같이 \n 에서만 라인 분리
        for line in f:  # 각 라인 순회
            yield line.rstrip("\r\n")  # 라인 끝의 개행 문자 제거
