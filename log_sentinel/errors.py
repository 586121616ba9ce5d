"""log_sentinel 예외 계층

- ConfigurationError: 잘못된 파라미터, 모델 디렉토리 누락/불완전 등 계산 시작 전 발견되는 오류
- DegenerateModelError: 어휘 크기가 0인 모델 (빈 코퍼스, 전부 가지치기됨)
- 입출력 실패는 내장 OSError 그대로 전파
"""


class SentinelError(Exception):
    """log_sentinel 오류의 공통 부모 클래스"""

    pass


class ConfigurationError(SentinelError, ValueError):
    """설정/모델 디렉토리 문제로 실행을 시작할 수 없을 때 발생"""

    pass


class DegenerateModelError(SentinelError):
    """어휘가 하나도 없는 모델이 만들어지거나 로드될 때 발생"""

    pass
