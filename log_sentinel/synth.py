from __future__ import annotations  # 타입 힌트에서 문자열 리터럴을 앞으로 참조하기 위한 기능 활성화

import json  # 메타데이터 저장
import random  # 랜덤 숫자 생성 모듈
from datetime import datetime, timedelta  # 날짜/시간 처리 모듈
from pathlib import Path  # 경로 처리를 위한 모듈
from typing import List, Optional, Tuple  # 타입 힌트

import pandas as pd  # 데이터프레임 처리를 위한 라이브러리


BASE_TEMPLATES = [  # 정상 로그 메시지 템플릿 리스트 (일반적인 시스템 로그 패턴)
    "usb 1-1: new high-speed USB device number {n} using ehci-pci",  # USB 장치 연결
    "CPU{c}: Core temperature above threshold, cpu clock throttled",  # CPU 온도 경고
    "CPU{c}: Core temperature/speed normal",  # CPU 온도 정상 복구
    "eth{e}: Link is Up - 1000Mbps/Full - flow control rx/tx",  # 이더넷 링크 UP
    "EXT4-fs (sda{p}): mounted filesystem with ordered data mode. Opts: (null)",  # 파일시스템 마운트
    "usb 1-1: USB disconnect, device number {n}",  # USB 장치 연결 해제
]

UNSEEN_TEMPLATES = [  # 학습 시 보지 못한 패턴
    "nvme{n}: I/O error on namespace {n}",
    "kernel BUG at {path}:{line}",
]

ERROR_TEMPLATES = [  # 에러 메시지 템플릿
    "ERROR: disk I/O error, dev sd{d}, sector {sec}",
    "CRITICAL: Out of memory: Kill process {pid} (systemd)",
    "FATAL: kernel panic - not syncing: VFS: Unable to mount root fs",
    "ERROR: segmentation fault at {addr} ip {ip} sp {sp} error {err}",
]

ATTACK_TEMPLATES = [  # 보안 공격 시뮬레이션 템플릿
    "sshd[{pid}]: Failed password for invalid user admin from {ip} port {port} ssh2",
    "sshd[{pid}]: Failed password for root from {ip} port {port} ssh2",
    "kernel: TCP: Possible SYN flooding on port {port}. Sending cookies.",
]

CRASH_TEMPLATES = [  # 시스템 크래시 시뮬레이션 템플릿
    "systemd[1]: Failed to start {service}.service.",
    "systemd[1]: {service}.service: Main process exited, code=killed, status={sig}/KILL",
    "kernel: Oops: 0002 [#{n}] SMP",
]

ANOMALY_TEMPLATE_MAP = {  # 이상 타입별 템플릿 매핑
    "unseen": UNSEEN_TEMPLATES,
    "error": ERROR_TEMPLATES,
    "attack": ATTACK_TEMPLATES,
    "crash": CRASH_TEMPLATES,
}


def _fmt_syslog(rng: random.Random, ts: datetime, host: str, proc: str, msg: str) -> str:
    """Syslog 형식으로 로그 라인을 포맷팅하는 헬퍼 함수."""
    ts_str = ts.strftime("%b %d %H:%M:%S")  # "월 일 시:분:초" 형식 (예: "Jan 15 14:30:45")
    return f"{ts_str} {host} {proc}: [  {rng.randint(0, 99999)}.{rng.randint(0, 999999):06d}] {msg}"


def _format_template(rng: random.Random, tpl: str) -> str:
    """템플릿의 플레이스홀더를 랜덤 값으로 채우는 헬퍼 함수.

    Args:
        rng: 재현 가능한 출력을 위한 난수 생성기
        tpl: 플레이스홀더를 포함한 템플릿 문자열
             예: "usb 1-1: new high-speed USB device number {n} using ehci-pci"

    Returns:
        플레이스홀더가 랜덤 값으로 치환된 문자열
    """
    values = {
        "n": rng.randint(1, 9),
        "c": rng.randint(0, 3),
        "e": rng.randint(0, 3),
        "d": chr(ord('a') + rng.randint(0, 3)),  # a-d
        "p": rng.randint(1, 3),
        "pid": rng.randint(100, 9999),
        "path": "/usr/src/linux/mm/page_alloc.c",
        "line": rng.randint(10, 999),
        "sec": rng.randint(1000, 999999),
        "addr": f"0x{rng.randint(0, 0xFFFFFF):06x}",
        "ip": f"{rng.randint(1, 255)}.{rng.randint(1, 255)}.{rng.randint(1, 255)}.{rng.randint(1, 255)}",
        "port": rng.randint(20000, 65535),
        "sig": rng.randint(1, 15),
        "service": rng.choice(["docker", "mysql", "nginx", "postgresql", "redis"]),
        "err": rng.randint(4, 7),
        "sp": f"0x{rng.randint(0, 0xFFFFFFFFFFFF):012x}",
    }
    return tpl.format(**values)


def _save_labels(out: Path, labels: List[Tuple[int, int, str]]) -> Path:
    """레이블을 로그 파일 옆에 저장 (로그 파일명.labels.parquet)."""
    lab_path = Path(str(out) + ".labels.parquet")
    pd.DataFrame(labels, columns=["line_no", "is_anomaly", "anomaly_type"]).to_parquet(lab_path, index=False)
    return lab_path


def generate_training_data(
    out_path: str | Path,
    num_lines: int = 10000,
    host: str = "train-host",
    proc: str = "kernel",
    start_time: datetime | None = None,
    seed: Optional[int] = None,
) -> Path:
    """학습용 정상 로그 데이터를 생성합니다.

    특징:
    - 100% 정상 로그만 포함
    - 레이블 파일 포함 (모두 is_anomaly=0)

    Args:
        out_path: 출력 파일 경로
        num_lines: 생성할 로그 라인 수 (기본: 10000)
        host: 호스트명
        proc: 프로세스명
        start_time: 시작 시간
        seed: 난수 시드 (None이면 매번 다른 출력)

    Returns:
        생성된 로그 파일 경로
    """
    rng = random.Random(seed)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    now = start_time or datetime.now().replace(microsecond=0)

    labels: List[Tuple[int, int, str]] = []
    with out.open("w", encoding="utf-8") as f:
        for i in range(num_lines):
            ts = now + timedelta(seconds=i)
            msg = _format_template(rng, rng.choice(BASE_TEMPLATES))  # 정상 템플릿만 사용
            f.write(_fmt_syslog(rng, ts, host, proc, msg) + "\n")
            labels.append((i, 0, "normal"))  # 모두 정상(0)

    _save_labels(out, labels)
    return out


def generate_inference_anomaly(
    out_path: str | Path,
    num_lines: int = 1000,
    anomaly_rate: float = 0.15,  # 15% 이상 비율
    anomaly_types: list[str] | None = None,
    host: str = "test-host",
    proc: str = "kernel",
    start_time: datetime | None = None,
    seed: Optional[int] = None,
) -> Path:
    """추론용 비정상 로그 데이터를 생성합니다 (True Positive 테스트용).

    이상 타입:
    - unseen: 학습 시 보지 못한 새로운 템플릿
    - error: 에러 메시지 (ERROR, CRITICAL, FATAL)
    - attack: 보안 공격 시뮬레이션 (SSH brute force, SYN flood)
    - crash: 시스템 크래시 (서비스 실패, kernel oops)

    Args:
        out_path: 출력 파일 경로
        num_lines: 생성할 로그 라인 수 (기본: 1000)
        anomaly_rate: 이상 로그 비율 (기본: 0.15 = 15%)
        anomaly_types: 포함할 이상 타입 리스트 (None이면 모두 포함)
        host: 호스트명
        proc: 프로세스명
        start_time: 시작 시간
        seed: 난수 시드

    Returns:
        생성된 로그 파일 경로
    """
    if anomaly_types is None:  # 기본 이상 타입 설정
        anomaly_types = list(ANOMALY_TEMPLATE_MAP)
    unknown = [t for t in anomaly_types if t not in ANOMALY_TEMPLATE_MAP]
    if unknown or not anomaly_types:
        raise ValueError(f"Unknown anomaly types: {unknown} (available: {', '.join(ANOMALY_TEMPLATE_MAP)})")

    rng = random.Random(seed)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    now = start_time or datetime.now().replace(microsecond=0)

    labels: List[Tuple[int, int, str]] = []  # (line_no, is_anomaly, anomaly_type)
    with out.open("w", encoding="utf-8") as f:
        for i in range(num_lines):
            ts = now + timedelta(seconds=i)
            if rng.random() < anomaly_rate:  # 이상 발생 여부 결정
                anom_type = rng.choice(anomaly_types)
                msg = _format_template(rng, rng.choice(ANOMALY_TEMPLATE_MAP[anom_type]))
                labels.append((i, 1, anom_type))
            else:  # 정상 로그
                msg = _format_template(rng, rng.choice(BASE_TEMPLATES))
                labels.append((i, 0, "normal"))
            f.write(_fmt_syslog(rng, ts, host, proc, msg) + "\n")

    _save_labels(out, labels)

    # 통계 출력용 메타데이터 저장
    anomaly_count = sum(1 for _, is_anom, _ in labels if is_anom)
    meta = {
        "total_lines": num_lines,
        "anomaly_count": anomaly_count,
        "anomaly_rate_actual": anomaly_count / num_lines if num_lines else 0.0,
        "anomaly_types_used": anomaly_types,
        "anomaly_type_distribution": {},
    }
    for anom_type in sorted(set(t for _, is_anom, t in labels if is_anom)):  # 이상 타입별 분포
        meta["anomaly_type_distribution"][anom_type] = sum(1 for _, is_anom, t in labels if is_anom and t == anom_type)

    meta_path = Path(str(out) + ".meta.json")
    with open(meta_path, "w") as f:
        json.dump(meta, f, indent=2)

    return out
