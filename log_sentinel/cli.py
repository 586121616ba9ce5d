"""통합 CLI 모듈

- 목적: 학습 → 점수/리포트 → 실시간 감시 → 라인 설명 → 합성/평가 전 과정을 CLI 명령으로 제공
- 주요 명령:
  * train: 정상 로그 코퍼스로 빈도 모델 + 로버스트 통계 학습 → 모델 디렉토리
  * score: 파일 전체 점수화, 이상 라인 순위 출력 또는 HTML 리포트
  * watch: 로그 파일을 따라가며 이상 라인 즉시 출력 (Ctrl-C / SIGTERM 으로 종료)
  * explain: 한 라인의 유니그램/바이그램 기여도
  * gen-synth: 합성 로그 + 라벨 생성
  * eval: 라벨 기준 Precision/Recall/F1
"""

import logging  # 로깅 설정
import signal  # SIGTERM 처리
import sys  # 표준 입력/출력
from contextlib import contextmanager  # 예외 변환 컨텍스트
from datetime import datetime  # watch 출력 시간
from pathlib import Path  # 경로 타입
from typing import Optional  # 선택적 타입

import click  # CLI 프레임워크

from . import __version__  # 패키지 버전
from .errors import SentinelError  # 공통 예외
from .eval import evaluate_file  # 평가 유틸
from .follow import LogFollower  # 로그 파일 추적
from .pipeline import (  # 파이프라인 함수들
    ScoredLine, ScoreParams, TrainParams, WatchParams,
    explain_line, run_scoring, run_training, watch_lines,
)
from .report import write_report  # HTML 리포트
from .scorer import BIGRAM  # 기여 항 종류
from .store import load_model  # 모델 로드
from .synth import generate_inference_anomaly, generate_training_data  # 합성 로그 생성기


@contextmanager
def _handle_errors():
    """라이브러리 예외를 click 오류(종료 코드 1, stderr 메시지)로 변환."""
    try:
        yield
    except SentinelError as exc:
        raise click.ClickException(str(exc)) from exc


def _info(msg: str) -> None:
    click.echo(click.style("[*] ", fg="cyan") + msg)


def _ok(msg: str) -> None:
    click.echo(click.style("[+] ", fg="green") + msg)


@click.group()  # 루트 커맨드 그룹
@click.option("-v", "--verbose", is_flag=True, default=False, help="INFO 로그와 진행률 표시")  # 상세 출력
@click.version_option(__version__, prog_name="sentinel")  # 버전 출력
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:  # 엔트리 포인트
    """Sentinel: unigram+bigram log anomaly detector with robust z-scores"""  # CLI 설명
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()  # train 명령 등록
@click.option("--model", "model_dir", type=click.Path(file_okay=False, path_type=Path), required=True)  # 모델 디렉토리
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)  # 정상 로그 코퍼스
@click.option("--min-count", type=click.IntRange(min=1), default=1, help="이 횟수 미만 토큰 가지치기")  # 최소 빈도
@click.pass_context
def train(ctx: click.Context, model_dir: Path, input_path: Path, min_count: int) -> None:  # 학습 실행
    """정상 로그 코퍼스로 빈도 모델과 로버스트 통계 학습."""  # 설명
    _info(f"Training from {input_path} → {model_dir}")
    params = TrainParams(min_count=min_count, progress=ctx.obj["verbose"])  # 파라미터 구성
    with _handle_errors():
        result = run_training(input_path, model_dir, params)  # 학습 수행
    summary = result.model.summary()
    stats = result.stats
    _ok(f"Model saved: {result.model_dir}")
    click.echo(f"    lines={result.num_lines} vocab={summary['vocabulary_size']} "
               f"tokens={summary['total_unigram_count']} bigrams={summary['bigram_types']}")
    click.echo(f"    p25={stats.p25:.4f} p50={stats.p50:.4f} p75={stats.p75:.4f} mad={stats.mad:.4f}")


@main.command()  # score 명령 등록
@click.option("--model", "model_dir", type=click.Path(file_okay=False, path_type=Path), required=True)  # 모델 디렉토리
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)  # 점수화할 로그
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), default=None, help="HTML 리포트 경로")  # 리포트 경로
@click.option("--threshold", type=float, default=2.5, help="이상 판정 Z 임계값")  # 임계값
@click.option("--top", "top_k", type=click.IntRange(min=0), default=200, help="최대 보고 라인 수")  # Top-K
def score(model_dir: Path, input_path: Path, out_path: Optional[Path], threshold: float, top_k: int) -> None:  # 점수 실행
    """로그 파일 전체를 점수화하고 Z 내림차순으로 이상 라인 보고."""  # 설명
    with _handle_errors():
        ranked, stats = run_scoring(input_path, model_dir, ScoreParams(threshold=threshold, top_k=top_k))
    _ok(f"Found {len(ranked)} anomalies (z >= {threshold:g})")
    if out_path is not None:  # 리포트 모드
        path = write_report(out_path, ranked, stats, input_path)
        _ok(f"Report written: {path}")
        return
    for idx, row in enumerate(ranked.itertuples(index=False), start=1):
        click.echo(click.style(f"#{idx:03d}", fg="yellow") + f" z={row.z:.2f}  {row.line}")


@main.command()  # watch 명령 등록
@click.option("--model", "model_dir", type=click.Path(file_okay=False, path_type=Path), required=True)  # 모델 디렉토리
@click.option("--input", "input_path", type=click.Path(dir_okay=False, path_type=Path), required=True)  # 감시할 로그 (아직 없어도 됨)
@click.option("--threshold", type=float, default=2.5, help="이상 판정 Z 임계값")  # 임계값
@click.option("--poll-interval", type=click.FloatRange(min=0.01), default=1.0, help="파일 재확인 주기(초)")  # 폴링 주기
@click.option("--initial-lines", type=click.IntRange(min=0), default=10, help="시작 시 점검할 기존 마지막 라인 수")  # 초기 라인 수
def watch(model_dir: Path, input_path: Path, threshold: float, poll_interval: float, initial_lines: int) -> None:  # 감시 실행
    """로그 파일을 따라가며 이상 라인을 도착 즉시 출력."""  # 설명
    params = WatchParams(threshold=threshold, poll_interval=poll_interval, initial_lines=initial_lines)
    with _handle_errors():
        model, stats = load_model(model_dir)  # 감시 시작 전 모델 로드

    follower = LogFollower(input_path, poll_interval=params.poll_interval, initial_lines=params.initial_lines)
    previous = signal.signal(signal.SIGTERM, lambda signum, frame: follower.stop())  # SIGTERM → 정상 종료

    def emit(scored: ScoredLine) -> None:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        click.echo(click.style(stamp, fg="yellow") + f" z={scored.z:.2f} | {scored.line[:params.max_line_chars]}")
        sys.stdout.flush()

    _info(f"Watching {input_path} (z >= {params.threshold:g}); Ctrl-C to stop")
    try:
        with follower:
            watch_lines(follower, model, stats, params.threshold, emit)
    except KeyboardInterrupt:
        follower.stop()
    finally:
        signal.signal(signal.SIGTERM, previous)
    _info("Watch stopped")


@main.command()  # explain 명령 등록
@click.option("--model", "model_dir", type=click.Path(file_okay=False, path_type=Path), required=True)  # 모델 디렉토리
@click.option("--line", "line", type=str, default=None, help="설명할 라인 (없으면 표준 입력의 각 라인)")  # 설명할 라인
def explain(model_dir: Path, line: Optional[str]) -> None:  # 설명 실행
    """한 라인의 유니그램/바이그램 기여도와 전체 NLL, 로버스트 Z 출력."""  # 설명
    with _handle_errors():
        model, stats = load_model(model_dir)
    if line is not None:
        lines = [line]
    else:
        lines = [raw.rstrip("\r\n") for raw in sys.stdin]  # 표준 입력 라인
        if not lines:
            raise click.UsageError("no line given: pass --line or pipe lines on stdin")

    for idx, text in enumerate(lines):
        if idx:
            click.echo("")
        result = explain_line(text, model, stats)
        click.echo(f"Line: {result.line}\n")
        click.echo("Contributions:")
        for term in result.contributions:
            if term.kind == BIGRAM:
                click.echo(f"  {term.token:<24s} bigram:{term.next_token:<12s} -log(p)={term.nll:.5f} (count={term.count})")
            else:
                click.echo(f"  {term.token:<24s} unigram  -log(p)={term.nll:.5f} (count={term.count})")
        click.echo(f"\nTotal NLL: {result.total:.6f}")
        click.echo(f"Robust Z: {result.z:.4f}")


@main.command("gen-synth")  # 합성 로그 생성
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), required=True)  # 출력 경로
@click.option("--lines", "num_lines", type=click.IntRange(min=1), default=5000, help="생성할 로그 라인 수")  # 라인 수
@click.option("--anomaly-rate", type=click.FloatRange(0.0, 1.0), default=0.02, help="이상 로그 비율")  # 이상 비율
@click.option("--anomaly-types", multiple=True, type=click.Choice(["unseen", "error", "attack", "crash"]),
              help="포함할 이상 타입 (여러 개 선택 가능, 기본: 모두)")  # 이상 타입
@click.option("--training", is_flag=True, default=False, help="정상 로그만 생성 (학습용)")  # 학습용 여부
@click.option("--seed", type=int, default=None, help="난수 시드 (재현 가능한 출력)")  # 시드
def gen_synth_cmd(out_path: Path, num_lines: int, anomaly_rate: float, anomaly_types: tuple,
                  training: bool, seed: Optional[int]) -> None:  # 생성 실행
    """합성 syslog 형식 로그와 라인 단위 라벨 생성."""  # 설명
    if training:
        p = generate_training_data(out_path, num_lines=num_lines, seed=seed)
        _ok(f"Generated training data: {p} ({num_lines} lines, all normal)")
    else:
        types_list = list(anomaly_types) if anomaly_types else None  # 비어 있으면 모두 포함
        p = generate_inference_anomaly(out_path, num_lines=num_lines, anomaly_rate=anomaly_rate,
                                       anomaly_types=types_list, seed=seed)
        _ok(f"Generated synthetic log: {p} (target anomaly rate {anomaly_rate:.1%})")
        click.echo(f"    Metadata: {p}.meta.json")
    click.echo(f"    Labels: {p}.labels.parquet")


@main.command("eval")  # 평가 명령
@click.option("--model", "model_dir", type=click.Path(file_okay=False, path_type=Path), required=True)  # 모델 디렉토리
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)  # 평가할 로그
@click.option("--labels", "labels_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)  # 라벨 경로
@click.option("--threshold", type=float, default=2.5, help="이상 판정 Z 임계값")  # 임계값
def eval_cmd(model_dir: Path, input_path: Path, labels_path: Path, threshold: float) -> None:  # 평가 실행
    """라인 단위 Precision/Recall/F1 평가."""  # 설명
    with _handle_errors():
        p, r, f1 = evaluate_file(model_dir, input_path, labels_path, threshold)
    click.echo(f"Line PRF1 (z >= {threshold:g}): P={p:.3f} R={r:.3f} F1={f1:.3f}")


if __name__ == "__main__":
    main()
