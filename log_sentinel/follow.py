"""로그 파일 추적 (tail -F 와 유사한 블로킹 라인 이터레이터)

- 파일 끝에 추가되는 완전한 라인만 순서대로 반환 (개행이 오기 전의 부분 라인은 보류)
- watchdog 파일 시스템 이벤트로 깨어나고, 이벤트가 없어도 poll_interval 마다 재확인
- 로테이션(inode 변경)이나 잘림(truncate)이 감지되면 처음부터 다시 읽음
- stop() 또는 stop_event 로 중단하면 이터레이터가 정상 종료되고 감시 스레드도 정리됨
"""

from __future__ import annotations  # 타입 힌트 전방 참조 허용

import logging  # 로깅
import os  # 파일 상태 확인
import threading  # 중단/깨우기 이벤트
from collections import deque  # 마지막 N 라인
from pathlib import Path  # 경로 타입
from typing import BinaryIO, Iterator, Optional  # 타입 힌트

from watchdog.events import FileSystemEventHandler  # 파일 시스템 이벤트 핸들러
from watchdog.observers import Observer  # 파일 시스템 감시자

logger = logging.getLogger(__name__)  # 모듈 로거


class _FileChangeHandler(FileSystemEventHandler):  # 대상 파일 변경 시 깨우기
    """감시 디렉토리에서 대상 파일명과 관련된 이벤트가 오면 wakeup 이벤트를 설정"""

    def __init__(self, file_name: str, wakeup: threading.Event):
        self.file_name = file_name
        self.wakeup = wakeup

    def on_any_event(self, event):
        paths = [event.src_path, getattr(event, "dest_path", "")]  # 이동 이벤트는 dest_path 포함
        if any(os.path.basename(os.fsdecode(p)) == self.file_name for p in paths if p):
            self.wakeup.set()


class LogFollower:
    """계속 늘어나는 로그 파일을 라인 단위로 따라가는 이터레이터.

    Example:
        follower = LogFollower("/var/log/auth.log")
        for line in follower:      # 다른 스레드/시그널 핸들러에서 follower.stop() 호출 시 종료
            handle(line)
    """

    def __init__(self, path: str | Path, poll_interval: float = 1.0, initial_lines: int = 10,
                 stop_event: Optional[threading.Event] = None, use_watchdog: bool = True):
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.initial_lines = max(0, initial_lines)
        self.stop_event = stop_event or threading.Event()  # 외부 중단 신호
        self.use_watchdog = use_watchdog
        self._wakeup = threading.Event()  # 파일 변경 또는 중단 시 대기 해제

    def stop(self) -> None:
        """추적 중단 요청 (스레드/시그널 핸들러에서 호출 가능)."""
        self.stop_event.set()
        self._wakeup.set()

    close = stop

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def __enter__(self) -> "LogFollower":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _start_observer(self):
        if not self.use_watchdog:
            return None
        if not self.path.parent.is_dir():  # 감시할 디렉토리가 없으면 폴링만으로 대기
            logger.warning("디렉토리 없음, 폴링으로 대기: %s", self.path.parent)
            return None
        observer = Observer()  # 감시자 생성
        handler = _FileChangeHandler(self.path.name, self._wakeup)
        try:
            observer.schedule(handler, str(self.path.parent), recursive=False)  # 상위 디렉토리 감시 (로테이션 포함)
            observer.start()  # 감시 스레드 시작 (이미터가 실패하면 감시 스레드는 시작되지 않음)
        except OSError as e:  # 확인 직후 디렉토리가 사라진 경우 등
            logger.warning("파일 감시 시작 실패, 폴링으로 대기: %s (%s)", self.path.parent, e)
            return None
        logger.debug("파일 감시 시작: %s", self.path)
        return observer

    def _stop_observer(self, observer) -> None:
        if observer is not None:
            observer.stop()  # 감시 중단
            observer.join()  # 스레드 종료 대기
            logger.debug("파일 감시 중단: %s", self.path)

    def _wait(self) -> None:
        if self._wakeup.wait(self.poll_interval):  # 이벤트 또는 타임아웃까지 대기
            self._wakeup.clear()

    def _open(self) -> Optional[BinaryIO]:
        try:
            return open(self.path, "rb")
        except FileNotFoundError:  # 로테이션 중 잠시 사라질 수 있음, 다시 생길 때까지 대기
            logger.debug("파일 없음, 대기: %s", self.path)
            return None

    def _replaced_or_truncated(self, handle: BinaryIO) -> bool:
        try:
            current = os.stat(self.path)
        except FileNotFoundError:  # 새 파일이 생길 때까지 기존 핸들 유지
            return False
        opened = os.fstat(handle.fileno())
        if (current.st_ino, current.st_dev) != (opened.st_ino, opened.st_dev):
            logger.info("로그 로테이션 감지, 다시 엶: %s", self.path)
            return True
        if current.st_size < handle.tell():
            logger.info("파일 잘림 감지, 처음부터 읽음: %s", self.path)
            return True
        return False

    @staticmethod
    def _decode(raw: bytes) -> str:
        return raw.decode("utf-8", errors="ignore").rstrip("\r\n")

    def lines(self) -> Iterator[str]:
        """완전한 라인을 도착 순서대로 반환. 중단될 때까지 블로킹."""
        observer = self._start_observer()
        handle: Optional[BinaryIO] = None
        pending = b""  # 개행을 아직 받지 못한 부분 라인
        try:
            handle = self._open()
            if handle is not None:
                if self.initial_lines:  # 기존 내용의 마지막 N 라인부터 시작
                    for raw in deque(handle, maxlen=self.initial_lines):
                        if raw.endswith(b"\n"):
                            yield self._decode(raw)
                        else:
                            pending = raw
                else:
                    handle.seek(0, os.SEEK_END)  # 새로 추가되는 내용만

            while not self.stop_event.is_set():
                if handle is None:  # 파일이 다시 나타날 때까지 대기
                    handle = self._open()
                    if handle is None:
                        self._wait()
                    continue

                raw = handle.readline()
                if raw:
                    pending += raw
                    if pending.endswith(b"\n"):
                        line, pending = pending, b""
                        yield self._decode(line)
                    continue

                # 파일 끝: 교체/잘림 확인 후 대기
                if self._replaced_or_truncated(handle):
                    handle.close()
                    handle = self._open()
                    if pending:  # 이전 파일의 마지막 미완성 라인은 그대로 내보냄
                        line, pending = pending, b""
                        yield self._decode(line)
                    continue
                self._wait()
        finally:
            if handle is not None:
                handle.close()
            self._stop_observer(observer)
