"""
Pytest configuration and shared fixtures
"""
import pytest

from log_sentinel.pipeline import TrainParams, run_training


NORMAL_LINES = [
    "Sep 14 05:04:41 hostname kernel: usb 1-1: new high-speed USB device number 3 using ehci-pci",
    "Sep 14 05:04:42 hostname kernel: eth0: Link is Up - 1000Mbps/Full - flow control rx/tx",
    "Sep 14 05:04:43 hostname kernel: usb 1-1: USB disconnect, device number 3",
    "Sep 14 05:04:44 hostname kernel: CPU1: Core temperature/speed normal",
]


@pytest.fixture
def tiny_corpus():
    """Provide the three-line corpus used for exact count checks"""
    return ["a b c", "a b c", "a b d"]


@pytest.fixture
def corpus_file(tmp_path):
    """Create a normal-only training corpus file"""
    path = tmp_path / "normal.log"
    path.write_text("\n".join(NORMAL_LINES * 25) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def tmp_log_file(tmp_path):
    """Create a log file mixing normal lines with unusual ones"""
    path = tmp_path / "test.log"
    lines = NORMAL_LINES * 3 + [
        "Sep 14 05:05:00 hostname sshd[4242]: Failed password for root from 10.0.0.7 port 51515 ssh2",
        "Sep 14 05:05:01 hostname kernel: kernel BUG at /usr/src/linux/mm/page_alloc.c:123",
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def model_dir(tmp_path, corpus_file):
    """Train a model directory from the normal corpus"""
    out = tmp_path / "model"
    run_training(corpus_file, out, TrainParams())
    return out
