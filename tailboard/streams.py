"""Line streams that feed sources: subprocesses, followed files and adb."""
from __future__ import annotations

import codecs
import logging
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .errors import SourceSetupError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25
ADB_DEVICES_HEADER = "List of devices attached"


def _utf8_decoder() -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


@dataclass
class FileFollower:
    """Incrementally read complete lines appended to a file.

    Bytes of a character split across two reads are held by the decoder, and
    a trailing carriage return is held in ``partial`` until the next read
    shows whether a line feed follows it.
    """

    path: Path
    position: int = 0
    partial: str = ""
    decoder: codecs.IncrementalDecoder = field(default_factory=_utf8_decoder, repr=False)

    def _reset(self) -> None:
        self.partial = ""
        self.decoder.reset()

    def skip_existing(self) -> None:
        """Start following from the current end of the file."""

        self.position = self.path.stat().st_size if self.path.exists() else 0
        self._reset()

    def read_new_lines(self) -> List[str]:
        """Return every complete line appended since the last call."""

        if not self.path.exists():
            return []
        size = self.path.stat().st_size
        if size < self.position:
            logger.info("%s shrank, reading from the start", self.path)
            self.position = 0
            self._reset()
        if size == self.position:
            return []
        with self.path.open("rb") as handle:
            handle.seek(self.position)
            chunk = handle.read()
            self.position = handle.tell()
        text = self.partial + self.decoder.decode(chunk)
        lines = text.splitlines(keepends=True)
        self.partial = ""
        if lines:
            last = lines[-1]
            if last.endswith("\r") or last.splitlines()[0] == last:
                self.partial = lines.pop()
        return [line.splitlines()[0] for line in lines]


def file_stream(
    path: Path,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    from_start: bool = False,
    stop: threading.Event | None = None,
) -> Iterator[str]:
    """Yield lines of ``path`` as they are written, until ``stop`` is set."""

    follower = FileFollower(path=path)
    if not from_start:
        follower.skip_existing()
    while stop is None or not stop.is_set():
        lines = follower.read_new_lines()
        yield from lines
        if not lines:
            time.sleep(poll_interval)


class CommandStream:
    """Stdout lines of a running subprocess.

    The process is started in the constructor so a missing executable is
    reported to the caller instead of the ingestion thread.

    Raises:
        SourceSetupError: the command could not be started.
    """

    def __init__(self, argv: Sequence[str]) -> None:
        self.argv = list(argv)
        try:
            self.process = subprocess.Popen(
                self.argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise SourceSetupError(f"cannot start {' '.join(self.argv)}: {exc}") from exc
        logger.info("Started %s (pid %d)", " ".join(self.argv), self.process.pid)

    def __repr__(self) -> str:
        return f"CommandStream({self.argv!r}, pid={self.process.pid})"

    def __iter__(self) -> Iterator[str]:
        assert self.process.stdout is not None
        with self.process.stdout:
            for line in self.process.stdout:
                yield line.rstrip("\r\n")
        code = self.process.wait()
        logger.info("%s exited with status %d", " ".join(self.argv), code)

    def terminate(self, timeout: float = 2.0) -> None:
        """Stop the process, killing it if it ignores SIGTERM."""

        if self.process.poll() is not None:
            return
        logger.info("Stopping %s (pid %d)", " ".join(self.argv), self.process.pid)
        self.process.terminate()
        try:
            self.process.wait(timeout)
        except subprocess.TimeoutExpired:
            logger.warning("%s did not exit, killing it", " ".join(self.argv))
            self.process.kill()
            self.process.wait()


def command_stream(argv: Sequence[str]) -> CommandStream:
    """Launch ``argv`` and return an iterable over its stdout lines."""

    return CommandStream(argv)


def discover_files(patterns: Iterable[str]) -> List[Path]:
    """Expand every glob pattern to existing files, relative or absolute."""

    discovered: List[Path] = []
    for pattern in patterns:
        candidate = Path(pattern).expanduser()
        if candidate.is_absolute():
            root = Path(candidate.anchor)
            relative = str(candidate.relative_to(root))
            discovered.extend(root.glob(relative) if relative != "." else [root])
        else:
            discovered.extend(Path().glob(str(candidate)))
    return sorted({path.resolve() for path in discovered if path.is_file()})


@dataclass
class DeviceInfo:
    """An attached Android device as reported by ``adb devices -l``."""

    identity: str
    name: str


def parse_adb_devices(output: str) -> List[DeviceInfo]:
    devices: List[DeviceInfo] = []
    for line in output.splitlines():
        if not line.strip() or line.startswith(ADB_DEVICES_HEADER):
            continue
        parts = line.split()
        if len(parts) < 2 or parts[1] != "device":
            logger.warning("Skipping adb entry: %r", line)
            continue
        identity = parts[0]
        name = identity
        for part in parts[2:]:
            key, sep, value = part.partition(":")
            if sep and key == "model":
                name = value
        devices.append(DeviceInfo(identity=identity, name=name.replace("_", " ")))
    return devices


def list_adb_devices() -> List[DeviceInfo]:
    """Run ``adb devices -l`` and return the attached devices."""

    try:
        result = subprocess.run(
            ["adb", "devices", "-l"],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise SourceSetupError(f"'adb devices' failed: {exc}") from exc
    return parse_adb_devices(result.stdout)


def logcat_command(identity: str) -> List[str]:
    return ["adb", "-s", identity, "logcat", "-v", "threadtime"]
