"""Encoders that turn rendered frames into video and GIF files.

Key classes:
- FrameSink: Protocol the exporter writes frames to
- FfmpegVideoEncoder: Streams raw frames into an ffmpeg subprocess
- GifEncoder: Palette-quantized animated GIF via Pillow
"""

import io
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import IO, ClassVar, Protocol

import structlog
from PIL import Image

from stippler.domain import PixelBuffer
from stippler.exceptions import ConfigurationError, SinkError

logger = structlog.get_logger("stippler")

CHUNK_SIZE = 1 << 20


class FrameSink(Protocol):
    """Consumer of rendered frames."""

    def open(self, width: int, height: int, fps: int) -> None: ...

    def write_frame(self, buffer: PixelBuffer, delay_ms: int) -> None: ...

    def finalize(self) -> bytes: ...

    def abort(self) -> None: ...


class FfmpegVideoEncoder:
    """Streaming video encoder backed by an ffmpeg subprocess.

    Frames are piped as raw RGBA at a fixed rate; the encoded container is
    written to a temporary file and collected in chunks on finalize. The first
    codec that the local ffmpeg build provides is used.

    Example:
        encoder = FfmpegVideoEncoder(bitrate=8_000_000)
        encoder.open(1280, 720, 30)
        encoder.write_frame(frame, delay_ms=33)
        data = encoder.finalize()
    """

    # (ffmpeg encoder name, container format) in order of preference
    CODECS: ClassVar[list[tuple[str, str]]] = [
        ("libvpx", "webm"),
        ("libvpx-vp9", "webm"),
        ("libx264", "mp4"),
        ("mpeg4", "mp4"),
    ]

    def __init__(self, bitrate: int = 10_000_000, ffmpeg: str = "ffmpeg") -> None:
        """Initialize the encoder.

        Args:
            bitrate: Target bitrate in bits per second
            ffmpeg: Name or path of the ffmpeg executable
        """
        self.bitrate = bitrate
        self._ffmpeg = ffmpeg
        self._process: subprocess.Popen[bytes] | None = None
        self._output: Path | None = None
        self._stderr_file: IO[bytes] | None = None
        self._size: tuple[int, int] | None = None
        self.codec: str | None = None
        self.container: str | None = None

    @property
    def extension(self) -> str:
        """File extension of the chosen container (webm before open)."""
        return self.container or "webm"

    def open(self, width: int, height: int, fps: int) -> None:
        """Start ffmpeg for a clip.

        Raises:
            ConfigurationError: If ffmpeg or every candidate codec is missing
            SinkError: If the subprocess cannot be started
        """
        executable = shutil.which(self._ffmpeg)
        if executable is None:
            raise ConfigurationError(f"'{self._ffmpeg}' was not found on PATH")

        self.codec, self.container = self._select_codec(executable)
        handle = tempfile.NamedTemporaryFile(suffix=f".{self.container}", delete=False)
        handle.close()
        self._output = Path(handle.name)
        self._size = (width, height)

        cmd = [
            executable,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-f", "rawvideo",
            "-pix_fmt", "rgba",
            "-s", f"{width}x{height}",
            "-r", str(fps),
            "-i", "-",
            "-an",
            "-vf", "pad=ceil(iw/2)*2:ceil(ih/2)*2",
            "-c:v", self.codec,
            "-b:v", str(self.bitrate),
            "-pix_fmt", "yuv420p",
            "-f", self.container,
            str(self._output),
        ]
        logger.debug("Starting encoder", codec=self.codec, cmd=" ".join(cmd))

        # stderr is only read back after a failure
        self._stderr_file = tempfile.TemporaryFile()
        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=self._stderr_file,
            )
        except OSError as e:
            self._cleanup()
            raise SinkError(f"could not start ffmpeg: {e}") from e

    def write_frame(self, buffer: PixelBuffer, delay_ms: int) -> None:  # noqa: ARG002
        """Pipe one frame; the rate is fixed at open time."""
        stdin = self._require_stdin()
        if buffer.size != self._size:
            raise SinkError(f"frame size {buffer.size} does not match {self._size}")
        try:
            stdin.write(buffer.data.tobytes())
        except (BrokenPipeError, OSError) as e:
            raise SinkError(f"ffmpeg stopped accepting frames: {self._stderr()}") from e

    def finalize(self) -> bytes:
        """Close the stream and return the encoded file.

        Raises:
            SinkError: If ffmpeg exits with an error
        """
        stdin = self._require_stdin()
        process = self._process
        output = self._output
        if process is None or output is None:
            raise SinkError("encoder is not open")
        try:
            stdin.close()
            returncode = process.wait()
            if returncode != 0:
                raise SinkError(f"ffmpeg exited with {returncode}: {self._stderr()}")
            chunks: list[bytes] = []
            with output.open("rb") as f:
                while chunk := f.read(CHUNK_SIZE):
                    chunks.append(chunk)
            return b"".join(chunks)
        finally:
            self._process = None
            self._cleanup()

    def abort(self) -> None:
        """Kill ffmpeg and discard partial output."""
        if self._process is not None:
            self._process.kill()
            self._process.wait()
            self._process = None
        self._cleanup()

    def _select_codec(self, executable: str) -> tuple[str, str]:
        try:
            result = subprocess.run(
                [executable, "-hide_banner", "-encoders"],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise ConfigurationError(f"could not list ffmpeg encoders: {e}") from e

        available = {
            line.split()[1]
            for line in result.stdout.splitlines()
            if len(line.split()) > 1 and line.startswith(" V")
        }
        for codec, container in self.CODECS:
            if codec in available:
                return codec, container

        raise ConfigurationError(
            "ffmpeg has none of the supported video encoders: "
            + ", ".join(codec for codec, _ in self.CODECS)
        )

    def _require_stdin(self) -> IO[bytes]:
        if self._process is None or self._process.stdin is None:
            raise SinkError("encoder is not open")
        return self._process.stdin

    def _stderr(self) -> str:
        if self._stderr_file is None:
            return ""
        try:
            self._stderr_file.flush()
            self._stderr_file.seek(0)
            return self._stderr_file.read().decode("utf-8", errors="replace").strip()
        except (OSError, ValueError):
            return ""

    def _cleanup(self) -> None:
        if self._stderr_file is not None:
            self._stderr_file.close()
            self._stderr_file = None
        if self._output is not None:
            self._output.unlink(missing_ok=True)
            self._output = None


class GifEncoder:
    """Animated GIF encoder with per-frame palette quantization.

    Example:
        encoder = GifEncoder()
        encoder.open(320, 240, 15)
        encoder.write_frame(frame, delay_ms=67)
        data = encoder.finalize()
    """

    extension = "gif"

    def __init__(self, colors: int = 256, loop: int = 0) -> None:
        """Initialize the encoder.

        Args:
            colors: Palette size per frame (2-256)
            loop: Loop count, 0 = forever
        """
        if not 2 <= colors <= 256:
            raise ConfigurationError(f"GIF palettes hold 2-256 colors, got {colors}")
        self.colors = colors
        self.loop = loop
        self._frames: list[Image.Image] | None = None
        self._durations: list[int] = []
        self._size: tuple[int, int] | None = None

    def open(self, width: int, height: int, fps: int) -> None:  # noqa: ARG002
        """Start a new animation."""
        self._frames = []
        self._durations = []
        self._size = (width, height)

    def write_frame(self, buffer: PixelBuffer, delay_ms: int) -> None:
        """Quantize a frame to its own palette and queue it."""
        if self._frames is None:
            raise SinkError("encoder is not open")
        if buffer.size != self._size:
            raise SinkError(f"frame size {buffer.size} does not match {self._size}")
        rgb = buffer.to_image().convert("RGB")
        self._frames.append(rgb.quantize(colors=self.colors))
        self._durations.append(max(1, delay_ms))

    def finalize(self) -> bytes:
        """Write all queued frames as one GIF.

        Raises:
            SinkError: If no frames were written or Pillow fails
        """
        frames = self._frames
        self._frames = None
        if not frames:
            raise SinkError("no frames were written")

        out = io.BytesIO()
        try:
            frames[0].save(
                out,
                format="GIF",
                save_all=True,
                append_images=frames[1:],
                duration=self._durations,
                loop=self.loop,
                optimize=False,
            )
        except (OSError, ValueError) as e:
            raise SinkError(f"could not write GIF: {e}") from e
        return out.getvalue()

    def abort(self) -> None:
        """Discard queued frames."""
        self._frames = None
        self._durations = []
