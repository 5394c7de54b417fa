"""Tests for the frame decoder and encoder

Python child processes stand in for ffmpeg: the decoder stub writes raw
bytes to stdout, the encoder stub copies stdin into the destination file.
"""

import os
import time
from unittest.mock import patch

import numpy as np
import pytest

from clipforge.exceptions import ProcessExitError, ProtocolError, RangeError, StateError
from clipforge.frame import Frame
from clipforge.transcoder import MediaInfo, VideoReader, VideoWriter

from conftest import python_command

pytestmark = pytest.mark.skipif(os.name != "posix", reason="process groups require POSIX")

INFO = MediaInfo(duration=10.0, width=4, height=2, fps=25.0)
FRAME_BYTES = 4 * 2 * 3

def emit(count, exit_code=0):
    return python_command(
        "import sys\n"
        f"sys.stdout.buffer.write((bytes(range(256)) * ({count} // 256 + 1))[:{count}])\n"
        "sys.stdout.flush()\n"
        f"sys.exit({exit_code})\n"
    )

def copy_stdin_to(path):
    return python_command(
        "import shutil, sys\n"
        f"with open({str(path)!r}, 'wb') as out:\n"
        "    shutil.copyfileobj(sys.stdin.buffer, out)\n"
    )

@pytest.fixture
def reader(supervisor):
    with patch("clipforge.transcoder.reader.probe_media", return_value=INFO):
        video = VideoReader("/tmp/clip.mp4", supervisor)
        video.open()
    yield video
    video.close()

def test_get_frame_reads_exactly_one_frame(reader, supervisor):
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=emit(FRAME_BYTES)):
        frame = reader.get_frame(1.0)
    assert frame.size == (4, 2)
    assert frame.to_bytes() == bytes(range(FRAME_BYTES))
    assert supervisor.process_count() == 0

def test_short_read_is_protocol_error(reader, supervisor):
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=emit(FRAME_BYTES - 1)):
        with pytest.raises(ProtocolError):
            reader.get_frame(1.0)
    assert supervisor.process_count() == 0

def test_trailing_bytes_are_protocol_error(reader, supervisor):
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=emit(FRAME_BYTES + 5)):
        with pytest.raises(ProtocolError):
            reader.get_frame(1.0)
    assert supervisor.process_count() == 0

def test_flooding_decoder_is_stopped(reader, supervisor):
    # More output than a pipe buffer holds: the child blocks on write and never exits
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=emit(FRAME_BYTES + 1_000_000)):
        started = time.monotonic()
        with pytest.raises(ProtocolError):
            reader.get_frame(1.0)
    assert time.monotonic() - started < 10
    assert supervisor.process_count() == 0

def test_decoder_lingering_after_frame_is_terminated(reader, supervisor):
    lingering = python_command(
        "import sys, time\n"
        f"sys.stdout.buffer.write(bytes({FRAME_BYTES}))\n"
        "sys.stdout.flush()\n"
        "time.sleep(30)\n"
    )
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=lingering):
        started = time.monotonic()
        with pytest.raises(ProcessExitError) as excinfo:
            reader.get_frame(1.0)
    assert time.monotonic() - started < 10
    assert "did not exit" in str(excinfo.value)
    assert supervisor.process_count() == 0

def test_nonzero_exit_is_process_exit_error(reader, supervisor):
    with patch("clipforge.transcoder.reader.build_frame_command", return_value=emit(FRAME_BYTES, exit_code=1)):
        with pytest.raises(ProcessExitError) as excinfo:
            reader.get_frame(1.0)
    assert excinfo.value.exit_code == 1
    assert supervisor.process_count() == 0

def test_out_of_range_spawns_nothing(reader, supervisor):
    with patch.object(supervisor, "start") as start:
        with pytest.raises(RangeError):
            reader.get_frame(10.5)
        with pytest.raises(RangeError):
            reader.get_frame(-0.1)
    start.assert_not_called()

def test_closed_reader_rejects_requests(reader):
    reader.close()
    reader.close()
    with pytest.raises(StateError):
        reader.get_frame(0.0)

def test_unopened_reader_rejects_requests(supervisor):
    with pytest.raises(StateError):
        VideoReader("/tmp/clip.mp4", supervisor).get_frame(0.0)

def test_writer_pushes_frames_in_order(supervisor, tmp_path):
    destination = tmp_path / "out.mp4"
    first = Frame(np.full((2, 4, 3), 1, dtype=np.uint8))
    second = Frame(np.full((2, 4, 3), 2, dtype=np.uint8))
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=copy_stdin_to(destination)):
        writer = VideoWriter(supervisor).open(destination, 4, 2, 25.0)
    writer.write_frame(first)
    writer.write_frame(second)
    writer.close(timeout=10)
    assert writer.frames_written == 2
    assert destination.read_bytes() == first.to_bytes() + second.to_bytes()
    assert supervisor.process_count() == 0

def test_writer_rejects_mismatched_frame_without_writing(supervisor, tmp_path):
    destination = tmp_path / "out.mp4"
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=copy_stdin_to(destination)):
        writer = VideoWriter(supervisor).open(destination, 4, 2, 25.0)
    with pytest.raises(ProtocolError):
        writer.write_frame(Frame.blank(2, 2))
    writer.close(timeout=10)
    assert writer.frames_written == 0
    assert destination.read_bytes() == b""

def test_writer_fails_fast_after_encoder_exit(supervisor, tmp_path):
    failing = python_command("import sys; sys.stderr.write('unknown encoder\\n'); sys.exit(1)")
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=failing):
        writer = VideoWriter(supervisor).open(tmp_path / "out.mp4", 4, 2, 25.0)
    writer.process.wait(10)
    with pytest.raises(ProcessExitError) as excinfo:
        writer.write_frame(Frame.blank(4, 2))
    assert "unknown encoder" in str(excinfo.value)
    writer.abort()

def test_writer_close_reports_encoder_failure(supervisor, tmp_path):
    failing = python_command("import sys; sys.stdin.buffer.read(); sys.exit(2)")
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=failing):
        writer = VideoWriter(supervisor).open(tmp_path / "out.mp4", 4, 2, 25.0)
    with pytest.raises(ProcessExitError):
        writer.close(timeout=10)
    assert writer.closed

def test_writer_abort_terminates_encoder(supervisor, tmp_path):
    hanging = python_command("import time; time.sleep(30)")
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=hanging):
        writer = VideoWriter(supervisor).open(tmp_path / "out.mp4", 4, 2, 25.0)
    writer.abort()
    assert supervisor.process_count() == 0
    with pytest.raises(StateError):
        writer.write_frame(Frame.blank(4, 2))

def test_writer_rejects_invalid_parameters(supervisor, tmp_path):
    with pytest.raises(ValueError):
        VideoWriter(supervisor).open(tmp_path / "out.mp4", 4, 2, 0)
    with pytest.raises(StateError):
        VideoWriter(supervisor).write_frame(Frame.blank(4, 2))

def test_writer_broken_pipe_terminates_running_encoder(supervisor, tmp_path):
    # Encoder closes its stdin but keeps running
    stubborn = python_command("import os, time; os.close(0); time.sleep(30)")
    with patch("clipforge.transcoder.writer.build_encode_command", return_value=stubborn):
        writer = VideoWriter(supervisor).open(tmp_path / "out.mp4", 256, 256, 25.0)
    with pytest.raises(ProcessExitError) as excinfo:
        writer.write_frame(Frame.blank(256, 256))
    message = str(excinfo.value)
    assert "code None" not in message
    assert "still running" in message
    assert supervisor.process_count() == 0
    writer.abort()
