import io
import time
import zipfile

import pytest

from services.errors import EmptyInputError
from services.models import ConversionRequest, ProgressMode, SourceFile
from services.session import ConversionSession


@pytest.fixture
def session():
    return ConversionSession(progress_mode=ProgressMode.COMPLETION)


@pytest.fixture
def events(session):
    seen = []
    session.subscribe(seen.append)
    return seen


def test_add_and_remove_files_keep_order(session, events, png_bytes):
    session.add_files([SourceFile("a.png", png_bytes), SourceFile("b.png", png_bytes)])
    session.add_files([SourceFile("c.png", png_bytes)])
    session.remove_file(1)
    assert [f.filename for f in session.selected_files] == ["a.png", "c.png"]
    assert events == ["files-added", "files-added", "file-removed"]


@pytest.mark.parametrize("index", [5, -1])
def test_remove_out_of_range_is_noop(session, events, png_bytes, index):
    session.add_files([SourceFile("a.png", png_bytes)])
    session.remove_file(index)
    assert len(session.selected_files) == 1
    assert events == ["files-added"]


def test_convert_replaces_outputs(session, events, png_bytes):
    session.add_files([SourceFile("a.png", png_bytes), SourceFile("b.png", png_bytes)])
    converted = session.convert(ConversionRequest.build("webp"))
    assert [f.name for f in converted] == ["a.webp", "b.webp"]
    assert [f.name for f in session.converted_files] == ["a.webp", "b.webp"]
    assert session.progress.value == 100
    assert session.error_message == ""
    assert "converted" in events
    assert "progress" in events


def test_failed_convert_keeps_previous_outputs(session, events, png_bytes, corrupt_bytes):
    session.add_files([SourceFile("a.png", png_bytes)])
    session.convert(ConversionRequest.build("png"))
    session.add_files([SourceFile("broken.png", corrupt_bytes)])

    assert session.convert(ConversionRequest.build("jpeg")) is None
    assert session.error_message.startswith("Conversion failed: ")
    assert session.progress.value == 0
    assert [f.name for f in session.converted_files] == ["a.png"]

    assert events[-1] == "error"

    session.dismiss_error()
    assert session.error_message == ""
    assert events[-1] == "error-dismissed"

    session.dismiss_error()
    assert events.count("error-dismissed") == 1


def test_convert_without_files_reports_error(session, events):
    assert session.convert(ConversionRequest.build("png")) is None
    assert "No files selected" in session.error_message
    assert events == ["error"]


def test_remove_converted_and_package(session, events, png_bytes):
    session.add_files([SourceFile("a.png", png_bytes), SourceFile("b.gif", png_bytes)])
    session.convert(ConversionRequest.build("pdf"))
    session.remove_converted(0)
    assert events[-1] == "converted-removed"
    session.remove_converted(9)
    assert events.count("converted-removed") == 1
    with zipfile.ZipFile(io.BytesIO(session.package_all())) as archive:
        assert archive.namelist() == ["b.pdf"]


def test_package_without_outputs_raises(session):
    with pytest.raises(EmptyInputError):
        session.package_all()


def test_partial_session_records_failures(png_bytes, corrupt_bytes):
    session = ConversionSession(policy="partial", progress_mode=ProgressMode.COMPLETION)
    session.add_files([SourceFile("bad.png", corrupt_bytes), SourceFile("good.png", png_bytes)])
    converted = session.convert(ConversionRequest.build("png"))
    assert [f.name for f in converted] == ["good.png"]
    assert [f.filename for f in session.last_failures] == ["bad.png"]


def test_partial_session_all_failed_keeps_previous_outputs(png_bytes, corrupt_bytes):
    session = ConversionSession(policy="partial", progress_mode=ProgressMode.COMPLETION)
    seen = []
    session.subscribe(seen.append)
    session.add_files([SourceFile("good.png", png_bytes)])
    session.convert(ConversionRequest.build("png"))

    session.remove_file(0)
    session.add_files([SourceFile("bad1.png", corrupt_bytes), SourceFile("bad2.png", corrupt_bytes)])
    assert session.convert(ConversionRequest.build("jpeg")) is None
    assert session.error_message.startswith("Conversion failed: bad1.png")
    assert [f.filename for f in session.last_failures] == ["bad1.png", "bad2.png"]
    assert [f.name for f in session.converted_files] == ["good.png"]
    assert session.progress.value == 0
    assert seen[-1] == "error"


def test_cosmetic_session_ticks_and_resets(png_bytes, corrupt_bytes):
    session = ConversionSession()
    session.progress.tick_interval = 0.01
    seen = []
    session.subscribe(seen.append)

    session.progress.start(1)
    deadline = time.monotonic() + 2
    while "progress" not in seen and time.monotonic() < deadline:
        time.sleep(0.01)
    assert "progress" in seen
    assert session.progress.value > 0
    session.progress.fail()

    session.add_files([SourceFile("a.png", png_bytes)])
    assert [f.name for f in session.convert(ConversionRequest.build("webp"))] == ["a.webp"]
    assert session.progress.value == 100

    session.add_files([SourceFile("bad.png", corrupt_bytes)])
    assert session.convert(ConversionRequest.build("webp")) is None
    assert session.progress.value == 0
    time.sleep(0.05)
    assert session.progress.value == 0
    assert seen[-1] == "error"
