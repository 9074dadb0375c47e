import pytest

from services.errors import UnsupportedFormatError
from services.models import (
    DEFAULT_QUALITY, ConversionRequest, ConvertedFile, ResizeBox, SourceFile, TargetFormat,
)


@pytest.mark.parametrize("raw, expected", [
    ("PNG", TargetFormat.PNG),
    ("jpeg", TargetFormat.JPEG),
    (" Webp ", TargetFormat.WEBP),
    ("pdf", TargetFormat.PDF),
    ("SVG", TargetFormat.SVG),
])
def test_target_format_parse_is_case_insensitive(raw, expected):
    assert TargetFormat.parse(raw) is expected


def test_target_format_parse_rejects_unknown():
    with pytest.raises(UnsupportedFormatError):
        TargetFormat.parse("gif")


def test_only_jpeg_and_webp_are_lossy():
    assert {f for f in TargetFormat if f.lossy} == {TargetFormat.JPEG, TargetFormat.WEBP}


def test_build_parses_resize_box():
    request = ConversionRequest.build("png", width="200", height=" 100 ")
    assert request.resize == ResizeBox(200, 100)


@pytest.mark.parametrize("width, height", [
    ("200", ""),
    ("", "100"),
    ("abc", "100"),
    (None, None),
    ("0", "100"),
    ("-5", "100"),
])
def test_build_treats_partial_or_invalid_resize_as_absent(width, height):
    assert ConversionRequest.build("png", width=width, height=height).resize is None


@pytest.mark.parametrize("quality, expected", [
    (None, DEFAULT_QUALITY),
    ("", DEFAULT_QUALITY),
    ("80", 80),
    (0, 1),
    (250, 100),
])
def test_build_clamps_quality(quality, expected):
    assert ConversionRequest.build("jpeg", quality=quality).quality == expected


def test_request_is_immutable():
    request = ConversionRequest.build("png")
    with pytest.raises(AttributeError):
        request.quality = 10


def test_resize_box_rejects_non_positive():
    with pytest.raises(ValueError):
        ResizeBox(0, 10)


def test_source_file_from_path(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes)
    source = SourceFile.from_path(path)
    assert source.filename == "photo.png"
    assert source.mimetype == "image/png"
    assert source.data == png_bytes


def test_converted_file_data_uri():
    converted = ConvertedFile(name="a.png", data=b"\x89PNG", mimetype="image/png")
    assert converted.data_uri == "data:image/png;base64,iVBORw=="
    assert converted.size == 4


def test_request_coerces_plain_string_format():
    request = ConversionRequest(format="PNG")
    assert request.format is TargetFormat.PNG


def test_request_rejects_unknown_format():
    with pytest.raises(UnsupportedFormatError):
        ConversionRequest(format="tiff")


@pytest.mark.parametrize("target", ["jpeg", "webp"])
@pytest.mark.parametrize("quality", [0, 150])
def test_request_rejects_lossy_quality_out_of_range(target, quality):
    with pytest.raises(ValueError):
        ConversionRequest(format=target, quality=quality)


def test_request_allows_any_quality_for_lossless():
    assert ConversionRequest(format=TargetFormat.PNG, quality=150).quality == 150
