# Value objects passed between intake, the pipeline, the batch runner and the packager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from services.errors import UnsupportedFormatError
from utils.helpers import get_file_extension, get_mimetype_from_extension, parse_int, to_data_uri

DEFAULT_QUALITY = 90


class TargetFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    PDF = "pdf"
    SVG = "svg"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mimetype(self) -> str:
        return {
            TargetFormat.PNG: "image/png",
            TargetFormat.JPEG: "image/jpeg",
            TargetFormat.WEBP: "image/webp",
            TargetFormat.PDF: "application/pdf",
            TargetFormat.SVG: "image/svg+xml",
        }[self]

    @property
    def lossy(self) -> bool:
        return self in (TargetFormat.JPEG, TargetFormat.WEBP)

    @classmethod
    def parse(cls, value) -> "TargetFormat":
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise UnsupportedFormatError(f"Unsupported target format: {value!r}")


class BatchPolicy(str, Enum):
    FAIL_FAST = "fail_fast"
    PARTIAL = "partial"


class ProgressMode(str, Enum):
    COSMETIC = "cosmetic"
    COMPLETION = "completion"


@dataclass(frozen=True)
class SourceFile:
    """An uploaded or dropped file; never mutated after intake."""

    filename: str
    data: bytes
    mimetype: Optional[str] = None

    @classmethod
    def from_path(cls, path) -> "SourceFile":
        path = Path(path)
        mimetype = get_mimetype_from_extension(get_file_extension(path.name))
        return cls(filename=path.name, data=path.read_bytes(), mimetype=mimetype)


@dataclass(frozen=True)
class ResizeBox:
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Resize dimensions must be positive")

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class ConversionRequest:
    """Parameters for one conversion run. Immutable once a run starts."""

    format: TargetFormat
    resize: Optional[ResizeBox] = None
    quality: int = DEFAULT_QUALITY

    def __post_init__(self):
        object.__setattr__(self, "format", TargetFormat.parse(self.format))
        # quality only reaches lossy encoders
        if self.format.lossy and not 1 <= self.quality <= 100:
            raise ValueError(f"Quality must be between 1 and 100, got {self.quality}")

    @classmethod
    def build(cls, format, width=None, height=None, quality=None) -> "ConversionRequest":
        """
        Build a request from raw form-like values.

        width/height that are empty, non-numeric or not positive count as absent,
        and a resize box only exists when both are present. Quality is clamped
        into 1..100 and falls back to the default when it cannot be parsed.
        """
        target = TargetFormat.parse(format)

        w = parse_int(width)
        h = parse_int(height)
        resize = None
        if w is not None and h is not None and w > 0 and h > 0:
            resize = ResizeBox(w, h)

        q = parse_int(quality)
        if q is None:
            q = DEFAULT_QUALITY
        q = max(1, min(100, q))

        return cls(format=target, resize=resize, quality=q)


@dataclass(frozen=True)
class ConvertedFile:
    name: str
    data: bytes = field(repr=False)
    mimetype: str

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.data, self.mimetype)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class BatchFailure:
    index: int
    filename: str
    message: str


@dataclass
class BatchResult:
    files: List[ConvertedFile] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
