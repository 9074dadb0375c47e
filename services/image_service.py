# Image processing service - decode, resize and re-encode one image
import io
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from services.errors import ConversionError, DecodeError, EncodeError
from services.models import ConversionRequest, ConvertedFile, ResizeBox, SourceFile, TargetFormat
from utils.helpers import base_name, to_data_uri

logger = logging.getLogger(__name__)

# Try to enable HEIC/HEIF support via pillow-heif (optional).
HEIC_AVAILABLE = False
try:
    import pillow_heif
    pillow_heif.register_heif_opener()
    HEIC_AVAILABLE = True
except ImportError:
    HEIC_AVAILABLE = False

HEIC_EXTS = (".heic", ".heif")

# Formats the server mirror endpoint re-encodes directly
SERVER_RASTER_FORMATS = ("jpeg", "png", "webp")
SERVER_DEFAULT_QUALITY = 80

SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">'
    '<image href="{href}" width="{width}" height="{height}" /></svg>'
)


def decode_image(data: bytes) -> Image.Image:
    """
    Decode image bytes into an RGBA surface at its natural size.
    Orientation metadata is applied and animated images give their first frame.
    Raises DecodeError if Pillow cannot read the bytes.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            if getattr(im, "is_animated", False):
                im.seek(0)
            im.load()
            return ImageOps.exif_transpose(im).convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e


def render_surface(image: Image.Image, resize: Optional[ResizeBox] = None) -> Image.Image:
    """Scale the decoded image into the target box, ignoring aspect ratio."""
    if resize is None or resize.size == image.size:
        return image
    return image.resize(resize.size, Image.Resampling.LANCZOS)


def flatten_alpha(im: Image.Image) -> Image.Image:
    """Composite transparent pixels onto white for formats without alpha."""
    if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
        rgba = im.convert("RGBA")
        bg = Image.new("RGB", rgba.size, (255, 255, 255))
        bg.paste(rgba, mask=rgba.split()[-1])
        return bg
    return im.convert("RGB")


def _save(im: Image.Image, fmt: str, **params) -> bytes:
    out_buf = io.BytesIO()
    im.save(out_buf, format=fmt, **params)
    return out_buf.getvalue()


def surface_to_pdf(surface: Image.Image) -> bytes:
    """One page sized to the surface, with the PNG-encoded surface drawn full bleed at (0, 0)."""
    width, height = surface.size
    png_bytes = _save(surface, "PNG")
    packet = io.BytesIO()
    c = canvas.Canvas(packet, pagesize=(width, height))
    c.drawImage(ImageReader(io.BytesIO(png_bytes)), 0, 0, width=width, height=height, mask="auto")
    c.showPage()
    c.save()
    return packet.getvalue()


def surface_to_svg(surface: Image.Image) -> bytes:
    # Raster data inside a markup container, not a traced vector
    width, height = surface.size
    href = to_data_uri(_save(surface, "PNG"), "image/png")
    return SVG_TEMPLATE.format(width=width, height=height, href=href).encode("utf-8")


def encode_surface(surface: Image.Image, target: TargetFormat, quality: int) -> bytes:
    """
    Encode a surface into the target representation.
    Quality only applies to JPEG and WEBP. Raises EncodeError on failure.
    """
    if target.lossy and not 1 <= quality <= 100:
        raise EncodeError(f"Quality must be between 1 and 100, got {quality}")

    try:
        if target is TargetFormat.PNG:
            return _save(surface, "PNG")
        if target is TargetFormat.JPEG:
            return _save(flatten_alpha(surface), "JPEG", quality=quality)
        if target is TargetFormat.WEBP:
            return _save(surface, "WEBP", quality=quality)
        if target is TargetFormat.PDF:
            return surface_to_pdf(surface)
        if target is TargetFormat.SVG:
            return surface_to_svg(surface)
    except ConversionError:
        raise
    except Exception as e:
        raise EncodeError(f"{target.value.upper()} encoding failed: {e}") from e

    raise EncodeError(f"No encoder for {target!r}")


def derive_filename(filename: str, target: TargetFormat) -> str:
    """
    Original name up to its first '.', plus the target extension.
    'photo.final.PNG' -> 'photo.jpeg'; names without a dot are kept whole.
    """
    return f"{base_name(filename)}.{target.extension}"


def convert_one(source: SourceFile, request: ConversionRequest) -> ConvertedFile:
    """Run decode -> optional resize -> encode for one file."""
    image = decode_image(source.data)
    surface = render_surface(image, request.resize)
    payload = encode_surface(surface, request.format, request.quality)
    name = derive_filename(source.filename, request.format)
    logger.debug("Converted %s -> %s (%dx%d, %d bytes)", source.filename, name,
                 surface.width, surface.height, len(payload))
    return ConvertedFile(name=name, data=payload, mimetype=request.format.mimetype)


def reencode_for_server(file_bytes: bytes, fmt: str, quality: Optional[int] = None) -> bytes:
    """
    Re-encode uploaded bytes for the server mirror endpoint (jpeg/png/webp only).
    Raises DecodeError or EncodeError.
    """
    if fmt not in SERVER_RASTER_FORMATS:
        raise EncodeError(f"Server re-encode does not handle {fmt!r}")
    if quality is None:
        quality = SERVER_DEFAULT_QUALITY
    surface = decode_image(file_bytes)
    return encode_surface(surface, TargetFormat.parse(fmt), quality)
