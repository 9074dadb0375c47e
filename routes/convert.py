# Conversion routes - Endpoints for server-side image conversion
import io

from flask import Blueprint, Response, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from services.archive_service import ARCHIVE_MIMETYPE, ARCHIVE_NAME, package_all
from services.batch_service import convert_batch
from services.errors import BatchConversionError, UnsupportedFormatError
from services.image_service import HEIC_AVAILABLE, HEIC_EXTS, SERVER_RASTER_FORMATS, reencode_for_server
from services.models import BatchPolicy, ConversionRequest, SourceFile
from utils.helpers import get_file_extension, parse_int

convert_bp = Blueprint("convert", __name__)

HEIC_MISSING = (
    "HEIC/HEIF support is not enabled on the server. "
    "Install the optional 'pillow-heif' package and native libheif."
)


def _text(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def _heic_unsupported(filename: str) -> bool:
    return get_file_extension(filename) in HEIC_EXTS and not HEIC_AVAILABLE


@convert_bp.route("/api/convert", methods=["POST"])
def api_convert():
    """
    POST form-data:
      - image: single image file ('file' is accepted too)
      - format: jpeg | png | webp
      - quality: integer 1..100 (optional)

    Returns the re-encoded image as an attachment named converted.<format>.
    """
    upload = request.files.get("image") or request.files.get("file")
    if upload is None or upload.filename == "":
        return _text("No file uploaded.", 400)

    fmt = (request.form.get("format") or "").strip().lower()
    if fmt in ("svg", "pdf"):
        return _text(f"{fmt.upper()} conversion not supported.", 400)
    if fmt not in SERVER_RASTER_FORMATS:
        return _text("Invalid format specified.", 400)
    if _heic_unsupported(upload.filename):
        return _text(HEIC_MISSING, 400)

    quality = parse_int(request.form.get("quality"))
    if quality is not None:
        quality = max(1, min(100, quality))

    try:
        converted = reencode_for_server(upload.read(), fmt, quality=quality)
    except Exception as e:
        current_app.logger.exception("Conversion error: %s", e)
        return _text("Error during conversion", 500)

    response = Response(converted, status=200)
    response.headers["Content-Type"] = f"image/{fmt}"
    response.headers["Content-Disposition"] = f"attachment; filename=converted.{fmt}"
    return response


@convert_bp.route("/api/convert-batch", methods=["POST"])
def api_convert_batch():
    """
    POST form-data:
      - files: one or more image files
      - format: png | jpeg | webp | pdf | svg (default png)
      - quality: integer 1..100 (optional)
      - width, height: resize box, used only when both are given
      - policy: fail_fast | partial (optional)

    Returns converted_images.zip; X-Conversion-Failures holds the failure count.
    """
    uploads = [u for u in request.files.getlist("files") if u and u.filename]
    if not uploads:
        return jsonify({"error": "No files provided"}), 400
    if any(_heic_unsupported(u.filename) for u in uploads):
        return jsonify({"error": HEIC_MISSING}), 400

    try:
        conversion_request = ConversionRequest.build(
            request.form.get("format") or "png",
            width=request.form.get("width"),
            height=request.form.get("height"),
            quality=request.form.get("quality", current_app.config["DEFAULT_QUALITY"]),
        )
    except UnsupportedFormatError as e:
        return jsonify({"error": str(e)}), 400

    try:
        policy = BatchPolicy(request.form.get("policy") or current_app.config["BATCH_POLICY"])
    except ValueError:
        return jsonify({"error": f"Unsupported policy: {request.form.get('policy')}"}), 400

    sources = [
        SourceFile(filename=secure_filename(u.filename) or "upload", data=u.read(), mimetype=u.mimetype)
        for u in uploads
    ]

    try:
        result = convert_batch(sources, conversion_request, policy=policy)
    except BatchConversionError as e:
        return jsonify({"error": f"Conversion failed: {e}", "file": e.filename}), 400

    if not result.files:
        return jsonify({
            "error": "No files were converted",
            "failures": [{"file": f.filename, "error": f.message} for f in result.failures],
        }), 400

    response = send_file(
        io.BytesIO(package_all(result.files)),
        as_attachment=True,
        download_name=ARCHIVE_NAME,
        mimetype=ARCHIVE_MIMETYPE
    )
    response.headers["X-Conversion-Failures"] = str(len(result.failures))
    return response
