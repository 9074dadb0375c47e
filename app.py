# Main Flask Application - Entry Point
# Image conversion backend: server-side mirror of the browser converter
import logging
import os

from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS

from config import Config
from routes.convert import convert_bp


def _settings(overrides=None):
    settings = {key: getattr(Config, key) for key in dir(Config) if key.isupper()}
    settings.update(overrides or {})
    return settings


def create_app(overrides=None):
    """Build the Flask app; overrides replace values from Config (used by tests)."""
    settings = _settings(overrides)

    logging.basicConfig(level=getattr(logging, str(settings['LOG_LEVEL']).upper(), logging.INFO))

    # Static assets from the front-end build directory, served at the root path
    static_folder = os.path.abspath(settings['STATIC_FOLDER'])
    app = Flask(__name__, static_folder=static_folder, static_url_path='')
    app.config.update(settings)

    CORS(app, resources={r"/*": {
        "origins": settings['CORS_ORIGINS'],
        "allow_headers": ["Content-Type", "Authorization", "Accept", "X-Requested-With"],
        "expose_headers": ["Content-Disposition", "X-Conversion-Failures"],
        "methods": ["GET", "POST", "OPTIONS"],
        "max_age": 3600,
        "supports_credentials": False
    }})

    app.register_blueprint(convert_bp)

    @app.route('/', methods=['GET'])
    def index():
        """Front-end entry page, or the API listing when no build is present"""
        if os.path.isfile(os.path.join(static_folder, 'index.html')):
            return send_from_directory(static_folder, 'index.html')
        return jsonify({
            "status": "ok",
            "message": "Image Converter API",
            "version": "1.0",
            "endpoints": {
                "convert": [
                    "/api/convert",
                    "/api/convert-batch"
                ],
                "health": ["/health"]
            }
        })

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint"""
        return jsonify({"status": "healthy", "service": "image-converter"}), 200

    # Error handlers
    @app.errorhandler(413)
    def request_entity_too_large(error):
        limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return jsonify({"error": f"File too large. Maximum size is {limit_mb}MB"}), 413

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.errorhandler(500)
    def internal_server_error(error):
        return jsonify({"error": "Internal server error", "message": str(error)}), 500

    return app


app = create_app()


if __name__ == '__main__':
    print("=" * 60)
    print("Image Converter Backend Service")
    print("=" * 60)
    print(f"Environment: {app.config['ENV']}")
    print(f"Port: {app.config['PORT']}")
    print(f"Static assets: {app.static_folder}")
    print("=" * 60)

    # Use 0.0.0.0 to allow external connections
    app.run(
        host='0.0.0.0',
        port=app.config['PORT'],
        debug=app.config['DEBUG']
    )
