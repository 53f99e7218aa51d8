#!/usr/bin/env python3
"""
Binary Segmentation API Server
Upload an image, get back the stored original and its black/white segmentation.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import NotFound

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from models.errors import DecodeError, PipelineError
from pipeline.upload_segmenter import segment_upload

logger = logging.getLogger(__name__)

# Configuration
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
UPLOAD_URL_PREFIX = "/uploads"
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "32")) * 1024 * 1024
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Build the Flask application once; routes are bound to this instance only.
    *config* overrides UPLOAD_FOLDER / MAX_CONTENT_LENGTH (used by tests).
    """
    app = Flask(__name__)
    app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    if config:
        app.config.update(config)

    # Enable CORS for frontend communication
    CORS(
        app,
        origins="*",
        methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.route('/api/upload', methods=['POST'])
    def upload():
        """Store the uploaded image and return original + segmented URLs."""
        if 'image' not in request.files:
            return jsonify({'error': 'Error retrieving file'}), 400

        file = request.files['image']
        if file.filename == '':
            return jsonify({'error': 'No file selected'}), 400

        try:
            result = segment_upload(
                file,
                app.config['UPLOAD_FOLDER'],
                url_prefix=UPLOAD_URL_PREFIX,
            )
        except DecodeError as e:
            logger.warning(f"Rejected upload {file.filename!r}: {e}")
            return jsonify({'error': f'Error performing segmentation: {e}'}), 400
        except PipelineError as e:
            logger.error(f"Segmentation error for {file.filename!r}: {e}")
            return jsonify({'error': f'Error performing segmentation: {e}'}), 500

        return jsonify(result.to_dict())

    @app.route(f'{UPLOAD_URL_PREFIX}/<path:filename>')
    def serve_upload(filename):
        """Serve stored originals and segmented images."""
        upload_dir = Path(app.config['UPLOAD_FOLDER']).resolve()
        try:
            return send_from_directory(upload_dir, filename)
        except NotFound:
            return jsonify({'error': 'Image not found'}), 404

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'Binary Segmentation API is running',
        })

    @app.errorhandler(413)
    def too_large(e):
        """Handle file too large error."""
        limit_mb = (app.config['MAX_CONTENT_LENGTH'] or 0) // (1024 * 1024)
        return jsonify({'error': f'File too large. Maximum size is {limit_mb}MB.'}), 413

    @app.errorhandler(500)
    def internal_error(e):
        """Handle internal server error."""
        logger.error(f"Internal server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def main():
    app = create_app()
    logger.info(f"Starting Binary Segmentation API Server on {HOST}:{PORT}")
    logger.info(f"Upload directory: {app.config['UPLOAD_FOLDER']}")
    logger.info(f"Max upload size: {app.config['MAX_CONTENT_LENGTH'] // (1024*1024)}MB")
    app.run(host=HOST, port=PORT)


if __name__ == '__main__':
    main()
