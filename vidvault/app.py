# vidvault/app.py (application entry point)
from flask import Flask, jsonify, request
import os
import logging

from .config import SECRET_KEY, MAX_CONTENT_LENGTH
from .api_routes import api_bp
from .admin_routes import admin_bp
from .scheduler import start_scheduler, scheduler
from .utils import utc_now_iso

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

ALLOWED_ORIGIN = os.environ.get('ALLOWED_ORIGIN', '*')


def create_app(config=None):
    """Build the Flask application"""
    app = Flask(__name__)
    app.secret_key = SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    if config:
        app.config.update(config)

    # Blueprints
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.after_request
    def add_headers(response):
        """Security and CORS headers"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        response.headers['Access-Control-Allow-Origin'] = ALLOWED_ORIGIN
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, PATCH, DELETE, OPTIONS'
        return response

    @app.before_request
    def handle_preflight():
        if request.method == 'OPTIONS':
            return '', 204

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({
            'error': 'File too large',
            'maxSizeMB': MAX_CONTENT_LENGTH // (1024 * 1024)
        }), 413

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.route('/health', methods=['GET'])
    def health_check():
        """Service health"""
        from .database import get_db, VIDEOS
        from .storage import check_bucket

        try:
            get_db().collection(VIDEOS).limit(1).get()
            firestore_status = 'healthy'
        except Exception:
            firestore_status = 'unhealthy'

        try:
            check_bucket()
            s3_status = 'healthy'
        except Exception:
            s3_status = 'unhealthy'

        overall_status = 'healthy' if (firestore_status == 'healthy' and s3_status == 'healthy') else 'unhealthy'

        return jsonify({
            'status': overall_status,
            'timestamp': utc_now_iso(),
            'services': {
                'firestore': firestore_status,
                's3': s3_status,
                'scheduler': scheduler.running
            },
            'version': '1.0.0'
        }), 200 if overall_status == 'healthy' else 503

    return app


def main():
    app = create_app()

    # Background jobs
    start_scheduler()

    port = int(os.environ.get("PORT", 8080))
    debug = os.environ.get('FLASK_DEBUG', '').lower() in ('1', 'true')
    logger.info(f"🚀 Starting server on port {port}")
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    main()
