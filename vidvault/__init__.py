# vidvault/__init__.py
"""
Vidvault: video-learning platform backend.

Modules:
- app: Flask application factory and entry point
- config: settings read from the environment
- auth: admin tokens and password hashing
- database: Firestore access
- storage: S3-compatible object storage
- video_handler: upload processing
- exporter: registration export to Excel
- scheduler: background presigned URL refresh
- api_routes: public REST API
- admin_routes: admin console API
- player: playback controller embedded by the front end
"""

__version__ = "1.0.0"
__description__ = "Video learning platform backend"
