import os
import tempfile

# Settings are read once at import time of the app, so configure them first
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_NAME", "social_test")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="social-uploads-"))
