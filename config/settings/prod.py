"""
Production settings.
"""
from .base import *

DEBUG = False

SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# PostgreSQL only; env.db raises if DATABASE_URL is missing
DATABASES['default'] = env.db('DATABASE_URL')
DATABASES['default'].setdefault('CONN_MAX_AGE', 60)

# Roster computation is CPU-light; keep the pool small on shared hosts
BILLING_ROSTER_WORKERS = env.int('BILLING_ROSTER_WORKERS', default=2)
