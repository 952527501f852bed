"""
Test settings: in-memory SQLite, fast password hashing, quiet billing logs.
"""
import os

# base.py resolves the database at import time
os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *
from .database import sqlite_memory_config

DATABASES = {
    'default': sqlite_memory_config(),
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

BILLING_ROSTER_WORKERS = 2
LOGGING['loggers']['billing']['level'] = 'WARNING'
