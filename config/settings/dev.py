"""
Development settings: debug on, engine traces on, any local frontend allowed.
"""
from .base import *

DEBUG = True

CORS_ALLOW_ALL_ORIGINS = True

# Stage-by-stage engine traces (anchor, accrual, classification)
LOGGING['loggers']['billing']['level'] = 'DEBUG'
