"""
Application configuration loaded from the environment (.env supported)
"""

import os
import logging
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

load_dotenv()

# Database
DB_HOST = os.getenv('DB_HOST', 'localhost')
DB_PORT = int(os.getenv('DB_PORT', '3306'))
DB_NAME = os.getenv('DB_NAME', 'bangbank')
DB_USER = os.getenv('DB_USER', 'root')
DB_PASSWORD = os.getenv('DB_PASSWORD', '')
DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '10'))

# Email
SMTP_HOST = os.getenv('SMTP_HOST', 'smtp.gmail.com')
SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
SMTP_USER = os.getenv('SMTP_USER', '')
SMTP_PASSWORD = os.getenv('SMTP_PASSWORD', '')
SMTP_FROM_EMAIL = os.getenv('SMTP_FROM_EMAIL', SMTP_USER)
SMTP_FROM_NAME = os.getenv('SMTP_FROM_NAME', 'BangBank')
SMTP_USE_TLS = os.getenv('SMTP_USE_TLS', 'true').lower() == 'true'
EMAIL_NOTIFICATIONS_ENABLED = os.getenv('EMAIL_NOTIFICATIONS_ENABLED', 'true').lower() == 'true'

# Google Calendar (advisor meetings)
GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID', '')
GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET', '')
GOOGLE_REDIRECT_URI = os.getenv('GOOGLE_REDIRECT_URI', 'http://localhost:8501/')
CALENDAR_TIMEZONE = os.getenv('CALENDAR_TIMEZONE', 'Asia/Singapore')
CALENDAR_UTC_OFFSET = os.getenv('CALENDAR_UTC_OFFSET', '+08:00')

# Files and logs
UPLOAD_DIR = os.getenv('UPLOAD_DIR', 'uploads')
LOG_DIR = os.getenv('LOG_DIR', 'logs')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Security
OTP_EXPIRY_MINUTES = int(os.getenv('OTP_EXPIRY_MINUTES', '5'))
SESSION_TIMEOUT_MINUTES = int(os.getenv('SESSION_TIMEOUT_MINUTES', '30'))


def setup_logging():
    """Configure root logging once per process (console + rotating file)"""
    root = logging.getLogger()
    if getattr(root, '_bangbank_configured', False):
        return

    os.makedirs(LOG_DIR, exist_ok=True)
    formatter = logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')

    console = logging.StreamHandler()
    console.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, 'bangbank.log'), maxBytes=1_000_000, backupCount=5
    )
    file_handler.setFormatter(formatter)

    root.setLevel(LOG_LEVEL)
    root.addHandler(console)
    root.addHandler(file_handler)
    root._bangbank_configured = True
