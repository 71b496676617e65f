import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Hosted (cloud) database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fieldkiosk_cloud.db")

# On-device database used for the offline-first write path
LOCAL_DATABASE_URL = os.getenv("LOCAL_DATABASE_URL", "sqlite:///./fieldkiosk_local.db")
# Last-resort JSON dump directory when the local database itself is unusable
EMERGENCY_STORAGE_DIR = os.getenv("EMERGENCY_STORAGE_DIR", "./emergency_storage")
# Synced local copies older than this are pruned
LOCAL_RETENTION_DAYS = int(os.getenv("LOCAL_RETENTION_DAYS", "30"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Fernet key for personal info at rest (generate with: Fernet.generate_key())
DATA_ENCRYPTION_KEY = os.getenv("DATA_ENCRYPTION_KEY")

# Kiosk API key (X-API-Key header) and shared secret for server-side functions
KIOSK_API_KEY = os.getenv("KIOSK_API_KEY")
SYNC_SECRET = os.getenv("SYNC_SECRET")

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8081")

# Background sync
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "5"))
MAX_SYNC_RETRIES = int(os.getenv("MAX_SYNC_RETRIES", "3"))
MAX_SYNC_LOGS = 100
MAX_FAILED_SYNC_ITEMS = 50

# Salesforce Configuration
SALESFORCE_INSTANCE_URL = os.getenv("SALESFORCE_INSTANCE_URL")
SALESFORCE_CLIENT_ID = os.getenv("SALESFORCE_CLIENT_ID")
SALESFORCE_CLIENT_SECRET = os.getenv("SALESFORCE_CLIENT_SECRET")
SALESFORCE_USERNAME = os.getenv("SALESFORCE_USERNAME")
SALESFORCE_PASSWORD = os.getenv("SALESFORCE_PASSWORD")
SALESFORCE_SECURITY_TOKEN = os.getenv("SALESFORCE_SECURITY_TOKEN", "")
SALESFORCE_API_VERSION = os.getenv("SALESFORCE_API_VERSION", "v57.0")
SALESFORCE_LEAD_REPORT_ID = os.getenv("SALESFORCE_LEAD_REPORT_ID")
SALESFORCE_APPOINTMENT_REPORT_ID = os.getenv("SALESFORCE_APPOINTMENT_REPORT_ID")

# Zapier webhook for appointment hand-off
ZAPIER_WEBHOOK_URL = os.getenv("ZAPIER_WEBHOOK_URL")

# ADP Workforce Now Configuration
ADP_CLIENT_ID = os.getenv("ADP_CLIENT_ID")
ADP_CLIENT_SECRET = os.getenv("ADP_CLIENT_SECRET")
ADP_API_URL = os.getenv("ADP_API_URL", "https://api.adp.com")
# Base64 encoded PEM certificate and key for ADP mutual TLS
ADP_SSL_CERT = os.getenv("ADP_SSL_CERT")
ADP_SSL_KEY = os.getenv("ADP_SSL_KEY")

# Twilio Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# Email: SendGrid (primary) and Resend (fallback)
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@fieldkiosk.app")
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Field Kiosk <noreply@fieldkiosk.app>")

# Daily report defaults (overridable per request)
DAILY_REPORT_RECIPIENTS = [
    r.strip() for r in os.getenv("DAILY_REPORT_RECIPIENTS", "").split(",") if r.strip()
]
DAILY_REPORT_SMS_RECIPIENTS = [
    r.strip() for r in os.getenv("DAILY_REPORT_SMS_RECIPIENTS", "").split(",") if r.strip()
]
DAILY_REPORT_PERIOD = os.getenv("DAILY_REPORT_PERIOD", "yesterday")
