import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

_firestore_client = None


def initialize_firebase() -> None:
    """Initialize Firebase Admin SDK with production-ready credential handling"""
    if firebase_admin._apps:
        return

    # Method 1: Service Account Key from Environment Variable (Recommended for production)
    service_account_key_json = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY")
    if service_account_key_json:
        try:
            cred = credentials.Certificate(json.loads(service_account_key_json))
            firebase_admin.initialize_app(cred)
            logger.info("[FIREBASE] Initialized with service account key from environment")
            return
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"[FIREBASE] Error parsing FIREBASE_SERVICE_ACCOUNT_KEY: {e}")

    # Method 2: Service Account Key File (for local development only)
    service_account_key_path = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY_PATH")
    if service_account_key_path and os.path.exists(service_account_key_path):
        firebase_admin.initialize_app(credentials.Certificate(service_account_key_path))
        logger.info("[FIREBASE] Initialized with service account key file")
        return

    # Method 3: GOOGLE_APPLICATION_CREDENTIALS or default credentials (Cloud environments)
    firebase_admin.initialize_app()
    logger.info("[FIREBASE] Initialized with application default credentials")


def get_firestore_client():
    """Firestore client, initializing the Admin SDK on first use."""
    global _firestore_client
    if _firestore_client is None:
        initialize_firebase()
        _firestore_client = firestore.client()
    return _firestore_client
