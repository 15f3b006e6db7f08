import os
from dotenv import load_dotenv

# Carica le variabili dal file .env, se presente, senza sovrascrivere quelle già definite
load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI")
DATABASE_NAME = os.getenv("DATABASE_NAME", "AgriVision_IoT")
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", 5000))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

UPLOADS_DIR = os.getenv("UPLOADS_DIR", "uploads")

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", 15 * 1024 * 1024)) # Limite del body (15 MB) per le immagini in base64

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HEALTH_MESSAGE = "AgriVision IoT API is running ✅"
