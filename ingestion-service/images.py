import base64
import binascii
import logging
import os
import re
import time
from typing import Any, Optional
from config import UPLOADS_DIR

logger = logging.getLogger(__name__)

# Prefisso opzionale "data:image/jpeg;base64," davanti al contenuto
DATA_URI_PATTERN = re.compile(r"^data:([A-Za-z-+/]+);base64,(.+)$", re.DOTALL)

# Base64 MIME va a capo ogni 76 caratteri
WHITESPACE_PATTERN = re.compile(r"\s+")


def decode_base64_image(data: Any) -> Optional[bytes]:
    """
    Decodifica un'immagine in base64, semplice o in formato data URI.
    Args:
        data (Any): Valore ricevuto nel campo image_base64.
    Returns:
        Optional[bytes]: I byte dell'immagine, oppure None se la decodifica fallisce.
    """
    if not isinstance(data, str):
        logger.warning("Immagine non decodificabile: atteso testo, ricevuto %s", type(data).__name__)
        return None

    base64_data = data
    match = DATA_URI_PATTERN.match(data)
    if match:
        base64_data = match.group(2)

    base64_data = WHITESPACE_PATTERN.sub("", base64_data)

    try:
        return base64.b64decode(base64_data, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Errore nella decodifica dell'immagine base64: %s", e)
        return None


def save_image(buffer: bytes, field_id: str, uploads_dir: str = UPLOADS_DIR) -> Optional[str]:
    """
    Salva l'immagine su disco come <field_id>_<timestamp in ms>.jpg. Un errore di scrittura
    non interrompe la richiesta.
    Args:
        buffer (bytes): Contenuto dell'immagine.
        field_id (str): Identificativo del campo già validato.
        uploads_dir (str): Cartella di destinazione, creata se non esiste.
    Returns:
        Optional[str]: Percorso del file salvato, oppure None in caso di errore.
    """
    try:
        os.makedirs(uploads_dir, exist_ok=True)
        timestamp = int(time.time() * 1000)
        path = os.path.join(uploads_dir, f"{field_id}_{timestamp}.jpg")
        with open(path, "wb") as f:
            f.write(buffer)
        return path
    except OSError as e:
        logger.warning("Impossibile salvare l'immagine in locale: %s", e)
        return None
