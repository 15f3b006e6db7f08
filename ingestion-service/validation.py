import math
import re
from dataclasses import dataclass
from typing import Any, Optional

# Caratteri ammessi nel nome della collezione: lettere, numeri, underscore e trattino (max 100)
FIELD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,100}$")

SENSOR_FIELDS = ("soil_moisture", "temperature", "humidity")

INVALID_FIELD_ID = "InvalidFieldId"
MISSING_IMAGE = "MissingImage"
MISSING_SENSOR_VALUE = "MissingSensorValue"
NON_NUMERIC_SENSOR_VALUE = "NonNumericSensorValue"

ERROR_MESSAGES = {
    INVALID_FIELD_ID: "Invalid field_id. Use only letters, numbers, - and _ (max 100 chars).",
    MISSING_IMAGE: "image_base64 is required",
    MISSING_SENSOR_VALUE: "soil_moisture, temperature and humidity are required",
    NON_NUMERIC_SENSOR_VALUE: "Sensor values must be numeric",
}


class ReadingValidationError(Exception):
    """
    Eccezione sollevata quando il payload di una lettura non è valido.
    Attributes:
        kind (str): Tipo di errore (es. InvalidFieldId).
        message (str): Messaggio restituito al client.
    """
    def __init__(self, kind: str):
        self.kind = kind
        self.message = ERROR_MESSAGES[kind]
        super().__init__(self.message)


@dataclass
class ValidatedReading:
    field_id: str
    soil_moisture: float
    temperature: float
    humidity: float
    image_base64: Any


def sanitize_field_id(value: Any) -> Optional[str]:
    """
    Restituisce il field_id ripulito dagli spazi se è utilizzabile come nome di collezione.
    Args:
        value (Any): Valore ricevuto dal client.
    Returns:
        Optional[str]: Il field_id ripulito, oppure None se non è valido.
    """
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not FIELD_ID_PATTERN.fullmatch(trimmed):
        return None
    return trimmed


def coerce_sensor_value(value: Any) -> Optional[float]:
    """
    Converte il valore di un sensore in float. Sono ammessi numeri e stringhe numeriche.
    Args:
        value (Any): Valore ricevuto dal client.
    Returns:
        Optional[float]: Il valore numerico, oppure None se non convertibile o non finito.
    """
    # bool è una sottoclasse di int, ma true/false non sono letture valide
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        # float() accetta "1_000", che non è una lettura valida
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def validate_reading(payload: dict) -> ValidatedReading:
    """
    Applica in ordine i controlli sul payload; il primo che fallisce interrompe la validazione.
    Args:
        payload (dict): Il payload ricevuto dal dispositivo.
    Returns:
        ValidatedReading: I valori pronti per il salvataggio.
    Raises:
        ReadingValidationError: Se uno dei controlli fallisce.
    """
    field_id = sanitize_field_id(payload.get("field_id"))
    if field_id is None:
        raise ReadingValidationError(INVALID_FIELD_ID)

    if payload.get("image_base64") is None:
        raise ReadingValidationError(MISSING_IMAGE)

    if any(payload.get(name) is None for name in SENSOR_FIELDS):
        raise ReadingValidationError(MISSING_SENSOR_VALUE)

    values = {name: coerce_sensor_value(payload[name]) for name in SENSOR_FIELDS}
    if any(value is None for value in values.values()):
        raise ReadingValidationError(NON_NUMERIC_SENSOR_VALUE)

    return ValidatedReading(
        field_id=field_id,
        image_base64=payload["image_base64"],
        **values,
    )
