from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional
from datetime import datetime


class ReadingPayload(BaseModel):
    """
    Payload inviato dal dispositivo IoT. I campi non sono tipizzati perché la
    validazione avviene nel modulo validation, che deve distinguere i singoli errori.
    """
    model_config = ConfigDict(extra="ignore")

    field_id: Any = Field(None, example="Field_01", description="Identificativo del campo, usato come nome della collezione")
    soil_moisture: Any = Field(None, example=42.5, description="Umidità del suolo")
    temperature: Any = Field(None, example=21, description="Temperatura")
    humidity: Any = Field(None, example=60, description="Umidità dell'aria")
    image_base64: Any = Field(None, example="data:image/jpeg;base64,QQ==", description="Immagine in base64, semplice o data URI")
    database_name: Any = Field(None, description="Ignorato: il database è fissato dalla configurazione")


class ReadingDocument(BaseModel):
    """
    Documento salvato nella collezione del campo.
    """
    field_id: str
    soil_moisture: float
    temperature: float
    humidity: float
    image_base64: Any
    saved_file: Optional[str] = None
    created_at: datetime


class StoreReadingOutput(BaseModel):
    success: bool = True
    insertedId: str = Field(..., example="6650c0ffee0ddba11ad0beef", description="Identificativo assegnato da MongoDB")
    collection: str = Field(..., example="Field_01", description="Collezione in cui è stata salvata la lettura")
    saved_file: Optional[str] = Field(None, example="uploads/Field_01_1712345678901.jpg", description="Percorso dell'immagine salvata")
