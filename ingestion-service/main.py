import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.asynchronous.database import AsyncDatabase
import uvicorn
from config import DATABASE_NAME, HOST, PORT, MAX_BODY_BYTES, LOG_LEVEL, HEALTH_MESSAGE
from database import connect, get_db
from images import decode_base64_image, save_image
from schemas import ReadingPayload, ReadingDocument, StoreReadingOutput
from validation import ReadingValidationError, validate_reading

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - INGESTION - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestore del ciclo di vita dell'applicazione FastAPI. Apre la connessione a MongoDB prima di
    accettare richieste e la chiude alla terminazione. Se la connessione fallisce l'avvio viene
    interrotto.

    Args:
        app (FastAPI): Istanza dell'applicazione FastAPI.
    """
    try:
        client = await connect()
    except Exception as e:
        logger.error("Connessione a MongoDB fallita: %s", e)
        raise

    app.state.mongo_client = client
    app.state.db = client[DATABASE_NAME]
    logger.info("Connesso a MongoDB: %s", DATABASE_NAME)

    yield

    await client.close()
    logger.info("Connessione a MongoDB chiusa")

# Crea l'app FastAPI con il gestore del ciclo di vita
app = FastAPI(title="AgriVision Ingestion Service", lifespan=lifespan)


class PayloadTooLargeError(HTTPException):
    """
    Eccezione sollevata quando il body della richiesta supera MAX_BODY_BYTES.
    """
    def __init__(self):
        super().__init__(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Payload too large")


class BodySizeLimitMiddleware:
    """
    Middleware ASGI che limita la dimensione del body. Le richieste con Content-Length oltre il
    limite sono rifiutate subito; per quelle senza (chunked) i byte vengono contati durante la lettura.
    """
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope["headers"])
        content_length = headers.get(b"content-length", b"")
        if content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": "Payload too large"},
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > MAX_BODY_BYTES:
                    raise PayloadTooLargeError()
            return message

        await self.app(scope, limited_receive, send)

app.add_middleware(BodySizeLimitMiddleware)


@app.exception_handler(PayloadTooLargeError)
async def payload_too_large_exception_handler(request: Request, exc: PayloadTooLargeError):
    """
    Gestore del superamento del limite sul body letto a blocchi.
    Args:
        request (Request): Oggetto della richiesta FastAPI.
        exc (PayloadTooLargeError): Eccezione sollevata durante la lettura del body.
    Returns:
        JSONResponse: Risposta 413 con il messaggio di errore.
    """
    logger.info("Richiesta rifiutata: body oltre %s byte", MAX_BODY_BYTES)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
    )


@app.exception_handler(ReadingValidationError)
async def reading_validation_exception_handler(request: Request, exc: ReadingValidationError):
    """
    Gestore degli errori di validazione della lettura.
    Args:
        request (Request): Oggetto della richiesta FastAPI.
        exc (ReadingValidationError): Errore sollevato dalla validazione.
    Returns:
        JSONResponse: Risposta 400 con il messaggio di errore.
    """
    logger.info("Lettura rifiutata (%s): %s", exc.kind, exc.message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Gestore degli errori sul body della richiesta (JSON non valido o non oggetto).
    Args:
        request (Request): Oggetto della richiesta FastAPI.
        exc (RequestValidationError): Eccezione di validazione delle richieste.
    Returns:
        JSONResponse: Risposta 400 al posto del 422 predefinito.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Request body must be a JSON object"},
    )


@app.get("/", response_class=PlainTextResponse)
async def health_check():
    return HEALTH_MESSAGE


@app.post("/api/store-reading", response_model=StoreReadingOutput)
async def store_reading(payload: ReadingPayload, db: AsyncDatabase = Depends(get_db)):
    """
    Riceve una lettura da un dispositivo IoT, salva l'immagine in locale e inserisce il documento
    nella collezione che porta il nome del campo.
    Args:
        payload (ReadingPayload): Dati inviati dal dispositivo.
        db (AsyncDatabase): Database MongoDB condiviso.
    Returns:
        StoreReadingOutput: Identificativo del documento, collezione e percorso dell'immagine.
    Raises:
        ReadingValidationError: Se il payload non supera la validazione.
    """
    reading = validate_reading(payload.model_dump())

    try:
        saved_file = None
        buffer = decode_base64_image(reading.image_base64)
        if buffer is not None:
            saved_file = save_image(buffer, reading.field_id)

        # Il database è quello configurato: database_name del payload viene ignorato
        document = ReadingDocument(
            field_id=reading.field_id,
            soil_moisture=reading.soil_moisture,
            temperature=reading.temperature,
            humidity=reading.humidity,
            image_base64=reading.image_base64,
            saved_file=saved_file,
            created_at=datetime.now(timezone.utc),
        )
        result = await db[reading.field_id].insert_one(document.model_dump())

        logger.info(
            "Lettura inserita: collection=%s _id=%s soil=%s temp=%s hum=%s",
            reading.field_id, result.inserted_id,
            reading.soil_moisture, reading.temperature, reading.humidity,
        )

        return StoreReadingOutput(
            insertedId=str(result.inserted_id),
            collection=reading.field_id,
            saved_file=saved_file,
        )
    except Exception as e:
        logger.exception("Errore in /api/store-reading")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Server error", "details": str(e)},
        )


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
