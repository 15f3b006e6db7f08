from fastapi import Request
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from config import MONGODB_URI, DATABASE_NAME, MONGODB_TIMEOUT_MS


class MissingDatabaseURIError(RuntimeError):
    """
    Eccezione sollevata quando la variabile MONGODB_URI non è configurata.
    """
    pass


async def connect(uri: str = MONGODB_URI, database_name: str = DATABASE_NAME) -> AsyncMongoClient:
    """
    Crea il client MongoDB condiviso e verifica che il server sia raggiungibile.
    Args:
        uri (str): Stringa di connessione a MongoDB.
        database_name (str): Nome del database di destinazione.
    Returns:
        AsyncMongoClient: Client connesso, da chiudere alla terminazione dell'applicazione.
    Raises:
        MissingDatabaseURIError: Se l'URI non è configurato.
        pymongo.errors.PyMongoError: Se il server non risponde al ping.
    """
    if not uri:
        raise MissingDatabaseURIError("MONGODB_URI non configurato.")

    client = AsyncMongoClient(uri, serverSelectionTimeoutMS=MONGODB_TIMEOUT_MS)
    try:
        await client[database_name].command("ping")
    except Exception:
        await client.close()
        raise
    return client


# Dipendenza per ottenere il database condiviso negli endpoint
def get_db(request: Request) -> AsyncDatabase:
    return request.app.state.db
