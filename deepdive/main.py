"""FastAPI main application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import ConversationRepository, DatabaseConnection
from .models.conversation import ConversationStatus
from .sandbox import BaseSandbox, create_sandbox
from .services import AgentRunHandler, ConversationStore, TranscriptSync
from .utils.logger import init_app_logger
from .api import conversations
from .api.errors import register_exception_handlers


# Initialize logger
logger = init_app_logger(settings)

# Global service instances
db_conn: DatabaseConnection = None
sandbox_instance: BaseSandbox = None
transcript_sync_instance: TranscriptSync = None


def recover_interrupted(db: DatabaseConnection) -> int:
    """
    Mark conversations left ``running`` by a previous process as failed.

    Agent runs do not survive a restart, so nothing would ever complete them.

    Returns:
        Number of conversations updated
    """
    repo = ConversationRepository(db.conn)
    count = 0
    for conversation in repo.list_by_status(ConversationStatus.RUNNING.value):
        if repo.update(conversation.id, {
            "status": ConversationStatus.ERROR.value,
            "error_message": "Agent run was interrupted by a server restart",
        }):
            count += 1
    return count


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    global db_conn, sandbox_instance, transcript_sync_instance

    # Startup
    logger.info("=" * 70)
    logger.info("Starting Reddit Deep-Dive Analyst...")
    logger.info("=" * 70)

    logger.info("")
    logger.info("📡 Server Configuration:")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")
    logger.info(f"  Debug: {settings.debug}")
    logger.info(f"  Log Level: {settings.log_level}")
    logger.info(f"  Log File: {settings.log_file}")

    logger.info("")
    logger.info("💾 Storage Configuration:")
    logger.info(f"  Database: {settings.database_path}")
    logger.info(f"  Conversations Dir: {settings.conversations_dir}")

    logger.info("")
    logger.info("🤖 Agent Configuration:")
    logger.info(f"  Sandbox: {settings.sandbox_type}")
    logger.info(f"  Volumes Dir: {settings.sandbox_base_dir}")
    logger.info(f"  Command: {settings.agent_command}")
    logger.info(f"  Model: {settings.agent_model or 'default'}")
    logger.info(f"  Timeout: {settings.agent_timeout}s")
    if settings.anthropic_api_key:
        key = settings.anthropic_api_key
        masked_key = key[:8] + "..." + key[-4:] if len(key) > 12 else "***"
        logger.info(f"  API Key (from .env): {masked_key}")
    else:
        logger.info("  API Key (from .env): Not set")

    db_conn = DatabaseConnection(settings.database_path)
    recovered = recover_interrupted(db_conn)
    if recovered:
        logger.warning(f"Marked {recovered} interrupted conversation(s) as error")

    conv_store = ConversationStore(settings.conversations_dir)
    sandbox_instance = create_sandbox(settings)
    transcript_sync_instance = TranscriptSync(sandbox_instance, conv_store)
    if settings.enable_file_watch:
        transcript_sync_instance.start()

    # Set services in API modules
    conversations.db_conn = db_conn
    conversations.conv_store = conv_store
    conversations.sandbox = sandbox_instance
    conversations.transcript_sync = transcript_sync_instance
    conversations.run_handler = AgentRunHandler(db_conn, transcript_sync_instance)

    logger.info("")
    logger.info("=" * 70)
    logger.info("✅ Reddit Deep-Dive Analyst started successfully!")
    logger.info(f"📍 Access at: http://{settings.host}:{settings.port}")
    logger.info(f"📚 API Docs: http://{settings.host}:{settings.port}/docs")
    logger.info("=" * 70)

    yield

    # Shutdown
    logger.info("")
    logger.info("=" * 70)
    logger.info("Shutting down Reddit Deep-Dive Analyst...")
    logger.info("=" * 70)

    if sandbox_instance:
        await sandbox_instance.shutdown()
    if transcript_sync_instance:
        await transcript_sync_instance.stop()
    if db_conn:
        db_conn.close()

    logger.info("✅ Reddit Deep-Dive Analyst shut down successfully")


# Create FastAPI application
app = FastAPI(
    title="Reddit Deep-Dive Analyst",
    description="Research AI tools through Reddit discussions with a sandboxed agent",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routers
app.include_router(conversations.router)


@app.get("/health")
async def health():
    """
    Simple health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "Reddit Deep-Dive Analyst",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deepdive.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
