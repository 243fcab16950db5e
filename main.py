"""
Course material platform API.

Run with: uvicorn main:create_app --factory --port 8000
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_error_handlers
from api.materials import create_materials_router
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.otp_ledger import OTPLedger
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.tokens import TokenIssuer
from clients.email_client import EmailGatewayClient
from clients.postgres_client import PostgresClient
from clients.storage_client import BlobStore
from clients.valkey_client import ValkeyClient
from clients.vault_client import (
    get_database_url,
    get_email_config,
    get_storage_config,
    get_token_secret,
    get_valkey_url,
)
from core.audit import AuditLogger
from core.database import MaterialDatabase
from core.services.material_service import MaterialService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide collaborators, built once at startup."""

    auth: AuthService
    materials: MaterialService
    token_issuer: TokenIssuer


def build_services(config: AuthConfig | None = None) -> Services:
    """Connect to every backing store using secrets from Vault."""
    config = config or AuthConfig()

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())
    email_client = EmailGatewayClient(**get_email_config())

    storage = get_storage_config()
    blob_store = BlobStore(
        bucket=storage["bucket"],
        public_base_url=storage["public_base_url"],
        region=storage["region"],
        endpoint_url=storage["endpoint_url"],
    )

    token_issuer = TokenIssuer(get_token_secret(), config)

    auth_service = AuthService(
        config=config,
        account_db=AccountDatabase(postgres),
        otp_ledger=OTPLedger(valkey),
        token_issuer=token_issuer,
        email_client=email_client,
        security_logger=SecurityLogger(postgres),
    )
    material_service = MaterialService(
        MaterialDatabase(postgres),
        blob_store,
        AuditLogger(postgres),
    )

    return Services(auth=auth_service, materials=material_service, token_issuer=token_issuer)


def create_app(services: Services | None = None) -> FastAPI:
    """Assemble middleware, error handlers and routers."""
    if services is None:
        load_dotenv()
        logging.basicConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        services = build_services()

    app = FastAPI(title="Uniport Materials")

    # Starlette runs the last-added middleware first
    app.add_middleware(AuthMiddleware, token_issuer=services.token_issuer)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(create_auth_router(services.auth), prefix="/auth")
    app.include_router(create_materials_router(services.materials))

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info("Application assembled")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
