"""
Application wiring.

    from fastapi import FastAPI
    from crudgate.main import initialize_api

    app = FastAPI(lifespan=...)
    gateway = initialize_api(app, config)

or simply ``create_app(config)``, which owns the lifespan too.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .api.keys import build_keys_router
from .api.tables import build_table_router
from .auth.deps import KeyGates
from .config import APP_HOST, APP_PORT, GatewayConfig, load_config
from .db import Connector, connect
from .errors import ConfigurationError, GatewayError, gateway_error_handler
from .keystore import KeyStore, build_keystore
from .logging_config import setup_logging
from .middleware import TracingMiddleware

logger = logging.getLogger("crudgate")


class Gateway:
    """The connector and key store one app instance owns."""

    def __init__(self, config: GatewayConfig, connector: Connector, keystore: KeyStore):
        self.config = config
        self.connector = connector
        self.keystore = keystore

    async def startup(self) -> None:
        if self.keystore.eager_schema:
            await self.keystore.ensure_schema()
        if not await self.connector.ping():
            logger.warning("main store %r is not reachable yet", self.connector)

    async def close(self) -> None:
        await self.keystore.close()
        await self.connector.close()


def initialize_api(app: FastAPI, config: GatewayConfig, connector: Optional[Connector] = None,
                   keystore: Optional[KeyStore] = None) -> Gateway:
    """
    Mount the key-issuance and table routes under /api/<version>.

    Raises:
        ConfigurationError: unsupported store type.
    """
    connector = connector or connect(config.database)
    keystore = keystore or build_keystore(config, connector)
    gates = KeyGates(keystore)

    # key issuance first so /generate-api-key never matches /{table}
    app.include_router(build_keys_router(keystore, gates, config), prefix=config.prefix)
    app.include_router(build_table_router(connector, gates, config), prefix=config.prefix)
    app.add_exception_handler(GatewayError, gateway_error_handler)

    gateway = Gateway(config, connector, keystore)
    app.state.gateway = gateway
    logger.info("API initialized with version %s", config.prefix)
    return gateway


def create_app(config: Optional[GatewayConfig] = None, connector: Optional[Connector] = None,
               keystore: Optional[KeyStore] = None) -> FastAPI:
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        gateway: Gateway = application.state.gateway
        await gateway.startup()
        logger.info("crudgate ready", extra={"prefix": config.prefix})
        try:
            yield
        finally:
            await gateway.close()
            logger.info("crudgate shut down")

    app = FastAPI(title="crudgate", version=__version__, lifespan=lifespan)
    app.add_middleware(TracingMiddleware)
    initialize_api(app, config, connector=connector, keystore=keystore)
    return app


def run() -> None:
    """Console entry point: serve the env-configured gateway with uvicorn."""
    import uvicorn

    setup_logging()
    try:
        app = create_app(load_config())
    except ConfigurationError as e:
        logger.critical("Error configuring the database: %s", e)
        sys.exit(1)
    uvicorn.run(app, host=APP_HOST, port=APP_PORT, log_config=None)


if __name__ == "__main__":
    run()
