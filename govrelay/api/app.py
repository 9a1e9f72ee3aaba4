"""
govrelay HTTP API

FastAPI application with two core endpoints:

    POST /relay     submit a signed ForwardRequest through the forwarder
    GET  /execute   run one execution sweep over all proposals

plus read-only helpers for the voting client (/nonce, /proposals, /health).
The app holds nothing but the read-only configuration and a ledger factory;
every request builds its own ledger and holds it open for the request.
"""

import asyncio
import time
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from ..config import RelayerConfig, load_config
from ..constants import PROPOSAL_READ_CONCURRENCY, RELAY_RATE_LIMIT
from ..exceptions import GovRelayException, MalformedRequestError
from ..governance.scheduler import ExecutionScheduler
from ..ledger import Ledger, LedgerClient
from ..logger import get_logger
from ..relay.service import RelayService
from ..relay.types import MISSING_REQUEST_OR_SIGNATURE, parse_address

logger = get_logger(__name__)

API_VERSION = "1.0.0"
DAEMON_NOT_CONFIGURED = "Daemon not configured"

LedgerFactory = Callable[[RelayerConfig], Ledger]


def default_ledger_factory(config: RelayerConfig) -> Ledger:
    return LedgerClient(config)


limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _config(request: Request) -> RelayerConfig:
    return request.app.state.config


def _ledger(request: Request) -> Ledger:
    return request.app.state.ledger_factory(request.app.state.config)


# ============================================================================
# RELAY
# ============================================================================

@router.post("/relay")
@limiter.limit(str(RELAY_RATE_LIMIT))
async def relay(request: Request):
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return _error(400, MISSING_REQUEST_OR_SIGNATURE)

    service = RelayService(_config(request), request.app.state.ledger_factory)
    outcome = await service.relay(body.get("request"), body.get("signature"))
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_dict())


# ============================================================================
# EXECUTION DAEMON
# ============================================================================

@router.get("/execute")
async def execute(request: Request):
    config = _config(request)
    if not config.daemon_configured:
        return _error(500, DAEMON_NOT_CONFIGURED)

    ledger = _ledger(request)
    try:
        async with ledger:
            report = await ExecutionScheduler(ledger, concurrency=config.sweep_concurrency).sweep()
    except GovRelayException as e:
        logger.error(f"[Daemon] Sweep failed: {e}")
        return _error(500, str(e))
    return report.to_dict()


# ============================================================================
# READ HELPERS
# ============================================================================

@router.get("/nonce/{address}")
async def nonce(request: Request, address: str):
    try:
        checksummed = parse_address("address", address)
    except MalformedRequestError:
        return _error(400, "Invalid address")
    ledger = _ledger(request)
    try:
        async with ledger:
            value = await ledger.get_nonce(checksummed)
    except GovRelayException as e:
        return _error(500, str(e))
    return {"address": checksummed, "nonce": value}


@router.get("/proposals")
async def proposals(request: Request):
    ledger = _ledger(request)
    semaphore = asyncio.Semaphore(PROPOSAL_READ_CONCURRENCY)

    async def read(pid: int):
        async with semaphore:
            return await ledger.get_proposal(pid)

    try:
        async with ledger:
            count = await ledger.get_proposal_count()
            items = await asyncio.gather(*(read(pid) for pid in range(count, 0, -1)))
    except GovRelayException as e:
        return _error(500, str(e))

    now = time.time()
    return {
        "count": count,
        "proposals": [
            {**p.to_dict(), "status": p.display_status(now).value} for p in items
        ],
    }


@router.get("/health")
async def health(request: Request):
    """Reports whether the node answers on the configured chain."""
    config = _config(request)
    ledger = _ledger(request)
    try:
        async with ledger:
            chain_id = await ledger.get_chain_id()
    except GovRelayException as e:
        logger.warning(f"[API] Health check cannot reach the node: {e}")
        chain_id = None
    if chain_id is not None and chain_id != config.chain_id:
        logger.warning(f"[API] Node reports chain {chain_id}, expected {config.chain_id}")
    return {
        "ok": chain_id == config.chain_id,
        "chainId": chain_id,
        "relayConfigured": config.relay_configured,
        "daemonConfigured": config.daemon_configured,
        "expectedChainId": config.chain_id,
    }


# ============================================================================
# APPLICATION SETUP
# ============================================================================

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"[API] Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
    return _error(500, "Internal Server Error")


def create_app(
    config: Optional[RelayerConfig] = None,
    ledger_factory: Optional[LedgerFactory] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        config: Loaded with load_config() when omitted
        ledger_factory: Builds a Ledger per request; LedgerClient by default
    """
    app = FastAPI(
        title="govrelay",
        description="Gasless DAO voting relay and proposal execution daemon.",
        version=API_VERSION,
    )
    app.state.config = config if config is not None else load_config()
    app.state.ledger_factory = ledger_factory or default_ledger_factory

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
