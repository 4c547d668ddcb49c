"""
FastAPI server hosting one ComparisonCoordinator.

Endpoints:
- POST /values - Submit an encrypted salary
- PUT /values - Update an encrypted salary
- POST /comparisons - Compare caller against one target
- POST /comparisons/batch - Compare caller against several targets
- GET /values/{principal}/handle - Fetch a value handle (owner only)
- GET /comparisons/{user1}/{user2} - Fetch a result handle (participants only)

Handlers are plain functions, so FastAPI runs them on its worker
threadpool; the coordinator lock orders them.

Principals are account addresses; they are lower-cased at this
boundary so that checksummed and plain spellings name the same account.
"""
import argparse
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Annotated, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import AfterValidator, BaseModel, Field

from salarycmp import __version__
from salarycmp.engine.base import HomomorphicEngine
from salarycmp.engine.mock import MockEngine
from salarycmp.server.coordinator import ComparisonCoordinator
from salarycmp.shared.config import CoordinatorConfig
from salarycmp.shared.errors import ComparisonError, ErrorCode, Unauthorized
from salarycmp.shared.protocol import CiphertextHandle
from salarycmp.shared.utils import Timer, is_valid_address

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorCode.INVALID_CIPHERTEXT: 400,
    ErrorCode.SELF_COMPARISON: 400,
    ErrorCode.EMPTY_BATCH: 400,
    ErrorCode.BATCH_TOO_LARGE: 400,
    ErrorCode.DUPLICATE_IN_BATCH: 400,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_PERFORMED: 409,
}


def normalize_address(address: str) -> str:
    """Validate an account address and return its canonical form."""
    if not is_valid_address(address):
        raise ValueError(f"Invalid address: {address}")
    return address.lower()


Address = Annotated[str, AfterValidator(normalize_address)]


# Pydantic models for API
class ValueRequest(BaseModel):
    """Request to submit or update an encrypted value."""
    caller: Address
    handle_b64: str = Field(..., description="Base64-encoded external ciphertext handle")
    proof_b64: str = Field(..., description="Base64-encoded input proof")


class CompareRequest(BaseModel):
    """Request to compare caller against one target."""
    caller: Address
    other: Address


class BatchCompareRequest(BaseModel):
    """Request to compare caller against several targets."""
    caller: Address
    others: List[Address]


class HandleResponse(BaseModel):
    """Reference to a ciphertext held by the engine."""
    id: str
    type: str

    @classmethod
    def from_handle(cls, handle: CiphertextHandle) -> "HandleResponse":
        return cls(id=handle.id, type=handle.type.value)


class EventResponse(BaseModel):
    """An emitted domain event."""
    event: str
    principal: Optional[str] = None
    requester: Optional[str] = None
    target: Optional[str] = None
    time: float
    server_time_ms: float = 0.0


class BatchResponse(BaseModel):
    """Comparisons performed by a batch (skipped pairs are omitted)."""
    performed: List[EventResponse]
    server_time_ms: float


class ExistsResponse(BaseModel):
    exists: bool


class InfoResponse(BaseModel):
    """Public counters."""
    system: str
    total_users: int
    total_comparisons: int
    max_batch_size: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    registered_users: int
    comparisons: int


# Server state
class ServerState:
    """Server state container."""
    def __init__(self):
        self.engine: Optional[HomomorphicEngine] = None
        self.coordinator: Optional[ComparisonCoordinator] = None


state = ServerState()


def configure(
    engine: Optional[HomomorphicEngine] = None,
    config: Optional[CoordinatorConfig] = None,
) -> ComparisonCoordinator:
    """Install a fresh coordinator (MockEngine unless an engine is given)."""
    state.engine = engine or MockEngine()
    state.coordinator = ComparisonCoordinator(state.engine, config=config)
    return state.coordinator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize server on startup."""
    if state.coordinator is None:
        logger.info("No engine configured, starting with MockEngine")
        configure()
    logger.info(f"Server ready: max_batch_size={state.coordinator.config.max_batch_size}")
    yield
    logger.info("Server shutting down")


app = FastAPI(
    title="Salary Compare",
    description="Access-controlled comparison of encrypted salaries",
    version=__version__,
    lifespan=lifespan,
)


def _coordinator() -> ComparisonCoordinator:
    if state.coordinator is None:
        raise HTTPException(status_code=500, detail="Server not initialized")
    return state.coordinator


def _address(address: str) -> str:
    try:
        return normalize_address(address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _decode(b64_str: str, name: str) -> bytes:
    try:
        return base64.b64decode(b64_str, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Failed to decode {name}: {e}")


def _error(e: ComparisonError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_CODES[e.code],
        detail={"code": e.code.value, "message": e.message},
    )


def _event(event, server_time_ms: float = 0.0) -> EventResponse:
    return EventResponse(
        event=type(event).__name__,
        principal=getattr(event, "principal", None),
        requester=getattr(event, "requester", None),
        target=getattr(event, "target", None),
        time=event.time.timestamp(),
        server_time_ms=server_time_ms,
    )


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    info = _coordinator().get_info()
    return HealthResponse(
        status="healthy",
        version=__version__,
        registered_users=info.total_users,
        comparisons=info.total_comparisons,
    )


@app.get("/info", response_model=InfoResponse)
def get_info():
    info = _coordinator().get_info()
    return InfoResponse(
        system=info.system,
        total_users=info.total_users,
        total_comparisons=info.total_comparisons,
        max_batch_size=info.max_batch_size,
    )


@app.post("/values", response_model=EventResponse)
def submit_value(request: ValueRequest):
    """Submit the caller's encrypted salary."""
    handle = _decode(request.handle_b64, "handle")
    proof = _decode(request.proof_b64, "proof")
    with Timer() as t:
        try:
            event = _coordinator().submit_value(request.caller, handle, proof)
        except ComparisonError as e:
            raise _error(e)
    return _event(event, t.elapsed_ms)


@app.put("/values", response_model=EventResponse)
def update_value(request: ValueRequest):
    """Replace the caller's encrypted salary."""
    handle = _decode(request.handle_b64, "handle")
    proof = _decode(request.proof_b64, "proof")
    with Timer() as t:
        try:
            event = _coordinator().update_value(request.caller, handle, proof)
        except ComparisonError as e:
            raise _error(e)
    return _event(event, t.elapsed_ms)


@app.get("/values/{principal}", response_model=ExistsResponse)
def has_value(principal: str):
    return ExistsResponse(exists=_coordinator().has_value(_address(principal)))


@app.get("/values/{principal}/handle", response_model=HandleResponse)
def get_my_value(principal: str, viewer: str):
    """Handle of the principal's current value; only the owner may fetch it."""
    owner = _address(principal)
    try:
        if _address(viewer) != owner:
            raise Unauthorized(f"{viewer} may not fetch the value of {owner}")
        handle = _coordinator().get_my_value(owner)
    except ComparisonError as e:
        raise _error(e)
    return HandleResponse.from_handle(handle)


@app.post("/comparisons", response_model=EventResponse)
def compare(request: CompareRequest):
    """Compare the caller's salary against one target."""
    with Timer() as t:
        try:
            event = _coordinator().compare(request.caller, request.other)
        except ComparisonError as e:
            raise _error(e)
    return _event(event, t.elapsed_ms)


@app.post("/comparisons/batch", response_model=BatchResponse)
def batch_compare(request: BatchCompareRequest):
    """
    Compare the caller's salary against several targets.

    On failure, comparisons performed before the failing entry are kept.
    """
    with Timer() as t:
        try:
            events = _coordinator().batch_compare(request.caller, request.others)
        except ComparisonError as e:
            raise _error(e)
    return BatchResponse(
        performed=[_event(event) for event in events],
        server_time_ms=t.elapsed_ms,
    )


@app.get("/comparisons/{user1}/{user2}", response_model=HandleResponse)
def get_comparison(user1: str, user2: str, viewer: str):
    """Result handle for ordered pair (user1, user2); participants only."""
    try:
        handle = _coordinator().get_comparison(_address(viewer), _address(user1), _address(user2))
    except ComparisonError as e:
        raise _error(e)
    return HandleResponse.from_handle(handle)


@app.get("/comparisons/{user1}/{user2}/exists", response_model=ExistsResponse)
def has_comparison(user1: str, user2: str):
    return ExistsResponse(exists=_coordinator().has_comparison(_address(user1), _address(user2)))


def create_app(
    engine: Optional[HomomorphicEngine] = None,
    config: Optional[CoordinatorConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI app.

    For programmatic use in tests and demos.
    """
    configure(engine, config)
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: Optional[CoordinatorConfig] = None,
):
    """Run the server directly."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    create_app(config=config)
    uvicorn.run(app, host=host, port=port)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Run the Salary Compare server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--max-batch-size", type=int, default=None)
    args = parser.parse_args(argv)

    config = CoordinatorConfig()
    if args.max_batch_size is not None:
        config = CoordinatorConfig(max_batch_size=args.max_batch_size)
    run_server(args.host, args.port, config=config)


if __name__ == "__main__":
    main()
