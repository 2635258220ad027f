import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from authchain.core.config import ETH_RPC_URL, RPC_TIMEOUT_SECONDS
from authchain.logging_config import configure_logging
from authchain.chain.authenticator import validate_signature
from authchain.chain.exceptions import ProviderRequiredError
from authchain.chain.models import ValidateRequest
from authchain.chain.rpc import JsonRpcProvider, RpcProvider

configure_logging()
log = logging.getLogger("authchain")

app = FastAPI(title="AuthChain Validator", version="0.1.0")


def get_provider() -> Optional[RpcProvider]:
    """Provider for contract-wallet links; None when no RPC URL is configured."""
    if not ETH_RPC_URL:
        return None
    return JsonRpcProvider(ETH_RPC_URL, timeout=RPC_TIMEOUT_SECONDS)


@app.get("/healthz")
def healthz():
    return {"ok": True}

@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id":"-", "route":route, "remote_addr":remote})
    return resp

@app.post("/validate")
async def validate(req: ValidateRequest, request: Request):
    """Validate an AuthChain against the expected final authority.

    Contract-wallet links need AUTHCHAIN_RPC_URL; without it they are
    answered with 503 rather than a validation failure.
    """
    try:
        result = await validate_signature(
            req.expected_final_authority,
            req.auth_chain,
            provider=get_provider(),
            reference_time_ms=req.reference_time_ms,
        )
    except ProviderRequiredError as e:
        log.error(f"validate_misconfigured: {e}")
        return JSONResponse(
            status_code=503,
            content={"detail": "RPC provider not configured for contract wallet validation"},
        )

    log.info("validate_called", extra={"request_id": "-", "route": "/validate",
                                       "remote_addr": request.client.host if request.client else "-"})
    return JSONResponse(result.model_dump())
