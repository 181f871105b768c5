from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from paygate.api.routes import router
from paygate.core.steps import IllegalActionError
from paygate.gateway.client import GatewayClient
from paygate.observability.logging import log
from paygate.settings import settings

app = FastAPI(title="Secure Payment Gateway")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Open /gateway?transactionId=<id> to start a confirmation."
    }


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(IllegalActionError)
async def illegal_action_handler(request: Request, exc: IllegalActionError):
    log(event="action_refused", action=exc.action, step=exc.step, reason=exc.reason)
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "action": exc.action, "step": exc.step},
    )


_boot_gateway = GatewayClient()
log(
    event="boot",
    validateUserUrl=_boot_gateway.validate_user_url,
    completeTransactionUrl=_boot_gateway.complete_transaction_url,
    timeoutSec=_boot_gateway.timeout,
)
