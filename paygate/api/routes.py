import uuid

from fastapi import APIRouter, Depends, Request, Response

from paygate.api.schemas import PinSubmit, StepView, UsernameSubmit
from paygate.api.tabs import TabRegistry, get_tabs
from paygate.core import steps as st
from paygate.core.controller import SessionController
from paygate.core.renderer import render_controller
from paygate.settings import settings

router = APIRouter(prefix="/gateway", tags=["gateway"])


def tab_scope(request: Request, response: Response) -> str:
    """Tab id from the cookie; a new tab gets a fresh one."""
    scope = request.cookies.get(settings.TAB_COOKIE_NAME)
    if not scope:
        scope = uuid.uuid4().hex
        response.set_cookie(settings.TAB_COOKIE_NAME, scope, httponly=True, samesite="strict")
    return scope


def _controller(scope: str, registry: TabRegistry, action: str) -> SessionController:
    c = registry.find(scope)
    if c is None or c.last_url is None:
        # Process restarted or the tab never opened the flow.
        raise st.IllegalActionError(action, "unloaded", "open /gateway?transactionId=... first")
    return c


@router.get("", response_model=StepView)
async def open_gateway(request: Request, scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    """Page load: reconcile `?transactionId=` against the tab store."""
    c = registry.get(scope)
    c.navigate(str(request.url))
    return render_controller(c)


@router.get("/view", response_model=StepView)
async def current_view(scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    return render_controller(_controller(scope, registry, "view"))


@router.post("/username", response_model=StepView)
async def submit_username(body: UsernameSubmit, scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    c = _controller(scope, registry, st.SUBMIT_USERNAME)
    await c.submit_username(body.username)
    return render_controller(c)


@router.post("/pin", response_model=StepView)
async def submit_pin(body: PinSubmit, scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    c = _controller(scope, registry, st.SUBMIT_PIN)
    await c.submit_pin(body.pin)
    return render_controller(c)


@router.post("/retry", response_model=StepView)
async def retry(scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    c = _controller(scope, registry, st.RETRY)
    c.retry()
    return render_controller(c)


@router.post("/close", response_model=StepView)
async def close(scope: str = Depends(tab_scope), registry: TabRegistry = Depends(get_tabs)):
    c = _controller(scope, registry, st.CLOSE)
    c.close()
    return render_controller(c)
