import logging
import os
import time
import uuid
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from formgen import llm_client
from formgen.auth import (
    SESSION_COOKIE,
    ADMIN_SESSION_TTL_SECONDS,
    AdminUnauthorized,
    create_session,
    current_admin,
    destroy_session,
    is_valid_email,
    require_admin,
)
from formgen.models import AdminLoginRequest, ConfigRequest, PromptRequest, SubmitRequest
from formgen.pipeline import normalize_form_config
from formgen.render import render_admin_page
from formgen.storage import get_repository
from formgen.validators import validate_config
from formgen.wizard import is_form_complete


if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

app = FastAPI(title="formgen")

allow_origins = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "http.request: rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


@app.exception_handler(AdminUnauthorized)
async def admin_unauthorized_handler(request: Request, exc: AdminUnauthorized):
    return JSONResponse(status_code=401, content={"success": False, "message": exc.message})


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _admin_error(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/llm/status")
def llm_status_endpoint() -> Dict[str, Any]:
    return llm_client.status()


@app.post("/api/prompt")
def prompt_endpoint(req: PromptRequest):
    """Generate a form for `prompt`, store it under the prompt as label, return both."""
    prompt = (req.prompt or "").strip()
    if not prompt:
        return _error(400, "Invalid request", message="prompt is required")
    config = llm_client.generate_form(prompt)
    try:
        form_id, source = get_repository().create_form_config(prompt, config)
    except Exception as exc:
        log.exception("api.prompt: storing form config failed")
        return _error(500, "Failed to store form configuration", message=str(exc))
    log.info("api.prompt: stored id=%s source=%s steps=%d", form_id, source, len(config["steps"]))
    return {
        "id": form_id,
        "config": config,
        "message": "Form configuration generated successfully",
        "source": source,
    }


@app.get("/api/forms")
def list_forms():
    try:
        forms, source = get_repository().list_form_configs()
    except Exception as exc:
        log.exception("api.forms: listing failed")
        return _error(500, "Failed to fetch form configurations", message=str(exc))
    return {"data": forms, "source": source}


@app.get("/api/forms/{form_id}")
def get_form(form_id: str):
    try:
        fid = int(form_id)
    except ValueError:
        return _error(400, "Invalid form ID")
    try:
        form, source = get_repository().get_form_config(fid)
    except Exception as exc:
        log.exception("api.forms: fetch failed id=%s", fid)
        return _error(500, "Failed to fetch form configuration", message=str(exc))
    if form is None:
        return _error(404, "Form configuration not found")
    return dict(form, source=source)


@app.post("/api/submit")
def submit_endpoint(req: SubmitRequest):
    """Store a response; report `complete` when the referenced form can be checked."""
    repo = get_repository()
    label = (req.label or "").strip() or "Unnamed Form"
    try:
        resp_id, source = repo.create_form_response(
            label, req.response, req.language or "en", req.portal, req.form_config_id
        )
    except Exception as exc:
        log.exception("api.submit: storing response failed")
        return _error(500, "Failed to submit form response", message=str(exc))
    out: Dict[str, Any] = {"id": resp_id, "message": "Form response submitted successfully", "source": source}
    if req.form_config_id is not None:
        try:
            form, _ = repo.get_form_config(req.form_config_id)
        except Exception:
            log.warning("api.submit: could not load form id=%s for completeness", req.form_config_id, exc_info=True)
            form = None
        if form is not None and isinstance(req.response, dict):
            out["complete"] = is_form_complete(form.get("config") or {}, req.response)
    return out


@app.post("/api/normalize")
def normalize_endpoint(req: ConfigRequest) -> Dict[str, Any]:
    return normalize_form_config(req.config)


@app.post("/api/validate")
def validate_endpoint(req: ConfigRequest):
    """
    Returns 200 and {"detail":{"valid":true}} on success,
            422 and {"detail":{"valid":false,"errors":[...]}} on failure.
    """
    valid, errors = validate_config(req.config)
    detail: Dict[str, Any] = {"valid": valid}
    if not valid:
        detail["errors"] = errors
        return JSONResponse(status_code=422, content={"detail": detail})
    return {"detail": detail}


# Admin


@app.post("/api/admin/login")
def admin_login(req: AdminLoginRequest, response: Response):
    if not is_valid_email(req.email):
        return _admin_error("Invalid email address", status_code=400)
    token = create_session(req.email)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=ADMIN_SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
    )
    log.info("admin.login: session created")
    return {"success": True, "message": "Admin login successful"}


@app.post("/api/admin/logout")
def admin_logout(request: Request, response: Response):
    destroy_session(request.cookies.get(SESSION_COOKIE))
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True, "message": "Logged out successfully"}


@app.get("/api/admin/status")
def admin_status(request: Request):
    sess = current_admin(request)
    if sess is None:
        return {"success": True, "isAuthenticated": False}
    return {"success": True, "isAuthenticated": True, "user": {"email": sess.get("email"), "isAdmin": True}}


def _response_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row.get("id"),
        "label": row.get("label") or "Unnamed Form",
        "submittedAt": row.get("created_at"),
        "responses": row.get("response") or {},
    }


def _form_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row.get("id"),
        "label": row.get("label") or "Unnamed Form",
        "createdAt": row.get("created_at"),
        "config": row.get("config"),
    }


@app.get("/api/admin/responses")
def admin_responses(_: Dict[str, object] = Depends(require_admin)):
    try:
        rows, source = get_repository().list_form_responses()
    except Exception:
        log.exception("admin.responses: listing failed")
        return _admin_error("Failed to fetch form responses")
    return {"success": True, "source": source, "data": [_response_view(r) for r in rows]}


@app.get("/api/admin/responses/{label}")
def admin_responses_by_label(label: str, _: Dict[str, object] = Depends(require_admin)):
    if not label.strip():
        return _admin_error("Form label is required", status_code=400)
    try:
        rows, source = get_repository().list_form_responses_by_label(label)
    except Exception:
        log.exception("admin.responses: listing failed label=%r", label)
        return _admin_error("Failed to fetch form responses")
    return {
        "success": True,
        "source": source,
        "formLabel": label,
        "data": [_response_view(r) for r in rows],
    }


@app.get("/api/admin/forms")
def admin_forms(_: Dict[str, object] = Depends(require_admin)):
    try:
        rows, source = get_repository().list_form_configs()
    except Exception:
        log.exception("admin.forms: listing failed")
        return _admin_error("Failed to fetch form configurations")
    return {"success": True, "source": source, "data": [_form_view(r) for r in rows]}


@app.get("/admin", response_class=HTMLResponse)
def admin_page(sess: Dict[str, object] = Depends(require_admin)):
    repo = get_repository()
    forms, source = repo.list_form_configs()
    responses, _ = repo.list_form_responses()
    email = sess.get("email")
    return HTMLResponse(render_admin_page(forms, responses, source=source, admin_email=email if isinstance(email, str) else None))
