"""
FastAPI diagnostic surface over the active override: what a host resolves to,
what is configured, and whether a given certificate would be accepted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from core.config import settings
from runtime.override import HostOverride

log = logging.getLogger(__name__)

app = FastAPI(title="Netx Override API", version="1.0")
override = HostOverride()


class ValidatePayload(BaseModel):
    host: str
    certificate: Dict[str, Any] = Field(default_factory=dict)
    check_pinning_only: Optional[bool] = None


@app.get("/api/lookup")
def api_lookup(host: str = Query(...), family: int = Query(0), all: bool = Query(False)):
    try:
        result, fam = override.resolve(host, {"family": family, "all": all})
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except OSError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if all:
        return {"host": host, "addresses": result}
    return {"host": host, "address": result, "family": fam}


@app.get("/api/hosts")
def api_hosts():
    return {"hosts": override.book.as_dict()}


@app.post("/api/validate")
def api_validate(payload: ValidatePayload):
    if not payload.certificate.get("fingerprint"):
        raise HTTPException(status_code=400, detail="certificate.fingerprint is required")
    pinning_only = settings.check_pinning_only if payload.check_pinning_only is None else payload.check_pinning_only
    try:
        err = override.check_server_identity(payload.host, payload.certificate, check_pinning_only=pinning_only)
    except Exception as exc:  # noqa: BLE001
        log.exception("validate failed")
        raise HTTPException(status_code=500, detail="validate failed") from exc
    if err is None:
        return {"host": payload.host, "ok": True}
    return {"host": payload.host, "ok": False, "code": getattr(err, "code", None), "error": str(err)}


@app.get("/api/health")
def api_health():
    return {"hosts": len(override.book), "installed": override.installed, "readonly": override.state.readonly}
