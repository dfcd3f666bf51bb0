from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from guardproto.api import deps

router = APIRouter()


class ConsolidateRequest(BaseModel):
    implementations: Optional[List[str]] = None
    priority_sorted: bool = False
    options: Dict[str, Any] = Field(default_factory=dict)


class RunTestsRequest(BaseModel):
    names: Optional[List[str]] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class DispatchRequest(BaseModel):
    callback: str
    args: List[Any] = Field(default_factory=list)


def _published(builder, name: str) -> Optional[Dict[str, Any]]:
    unit = builder.store.get_unit(name)
    if unit is None:
        return None
    return {"generation": unit.generation, "published_at": unit.published_at, "source": unit.source_location}


@router.get("/protocols")
def list_protocols():
    builder = deps.get_builder()
    out = []
    for name in builder.loader.list_protocols():
        impls = builder.loader.list_implementations(name)
        out.append({
            "name": name,
            "implementations": [i.implementation.name for i in impls],
            "published": _published(builder, name),
        })
    return {"protocols": out}


@router.get("/protocols/{name}")
def describe_protocol(name: str):
    builder = deps.get_builder()
    body = builder.get(name).describe()
    body["published"] = _published(builder, name)
    return body


@router.post("/protocols/{name}/consolidate")
def consolidate_protocol(name: str, req: Optional[ConsolidateRequest] = None):
    req = req or ConsolidateRequest()
    builder = deps.get_builder()
    if req.implementations is None:
        unit = builder.consolidate(name, options=req.options)
    else:
        unit = builder.resolve(name, req.implementations, priority_sorted=req.priority_sorted, options=req.options)
    return {
        "protocol": unit.name,
        "implementations": unit.implementations,
        "callbacks": [f"{n}/{a}" for n, a in unit.callbacks()],
        "published": _published(builder, name),
    }


@router.post("/protocols/{name}/tests")
def run_protocol_tests(name: str, req: Optional[RunTestsRequest] = None):
    req = req or RunTestsRequest()
    unit = deps.get_builder().get(name)
    if req.names is None:
        ran = unit.run_all_tests(req.options)
    else:
        for test_name in req.names:
            unit.run_test(test_name, req.options)
        ran = list(req.names)
    return {"protocol": name, "passed": ran}


@router.post("/protocols/{name}/dispatch")
def dispatch(name: str, req: DispatchRequest):
    unit = deps.get_builder().get(name)
    return {"protocol": name, "callback": req.callback, "result": unit.dispatch(req.callback, *req.args)}
