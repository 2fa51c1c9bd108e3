# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/gastown_formula

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gastown_formula import __version__, bridge
from gastown_formula.config import get_settings
from gastown_formula.core.errors import FormulaError
from gastown_formula.core.formula import CookedFormula
from gastown_formula.engine import cooker, parser
from gastown_formula.engine.topology import compile_molecule
from gastown_formula.utils.logger import logger


# --- Data Models ---
class FormulaTextRequest(BaseModel):
    content: str


class CookRequest(BaseModel):
    formula: Dict[str, Any]
    vars: Dict[str, Any] = {}


class CookBatchRequest(BaseModel):
    formulas: List[Any]
    vars: List[Any]


class MoleculeRequest(BaseModel):
    formula: Dict[str, Any]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    logger.info("Formula service starting up...")
    yield
    # Shutdown
    logger.info("Formula service shutting down...")


app = FastAPI(
    title="Gas Town Formula Service",
    description="Parses, cooks and compiles formulas into molecules",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(FormulaError)
async def formula_error_handler(request: Request, exc: FormulaError) -> JSONResponse:
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": exc.to_dict()})


@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.get("/metrics")
async def metrics() -> Dict[str, Any]:
    return bridge.get_metrics()


@app.post("/formula/parse")
async def parse_formula(req: FormulaTextRequest) -> Dict[str, Any]:
    return bridge.parse_formula(req.content)


@app.post("/formula/validate")
async def validate_formula(req: FormulaTextRequest) -> Dict[str, bool]:
    return {"valid": bridge.validate_formula(req.content)}


@app.post("/formula/type")
async def formula_type(req: FormulaTextRequest) -> Dict[str, str]:
    return {"type": bridge.get_formula_type(req.content)}


@app.post("/formula/cook")
async def cook_formula(req: CookRequest) -> Dict[str, Any]:
    formula = parser.parse_dict(req.formula)
    bindings = bridge.load_bindings(req.vars, "vars")
    return cooker.cook(formula, bindings).model_dump(mode="json", by_alias=True)


@app.post("/formula/cook-batch")
async def cook_batch(req: CookBatchRequest) -> Dict[str, List[Dict[str, Any]]]:
    results = await bridge.cook_batch_items_async(req.formulas, req.vars, get_settings().max_parallel_cooks)
    return {"results": results}


@app.post("/molecule")
async def generate_molecule(req: MoleculeRequest) -> Dict[str, Any]:
    cooked = parser.parse_dict(req.formula, CookedFormula)
    return compile_molecule(cooked).model_dump(mode="json", by_alias=True)
