#!/usr/bin/env python3
"""
server.py - Template evaluation service

FastAPI-based server that evaluates Simplex templates against JSON contexts,
using key resolvers and template sets from declarative configuration files.
"""

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from simplex import CyclicDelegationError, Simplex, TemplateSyntaxError, UnknownPipeError
from simplex.config import ConfigLoader

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Simplex Template API", version="1.0.0")

# Initialize components
config_loader = ConfigLoader(os.environ.get("SIMPLEX_CONFIG_DIR", "configs"))
simplex = Simplex()


class EvalRequest(BaseModel):
    template: str
    context: Any = None
    resolver: Optional[str] = None


class PathRequest(BaseModel):
    path: str
    context: Any = None


class RenderRequest(BaseModel):
    context: Any = None


def _evaluator(resolver: Optional[str]) -> Simplex:
    if not resolver:
        return simplex
    return simplex.with_keys(config_loader.build_resolver(resolver))


def _run(fn):
    """Map engine and configuration errors to HTTP errors."""
    try:
        return fn()
    except (TemplateSyntaxError, UnknownPipeError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (CyclicDelegationError, ValueError) as e:
        logger.exception("Invalid configuration")
        raise HTTPException(status_code=500, detail=f"Invalid configuration: {str(e)}")


@app.post("/eval")
async def evaluate(request: EvalRequest):
    """
    Evaluate one template against the request context.

    Args:
        request: Template, context and an optional key resolver config name

    Returns:
        {"result": value}; a template that is a single expression keeps the
        expression's native type
    """
    result = _run(lambda: _evaluator(request.resolver).eval(request.template, request.context))
    return {"result": result}


@app.post("/path")
async def get_path(request: PathRequest):
    """Resolve a dotted path or JSONPath against the request context."""
    result = _run(lambda: simplex.get_path(request.path, request.context))
    return {"result": result}


@app.post("/render/{template_set}")
async def render(template_set: str, request: RenderRequest):
    """
    Render every template of a configured template set.

    Args:
        template_set: Name of templates/<template_set>.json
        request: Context shared by all templates

    Returns:
        Rendered values by field name
    """
    def render_all() -> Dict[str, Any]:
        templates, resolver = config_loader.template_set(template_set)
        evaluator = _evaluator(resolver)
        return {
            field_name: evaluator.eval(template, request.context)
            for field_name, template in templates.items()
        }

    return _run(render_all)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
