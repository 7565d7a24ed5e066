from contextlib import asynccontextmanager
from enum import Enum
from functools import partial

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from . import crud, reports
from .config import get_settings
from .db import get_db, init_db
from .exceptions import (
    InvalidActionError,
    NotFoundError,
    ResourceError,
    ValidationError,
)
from .logging import get_logger, setup_logging
from .schemas import MAX_ID

_log = get_logger(__name__)
settings = get_settings()


class Action(str, Enum):
    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    GET_INGREDIENTS = "getIngredients"
    ADD_INGREDIENT = "addIngredient"
    REMOVE_INGREDIENT = "removeIngredient"
    MOST_USED_INGREDIENTS = "getMostUsedIngredients"
    UPDATE_RECIPE_INGREDIENT = "updateRecipeIngredient"
    SUMMARY = "getSummary"
    DASHBOARD_STATS = "getDashboardStats"


# Older clients use these names
ACTION_ALIASES = {"getAll": Action.LIST, "add": Action.CREATE}


def parse_action(raw) -> Action:
    if isinstance(raw, str) and raw in ACTION_ALIASES:
        return ACTION_ALIASES[raw]
    try:
        return Action(raw)
    except ValueError:
        raise InvalidActionError(raw) from None


def require_int(params: dict, name: str) -> int:
    value = params.get(name)
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{name} is required")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None
    if abs(number) > MAX_ID:
        raise ValidationError(f"{name} is out of range")
    return number


def require(params: dict, name: str):
    value = params.get(name)
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{name} is required")
    return value


# Entity actions, shared by every resource in crud.RESOURCES


def list_action(db, params, resource):
    return {"success": True, "data": crud.list_records(db, resource)}


def get_action(db, params, resource):
    record_id = require_int(params, "id")
    try:
        record = crud.get_record(db, resource, record_id)
    except NotFoundError:
        record = None
    return {"success": True, "data": record}


def create_action(db, params, resource):
    record_id = crud.create_record(db, resource, params)
    return {"success": True, "id": record_id}


def update_action(db, params, resource):
    record_id = require_int(params, "id")
    success = crud.update_record(db, resource, record_id, params)
    return {"success": success, "id": record_id}


def delete_action(db, params, resource):
    record_id = require_int(params, "id")
    return {"success": crud.delete_record(db, resource, record_id)}


ENTITY_ACTIONS = {
    Action.LIST: list_action,
    Action.GET: get_action,
    Action.CREATE: create_action,
    Action.UPDATE: update_action,
    Action.DELETE: delete_action,
}


# Recipe-only actions: which ingredients a recipe uses


def recipe_ingredients_action(db, params):
    data = reports.recipe_usage(db, require_int(params, "id"))
    return {"success": True, "data": data}


def add_ingredient_action(db, params):
    success = reports.add_usage_row(
        db,
        require_int(params, "id"),
        require_int(params, "ingredient_id"),
        require(params, "quantity_used"),
        require(params, "cost_of_use"),
    )
    return {"success": success}


def remove_ingredient_action(db, params):
    removed = reports.remove_usage_row(
        db, require_int(params, "id"), require_int(params, "ingredient_id")
    )
    return {"success": removed}


RECIPE_ACTIONS = {
    Action.GET_INGREDIENTS: recipe_ingredients_action,
    Action.ADD_INGREDIENT: add_ingredient_action,
    Action.REMOVE_INGREDIENT: remove_ingredient_action,
}


# Reports


def most_used_action(db, params):
    return {"success": True, "data": reports.most_used_ingredients(db)}


def update_recipe_ingredient_action(db, params):
    success = reports.update_usage_row(
        db,
        require_int(params, "recipe_id"),
        require_int(params, "ingredient_id"),
        require(params, "quantity_used"),
        require(params, "cost_of_use"),
    )
    return {"success": success, "message": "Recipe ingredient updated"}


def summary_action(db, params):
    return {"success": True, "data": reports.report_summary(db)}


def dashboard_action(db, params):
    return {"success": True, "data": reports.dashboard_stats(db)}


REPORT_ACTIONS = {
    Action.MOST_USED_INGREDIENTS: most_used_action,
    Action.UPDATE_RECIPE_INGREDIENT: update_recipe_ingredient_action,
    Action.SUMMARY: summary_action,
    Action.DASHBOARD_STATS: dashboard_action,
}


def route(resource_name: str, action: Action):
    """Pick the handler for (resource, action); handlers take (db, params)."""
    if resource_name == "reports":
        handler = REPORT_ACTIONS.get(action)
    elif resource_name in crud.RESOURCES:
        resource = crud.RESOURCES[resource_name]
        handler = ENTITY_ACTIONS.get(action)
        if handler is not None:
            handler = partial(handler, resource=resource)
        elif resource_name == "recipes":
            handler = RECIPE_ACTIONS.get(action)
    else:
        raise NotFoundError("Resource", resource_name)
    if handler is None:
        raise InvalidActionError(action.value)
    return handler


async def request_params(request: Request) -> dict:
    """Merge query parameters with the form or JSON body of a POST."""
    params = dict(request.query_params)
    if request.method == "POST":
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                body = await request.json()
            except ValueError:
                raise ValidationError("Malformed JSON body") from None
            if not isinstance(body, dict):
                raise ValidationError("JSON body must be an object")
            params.update(body)
        else:
            form = await request.form()
            params.update(form)
    return params


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_format)
    init_db()
    yield


app = FastAPI(title="Recipe Manager", lifespan=lifespan)

# Ingredient images are stored as file names relative to this directory
settings.uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(settings.uploads_dir)), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ResourceError)
async def resource_error_handler(request: Request, exc: ResourceError):
    _log.warning(
        "{} {} failed: {} ({})",
        request.method,
        request.url.path,
        exc.message,
        type(exc).__name__,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.api_route("/api/{resource_name}", methods=["GET", "POST"])
def dispatch(
    resource_name: str,
    params: dict = Depends(request_params),
    db: Session = Depends(get_db),
):
    action = parse_action(params.get("action"))
    handler = route(resource_name, action)
    return handler(db, params)
