from fastapi import Body, FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Any, List, Optional
from datetime import date
import logging
import os
from pathlib import Path

from simpleplan.database import engine, get_db, Base
from simpleplan import models  # Import all models to register them with Base
from simpleplan.schemas import (
    Action, ActionCreate, ActionUpdate, CompletionSet, DailyView, DayIntensity,
    DayItem, Goal, GoalCreate, GoalProgressPolicy, GoalReport, GoalUpdate,
    PlanState, Timeframe, Todo, TodoCreate, TodoUpdate
)
from simpleplan.auth import verify_api_key
from simpleplan.exceptions import (
    ActionNotFoundException, GoalNotFoundException, InvalidRecurrenceException,
    PersistenceException, TodoNotFoundException, ValidationException
)
from simpleplan.services.daily_view_service import DailyViewService
from simpleplan.services.plan_service import PlanService
from simpleplan.services.progress_service import ProgressService
from simpleplan.services.store_service import PlanStore
from simpleplan.constants import (
    CORS_ALLOWED_ORIGINS, DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV
)

LOG_DIR = os.getenv("SIMPLEPLAN_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("SIMPLEPLAN_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("simpleplan")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="SimplePlan API",
    description="Goals, recurring actions and daily plans",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    logger.info(f"SimplePlan API started. Logging to: {log_path}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down SimplePlan API")


# ===== ERROR TRANSLATION =====

@app.exception_handler(GoalNotFoundException)
@app.exception_handler(ActionNotFoundException)
@app.exception_handler(TodoNotFoundException)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ValidationException)
@app.exception_handler(InvalidRecurrenceException)
async def invalid_input_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(PersistenceException)
async def persistence_handler(request: Request, exc: PersistenceException):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage unavailable, change was not saved"}
    )


def get_store(db: Session = Depends(get_db)) -> PlanStore:
    return PlanStore(db)


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "SimplePlan API", "status": "active"}


# ===== STATE =====

@app.get("/api/state", response_model=PlanState, dependencies=[Depends(verify_api_key)])
def get_state(store: PlanStore = Depends(get_store)):
    """Full plan snapshot"""
    return store.load_state()


@app.post("/api/import", response_model=PlanState, dependencies=[Depends(verify_api_key)])
def import_state(payload: Any = Body(...), store: PlanStore = Depends(get_store)):
    """Replace the plan with (possibly legacy-shaped) exported data"""
    return store.import_state(payload)


# ===== GOALS =====

@app.get("/api/goals", response_model=List[GoalReport], dependencies=[Depends(verify_api_key)])
def get_goals(
    today: Optional[date] = None,
    policy: GoalProgressPolicy = GoalProgressPolicy.TIME_ELAPSED,
    timeframe: Timeframe = Timeframe.MONTH,
    store: PlanStore = Depends(get_store)
):
    """Goals with progress; the list shows the time-elapsed number by default"""
    today = today or date.today()
    state = store.load_state()
    return [
        ProgressService.goal_report(goal, today, timeframe, policy)
        for goal in state.goals
    ]


@app.post("/api/goals", response_model=Goal, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_goal(goal: GoalCreate, store: PlanStore = Depends(get_store)):
    state = store.create_goal(store.load_state(), goal)
    return state.goals[-1]


@app.put("/api/goals/{goal_id}", response_model=Goal, dependencies=[Depends(verify_api_key)])
def update_goal(goal_id: str, goal_update: GoalUpdate, store: PlanStore = Depends(get_store)):
    state = store.update_goal(store.load_state(), goal_id, goal_update)
    return PlanService.find_goal(state, goal_id)


@app.delete("/api/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_goal(goal_id: str, store: PlanStore = Depends(get_store)):
    store.delete_goal(store.load_state(), goal_id)


@app.get("/api/goals/{goal_id}/progress", response_model=GoalReport, dependencies=[Depends(verify_api_key)])
def get_goal_progress(
    goal_id: str,
    policy: GoalProgressPolicy = GoalProgressPolicy.TIME_ELAPSED,
    timeframe: Timeframe = Timeframe.MONTH,
    today: Optional[date] = None,
    store: PlanStore = Depends(get_store)
):
    """Goal detail: both progress policies, per-action progress and streaks"""
    goal = PlanService.find_goal(store.load_state(), goal_id)
    return ProgressService.goal_report(goal, today or date.today(), timeframe, policy)


@app.get("/api/goals/{goal_id}/calendar", response_model=List[DayIntensity], dependencies=[Depends(verify_api_key)])
def get_goal_calendar(goal_id: str, today: Optional[date] = None, store: PlanStore = Depends(get_store)):
    """Month heatmap of completions across the goal's actions"""
    goal = PlanService.find_goal(store.load_state(), goal_id)
    return ProgressService.month_heatmap(goal, today or date.today())


# ===== ACTIONS =====

@app.post("/api/goals/{goal_id}/actions", response_model=Action, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def add_action(goal_id: str, action: ActionCreate, store: PlanStore = Depends(get_store)):
    state = store.add_action(store.load_state(), goal_id, action)
    return PlanService.find_goal(state, goal_id).actions[-1]


@app.put("/api/actions/{action_id}", response_model=Action, dependencies=[Depends(verify_api_key)])
def update_action(action_id: str, action_update: ActionUpdate, store: PlanStore = Depends(get_store)):
    state = store.update_action(store.load_state(), action_id, action_update)
    return PlanService.find_action(state, action_id)[1]


@app.delete("/api/actions/{action_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_action(action_id: str, store: PlanStore = Depends(get_store)):
    store.delete_action(store.load_state(), action_id)


@app.put("/api/actions/{action_id}/completions/{day}", response_model=Action, dependencies=[Depends(verify_api_key)])
def set_completion(action_id: str, day: date, body: CompletionSet, store: PlanStore = Depends(get_store)):
    """Mark an action done/not done for a day"""
    state = store.set_completion(store.load_state(), action_id, day, body.completed)
    return PlanService.find_action(state, action_id)[1]


# ===== DAY VIEW =====

@app.get("/api/days/{day}", response_model=DailyView, dependencies=[Depends(verify_api_key)])
def get_day(day: date, store: PlanStore = Depends(get_store)):
    """Merged list of todos and the actions that apply on the day"""
    return DailyViewService.merge_day(store.load_state(), day)


@app.put("/api/days/{day}", response_model=DailyView, dependencies=[Depends(verify_api_key)])
def update_day(day: date, items: List[DayItem], store: PlanStore = Depends(get_store)):
    """Save an edited day list: todo edits and action completion toggles"""
    result = store.apply_day_edits(store.load_state(), day, items)
    return DailyViewService.merge_day(result.state, day)


# ===== TODOS =====

@app.post("/api/todos", response_model=Todo, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
def create_todo(todo: TodoCreate, store: PlanStore = Depends(get_store)):
    state = store.add_todo(store.load_state(), todo)
    return state.todos[-1]


@app.put("/api/todos/{todo_id}", response_model=Todo, dependencies=[Depends(verify_api_key)])
def update_todo(todo_id: str, todo_update: TodoUpdate, store: PlanStore = Depends(get_store)):
    state = store.update_todo(store.load_state(), todo_id, todo_update)
    return PlanService.find_todo(state, todo_id)


@app.delete("/api/todos/{todo_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
def delete_todo(todo_id: str, store: PlanStore = Depends(get_store)):
    store.delete_todo(store.load_state(), todo_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("simpleplan.main:app", host="0.0.0.0", port=8000, reload=False)
