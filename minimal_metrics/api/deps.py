import os
from functools import lru_cache
from pathlib import Path

from fastapi import Request

from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.rules.loader import load_rules
from minimal_metrics.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.db_path = os.environ.get("DATABASE_PATH", "./data/metrics.db")
        self.rules_path = Path(os.environ.get("RULES_PATH", str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
def get_rules(settings: Settings) -> Rules:
    return load_rules(settings.rules_path)


# --- Context ---
def get_context(request: Request) -> AppContext:
    context: AppContext = request.app.state.context
    return context
