from typing import Annotated, Literal

from annotated_types import Ge
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DAGSCHEDULER_")

    max_concurrent_tasks: Annotated[int, Ge(1)] | None = None
    """Max number of tasks running at once. Unbounded if unset."""

    copy_inputs: bool = True
    """Deep copy producer outputs before handing them to consumers."""

    backend: Literal["asyncio", "trio"] = "asyncio"
    """
    Async backend used when running a schedule from synchronous code. The trio
    backend needs the `trio` extra installed.
    """
