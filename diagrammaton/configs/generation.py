"""
Generation pipeline configuration.

Token budgets, fallback model, watchdog and overall time budget for
provider calls.

Dependencies: pydantic, pydantic_settings
System role: Tuning knobs for the provider adapter layer
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from diagrammaton.configs.base import BaseSettings


class GenerationSettings(BaseSettings):
    """LLM generation configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GENERATION_",
        case_sensitive=False,
        extra="ignore",
    )

    max_tokens: int = Field(default=4096, description="Max output tokens for streamed generations")
    function_call_max_tokens: int = Field(
        default=3000,
        description="Max output tokens for the buffered function-calling path",
    )
    function_call_temperature: float = Field(
        default=1.0,
        description="Sampling temperature for the function-calling path",
    )
    thinking_budget_tokens: int = Field(
        default=1024,
        description="Anthropic extended thinking budget for the thinking variant",
    )
    fallback_model: str = Field(
        default="gpt-4o",
        description="Chat completions model used when Responses streaming fails",
    )
    first_byte_timeout_seconds: float = Field(
        default=10.0,
        description="Abort a stream that produces no event within this window",
    )
    request_budget_seconds: float = Field(
        default=55.0,
        description="Soft end-to-end budget for one generation request",
    )
    budget_warning_seconds: float = Field(
        default=45.0,
        description="Elapsed time after which 'approaching budget' warnings are logged",
    )
    budget_warning_interval_seconds: float = Field(
        default=5.0,
        description="Interval between 'approaching budget' warnings",
    )
