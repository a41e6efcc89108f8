"""Coach service configuration."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class CoachSettings(BaseModel):
    """Model access and retry policy for the coaching orchestrator."""

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    mock_llm: bool = False
    max_output_tokens: int = Field(ge=1, default=4096)
    temperature: float = Field(ge=0.0, le=2.0, default=0.7)
    max_attempts: int = Field(ge=1, default=3)
    backoff_seconds: float = Field(ge=0.0, default=1.0)   # doubles after each failed attempt

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "CoachSettings":
        """Read settings from the environment, after loading a .env file if present."""
        load_dotenv(env_file)
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",
            mock_llm=os.getenv("MOCK_LLM") == "1",
            max_output_tokens=int(os.getenv("COACH_MAX_OUTPUT_TOKENS", "4096")),
            temperature=float(os.getenv("COACH_TEMPERATURE", "0.7")),
            max_attempts=int(os.getenv("COACH_MAX_ATTEMPTS", "3")),
            backoff_seconds=float(os.getenv("COACH_BACKOFF_SECONDS", "1.0")),
        )
