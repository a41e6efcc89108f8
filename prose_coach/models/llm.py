"""Model collaborator contract — what goes to the language model and back."""

from typing import List, Literal

from pydantic import BaseModel


class HistoryTurn(BaseModel):
    """A prior turn in the model's two-party vocabulary."""

    role: Literal["user", "model"]
    parts: List[str]


class ModelRequest(BaseModel):
    system_instruction: str
    history: List[HistoryTurn] = []
    message: str
    user_message: str = ""                  # message without the extraction suffix
    max_output_tokens: int = 4096
    temperature: float = 0.7


class ModelReply(BaseModel):
    text: str
    model: str
    mock: bool = False
