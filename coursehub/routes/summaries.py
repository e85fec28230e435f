"""Summary projections embedded in responses when references are expanded."""

from pydantic import BaseModel


class UserSummary(BaseModel):
    id: str
    username: str
    email: str


class FileSummary(BaseModel):
    id: str
    filename: str
    file_path: str


class NamedSummary(BaseModel):
    id: str
    name: str


def normalize_name(value: str, max_length: int = 100) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Name is required.')
    if len(normalized) > max_length:
        raise ValueError(f'Name must be {max_length} characters or fewer.')
    return normalized
