from typing import Annotated

from pydantic import BaseModel, StringConstraints

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class RegisterRequest(BaseModel):
    username: NonEmptyStr
    email: NonEmptyStr
    password: Annotated[str, StringConstraints(min_length=1)]


class LoginRequest(BaseModel):
    # missing credentials fail like wrong ones
    username: str = ""
    password: str = ""
