from pydantic import BaseModel


class SessionValidationResponse(BaseModel):
    ok: bool
