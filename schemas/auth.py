from pydantic import AliasChoices, BaseModel, Field


class AuthRequest(BaseModel):
    room_id: str
    # The first clients sent "country"; both spellings are accepted.
    faction: str = Field(validation_alias=AliasChoices("faction", "country"))

class AuthResponse(BaseModel):
    access_token: str
