from pydantic import BaseModel, ConfigDict


class AppBaseModel(BaseModel):
    # Base de todos os schemas: aceita objetos ORM e recusa campos desconhecidos
    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid"
    )
