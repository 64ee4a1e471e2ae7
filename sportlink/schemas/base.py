# sportlink/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Wire schema using the clients' camelCase keys (senderId, ageGroups, ...).

    Input accepts both camelCase and snake_case; responses are serialized
    by alias, so FastAPI emits camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
