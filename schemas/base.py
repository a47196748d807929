"""
Shared Pydantic base model
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every schema exchanged with callers.

    Python attributes are snake_case; serialized JSON uses camelCase
    (``dataQualityRules``, ``totalRecords``). Input accepts either spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
