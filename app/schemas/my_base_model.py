import logging
from typing import Any
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CustomBaseModel(BaseModel):
    """Custom base model for all response schemas.
    - pre-process the data before init
    - set the default value if the value is invalid
    """

    def __init__(self, **data: Any) -> None:
        for attr, value in data.items():
            attr_type = None
            me = self.__class__
            while attr_type is None and me != CustomBaseModel:
                try:
                    attr_type = me.model_fields[attr].annotation
                except Exception:
                    if me.__base__ is not None:
                        me = me.__base__
                    else:
                        break
                    continue

            # process simple type
            if attr_type in (int, float, str, bool) and value is not None:
                try:  #  try to convert the value to the type of the attribute
                    data[attr] = attr_type(getattr(value, "value", value))
                except Exception:
                    logger.debug("Invalid value for key: %s, using default", attr)
                    if attr in me.model_fields:
                        data[attr] = me.model_fields[attr].default
        super().__init__(**data)


class Message(CustomBaseModel):
    message: str = ""
