import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from educonnect.model import BaseModel


class _DictInitMixin(object):
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # allow initialization from a plain dict, e.g. a Configuration provider's value
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


# NOTE: BaseModel comes after PydanticBaseSettings in the MRO so that its
#       by_alias=True model_dump() wins
class BaseSettings(_DictInitMixin, PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    pass


class BaseSecrets(_DictInitMixin, PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    pass
