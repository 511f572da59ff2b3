"""Common Pydantic bases for every pack model."""

from __future__ import annotations

from typing import Any

import pydantic

from evidence_pack.utils import serialization


class PackModel(pydantic.BaseModel):
    """camelCase on the wire, snake_case in Python.

    Absent declared fields (``None``) are left out of serialized
    output, so an omitted optional field stays omitted after a round
    trip.  Extra keys are copied as given, ``null`` included.
    Numeric identifiers from older producers are accepted as text.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @pydantic.model_serializer(mode="wrap")
    def _omit_absent(self, handler: pydantic.SerializerFunctionWrapHandler) -> dict[str, Any]:
        kept = self._null_keys()
        data = {key: value for key, value in handler(self).items() if value is not None or key in kept}
        data.update(self._passthrough())
        return data

    def _null_keys(self) -> set[str]:
        """Output keys written even when their value is ``None``."""
        return set(self.__pydantic_extra__ or ())

    def _passthrough(self) -> dict[str, Any]:
        """Raw key/value pairs merged verbatim into serialized output."""
        return {}


class LenientModel(PackModel):
    """A pack model that survives a malformed optional field.

    A value that fails validation is replaced by the field's
    default instead of failing the whole model; only required fields
    still raise.  When validated with a ``context`` dict, the names of
    the reset fields are appended to ``context["reset_fields"]``.
    """

    @pydantic.field_validator("*", mode="wrap")
    @classmethod
    def _default_on_error(
        cls,
        value: Any,
        handler: pydantic.ValidatorFunctionWrapHandler,
        info: pydantic.ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except pydantic.ValidationError:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise
            if isinstance(info.context, dict):
                info.context.setdefault("reset_fields", []).append(info.field_name)
            return field.get_default(call_default_factory=True)
