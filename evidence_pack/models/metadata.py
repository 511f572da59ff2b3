"""Pydantic models for run metadata, the pack's existence gate."""

from __future__ import annotations

from typing import Any

import pydantic

from evidence_pack.models.base import PackModel


class Viewport(PackModel):
    """Browser viewport used for the run."""

    width: int
    height: int


class RunMetadata(PackModel):
    """Identity and context of one recorded browser run.

    ``run_id`` names the pack directory and is the only required
    field.  Keys this model does not know are kept as extras so
    metadata written by newer capture versions round-trips intact.

    A known optional key whose value has the wrong shape (a string
    ``startedAt``, a viewport without a height) reads as ``None``;
    its raw value is kept in ``unparsed`` and written back unchanged.
    Keys given explicitly as ``null`` are written back as ``null``.
    """

    model_config = pydantic.ConfigDict(extra="allow")

    run_id: str = pydantic.Field(min_length=1)
    url: str | None = None
    started_at: int | float | None = None
    finished_at: int | float | None = None
    user_agent: str | None = None
    viewport: Viewport | None = None
    locale: str | None = None
    template: str | None = None
    crawler_version: str | None = None
    feature_flags: dict[str, bool] | None = None
    expected_tags: dict[str, list[str]] | None = None
    notes: str | None = None

    _unparsed: dict[str, Any] = pydantic.PrivateAttr(default_factory=dict)

    @pydantic.model_validator(mode="wrap")
    @classmethod
    def _set_aside_malformed(cls, data: Any, handler: pydantic.ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(data)
        except pydantic.ValidationError as exc:
            if not isinstance(data, dict):
                raise
            keys = cls._malformed_keys(exc)
            if keys is None:
                raise
            metadata = handler({key: value for key, value in data.items() if key not in keys})
            metadata._unparsed = {key: value for key, value in data.items() if key in keys}
            return metadata

    @classmethod
    def _malformed_keys(cls, exc: pydantic.ValidationError) -> set[str] | None:
        """Input keys behind *exc*, or ``None`` if a required field failed."""
        keys: set[str] = set()
        for error in exc.errors():
            loc = error["loc"]
            name = cls._field_named(loc[0]) if loc else None
            if name is None or cls.model_fields[name].is_required():
                return None
            keys.update({name, cls.model_fields[name].alias or name})
        return keys

    @classmethod
    def _field_named(cls, key: Any) -> str | None:
        for name, field in cls.model_fields.items():
            if key in (name, field.alias):
                return name
        return None

    @property
    def unparsed(self) -> dict[str, Any]:
        """Optional keys whose raw values failed validation."""
        return dict(self._unparsed)

    def _null_keys(self) -> set[str]:
        fields = type(self).model_fields
        explicit = {
            key
            for name in self.model_fields_set
            if name in fields
            for key in (name, fields[name].alias or name)
        }
        return super()._null_keys() | explicit

    def _passthrough(self) -> dict[str, Any]:
        return dict(self._unparsed)
