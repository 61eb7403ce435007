"""FieldConfig — validated options for one file field."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from stowage.errors import ConfigurationError


class FieldConfig(BaseModel):
    """Configuration surface of a file field.

    Attributes:
        destination: Directory (or bucket prefix) receiving artifacts.
            Also accepted as ``dest``.
        overwrite: Replace an existing artifact with the same final name.
        allowed_types: Accepted MIME types; empty means unrestricted.
        filename: Naming policy ``(record, proposed_name) -> final_name``.
        date_prefix: strftime pattern; prefixes the declared name as
            ``<formatted now>-<name>`` before the naming policy runs.
        prefix: Public-location override used instead of the storage path.
        format: Display formatter ``(record, file_data) -> str``.
        pre: Initial pre-move hooks.
        post: Initial post-move hooks.
        verify_presence: Confirm artifacts with the FileStore in ``exists``.
        initial: Unsupported for file fields; must stay False.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
        populate_by_name=True,
    )

    destination: Annotated[
        str,
        Field(min_length=1, validation_alias=AliasChoices("destination", "dest")),
    ]
    overwrite: bool = True
    allowed_types: frozenset[str] = frozenset()
    filename: Callable[[Any, str], str] | None = None
    date_prefix: str | None = None
    prefix: str | None = None
    format: Callable[[Any, dict[str, Any]], str] | None = None
    pre: list[Any] = Field(default_factory=list)
    post: list[Any] = Field(default_factory=list)
    verify_presence: bool = True
    initial: bool = False

    @field_validator("initial")
    @classmethod
    def _reject_initial(cls, value: bool) -> bool:
        if value:
            raise ValueError("file fields do not support being used as initial fields")
        return value

    @field_validator("overwrite", mode="before")
    @classmethod
    def _default_overwrite(cls, value: Any) -> Any:
        # Only an explicit False disables overwriting.
        return value is not False

    @classmethod
    def from_options(
        cls, options: Mapping[str, Any], *, field_key: str | None = None
    ) -> FieldConfig:
        """Validate raw options, converting failures to ConfigurationError.

        Raises:
            ConfigurationError: If ``destination`` is missing or any option
                is invalid.
        """
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            missing = [err for err in e.errors() if err["type"] == "missing"]
            if missing:
                message = "Invalid configuration: the destination option must be set"
            else:
                message = f"Invalid configuration: {e.error_count()} invalid option(s): {e}"
            raise ConfigurationError(message, field_key=field_key) from e
