# oru_analyzer/validation/validators.py
from typing import Optional

from pydantic import BaseModel, field_validator

from oru_analyzer.commons.constants import HEADER_MARKER, MSH
from oru_analyzer.commons.errors import EmptyInputError, FormatError
from oru_analyzer.commons.logger import logger
from oru_analyzer.parsers.base import _field, _split_fields, split_segments


class MessageHeader(BaseModel):
    sending_app: str = ""
    message_type: str = ""  # MSH-9, normalmente "ORU^R01"
    control_id: str = ""
    version: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def is_oru(self) -> bool:
        return self.message_type.startswith("ORU")


# --------- Utilidades para construir el modelo desde el texto ----------
def parse_header_from_text(text: str) -> Optional[MessageHeader]:
    msh = next((s for s in split_segments(text) if s.startswith(MSH)), None)
    if msh is None:
        return None
    f = _split_fields(msh)
    # MSH-1 es el propio separador, así que MSH-n => fields[n - 1]
    return MessageHeader(
        sending_app=_field(f, 2),
        message_type=_field(f, 8),
        control_id=_field(f, 9),
        version=_field(f, 11),
    )


def validate_oru_message_or_raise(text: str, header_marker: str = HEADER_MARKER) -> MessageHeader:
    """Checks the message is worth parsing and returns its header.

    Raises EmptyInputError for blank text and FormatError when the header
    marker is missing.
    """
    if not text or not text.strip():
        raise EmptyInputError()
    if header_marker not in text:
        raise FormatError()

    header = parse_header_from_text(text) or MessageHeader()
    if header.message_type and not header.is_oru:
        logger.warning(f"Mensaje {header.message_type!r} no es ORU; se analiza de todas formas")
    return header
