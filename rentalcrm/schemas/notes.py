# rentalcrm/schemas/notes.py
from typing import Optional

from pydantic import BaseModel


class NoteText(BaseModel):
    text: Optional[str] = None
