from pydantic import BaseModel, ConfigDict


class CellData(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinate: str
    row: int
    column: int
    text: str = ""  # normalised display text, "" when empty
    font_bold: bool = False
    merged: bool = False  # cell belongs to a merged block (master included)
